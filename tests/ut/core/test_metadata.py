"""包元数据组装测试"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from upmpack.core.config import PackConfig
from upmpack.core.exceptions import ManifestError
from upmpack.core.layout import PackageLayout
from upmpack.core.metadata import (
    assemble_metadata,
    default_metadata,
    derived_keys,
    load_manifest,
    merge_metadata,
)


def _layout(tmp_path: Path, config: PackConfig) -> PackageLayout:
    return PackageLayout.from_config(config, cwd=tmp_path)


class TestDefaults:
    def test_without_company_keeps_placeholder(self) -> None:
        meta = default_metadata("/x/Widget.sln")
        assert meta["name"] == "com.${company}.widget"
        assert meta["displayName"] == "Widget"
        assert meta["version"] == "0.0.1"
        assert "description" not in meta

    def test_with_company(self) -> None:
        assert default_metadata("/x/Widget.sln", "Acme")["name"] == "com.acme.widget"


class TestMerge:
    def test_later_source_wins(self) -> None:
        merged = merge_metadata({"a": "1", "b": "1"}, {"b": "2"}, {"c": "3"})
        assert merged == {"a": "1", "b": "2", "c": "3"}

    def test_none_values_dropped(self) -> None:
        assert merge_metadata({"a": "1"}, {"a": None, "b": None}) == {"a": "1"}


class TestLoadManifest:
    def test_missing(self, tmp_path: Path) -> None:
        assert load_manifest(tmp_path / "package.json") == {}

    def test_clean_ignores_existing(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_text('{"name": "old"}', encoding="utf-8")
        assert load_manifest(p) == {"name": "old"}
        assert load_manifest(p, clean=True) == {}

    def test_invalid_json(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_text("{not json", encoding="utf-8")
        with pytest.raises(ManifestError, match="解析失败"):
            load_manifest(p)

    def test_invalid_utf8(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_bytes(b'{"name": "\xff\xfe"}')
        with pytest.raises(ManifestError, match="解析失败"):
            load_manifest(p)

    def test_not_object(self, tmp_path: Path) -> None:
        p = tmp_path / "package.json"
        p.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_manifest(p)


class TestAssemble:
    def test_precedence(self, tmp_path: Path, make_solution) -> None:
        make_solution(version="1.2.3")
        cfg = PackConfig(sln="src/Widget.sln", target="out/pkg", description="from cli")
        layout = _layout(tmp_path, cfg)
        layout.target.mkdir(parents=True)
        layout.package_json.write_text(json.dumps({
            "name": "com.old.widget",
            "version": "0.9.0",
            "description": "old",
            "keywords": ["unity"],
        }), encoding="utf-8")

        meta = assemble_metadata(cfg, layout)
        # 已有 package.json 覆盖默认值
        assert meta["name"] == "com.old.widget"
        assert meta["keywords"] == ["unity"]
        # 工程版本覆盖 package.json
        assert meta["version"] == "1.2.3"
        # 配置覆盖一切
        assert meta["description"] == "from cli"
        assert meta["unity"] == "6000.0"

    def test_clean_skips_manifest(self, tmp_path: Path, make_solution) -> None:
        make_solution(version=None)
        cfg = PackConfig(sln="src/Widget.sln", target="out/pkg", clean=True, company="Acme")
        layout = _layout(tmp_path, cfg)
        layout.target.mkdir(parents=True)
        layout.package_json.write_text('{"name": "com.old.widget"}', encoding="utf-8")

        meta = assemble_metadata(cfg, layout)
        assert meta["name"] == "com.acme.widget"
        assert meta["version"] == "0.0.1"

    def test_meta_pairs_and_explicit_version(self, tmp_path: Path, make_solution) -> None:
        make_solution(version="1.2.3")
        cfg = PackConfig(
            sln="src/Widget.sln", version="2.0.0",
            meta={"homepage": "https://acme.example"},
        )
        meta = assemble_metadata(cfg, _layout(tmp_path, cfg))
        assert meta["version"] == "2.0.0"
        assert meta["homepage"] == "https://acme.example"


class TestDerivedKeys:
    def test_package_name_and_scope(self) -> None:
        keys = derived_keys({"name": "Com.Acme.My Widget"})
        assert keys == {"packageName": "com.acme.my-widget", "scope": "com.acme"}

    def test_missing_name(self) -> None:
        assert derived_keys({}) == {}
