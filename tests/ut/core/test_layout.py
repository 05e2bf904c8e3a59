"""目录布局测试"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from upmpack.core.config import PackConfig
from upmpack.core.exceptions import ValidationError
from upmpack.core.layout import TEMP_FOLDER_NAME, PackageLayout


class TestPackageLayout:
    def test_paths(self, tmp_path: Path) -> None:
        cfg = PackConfig(sln="src/Widget.sln", target="out/pkg")
        layout = PackageLayout.from_config(cfg, cwd=tmp_path)
        assert layout.api_name == "Widget"
        assert layout.api_folder == tmp_path / "src" / "Widget"
        assert layout.project_file == tmp_path / "src" / "Widget" / "Widget.csproj"
        assert layout.build_output_folder == (
            tmp_path / "src" / "Widget" / "bin" / "release" / "netstandard2.0"
        )
        assert layout.runtime_folder == tmp_path / "out" / "pkg" / "Runtime"
        assert layout.internal_assembly_folder == layout.runtime_folder / "Internal"
        assert layout.package_parent == tmp_path / "out"
        assert layout.notices.name == "Third Party Notices.md"

    def test_default_temp(self, tmp_path: Path) -> None:
        layout = PackageLayout.from_config(PackConfig(sln="Widget.sln"), cwd=tmp_path)
        assert layout.temp == Path(tempfile.gettempdir()).resolve() / TEMP_FOLDER_NAME
        assert layout.nuget == layout.temp / "nuget"

    def test_cache_dir_and_package(self, tmp_path: Path) -> None:
        cfg = PackConfig(sln="Widget.sln", cache_dir="cache", package="dist")
        layout = PackageLayout.from_config(cfg, cwd=tmp_path)
        assert layout.temp == tmp_path / "cache"
        assert layout.package_parent == tmp_path / "dist"

    def test_missing_sln(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError, match="--sln"):
            PackageLayout.from_config(PackConfig(), cwd=tmp_path)

    def test_optional_folders(self, tmp_path: Path) -> None:
        layout = PackageLayout.from_config(PackConfig(sln="Widget.sln"), cwd=tmp_path)
        names = [p.name for p in layout.optional_folders()]
        assert names == ["Editor", "Tests", "Samples~", "Documentation~"]
        assert not set(layout.optional_folders()) & set(layout.required_folders())

    def test_clean_targets(self, tmp_path: Path) -> None:
        cfg = PackConfig(sln="src/Widget.sln", cache_dir="cache")
        layout = PackageLayout.from_config(cfg, cwd=tmp_path)
        assert layout.clean_targets() == [layout.temp, layout.target, layout.api_bin_folder]
