"""包内容生成与归档

职责:
- package.json / LICENSE / CHANGELOG.md / README.md / Third Party Notices.md
- 模板资源复制与 ${key} 替换
- 残留占位符校验
- npm pack 归档
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from upmpack.core.dep.models import DependencyInfo
from upmpack.core.exceptions import FileSystemError, PackagingError
from upmpack.core.placeholders import find_unresolved, substitute
from upmpack.core.sidecar import is_meta_file
from upmpack.utils.fs import (
    ensure_directory_exists,
    file_exists,
    is_text_bytes,
    is_text_file,
    walk_files,
    write_text_if_changed,
)
from upmpack.utils.shell import run

logger = logging.getLogger(__name__)

RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"

_NPM_FILENAME_RE = re.compile(r"npm notice filename:\s+(\S+)")

LICENSE_STUB = "# License file\n\ntodo: add license content\n"
CHANGELOG_STUB = "# Changelog file\n\ntodo: add changelog content\n"
README_STUB = "# Readme file\n\ntodo: add readme content\n"


@dataclass(frozen=True)
class UnresolvedPlaceholder:
    """校验时发现的残留占位符"""

    path: Path
    key: str


# =========================================================================
# 元数据与固定文件
# =========================================================================

def create_package_json(path: str | Path, metadata: Mapping[str, Any]) -> bool:
    return write_text_if_changed(path, dict(metadata))


def _create_stub(path: str | Path, content: str) -> bool:
    """文件不存在时写入占位内容，已存在的用户文件绝不覆盖"""
    if file_exists(path):
        return False
    return write_text_if_changed(path, content)


def create_license(path: str | Path) -> bool:
    return _create_stub(path, LICENSE_STUB)


def create_changelog(path: str | Path) -> bool:
    return _create_stub(path, CHANGELOG_STUB)


def create_readme(path: str | Path) -> bool:
    return _create_stub(path, README_STUB)


def create_notices(path: str | Path, dependencies: Iterable[DependencyInfo]) -> bool:
    """根据依赖表生成第三方声明"""
    lines = [
        "# Third Party Notices",
        "",
        "This package bundles the following third-party components:",
        "",
        "| Package | License | Source |",
        "|---|---|---|",
    ]
    for dep in dependencies:
        lines.append(f"| {dep.name} | {dep.license} | {dep.origin} |")
    return write_text_if_changed(path, "\n".join(lines) + "\n")


# =========================================================================
# 模板资源
# =========================================================================

def update_resources(
    source: str | Path, target: str | Path,
    values: Sequence[Mapping[str, Any]],
) -> None:
    """把模板目录递归复制到目标根目录

    文本文件做 ${key} 替换（values 按顺序查找，先命中者生效）；
    目标处已有文本文件时以目标内容为模板，保留用户的修改。
    非文本文件原样复制，且只在目标不存在时复制。
    """
    src_root, dst_root = Path(source), Path(target)
    if not src_root.is_dir():
        raise FileSystemError(f"模板目录不存在: '{src_root}'")

    for src in walk_files(src_root):
        dst = dst_root / src.relative_to(src_root)
        ensure_directory_exists(dst.parent)
        data = src.read_bytes()

        if is_text_bytes(data):
            if file_exists(dst) and is_text_file(dst):
                template = dst.read_text(encoding="utf-8")
            else:
                template = data.decode("utf-8")
            write_text_if_changed(dst, substitute(template, *values))
        elif not file_exists(dst):
            shutil.copyfile(src, dst)
            logger.info("  已复制 '%s'", dst)


# =========================================================================
# 校验
# =========================================================================

def verify_package_files(root: str | Path) -> list[UnresolvedPlaceholder]:
    """扫描所有文本文件中残留的 ${key}，逐个报告为错误"""
    findings: list[UnresolvedPlaceholder] = []
    for path in walk_files(root):
        if is_meta_file(path) or not is_text_file(path):
            continue
        for key in find_unresolved(path.read_text(encoding="utf-8")):
            logger.error("  ✗ '%s' 中存在未解析的占位符 ${%s}", path, key)
            findings.append(UnresolvedPlaceholder(path=path, key=key))
    return findings


# =========================================================================
# 归档
# =========================================================================

def package_via_npm(
    package_folder: str | Path, destination: str | Path,
    metadata: Mapping[str, Any] | None = None,
) -> Path:
    """调用 npm pack 生成 .tgz，返回归档文件路径"""
    dest = Path(destination)
    ensure_directory_exists(dest)
    result = run("npm", "pack", str(package_folder), "--pack-destination", str(dest))
    if not result.success:
        raise PackagingError(
            f"npm pack 打包失败:\n{result.stdout}\n{result.stderr}"
        )

    m = _NPM_FILENAME_RE.search(result.stderr) or _NPM_FILENAME_RE.search(result.stdout)
    if m:
        return dest / m.group(1)
    # 新版 npm 在 stdout 最后一行只输出文件名
    last = result.stdout.strip().splitlines()[-1:] if result.stdout.strip() else []
    if last and last[0].endswith(".tgz"):
        return dest / last[0].strip()
    meta = metadata or {}
    return dest / f"{meta.get('name', 'package')}-{meta.get('version', '0.0.0')}.tgz"
