"""依赖包解压器

.nupkg 本质是 zip。按通配符挑选条目，扁平写入输出目录（丢弃包内目录结构），
输出目录中已存在同名文件时跳过。
"""

from __future__ import annotations

import logging
import re
import zipfile
from pathlib import Path, PurePosixPath

from upmpack.core.exceptions import ExtractionError
from upmpack.utils.fs import ensure_directory_exists, file_exists
from upmpack.utils.logger import VERBOSE

logger = logging.getLogger(__name__)


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """通配符转正则: * 匹配任意字符序列，? 匹配单个字符，整体锚定"""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$")


def matches_pattern(path: str, pattern: str) -> bool:
    return glob_to_regex(pattern).match(path) is not None


def extract(archive: str | Path, pattern: str, output_dir: str | Path) -> list[Path]:
    """从压缩包中提取匹配 pattern 的文件到 output_dir，返回新写出的文件列表"""
    archive = Path(archive)
    out = Path(output_dir)
    ensure_directory_exists(out)
    regex = glob_to_regex(pattern)
    extracted: list[Path] = []

    try:
        zf = zipfile.ZipFile(archive)
    except (OSError, zipfile.BadZipFile) as e:
        logger.error("无法打开压缩包 %s: %s", archive, e)
        raise ExtractionError(f"无法打开压缩包: {archive} - {e}") from e

    with zf:
        for entry in zf.infolist():
            if entry.is_dir():
                continue
            entry_path = entry.filename.replace("\\", "/")
            if not regex.match(entry_path):
                continue

            name = PurePosixPath(entry_path).name
            dest = out / name
            if file_exists(dest):
                logger.log(VERBOSE, "  跳过 '%s' - 文件已存在", dest)
                continue

            try:
                dest.write_bytes(zf.read(entry))
            except (OSError, zipfile.BadZipFile) as e:
                logger.error("  解压失败 %s: %s", name, e)
                raise ExtractionError(f"解压失败: {archive} -> {dest} - {e}") from e
            logger.info("  已解压 '%s'", dest)
            extracted.append(dest)

    return extracted
