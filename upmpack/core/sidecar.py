"""Unity .meta 伴随文件

每个文件/目录旁边必须有且只有一个 <entry>.meta。guid 由条目相对目标根目录的
posix 路径做 md5 得到，相同的相对路径每次运行生成完全相同的内容。
"""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path

from upmpack.utils.fs import delete_file, write_text_if_changed

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"
FILE_FORMAT_VERSION = 2


def meta_guid(relative_path: str) -> str:
    """相对路径 -> 确定性的 32 位十六进制 guid"""
    normalized = relative_path.replace("\\", "/").strip("/")
    return hashlib.md5(normalized.encode("utf-8"), usedforsecurity=False).hexdigest()


def meta_content(relative_path: str) -> str:
    return f"fileFormatVersion: {FILE_FORMAT_VERSION}\nguid: {meta_guid(relative_path)}\n"


def is_meta_file(path: str | Path) -> bool:
    return Path(path).name.endswith(META_SUFFIX)


def create_meta_files(root: str | Path) -> tuple[int, int]:
    """递归为 root 下的每个条目生成 .meta，删除孤立的 .meta

    返回 (写入数, 删除数)。
    """
    root = Path(root)
    written = removed = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        current = Path(dirpath)
        entries = set(dirnames) | set(filenames)
        for name in sorted(entries):
            path = current / name
            if is_meta_file(name):
                if name[: -len(META_SUFFIX)] not in entries:
                    delete_file(path)
                    logger.info("  已删除孤立的 '%s'", path)
                    removed += 1
                continue
            relative = path.relative_to(root).as_posix()
            if write_text_if_changed(current / f"{name}{META_SUFFIX}", meta_content(relative)):
                written += 1
    return written, removed
