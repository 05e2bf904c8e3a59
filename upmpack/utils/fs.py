"""文件系统工具

职责:
- 路径存在性/类型探测（不存在时不抛异常）
- 幂等的目录创建与删除
- 内容比对后复制（字节相同则不写，避免时间戳抖动）
- 文本文件识别
- 仅在内容变化时写入文本
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from upmpack.core.exceptions import FileSystemError
from upmpack.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathInfo:
    """路径探测结果，kind 为 "file" / "directory" / None"""

    kind: str | None
    exists: bool
    is_symlink: bool = False


def path_info(path: str | Path) -> PathInfo:
    """探测路径类型，路径不存在时返回 exists=False"""
    p = Path(path)
    try:
        p.stat()
    except OSError:
        return PathInfo(kind=None, exists=False)
    if p.is_file():
        kind: str | None = "file"
    elif p.is_dir():
        kind = "directory"
    else:
        kind = None
    return PathInfo(kind=kind, exists=True, is_symlink=p.is_symlink())


def exists(path: str | Path) -> bool:
    return path_info(path).exists


def file_exists(path: str | Path) -> bool:
    return path_info(path).kind == "file"


def directory_exists(path: str | Path) -> bool:
    return path_info(path).kind == "directory"


def directory_empty(path: str | Path) -> bool:
    """目录为空或不存在时返回 True"""
    if not directory_exists(path):
        return True
    return not any(Path(path).iterdir())


def barename(path: str | Path) -> str:
    """不带扩展名的文件名: /a/b/Foo.sln -> Foo"""
    return Path(path).stem


def ensure_directory_exists(path: str | Path) -> None:
    """递归创建目录，已存在时不做任何事"""
    p = Path(path)
    if directory_exists(p):
        logger.debug("  '%s' 已存在", p)
        return
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("  创建目录失败 '%s': %s", p, e)
        raise FileSystemError(f"创建目录失败: {p} - {e}") from e
    logger.debug("  已创建 '%s'", p)


def delete_directory(path: str | Path) -> None:
    """递归删除目录；不存在时静默成功，路径是文件时报错"""
    p = Path(path)
    info = path_info(p)
    if not info.exists:
        return
    if info.kind == "file":
        raise FileSystemError(f"'{p}' 是文件，不是目录")
    if info.kind != "directory":
        raise FileSystemError(f"'{p}' 存在，但既不是文件也不是目录")
    try:
        shutil.rmtree(p)
    except FileNotFoundError:
        return
    except OSError as e:
        logger.error("  删除目录失败 '%s': %s", p, e)
        raise FileSystemError(f"删除目录失败: {p} - {e}") from e
    logger.debug("  已删除 '%s'", p)


def delete_file(path: str | Path) -> None:
    """删除文件；不存在时静默成功，路径是目录时报错"""
    p = Path(path)
    info = path_info(p)
    if not info.exists:
        return
    if info.kind == "directory":
        raise FileSystemError(f"'{p}' 是目录，不是文件")
    if info.kind != "file":
        raise FileSystemError(f"'{p}' 存在，但既不是文件也不是目录")
    try:
        p.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        logger.error("  删除文件失败 '%s': %s", p, e)
        raise FileSystemError(f"删除文件失败: {p} - {e}") from e
    logger.debug("  已删除 '%s'", p)


def files_equal(a: str | Path, b: str | Path) -> bool:
    """逐字节比较两个文件"""
    return Path(a).read_bytes() == Path(b).read_bytes()


def copy_file(source: str | Path, target: str | Path) -> bool:
    """复制文件；目标存在且字节相同则不写。返回是否发生写入"""
    src, dst = Path(source), Path(target)
    if file_exists(dst):
        if files_equal(src, dst):
            logger.debug("  '%s' 未变化", src)
            return False
        shutil.copyfile(src, dst)
        logger.info("  已替换 '%s' -> '%s'", src, dst)
        return True
    shutil.copyfile(src, dst)
    logger.info("  已复制 '%s' -> '%s'", src, dst)
    return True


def copy_files(source: str | Path, target_dir: str | Path) -> None:
    """复制单个文件，或目录下的全部文件（不递归）到目标目录

    源路径不存在时什么都不做；目标目录必须已存在。
    """
    src, dst = Path(source), Path(target_dir)
    info = path_info(src)
    if not info.exists:
        return
    if not directory_exists(dst):
        raise FileSystemError(f"目标目录不存在: '{dst}'")

    if info.kind == "file":
        copy_file(src, dst / src.name)
    elif info.kind == "directory":
        logger.debug("  复制目录 '%s' -> '%s'", src, dst)
        for child in sorted(src.iterdir()):
            if child.is_file():
                copy_file(child, dst / child.name)
    else:
        raise FileSystemError(f"路径 '{src}' 既不是文件也不是目录")


def is_text_bytes(data: bytes) -> bool:
    """不含 NUL 字节且是合法 UTF-8 的内容视为文本"""
    if b"\x00" in data:
        return False
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def is_text_file(path: str | Path) -> bool:
    try:
        return is_text_bytes(Path(path).read_bytes())
    except OSError:
        return False


def write_text_if_changed(path: str | Path, content: str | Mapping[str, Any]) -> bool:
    """仅在内容变化时写入文本文件；映射对象序列化为缩进 2 的 JSON

    返回是否发生写入。
    """
    p = Path(path)
    if not isinstance(content, str):
        content = json.dumps(content, indent=2, ensure_ascii=False)

    if file_exists(p):
        existing = p.read_bytes().decode("utf-8", errors="replace")
        if existing == content:
            logger.debug("  '%s' 未变化", p)
            return False
        atomic_write(p, content)
        logger.info("  已更新 '%s'", p)
        return True

    atomic_write(p, content)
    logger.info("  已创建 '%s'", p)
    return True


def walk_files(root: str | Path) -> list[Path]:
    """递归列出目录下的全部文件（稳定排序）"""
    result: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            result.append(Path(dirpath) / name)
    return result
