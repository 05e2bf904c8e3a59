"""依赖包下载器

职责:
- 校验依赖描述（仅允许 http/https 直链，缓存文件名必须是 .nupkg）
- 流式下载 URL 到本地文件（目标已存在则跳过）
- 并行下载整张依赖表

下载先写入 <target>.part，字节数与 Content-Length 一致后才重命名为目标文件。
目标文件存在即代表下载完整，中断的下载在下次运行时会重新开始。
"""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Iterable
from urllib.parse import urlparse

from upmpack.core.dep.models import DependencyInfo, FetchedAsset
from upmpack.core.exceptions import DownloadError, ValidationError
from upmpack.utils.fs import file_exists
from upmpack.utils.logger import VERBOSE

logger = logging.getLogger(__name__)

USER_AGENT = "upmpack"
PARTIAL_SUFFIX = ".part"
_CHUNK_SIZE = 64 * 1024
_ALLOWED_SCHEMES = frozenset(("http", "https"))


def check_url(url: str, *, label: str) -> None:
    """只允许 http/https，file:// 等协议会读写本地文件"""
    scheme = urlparse(url).scheme
    if scheme not in _ALLOWED_SCHEMES:
        raise ValidationError(
            f"{label}: 不允许的 URL 协议 '{scheme}'，仅支持 http/https: {url}"
        )


def validate_dependency(dep: DependencyInfo) -> None:
    """下载前校验依赖描述

    Raises:
        ValidationError: URL 协议非法，或缓存文件名不是单层的 .nupkg 文件名
    """
    check_url(dep.package_url, label=dep.name)
    name = PurePosixPath(dep.filename.replace("\\", "/"))
    if name.name != dep.filename or name.suffix.lower() != ".nupkg":
        raise ValidationError(
            f"{dep.name}: 缓存文件名必须是不含目录的 .nupkg 文件名: '{dep.filename}'"
        )


def _content_length(resp) -> int | None:
    headers = getattr(resp, "headers", None)
    value = headers.get("Content-Length") if headers is not None else None
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def download_file(url: str, target: str | Path) -> Path:
    """下载 url 到 target；target 已存在时直接返回，不重复下载"""
    dest = Path(target)
    if file_exists(dest):
        logger.log(VERBOSE, "  跳过 '%s' - 文件已存在", dest)
        return dest

    check_url(url, label=dest.name)
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        resp = urllib.request.urlopen(req)  # nosec B310
    except (urllib.error.HTTPError, urllib.error.URLError, OSError) as e:
        raise DownloadError(f"下载失败: {url} - {e}") from e

    if resp is None:
        raise DownloadError(f"无响应内容: {url}")

    partial = dest.with_name(dest.name + PARTIAL_SUFFIX)
    with resp:
        expected = _content_length(resp)
        try:
            with open(partial, "wb") as f:
                shutil.copyfileobj(resp, f, _CHUNK_SIZE)
        except (OSError, http.client.HTTPException) as e:
            partial.unlink(missing_ok=True)
            raise DownloadError(f"写入失败: {dest} - {e}") from e

    received = partial.stat().st_size
    if expected is not None and received != expected:
        partial.unlink(missing_ok=True)
        raise DownloadError(
            f"下载不完整: {url} - 收到 {received} 字节，应为 {expected} 字节"
        )
    os.replace(partial, dest)

    if not file_exists(dest):
        raise DownloadError(f"下载失败: {dest.name}")
    logger.info("  已下载 '%s'", dest)
    return dest


def download_all(
    dependencies: Iterable[DependencyInfo], folder: str | Path,
    max_workers: int = 8,
) -> list[FetchedAsset]:
    """并行下载全部依赖包，任一失败则抛出该异常

    各下载写入不同的目标文件，相互之间无需同步。
    """
    folder = Path(folder)
    deps = list(dependencies)
    for dep in deps:
        validate_dependency(dep)
    if not deps:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(deps)))) as pool:
        futures = [
            (dep, pool.submit(download_file, dep.package_url, folder / dep.filename))
            for dep in deps
        ]
        return [FetchedAsset(dependency=dep, target=fut.result()) for dep, fut in futures]
