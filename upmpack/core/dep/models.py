"""依赖包数据模型

数据类:
- DependencyInfo: 静态依赖描述（编译进程序，运行期不可变）
- FetchedAsset: 下载完成后的依赖包
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DependencyInfo:
    """单个 NuGet 依赖包的元信息"""

    name: str
    origin: str           # nuget.org 上的包页面
    package_url: str      # .nupkg 直链
    filename: str         # 本地缓存文件名
    files: str            # 包内需要提取的文件通配符，如 lib/netstandard2.0/*
    license: str = "MIT"


@dataclass(frozen=True)
class FetchedAsset:
    """已下载到本地的依赖包，解压后即丢弃"""

    dependency: DependencyInfo
    target: Path
