"""NuGet 依赖包模块

拆分说明:
- models.py: 数据模型
- registry.py: 静态依赖清单
- fetcher.py: 远程下载
- extractor.py: 按通配符解压
"""

from upmpack.core.dep.extractor import extract, matches_pattern
from upmpack.core.dep.fetcher import download_all, download_file
from upmpack.core.dep.models import DependencyInfo, FetchedAsset
from upmpack.core.dep.registry import DEPENDENCIES

__all__ = [
    "DEPENDENCIES",
    "DependencyInfo",
    "FetchedAsset",
    "download_all",
    "download_file",
    "extract",
    "matches_pattern",
]
