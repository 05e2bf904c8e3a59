"""构建服务: 调用 dotnet 编译解决方案

缓存策略:
  - 指定 --rebuild 时总是重新编译
  - 否则仅当构建产物目录为空（或不存在）时编译
  这只是节省时间的优化，与正确性无关。
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path

from upmpack.core.exceptions import BuildError
from upmpack.core.layout import BUILD_CONFIGURATION, PackageLayout
from upmpack.utils.fs import directory_empty, file_exists
from upmpack.utils.shell import CommandResult, run

logger = logging.getLogger(__name__)


def needs_build(layout: PackageLayout, force: bool = False) -> bool:
    """是否需要编译"""
    return force or directory_empty(layout.build_output_folder)


def build_solution(solution: str | Path) -> CommandResult:
    """以 release 配置编译解决方案，失败时抛 BuildError（附带完整 stdout/stderr）"""
    result = run("dotnet", "build", "-c", BUILD_CONFIGURATION, str(solution))
    if not result.success:
        raise BuildError(
            f"编译解决方案失败: {solution}\n{result.stdout}\n{result.stderr}"
        )
    return result


def _local(tag: str) -> str:
    """去掉 MSBuild 旧格式工程里的 XML 命名空间"""
    return tag.rsplit("}", 1)[-1]


def read_sdk_properties(project_file: str | Path) -> dict[str, str]:
    """从 .csproj 的 PropertyGroup 中读取版本信息

    识别 Version，或 VersionPrefix + VersionSuffix。工程文件不存在时返回空字典。
    """
    path = Path(project_file)
    if not file_exists(path):
        logger.warning("未找到工程文件，跳过版本读取: %s", path)
        return {}
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        logger.warning("工程文件解析失败 %s: %s", path, e)
        return {}

    props: dict[str, str] = {}
    for group in root:
        if _local(group.tag) != "PropertyGroup":
            continue
        for prop in group:
            text = (prop.text or "").strip()
            if text:
                props[_local(prop.tag)] = text

    version = props.get("Version")
    if not version and props.get("VersionPrefix"):
        version = props["VersionPrefix"]
        if props.get("VersionSuffix"):
            version = f"{version}-{props['VersionSuffix']}"
    if not version:
        return {}
    # MSBuild 属性引用无法在此求值
    if "$(" in version:
        logger.warning("工程版本包含 MSBuild 属性引用，忽略: %s", version)
        return {}
    logger.debug("工程版本: %s", version)
    return {"version": version}
