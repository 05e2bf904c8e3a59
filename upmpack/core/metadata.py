"""包元数据组装

最终的 package.json 内容由一组有序的部分来源从左到右覆盖得到:

    默认值 -> 已有 package.json（--clean 时跳过）-> 工程属性（版本）-> 配置覆盖

每个来源只产出它要设置的键；值为 None 的键会被丢弃，
从而保证“未解析”的键缺失而不是空值，模板替换能识别出来。
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping

from upmpack.core.config import PackConfig
from upmpack.core.exceptions import ManifestError
from upmpack.core.layout import PackageLayout
from upmpack.services.build import read_sdk_properties
from upmpack.utils.fs import barename, file_exists

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.0.1"
DEFAULT_UNITY = "6000.0"

_UNSAFE_NAME_CHARS = re.compile(r"[^a-z0-9._-]+")


def trim(obj: Mapping[str, Any]) -> dict[str, Any]:
    """去掉值为 None 的键"""
    return {k: v for k, v in obj.items() if v is not None}


def default_metadata(solution: str | Path, company: str | None = None) -> dict[str, Any]:
    """内置默认值；未指定公司时名称中保留 ${company} 占位符，由校验步骤报告"""
    stem = barename(solution)
    return {
        "name": f"com.{company or '${company}'}.{stem}".lower(),
        "displayName": stem,
        "version": DEFAULT_VERSION,
        "unity": DEFAULT_UNITY,
    }


def load_manifest(path: str | Path, clean: bool = False) -> dict[str, Any]:
    """读取已有 package.json；不存在或要求 clean 时返回空字典"""
    p = Path(path)
    if clean or not file_exists(p):
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"package.json 解析失败: {p} - {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"package.json 必须是 JSON 对象: {p}")
    return data


def solution_metadata(layout: PackageLayout) -> dict[str, Any]:
    """从工程文件中获取的元数据（目前只有版本）"""
    return read_sdk_properties(layout.project_file)


def override_metadata(config: PackConfig) -> dict[str, Any]:
    """命令行 / 配置文件显式指定的值，包括 --meta 额外键"""
    return config.metadata_overrides()


def merge_metadata(*sources: Mapping[str, Any]) -> dict[str, Any]:
    """按顺序合并，后者覆盖前者"""
    result: dict[str, Any] = {}
    for source in sources:
        result.update(trim(source))
    return result


def metadata_sources(config: PackConfig, layout: PackageLayout) -> list[dict[str, Any]]:
    """按优先级从低到高排列的元数据来源"""
    return [
        default_metadata(layout.solution, config.company),
        load_manifest(layout.package_json, clean=config.clean),
        solution_metadata(layout),
        override_metadata(config),
    ]


def assemble_metadata(config: PackConfig, layout: PackageLayout) -> dict[str, Any]:
    """生成最终的包元数据"""
    metadata = merge_metadata(*metadata_sources(config, layout))
    logger.debug("包元数据: %s", metadata)
    return metadata


def derived_keys(metadata: Mapping[str, Any]) -> dict[str, str]:
    """由包名派生的模板变量: packageName（注册表安全名）与 scope（前两段）"""
    name = str(metadata.get("name", ""))
    if not name:
        return {}
    package_name = _UNSAFE_NAME_CHARS.sub("-", name.lower()).strip("-.")
    segments = [s for s in package_name.split(".") if s]
    return {
        "packageName": package_name,
        "scope": ".".join(segments[:2]),
    }
