"""集中配置管理

命令行参数与可选的 YAML 配置文件合并成一个类型明确的 PackConfig。
优先级: 命令行 > 配置文件 > 字段默认值。

除 meta（可多次指定的 key=value）外，所有选项都是单值。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any

import yaml

from upmpack.core.exceptions import ConfigError
from upmpack.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "upmpack.yml"

# 元数据字段: 配置字段名 -> package.json 中的键名
METADATA_FIELDS: dict[str, str] = {
    "name": "name",
    "version": "version",
    "company": "company",
    "display_name": "displayName",
    "description": "description",
    "author": "author",
    "license": "license",
    "changelog_url": "changelogUrl",
    "documentation_url": "documentationUrl",
}

# 配置文件中允许使用 package.json 风格的驼峰键
_ALIASES = {v: k for k, v in METADATA_FIELDS.items()}


def _coerce(path: str, name: str, value: Any, default: Any) -> Any:
    """按字段默认值的类型校验并转换配置值，类型不符抛 ConfigError"""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        raise ConfigError(f"{path}: {name} 必须是布尔值，实际为 {value!r}")
    if isinstance(default, int):
        if isinstance(value, bool):
            raise ConfigError(f"{path}: {name} 必须是整数，实际为 {value!r}")
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{path}: {name} 必须是整数，实际为 {value!r}") from e
        if number < 1:
            raise ConfigError(f"{path}: {name} 必须大于 0，实际为 {number}")
        return number
    # 其余都是字符串字段，YAML 里的数字（如 version: 1.0）按原样转为字符串
    if value is None:
        return default
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigError(f"{path}: {name} 必须是字符串，实际为 {type(value).__name__}")


@dataclass
class PackConfig:
    """一次打包运行的完整配置"""

    # 输入 / 输出
    sln: str = ""
    target: str = "output"
    package: str = ""          # 为空时取 target 的上级目录
    resources: str = ""        # 为空时使用内置模板目录
    cache_dir: str = ""        # NuGet 下载缓存，为空时使用系统临时目录

    # 行为开关
    rebuild: bool = False
    clean: bool = False
    reset: bool = False

    # 输出级别
    verbose: bool = False
    debug: bool = False
    quiet: bool = False

    # 元数据覆盖（None 表示未指定）
    name: str | None = None
    version: str | None = None
    company: str | None = None
    display_name: str | None = None
    description: str | None = None
    author: str | None = None
    license: str | None = None
    changelog_url: str | None = None
    documentation_url: str | None = None

    # 额外元数据键（--meta key=value，可重复）
    meta: dict[str, str] = field(default_factory=dict)

    # 下载并行度
    max_workers: int = 8

    # 放不到字段里的配置项
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> PackConfig:
        """从 YAML 文件加载配置，不存在则返回默认"""
        try:
            data = load_yaml(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"读取配置文件失败: {path} - {e}") from e
        if not data:
            return cls()
        defaults = {f.name: f.default for f in fields(cls) if f.name not in ("meta", "extra")}
        matched: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        meta: Any = {}
        for key, value in data.items():
            name = _ALIASES.get(key, key)
            if name == "meta":
                meta = value or {}
            elif name in defaults:
                matched[name] = _coerce(path, name, value, defaults[name])
            else:
                extra[key] = value
        if not isinstance(meta, dict):
            raise ConfigError(f"{path}: meta 必须是映射")
        cfg = cls(**matched)
        cfg.meta = {str(k): str(v) for k, v in meta.items()}
        cfg.extra = extra
        logger.debug("配置已加载: %s", path)
        return cfg

    def merge(self, **overrides: Any) -> PackConfig:
        """用命令行参数覆盖配置；值为 None 的参数视为未指定，布尔开关只能打开"""
        for key, value in overrides.items():
            if value is None:
                continue
            if key == "meta":
                self.meta = {**self.meta, **value}
                continue
            current = getattr(self, key)
            if isinstance(current, bool):
                setattr(self, key, current or bool(value))
            else:
                setattr(self, key, value)
        return self

    def metadata_overrides(self) -> dict[str, str]:
        """显式指定的元数据（package.json 键名），未指定的键不出现"""
        result = {
            key: str(getattr(self, attr))
            for attr, key in METADATA_FIELDS.items()
            if getattr(self, attr) is not None
        }
        result.update(self.meta)
        return result

    def placeholder_values(self) -> dict[str, str]:
        """原始配置中可用于模板替换的字符串值"""
        values = {
            k: v for k, v in asdict(self).items()
            if isinstance(v, str) and v
        }
        values.update(self.metadata_overrides())
        values.update(
            {k: str(v) for k, v in self.extra.items() if isinstance(v, (str, int, float))}
        )
        return values
