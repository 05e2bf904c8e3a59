"""模板占位符 ${key} 的替换与检测"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def lookup(key: str, sources: Sequence[Mapping[str, Any]]) -> str | None:
    """按顺序在多个来源中查找，第一个命中的值生效"""
    for source in sources:
        value = source.get(key)
        if value is not None and isinstance(value, (str, int, float)):
            return str(value)
    return None


def substitute(text: str, *sources: Mapping[str, Any]) -> str:
    """替换全部 ${key}；找不到值的占位符原样保留"""

    def _replace(m: re.Match[str]) -> str:
        value = lookup(m.group(1), sources)
        return m.group(0) if value is None else value

    return PLACEHOLDER_RE.sub(_replace, text)


def find_unresolved(text: str) -> list[str]:
    """返回文本中残留的占位符键名（按出现顺序，可重复）"""
    return PLACEHOLDER_RE.findall(text)
