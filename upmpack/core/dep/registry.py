"""静态依赖清单

依赖表手工维护，不做传递依赖解析。每一项固定到具体版本，
files 限定到包内特定的目标框架子目录。
"""

from __future__ import annotations

from upmpack.core.dep.models import DependencyInfo

NUGET_GALLERY = "https://www.nuget.org/packages"
NUGET_API = "https://www.nuget.org/api/v2/package"


def nuget(name: str, version: str, framework: str, license: str = "MIT") -> DependencyInfo:
    """按 nuget.org 的 URL 约定生成依赖描述"""
    lower = name.lower()
    return DependencyInfo(
        name=name,
        origin=f"{NUGET_GALLERY}/{name}/{version}",
        package_url=f"{NUGET_API}/{lower}/{version}",
        filename=f"{lower}.{version}.nupkg",
        files=f"lib/{framework}/*",
        license=license,
    )


DEPENDENCIES: tuple[DependencyInfo, ...] = (
    nuget("Microsoft.Bcl.AsyncInterfaces", "10.0.0-preview.6.25358.103", "netstandard2.1"),
    nuget("OneOf", "3.0.271", "netstandard2.0"),
    nuget("OneOf.Extended", "3.0.271", "netstandard1.3"),
    nuget("System.Buffers", "4.6.1", "netstandard2.0"),
    nuget("System.IO.Pipelines", "10.0.0-preview.6.25358.103", "netstandard2.0"),
    nuget("System.Memory", "4.6.3", "netstandard2.0"),
    nuget("System.Runtime.CompilerServices.Unsafe", "6.1.2", "netstandard2.0"),
    nuget("System.Text.Encodings.Web", "10.0.0-preview.6.25358.103", "netstandard2.0"),
    nuget("System.Text.Json", "10.0.0-preview.6.25358.103", "netstandard2.0"),
    nuget("System.Threading.Tasks.Extensions", "4.6.3", "netstandard2.0"),
    nuget("portable.system.datetimeonly", "9.0.0", "netstandard2.1"),
)
