"""目录布局

目标根目录（UPM 包结构）:

    <target>/
      package.json
      README.md  LICENSE  CHANGELOG.md  Third Party Notices.md
      Runtime/             编译产物
        Internal/          NuGet 依赖
      Editor/ Tests/ Samples~/ Documentation~/   可选

解决方案约定: 构建产物位于 <sln 目录>/<sln 名>/bin/release/netstandard2.0/
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path

from upmpack.core.config import PackConfig
from upmpack.core.exceptions import ValidationError
from upmpack.utils.fs import barename

TEMP_FOLDER_NAME = "make-unity-sdk"
TARGET_FRAMEWORK = "netstandard2.0"
BUILD_CONFIGURATION = "release"


@dataclass(frozen=True)
class PackageLayout:
    """一次运行涉及的全部路径（均为绝对路径）"""

    solution: Path
    target: Path
    package_parent: Path
    temp: Path

    @classmethod
    def from_config(cls, config: PackConfig, cwd: Path | None = None) -> PackageLayout:
        if not config.sln:
            raise ValidationError("未指定解决方案文件 (--sln <slnPath>)")
        base = cwd or Path.cwd()
        solution = (base / config.sln).resolve()
        if not barename(solution):
            raise ValidationError(f"无法确定 API 名称: '{config.sln}'")
        target = (base / (config.target or "output")).resolve()
        package_parent = (
            (base / config.package).resolve() if config.package else target.parent
        )
        if config.cache_dir:
            temp = (base / config.cache_dir).resolve()
        else:
            temp = Path(tempfile.gettempdir()).resolve() / TEMP_FOLDER_NAME
        return cls(solution=solution, target=target, package_parent=package_parent, temp=temp)

    # ---- 临时目录 ----

    @property
    def nuget(self) -> Path:
        return self.temp / "nuget"

    # ---- 解决方案侧 ----

    @property
    def api_name(self) -> str:
        return barename(self.solution)

    @property
    def api_folder(self) -> Path:
        return self.solution.parent / self.api_name

    @property
    def project_file(self) -> Path:
        return self.api_folder / f"{self.api_name}.csproj"

    @property
    def api_bin_folder(self) -> Path:
        return self.api_folder / "bin"

    @property
    def build_output_folder(self) -> Path:
        return self.api_bin_folder / BUILD_CONFIGURATION / TARGET_FRAMEWORK

    # ---- 包结构 ----

    @property
    def runtime_folder(self) -> Path:
        return self.target / "Runtime"

    @property
    def internal_assembly_folder(self) -> Path:
        return self.runtime_folder / "Internal"

    @property
    def package_json(self) -> Path:
        return self.target / "package.json"

    @property
    def readme(self) -> Path:
        return self.target / "README.md"

    @property
    def license(self) -> Path:
        return self.target / "LICENSE"

    @property
    def changelog(self) -> Path:
        return self.target / "CHANGELOG.md"

    @property
    def notices(self) -> Path:
        return self.target / "Third Party Notices.md"

    @property
    def editor_folder(self) -> Path:
        return self.target / "Editor"

    @property
    def test_folder(self) -> Path:
        return self.target / "Tests"

    @property
    def sample_folder(self) -> Path:
        return self.target / "Samples~"

    @property
    def documentation_folder(self) -> Path:
        return self.target / "Documentation~"

    def optional_folders(self) -> list[Path]:
        """由用户或模板资源提供的目录，不会自动创建"""
        return [self.editor_folder, self.test_folder, self.sample_folder, self.documentation_folder]

    def required_folders(self) -> list[Path]:
        """启动时需要创建的目录"""
        return [self.temp, self.target, self.nuget, self.runtime_folder, self.internal_assembly_folder]

    def clean_targets(self) -> list[Path]:
        """--clean / --reset 需要删除的目录"""
        return [self.temp, self.target, self.api_bin_folder]
