"""打包流水线: 顺序编排全部步骤

步骤顺序:
    clean(可选) -> [reset 时退出] -> 校验输入 -> 创建目录 -> 编译(可选)
    -> 复制构建产物 -> 并行下载依赖 -> 逐个解压依赖 -> 生成包文件
    -> 生成 .meta -> 校验占位符 -> npm pack

任何致命错误都会终止本次运行，不回滚已完成的步骤；所有写操作都是幂等的，
重新运行即可恢复。run() 是唯一的异常捕获边界，负责转换为退出码。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from upmpack.core.config import PackConfig
from upmpack.core.dep import DEPENDENCIES, DependencyInfo, FetchedAsset, download_all, extract
from upmpack.core.exceptions import UpmPackError, ValidationError
from upmpack.core.layout import PackageLayout
from upmpack.core.metadata import assemble_metadata, derived_keys
from upmpack.core.packaging import (
    RESOURCES_DIR,
    UnresolvedPlaceholder,
    create_changelog,
    create_license,
    create_notices,
    create_package_json,
    create_readme,
    package_via_npm,
    update_resources,
    verify_package_files,
)
from upmpack.core.sidecar import create_meta_files
from upmpack.services.build import build_solution, needs_build
from upmpack.utils.fs import (
    copy_files,
    delete_directory,
    directory_exists,
    ensure_directory_exists,
    file_exists,
)
from upmpack.utils.logger import STEP, LogContext

logger = logging.getLogger(__name__)


def step(message: str, *args: Any) -> None:
    """步骤标题，--quiet 下仍然输出"""
    logger.log(STEP, "> " + message, *args)


@dataclass
class PipelineReport:
    """一次运行的结果"""

    exit_code: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
    built: bool = False
    assets: list[FetchedAsset] = field(default_factory=list)
    extracted: list[Path] = field(default_factory=list)
    unresolved: list[UnresolvedPlaceholder] = field(default_factory=list)
    archive: Path | None = None
    steps: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class PackagePipeline:
    """UPM 包生成流水线"""

    def __init__(
        self,
        config: PackConfig,
        log_ctx: LogContext,
        *,
        cwd: Path | None = None,
        dependencies: Sequence[DependencyInfo] = DEPENDENCIES,
    ) -> None:
        self.config = config
        self.log_ctx = log_ctx
        self.cwd = cwd
        self.dependencies = tuple(dependencies)
        self.resources = (
            (cwd or Path.cwd()) / config.resources if config.resources else RESOURCES_DIR
        )

    def run(self) -> PipelineReport:
        """执行流水线，任何逃逸的异常都在这里转换为错误退出码"""
        report = PipelineReport()
        # 退出码只反映本次运行的错误
        self.log_ctx.reset_errors()
        try:
            self._run(report)
        except UpmPackError as e:
            logger.error("✗ [%s] %s", e.code, e)
            report.exit_code = max(self.log_ctx.error_count, 1)
        except OSError as e:
            logger.error("✗ 文件操作失败: %s", e)
            report.exit_code = max(self.log_ctx.error_count, 1)
        return report

    # ------------------------------------------------------------------

    def _run(self, report: PipelineReport) -> None:
        cfg = self.config
        layout = PackageLayout.from_config(cfg, cwd=self.cwd)

        if cfg.clean or cfg.reset:
            self.clean(layout, report)
        if cfg.reset:
            step("未执行打包，退出")
            return

        self.validate(layout, report)
        report.metadata = assemble_metadata(cfg, layout)
        self.prepare_directories(layout, report)
        self.build(layout, report)
        self.copy_build_output(layout, report)
        report.assets = self.download(layout, report)
        report.extracted = self.extract(layout, report.assets, report)
        self.create_assets(layout, report)
        self.create_meta(layout, report)

        report.unresolved = self.verify(layout, report)
        if report.unresolved or self.log_ctx.error_count > 0:
            report.exit_code = max(self.log_ctx.error_count, 1)
            logger.error("存在 %d 个错误，未生成包", report.exit_code)
            return

        report.archive = self.archive(layout, report)
        step("UPMVERSION: %s", report.metadata.get("version", ""))
        step("完成")

    def clean(self, layout: PackageLayout, report: PipelineReport) -> None:
        step("清理目录")
        with ThreadPoolExecutor() as pool:
            list(pool.map(delete_directory, layout.clean_targets()))
        report.steps.append("clean")

    def validate(self, layout: PackageLayout, report: PipelineReport) -> None:
        if not file_exists(layout.solution):
            raise ValidationError(f"解决方案文件不存在: '{layout.solution}'")
        if not directory_exists(layout.api_folder):
            raise ValidationError(f"找不到 API 工程目录: '{layout.api_folder}'")
        report.steps.append("validate")

    def prepare_directories(self, layout: PackageLayout, report: PipelineReport) -> None:
        step("创建目录结构")
        with ThreadPoolExecutor() as pool:
            list(pool.map(ensure_directory_exists, layout.required_folders()))
        report.steps.append("prepare")

    def build(self, layout: PackageLayout, report: PipelineReport) -> None:
        step("编译解决方案")
        if needs_build(layout, force=self.config.rebuild):
            build_solution(layout.solution)
            report.built = True
        else:
            logger.info("  构建产物已存在，跳过编译（使用 --rebuild 强制编译）")
        if not directory_exists(layout.build_output_folder):
            raise ValidationError(f"找不到构建产物目录: '{layout.build_output_folder}'")
        report.steps.append("build")

    def copy_build_output(self, layout: PackageLayout, report: PipelineReport) -> None:
        step("复制构建产物到 Runtime 目录")
        copy_files(layout.build_output_folder, layout.runtime_folder)
        report.steps.append("copy")

    def download(self, layout: PackageLayout, report: PipelineReport) -> list[FetchedAsset]:
        step("下载 NuGet 依赖包")
        assets = download_all(self.dependencies, layout.nuget, max_workers=self.config.max_workers)
        report.steps.append("download")
        return assets

    def extract(
        self, layout: PackageLayout, assets: Sequence[FetchedAsset],
        report: PipelineReport,
    ) -> list[Path]:
        step("提取所需文件")
        # 解压写入同一目录并依赖逐文件的存在性检查，只能顺序执行
        extracted: list[Path] = []
        for asset in assets:
            extracted.extend(
                extract(asset.target, asset.dependency.files, layout.internal_assembly_folder)
            )
        report.steps.append("extract")
        return extracted

    def create_assets(self, layout: PackageLayout, report: PipelineReport) -> None:
        step("生成包文件")
        metadata = report.metadata
        create_package_json(layout.package_json, metadata)
        update_resources(
            self.resources, layout.target,
            [metadata, derived_keys(metadata), self.config.placeholder_values()],
        )
        create_license(layout.license)
        create_changelog(layout.changelog)
        create_readme(layout.readme)
        create_notices(layout.notices, self.dependencies)
        present = [p.name for p in layout.optional_folders() if directory_exists(p)]
        if present:
            logger.info("  可选目录: %s", ", ".join(present))
        report.steps.append("assets")

    def create_meta(self, layout: PackageLayout, report: PipelineReport) -> None:
        # 必须在所有包内文件定稿之后
        written, removed = create_meta_files(layout.target)
        logger.debug("  .meta: 写入 %d, 删除 %d", written, removed)
        report.steps.append("meta")

    def verify(self, layout: PackageLayout, report: PipelineReport) -> list[UnresolvedPlaceholder]:
        step("校验包内容")
        findings = verify_package_files(layout.target)
        report.steps.append("verify")
        return findings

    def archive(self, layout: PackageLayout, report: PipelineReport) -> Path:
        step("生成 .tgz 包")
        path = package_via_npm(layout.target, layout.package_parent, report.metadata)
        logger.info("  ✓ 已生成 '%s'", path)
        report.steps.append("archive")
        return path
