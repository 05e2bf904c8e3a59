"""upmpack 命令行接口"""

from __future__ import annotations

import os

import click

from upmpack import __version__
from upmpack.core.config import DEFAULT_CONFIG_FILE, PackConfig
from upmpack.core.exceptions import ConfigError
from upmpack.utils.logger import setup_logging

DETAILED_HELP = """\
流程:
  1. --clean / --reset 时删除临时目录、目标目录和工程的 bin 目录（--reset 随即退出）
  2. 编译解决方案（dotnet build -c release），构建产物已存在时跳过，--rebuild 强制编译
  3. 复制 <sln目录>/<sln名>/bin/release/netstandard2.0/ 到 <target>/Runtime/
  4. 并行下载 NuGet 依赖，提取 lib/<框架>/* 到 <target>/Runtime/Internal/
  5. 生成 package.json、README.md、LICENSE、CHANGELOG.md、Third Party Notices.md
  6. 复制模板资源并替换 ${key} 占位符，为每个文件和目录生成 .meta
  7. 校验没有残留占位符后调用 npm pack 生成 .tgz

元数据优先级（由低到高）:
  默认值 < 已有 package.json（--clean 时忽略）< .csproj 中的版本 < 配置文件 < 命令行

可用占位符:
  ${name} ${displayName} ${version} ${company} ${description} ${author}
  ${license} ${changelogUrl} ${documentationUrl} ${packageName} ${scope}
  以及 --meta 指定的任意键

环境变量:
  UPMPACK_LOG_JSON=1   以 JSON 格式输出日志
"""


def _parse_kv_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    """解析 key=value 参数对"""
    result: dict[str, str] = {}
    for p in pairs:
        if "=" not in p:
            raise click.BadParameter(f"格式应为 key=value: {p}", param_hint="--meta")
        k, v = p.split("=", 1)
        result[k.strip()] = v.strip()
    return result


@click.command(context_settings={"help_option_names": []})
@click.option("--sln", default=None, help="解决方案文件路径（必填）")
@click.option("--target", default=None, help="包内容输出目录（默认 ./output）")
@click.option("--package", default=None, help=".tgz 输出目录（默认为 target 的上级目录）")
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, show_default=True, help="YAML 配置文件")
@click.option("--resources", default=None, help="模板资源目录（默认使用内置模板）")
@click.option("--rebuild", is_flag=True, help="强制重新编译")
@click.option("--clean", is_flag=True, help="运行前清理输出和临时目录")
@click.option("--reset", is_flag=True, help="清理输出和临时目录后退出")
@click.option("--verbose", is_flag=True, help="输出外部命令的详细信息")
@click.option("--debug", is_flag=True, help="输出调试信息")
@click.option("--quiet", is_flag=True, help="只输出步骤、警告和错误")
@click.option("--name", default=None, help="包名，如 com.company.product")
@click.option("--version", default=None, help="包版本（默认取 .csproj 中的版本）")
@click.option("--company", default=None, help="公司名，用于生成默认包名")
@click.option("--displayName", "display_name", default=None, help="显示名称")
@click.option("--description", default=None, help="包描述")
@click.option("--author", default=None, help="作者")
@click.option("--license", "license_", default=None, help="许可证")
@click.option("--changelogUrl", "changelog_url", default=None, help="变更日志 URL")
@click.option("--documentationUrl", "documentation_url", default=None, help="文档 URL")
@click.option("--meta", multiple=True, help="额外元数据，格式: key=value（可多次指定）")
@click.option("--help", "-h", "show_help", is_flag=True, help="显示帮助")
@click.option("--detailed", is_flag=True, help="与 --help 一起使用，显示详细说明")
@click.pass_context
def main(
    ctx: click.Context,
    sln: str | None, target: str | None, package: str | None,
    config_path: str, resources: str | None,
    rebuild: bool, clean: bool, reset: bool,
    verbose: bool, debug: bool, quiet: bool,
    name: str | None, version: str | None, company: str | None,
    display_name: str | None, description: str | None, author: str | None,
    license_: str | None, changelog_url: str | None, documentation_url: str | None,
    meta: tuple[str, ...], show_help: bool, detailed: bool,
) -> None:
    """将 .NET 解决方案打包为 Unity Package Manager 包"""
    if show_help:
        click.echo(ctx.get_help())
        if detailed:
            click.echo()
            click.echo(DETAILED_HELP)
        click.echo(f"\nupmpack {__version__}")
        ctx.exit(0)

    from upmpack.core.pipeline import PackagePipeline

    try:
        config = PackConfig.from_file(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    config.merge(
        sln=sln, target=target, package=package, resources=resources,
        rebuild=rebuild, clean=clean, reset=reset,
        verbose=verbose, debug=debug, quiet=quiet,
        name=name, version=version, company=company,
        display_name=display_name, description=description, author=author,
        license=license_, changelog_url=changelog_url,
        documentation_url=documentation_url,
        meta=_parse_kv_pairs(meta),
    )

    log_ctx = setup_logging(
        verbose=config.verbose, debug=config.debug, quiet=config.quiet,
        json_output=os.getenv("UPMPACK_LOG_JSON", "") == "1",
    )
    try:
        report = PackagePipeline(config, log_ctx).run()
    finally:
        log_ctx.close()
    ctx.exit(report.exit_code)


if __name__ == "__main__":
    main()
