"""
CLI 模块

命令行接口实现。
"""

import asyncio
import sys
from typing import Optional

import click
from loguru import logger

from everestmod import __version__
from everestmod.config import load_config
from everestmod.download import DownloadProgress
from everestmod.exceptions import EverestModError
from everestmod.logger import setup_logger
from everestmod.models import EverestModConfig
from everestmod.orchestrator import SyncOrchestrator, SyncReport


def _run(coro):
    """运行协程，把已知错误转换为 ClickException"""
    try:
        return asyncio.run(coro)
    except EverestModError as e:
        logger.debug(f"错误详情: {e.to_dict()}")
        raise click.ClickException(str(e))


def _print_report(report: SyncReport) -> None:
    """逐项输出被跳过的文件与每个任务的结果"""
    for path, reason in report.skipped:
        click.echo(f"  - 跳过 {path.name}: {reason}", err=True)

    for result in report.results:
        task = result.task
        if result.ok:
            click.echo(f"  ✓ {task.mod_name} -> {task.available_version}")
        else:
            click.echo(f"  ✗ {task.mod_name}: {result.error}", err=True)

    if report.results:
        click.echo(
            f"\n完成: {len(report.committed)} 个成功, {len(report.failed)} 个失败"
        )


@click.group()
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="配置文件 (toml/json/yaml)",
)
@click.option(
    "--mods-dir", type=click.Path(file_okay=False), help="Celeste Mods 目录"
)
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Optional[str],
    mods_dir: Optional[str],
    debug: bool,
):
    """everestmod - Celeste 模组同步工具"""
    setup_logger(level="DEBUG" if debug else None)
    try:
        ctx.obj = load_config(config_path, mods_dir=mods_dir)
    except EverestModError as e:
        raise click.ClickException(str(e))


@main.command(name="list")
@click.pass_obj
def list_mods(config: EverestModConfig):
    """列出已安装的模组"""
    installed = _run(SyncOrchestrator(config).list_installed())
    if not installed:
        click.echo("没有已安装的模组")
        return

    click.echo("已安装的模组:")
    for info in installed:
        click.echo(f"  {info.mod_name} v{info.version} ({info.filename})")


@main.command()
@click.argument("name")
@click.pass_obj
def show(config: EverestModConfig, name: str):
    """显示已安装模组的详细信息"""
    info = _run(SyncOrchestrator(config).show(name))
    if info is None:
        raise click.ClickException(f"模组 '{name}' 未安装")

    click.echo(f"名称: {info.mod_name}")
    click.echo(f"版本: {info.version}")
    click.echo(f"文件: {info.filename}")
    click.echo(f"xxHash: {info.checksum}")

    manifest = info.manifest
    if manifest is None:
        return
    if manifest.dll:
        click.echo(f"DLL: {manifest.dll}")
    for title, deps in (
        ("依赖", manifest.dependencies),
        ("可选依赖", manifest.optional_dependencies),
    ):
        if not deps:
            continue
        click.echo(f"\n{title}:")
        for dep in deps:
            suffix = f" v{dep.version}" if dep.version else ""
            click.echo(f"  - {dep.name}{suffix}")


@main.command()
@click.argument("query")
@click.pass_obj
def search(config: EverestModConfig, query: str):
    """在远程注册表中搜索模组"""
    results = _run(SyncOrchestrator(config).search(query))
    if not results:
        click.echo(f"没有匹配 '{query}' 的模组")
        return

    click.echo(f"找到 {len(results)} 个模组:")
    for entry in results:
        click.echo(f"  {entry.name} v{entry.version}")


@main.command()
@click.argument("name")
@click.pass_obj
def info(config: EverestModConfig, name: str):
    """显示远程注册表中的模组信息"""
    entry = _run(SyncOrchestrator(config).info(name))
    click.echo(f"{entry.name} (v{entry.version})")
    click.echo(f"最后更新: {entry.updated_at}")
    click.echo(f"URL: {entry.download_url}")
    if entry.size_bytes is not None:
        click.echo(f"大小: {entry.size_bytes / (1024 * 1024):.2f} MB")
    if entry.category:
        click.echo(f"类型: {entry.category}")
    if entry.external_id is not None:
        click.echo(f"GameBanana ID: {entry.external_id}")
    click.echo(f"xxHash: {', '.join(sorted(entry.checksums))}")


@main.command()
@click.argument("name")
@click.pass_obj
def install(config: EverestModConfig, name: str):
    """安装模组（已安装则更新）"""
    orchestrator = SyncOrchestrator(config, progress=DownloadProgress())
    report = _run(orchestrator.install(name))
    if not report.tasks:
        click.echo(f"'{name}' 已是最新")
        return
    _print_report(report)
    if not report.ok:
        sys.exit(1)


@main.command()
@click.option("--install", "do_install", is_flag=True, help="下载并安装可用更新")
@click.option("--strict", is_flag=True, help="任一更新失败时返回非零退出码")
@click.option("-j", "--jobs", type=int, help="最大并发下载数 (0 表示不限制)")
@click.pass_obj
def update(
    config: EverestModConfig,
    do_install: bool,
    strict: bool,
    jobs: Optional[int],
):
    """检查并安装更新"""
    if jobs is not None:
        config.max_concurrent = jobs

    orchestrator = SyncOrchestrator(
        config, progress=DownloadProgress() if do_install else None
    )
    report = _run(orchestrator.update(install=do_install))

    if not report.tasks:
        _print_report(report)
        click.echo("所有模组都是最新的!")
        return

    click.echo("可用更新:")
    for task in report.tasks:
        current = task.current_version or "-"
        click.echo(f"  {task.mod_name}: {current} -> {task.available_version}")

    if not do_install:
        _print_report(report)
        click.echo("\n使用 --install 安装这些更新")
        return

    click.echo()
    _print_report(report)
    if strict and not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
