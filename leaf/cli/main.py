"""
Leaf CLI 主入口

提供命令行接口，支持 install/remove/list/search/update/nuke/info 等命令。
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils.logging import configure_logging, set_log_file
from .commands import install, remove, search, update, nuke
from .commands import list as list_cmd


# 创建主应用
app = typer.Typer(
    name="leaf",
    help="Leaf - 无需 sudo 的清单驱动包管理器",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


# 全局选项
def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"Leaf v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


def log_file_callback(log_file: Optional[Path]) -> None:
    """配置日志文件"""
    if log_file is None:
        return
    try:
        set_log_file(log_file)
    except OSError:
        console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        callback=log_file_callback,
        help="日志输出文件"
    ),
) -> None:
    """Leaf - 无需 sudo 的清单驱动包管理器

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("install", help="安装包")(install.install_command)
app.command("remove", help="删除已安装的包")(remove.remove_command)
app.command("list", help="列出已安装或可安装的包")(list_cmd.list_command)
app.command("search", help="搜索可安装的包")(search.search_command)
app.command("update", help="刷新包清单")(update.update_command)
app.command("nuke", help="删除 Leaf 及其所有包")(nuke.nuke_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    from .commands.common import load_config

    config = load_config()

    console.print("[bold]Leaf 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("值", style="green")

    table.add_row("Leaf", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("平台", str(config.platform) if config.platform else "[red]不支持[/red]")

    console.print(table)
    console.print()

    dir_table = Table(title="目录")
    dir_table.add_column("用途", style="cyan")
    dir_table.add_column("路径")

    dir_table.add_row("Leaf 根目录", str(config.install_dir))
    dir_table.add_row("可执行文件", str(config.bin_dir))
    dir_table.add_row("包", str(config.packages_dir))
    dir_table.add_row("下载缓存", str(config.cache_dir))
    dir_table.add_row("清单地址", config.manifest_url)

    console.print(dir_table)

    if not config.manifest_path.exists():
        console.print("[yellow]尚未获取包清单，请运行 leaf update[/yellow]")


if __name__ == "__main__":
    app()
