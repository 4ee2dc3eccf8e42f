"""
List 命令实现

列出已安装的包，或使用 --available 列出当前平台可安装的包。
"""

import typer
from rich.markup import escape
from rich.table import Table

from .common import console, create_manager, handle_errors


def list_command(
    available: bool = typer.Option(False, "--available", "-a", help="列出当前平台可安装的包"),
) -> None:
    """列出包

    示例:
        leaf list
        leaf list --available
    """
    manager = create_manager()

    with handle_errors():
        if available:
            _show_available(manager)
        else:
            _show_installed(manager)


def _show_installed(manager) -> None:
    records = manager.list_installed()
    if not records:
        console.print("[yellow]尚未安装任何包[/yellow]")
        return

    table = Table(title="已安装的包")
    table.add_column("名称", style="cyan")
    table.add_column("版本", style="green")
    table.add_column("可执行文件")
    table.add_column("安装时间", style="dim")

    for record in records:
        aliases = ", ".join(spec.alias for spec in record.executables)
        table.add_row(
            record.name,
            record.version,
            aliases,
            record.installed_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def _show_available(manager) -> None:
    entries = manager.list_available()
    if not entries:
        console.print("[yellow]当前平台没有可安装的包[/yellow]")
        return

    table = Table(title=f"可安装的包 ({manager.config.platform})")
    table.add_column("名称", style="cyan")
    table.add_column("版本", style="green")
    table.add_column("状态")
    table.add_column("描述")

    for name, package in entries:
        status = "[green]已安装[/green]" if manager.is_installed(name) else ""
        table.add_row(name, package.version, status, escape(package.description))

    console.print(table)
