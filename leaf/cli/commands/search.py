"""
Search 命令实现
"""

import typer
from rich.markup import escape
from rich.table import Table

from .common import console, create_manager, handle_errors


def search_command(
    term: str = typer.Argument(..., help="搜索词（匹配名称、描述与标签）"),
) -> None:
    """搜索当前平台可安装的包

    示例:
        leaf search grep
    """
    manager = create_manager()

    with handle_errors():
        results = manager.search(term)

    if not results:
        console.print(f"[yellow]没有找到与 '{term}' 匹配的包[/yellow]")
        return

    table = Table(title=f"搜索结果: {term}")
    table.add_column("名称", style="cyan")
    table.add_column("版本", style="green")
    table.add_column("描述")
    table.add_column("标签", style="dim")
    table.add_column("状态")

    for name, package in results:
        status = "[green]已安装[/green]" if manager.is_installed(name) else ""
        table.add_row(
            name, package.version, escape(package.description), escape(", ".join(package.tags)), status
        )

    console.print(table)
