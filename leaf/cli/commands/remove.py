"""
Remove 命令实现
"""

import typer

from .common import console, create_manager, handle_errors


def remove_command(
    name: str = typer.Argument(..., help="要删除的包名"),
) -> None:
    """删除已安装的包

    示例:
        leaf remove ripgrep
    """
    manager = create_manager()

    with handle_errors():
        record = manager.remove(name)

    console.print(f"[green]✓ 已删除 {record.name} {record.version}[/green]")
