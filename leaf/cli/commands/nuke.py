"""
Nuke 命令实现

删除所有受管链接和整个 Leaf 根目录。未加 --confirmed 时只打印警告，不做任何修改。
"""

import typer

from .common import console, create_manager, handle_errors


def nuke_command(
    confirmed: bool = typer.Option(False, "--confirmed", help="确认删除所有包以及 Leaf 自身"),
) -> None:
    """删除 Leaf 及其所有包

    示例:
        leaf nuke --confirmed
    """
    manager = create_manager()

    if not confirmed:
        console.print("[red]此操作会删除所有已安装的包、缓存以及 Leaf 配置。[/red]")
        console.print(f"  Leaf 目录: {manager.config.install_dir}")
        console.print("如确认执行，请运行:")
        console.print("  [cyan]leaf nuke --confirmed[/cyan]")
        return

    with handle_errors():
        removed = manager.nuke()

    console.print(f"[green]✓ 已删除 {len(removed)} 个链接以及 {manager.config.install_dir}[/green]")
