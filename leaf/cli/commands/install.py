"""
Install 命令实现

从清单安装单个包，显示总进度与下载进度。
"""

import asyncio

import typer
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
)

from ...install.install_context import OVERALL_STAGE
from ...utils.logging import get_console
from .common import console, create_manager, handle_errors


def install_command(
    name: str = typer.Argument(..., help="要安装的包名"),
) -> None:
    """安装包

    示例:
        leaf install ripgrep
    """
    manager = create_manager()

    progress = Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("{task.fields[detail]}"),
        console=get_console(),
        transient=True,
    )
    overall_id = progress.add_task(f"安装 {name}", total=100, detail="")
    download_id = progress.add_task(f"下载 {name}", total=None, visible=False, detail="")

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        if stage == OVERALL_STAGE:
            progress.update(overall_id, completed=current, detail=message)
        elif stage == "fetch":
            detail = f"{current / 1048576:.1f} MiB"
            progress.update(download_id, completed=current, total=total or None, visible=True, detail=detail)

    with handle_errors():
        with progress:
            record = asyncio.run(manager.install(name, progress_callback=progress_callback))

    console.print(f"[green]✓ 已安装 {record.name} {record.version}[/green]")
    for alias_path in manager.linked_aliases(record):
        console.print(f"  [blue]{alias_path.name}[/blue] → {alias_path}")
