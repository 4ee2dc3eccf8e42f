"""
Update 命令实现

刷新本地包清单。
"""

import asyncio

from .common import console, create_manager, handle_errors


def update_command() -> None:
    """从远程地址刷新包清单

    失败时保留原有的本地清单。
    """
    manager = create_manager()

    with handle_errors():
        manifest = asyncio.run(manager.update())

    console.print(f"[green]✓ 包清单已更新[/green]: {len(manifest)} 个包")
