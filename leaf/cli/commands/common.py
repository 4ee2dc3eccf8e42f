"""
子命令公共部分

加载运行配置、创建包管理器，并把 LeafError 统一转换为输出与退出码。
"""

from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console
from rich.markup import escape

from ...config import ConfigError, ConfigValidationError, load_or_create_config
from ...config.schema import LeafConfig
from ...install.errors import BuildCommandFailed, LeafError
from ...install.manager import PackageManager


console = Console()
err_console = Console(stderr=True)


def load_config() -> LeafConfig:
    """加载运行配置，失败时以退出码 1 结束"""
    try:
        return load_or_create_config()
    except ConfigValidationError as e:
        err_console.print("[red]配置验证失败:[/red]")
        err_console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        err_console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)


def create_manager() -> PackageManager:
    return PackageManager(load_config())


@contextmanager
def handle_errors() -> Iterator[None]:
    """报告 LeafError 并结束本次调用

    警告类错误（已安装 / 未安装）以退出码 0 结束，其余以 1 结束。
    """
    try:
        yield
    except LeafError as e:
        if e.is_warning:
            console.print(f"[yellow]⚠ {escape(str(e))}[/yellow]")
            raise typer.Exit(0)

        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        if isinstance(e, BuildCommandFailed) and e.stderr.strip():
            err_console.print("[yellow]构建命令的错误输出:[/yellow]")
            err_console.print(e.stderr.rstrip(), markup=False, highlight=False)
        raise typer.Exit(1)
