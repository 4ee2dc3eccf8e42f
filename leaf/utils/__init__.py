"""通用工具模块"""

from .logging import (
    configure_logging,
    get_console,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    expand_path,
    ensure_directory,
    safe_path_join,
    is_within,
    remove_path,
    make_executable,
    atomic_write_text,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "get_console",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "expand_path",
    "ensure_directory",
    "safe_path_join",
    "is_within",
    "remove_path",
    "make_executable",
    "atomic_write_text",
]
