"""
路径工具

提供路径处理、原子写入和权限相关的工具函数。
"""

import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Union


def expand_path(path: Union[str, Path]) -> Path:
    """扩展路径（处理环境变量和用户目录）

    Args:
        path: 原始路径

    Returns:
        Path: 扩展后的绝对路径
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)

    return Path(path).resolve()


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def safe_path_join(base: Union[str, Path], relative: Union[str, Path]) -> Path:
    """安全的路径拼接（防止目录穿越）

    Args:
        base: 基准目录
        relative: 相对路径，使用 / 分隔

    Returns:
        Path: 拼接后的路径

    Raises:
        ValueError: 检测到目录穿越或绝对路径
    """
    rel = Path(str(relative).replace("\\", "/"))

    if rel.is_absolute() or str(relative).startswith("/"):
        raise ValueError(f"不允许使用绝对路径: {relative}")

    if any(part == ".." for part in rel.parts):
        raise ValueError(f"检测到目录穿越尝试: {relative}")

    return Path(base) / rel


def is_within(path: Union[str, Path], root: Union[str, Path]) -> bool:
    """判断 path 解析后是否位于 root 之内"""
    try:
        Path(path).resolve().relative_to(Path(root).resolve())
        return True
    except ValueError:
        return False


def remove_path(path: Union[str, Path]) -> None:
    """删除文件、符号链接（包括悬空链接）或目录树"""
    path = Path(path)
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def make_executable(path: Union[str, Path]) -> None:
    """为文件设置可执行权限位（Windows 无权限位概念，跳过）"""
    if os.name == "nt":
        return
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """原子写入文本文件

    先写入同目录临时文件并 fsync，再通过 os.replace 替换目标。
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise

