"""
归档解压器

仅按文件名后缀分派解码器：.tar.gz/.tgz → gzip+tar，.tar.xz → xz+tar，.zip → zip。
其它后缀在触碰目标目录之前即失败。解压属于 CPU 密集操作，异步入口在工作线程中执行。
"""

import asyncio
import lzma
import os
import tarfile
import zipfile
import zlib
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import is_within
from .errors import PackageIOError, UnsupportedArchiveFormat

logger = get_stage_logger(LogStage.EXTRACT)

CHUNK_SIZE = 256 * 1024

# 解压进度回调: 当前条目名
ExtractCallback = Callable[[str], None]


class ArchiveFormat(str, Enum):
    """支持的归档格式"""
    TAR_GZ = "tar.gz"
    TAR_XZ = "tar.xz"
    ZIP = "zip"


_SUFFIXES = (
    (".tar.gz", ArchiveFormat.TAR_GZ),
    (".tgz", ArchiveFormat.TAR_GZ),
    (".tar.xz", ArchiveFormat.TAR_XZ),
    (".zip", ArchiveFormat.ZIP),
)


def detect_format(archive_path: Union[str, Path]) -> ArchiveFormat:
    """根据文件名后缀识别归档格式

    Raises:
        UnsupportedArchiveFormat: 后缀不在支持列表中
    """
    filename = Path(archive_path).name
    lowered = filename.lower()
    for suffix, archive_format in _SUFFIXES:
        if lowered.endswith(suffix):
            return archive_format
    raise UnsupportedArchiveFormat(filename)


def _extract_tar(archive_path: Path, dest_dir: Path, mode: str, cb: Optional[ExtractCallback]) -> None:
    with tarfile.open(archive_path, mode) as tf:
        members = tf.getmembers()
        # data 过滤器拒绝绝对路径、穿越路径和设备文件，并清除 setuid 等危险权限位
        tf.extractall(dest_dir, members=members, filter="data")
        if cb:
            for member in members:
                if member.isfile():
                    cb(member.name)


def _extract_zip(archive_path: Path, dest_dir: Path, cb: Optional[ExtractCallback]) -> None:
    with zipfile.ZipFile(archive_path, "r") as zf:
        for info in zf.infolist():
            target = dest_dir / info.filename
            if not is_within(target, dest_dir):
                raise PackageIOError(f"归档条目试图写出目标目录: {info.filename}")

            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, open(target, "wb") as out:
                while True:
                    chunk = src.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    out.write(chunk)

            # zip 条目的外部属性高 16 位保存 Unix 权限
            mode = (info.external_attr >> 16) & 0o777
            if mode and os.name != "nt":
                os.chmod(target, mode)

            if cb:
                cb(info.filename)


def extract_archive(
    archive_path: Union[str, Path],
    dest_dir: Union[str, Path],
    progress_callback: Optional[ExtractCallback] = None,
) -> None:
    """同步解压归档到目标目录

    Raises:
        UnsupportedArchiveFormat: 不支持的后缀（目标目录不会被创建或写入）
        PackageIOError: 归档损坏或写盘失败，或 tarfile 缺少解压过滤器
    """
    archive_path = Path(archive_path)
    dest_dir = Path(dest_dir)
    archive_format = detect_format(archive_path)
    if archive_format is not ArchiveFormat.ZIP and not hasattr(tarfile, "data_filter"):
        raise PackageIOError(f"当前 Python 的 tarfile 不支持安全解压过滤器，无法解压 {archive_path.name}")

    logger.debug(f"解压 {archive_path.name} ({archive_format.value}) → {dest_dir}")
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        if archive_format is ArchiveFormat.TAR_GZ:
            _extract_tar(archive_path, dest_dir, "r:gz", progress_callback)
        elif archive_format is ArchiveFormat.TAR_XZ:
            _extract_tar(archive_path, dest_dir, "r:xz", progress_callback)
        else:
            _extract_zip(archive_path, dest_dir, progress_callback)
    except (tarfile.TarError, zipfile.BadZipFile, lzma.LZMAError, zlib.error, EOFError) as e:
        raise PackageIOError(f"归档损坏或无法解码 {archive_path.name}: {e}") from e
    except OSError as e:
        raise PackageIOError(f"解压 {archive_path.name} 失败: {e}") from e


async def extract(
    archive_path: Union[str, Path],
    dest_dir: Union[str, Path],
    progress_callback: Optional[ExtractCallback] = None,
) -> None:
    """在工作线程中解压，调用方等待完成，事件循环不被阻塞"""
    # 提前分派，不支持的格式不必启动工作线程
    detect_format(archive_path)
    await asyncio.to_thread(extract_archive, archive_path, dest_dir, progress_callback)
