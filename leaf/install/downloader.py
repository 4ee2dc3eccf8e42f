"""
下载缓存

为 URL 推导稳定的本地文件名（优先 Content-Disposition，其次 URL 路径，最后默认名），
已缓存的文件不会再次写入响应体。缓存条目以推导出的文件名为键，而不是包名。
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path
from typing import Callable, Mapping, Optional
from urllib.parse import unquote, urlsplit

import httpx

from ..config.schema import LeafConfig
from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import ensure_directory
from .errors import NetworkError, PackageIOError
from .platform import PlatformKey

logger = get_stage_logger(LogStage.FETCH)

DEFAULT_FILENAME = "archive"
CHUNK_SIZE = 64 * 1024

# 下载进度回调: (已下载字节数, 总字节数；未知时为 0)
DownloadProgressCallback = Callable[[int, int], None]

_WINDOWS_RESERVED = '<>:"|?*\\/'

_EXTENDED_RE = re.compile(r"filename\*\s*=\s*([^;]+)", re.IGNORECASE)
_QUOTED_RE = re.compile(r'filename\s*=\s*"((?:[^"\\]|\\.)*)"', re.IGNORECASE)
_BARE_RE = re.compile(r"filename\s*=\s*([^;\"\s][^;]*)", re.IGNORECASE)


def _decode_extended(value: str) -> Optional[str]:
    """解码 RFC 5987 扩展值: charset'lang'percent-encoded"""
    value = value.strip().strip('"')
    parts = value.split("'", 2)
    if len(parts) != 3:
        return unquote(value) or None

    charset, _lang, encoded = parts
    try:
        return unquote(encoded, encoding=charset or "utf-8", errors="replace") or None
    except LookupError:
        return unquote(encoded) or None


def parse_content_disposition(value: Optional[str]) -> Optional[str]:
    """从 Content-Disposition 头中取出文件名

    同时出现时扩展形式 filename*= 优先于 filename=。
    """
    if not value:
        return None

    match = _EXTENDED_RE.search(value)
    if match:
        name = _decode_extended(match.group(1))
        if name:
            return name

    match = _QUOTED_RE.search(value)
    if match:
        name = re.sub(r"\\(.)", r"\1", match.group(1))
        return name or None

    match = _BARE_RE.search(value)
    if match:
        return match.group(1).strip() or None

    return None


def filename_from_url(url: str) -> Optional[str]:
    """URL 路径的最后一段（忽略查询串和片段）"""
    path = urlsplit(url).path
    segments = [seg for seg in path.split("/") if seg]
    if not segments:
        return None
    return unquote(segments[-1]) or None


def sanitize_filename(name: str, platform: Optional[PlatformKey] = None) -> str:
    """把推导出的文件名处理成宿主文件系统可用的名称

    所有平台都只保留最后一段路径；仅在 Windows 平台替换保留字符。
    """
    if platform is not None and platform.is_windows:
        name = "".join("_" if ch in _WINDOWS_RESERVED else ch for ch in name)
    else:
        name = name.split("/")[-1]

    name = name.strip().replace("\x00", "")
    if name in ("", ".", ".."):
        return DEFAULT_FILENAME
    return name


def derive_filename(headers: Mapping[str, str], url: str, platform: Optional[PlatformKey] = None) -> str:
    """按 Content-Disposition → URL → 默认名的顺序推导缓存文件名"""
    name = parse_content_disposition(headers.get("content-disposition"))
    if not name:
        name = filename_from_url(url)
    return sanitize_filename(name or DEFAULT_FILENAME, platform)


class DownloadCache:
    """下载缓存

    Args:
        config: 运行配置（提供缓存目录与平台）
        client: 可选的 HTTP 客户端；未提供时每次下载创建并关闭自己的客户端
    """

    def __init__(self, config: LeafConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.cache_dir = Path(config.cache_dir)
        self._client = client

    def _new_client(self) -> httpx.AsyncClient:
        from .. import __version__
        return httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=10.0),
            follow_redirects=True,
            headers={"User-Agent": f"leaf-package-manager/{__version__}"},
        )

    async def fetch(self, url: str, progress_callback: Optional[DownloadProgressCallback] = None) -> Path:
        """下载 URL 到缓存目录并返回缓存路径

        先发出请求再根据响应头推导文件名；若同名文件已在缓存中，直接返回且不读取响应体。
        新文件先写入 <name>.part，刷盘后再原子重命名，中断的下载不会被当作缓存命中。

        Raises:
            NetworkError: 传输失败或非成功状态码
            PackageIOError: 写盘失败
        """
        try:
            ensure_directory(self.cache_dir)
        except OSError as e:
            raise PackageIOError(f"无法创建缓存目录 {self.cache_dir}: {e}") from e

        client = self._client or self._new_client()
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()

                filename = derive_filename(response.headers, url, self.config.platform)
                cached_path = self.cache_dir / filename

                if cached_path.exists():
                    logger.info(f"使用缓存: {cached_path.name}")
                    return cached_path

                total = int(response.headers.get("content-length") or 0)
                logger.info(f"正在下载 {filename}")
                await self._stream_to_file(response, cached_path, total, progress_callback)
                return cached_path

        except httpx.HTTPStatusError as e:
            raise NetworkError(f"下载失败 {url}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"下载时网络错误 {url}: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

    async def _stream_to_file(
        self,
        response: httpx.Response,
        target: Path,
        total: int,
        progress_callback: Optional[DownloadProgressCallback],
    ) -> None:
        part_path = target.with_name(target.name + ".part")
        downloaded = 0

        try:
            with open(part_path, "wb") as out:
                async for chunk in response.aiter_bytes(CHUNK_SIZE):
                    await asyncio.to_thread(out.write, chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(downloaded, total)
                out.flush()
                await asyncio.to_thread(os.fsync, out.fileno())
            os.replace(part_path, target)
        except OSError as e:
            raise PackageIOError(f"写入缓存文件失败 {target}: {e}") from e

        logger.debug(f"已写入 {downloaded} 字节: {target}")
