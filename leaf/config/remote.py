"""
远程清单刷新

从固定地址 GET 清单，校验通过后原子替换本地副本；任何失败都保持原副本不变。
"""

from typing import Optional

import httpx

from ..install.errors import NetworkError, PackageIOError
from ..utils.logging import get_stage_logger, LogStage
from ..utils.paths import atomic_write_text
from .loader import parse_manifest_text
from .schema import LeafConfig, Manifest

logger = get_stage_logger(LogStage.UPDATE)


def _user_agent() -> str:
    from .. import __version__
    return f"leaf-package-manager/{__version__}"


async def refresh_manifest(config: LeafConfig, client: Optional[httpx.AsyncClient] = None) -> Manifest:
    """下载并保存最新清单

    Args:
        config: 运行配置
        client: 可选的 HTTP 客户端（测试时注入）

    Returns:
        Manifest: 新清单

    Raises:
        NetworkError: 传输失败或非成功状态码
        ManifestInvalid: 内容是 HTML 或不是有效 JSON 对象
        PackageIOError: 写入本地副本失败
    """
    logger.info(f"正在获取包定义: {config.manifest_url}")

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(60.0, connect=10.0),
            follow_redirects=True,
            headers={"User-Agent": _user_agent()},
        )

    try:
        response = await client.get(config.manifest_url)
        response.raise_for_status()
        content = response.text
    except httpx.HTTPStatusError as e:
        raise NetworkError(f"下载清单失败: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise NetworkError(f"下载清单时网络错误: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    data = parse_manifest_text(content)
    manifest = Manifest.from_data(data)

    try:
        atomic_write_text(config.manifest_path, content)
    except OSError as e:
        raise PackageIOError(f"写入清单失败 {config.manifest_path}: {e}") from e

    logger.success(f"包定义已更新，共 {len(manifest)} 个包")
    return manifest
