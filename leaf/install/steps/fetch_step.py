"""
下载步骤

通过下载缓存获取制品，并把字节进度转发给调用方。
"""

from leaf.install.downloader import DownloadCache
from leaf.install.install_context import InstallContext
from .install_step import InstallStep


class FetchStep(InstallStep):
    """下载步骤"""

    def __init__(self):
        super().__init__("fetch", "下载制品")

    async def execute(self, context: InstallContext) -> None:
        assert context.variant is not None

        def on_progress(downloaded: int, total: int) -> None:
            context.install_stats['downloaded_bytes'] = downloaded
            context.report("fetch", downloaded, total, context.variant.url)

        cache = DownloadCache(context.config, client=context.client)
        context.cached_path = await cache.fetch(context.variant.url, progress_callback=on_progress)

    def get_progress_range(self) -> tuple[int, int]:
        return (5, 50)
