"""
下载缓存单元测试

测试文件名推导（Content-Disposition / URL / 默认名 / Windows 替换）以及缓存命中与错误映射。
"""

import httpx
import pytest

from leaf.install.downloader import (
    DEFAULT_FILENAME,
    DownloadCache,
    derive_filename,
    filename_from_url,
    parse_content_disposition,
    sanitize_filename,
)
from leaf.install.errors import NetworkError
from leaf.install.platform import PlatformKey


class TestContentDisposition:
    """Content-Disposition 解析测试"""

    def test_quoted(self):
        assert parse_content_disposition('attachment; filename="tool-1.0.tar.gz"') == "tool-1.0.tar.gz"

    def test_bare(self):
        assert parse_content_disposition("attachment; filename=tool.zip") == "tool.zip"

    def test_extended(self):
        value = "attachment; filename*=UTF-8''r%C3%A9sum%C3%A9.zip"
        assert parse_content_disposition(value) == "résumé.zip"

    def test_extended_preferred(self):
        """同时出现时优先扩展形式"""
        value = "attachment; filename=\"fallback.zip\"; filename*=UTF-8''real.tar.gz"
        assert parse_content_disposition(value) == "real.tar.gz"

    @pytest.mark.parametrize("value", [None, "", "inline"])
    def test_no_filename(self, value):
        assert parse_content_disposition(value) is None


class TestDeriveFilename:
    """文件名推导测试"""

    def test_url_fallback(self):
        assert filename_from_url("https://example.com/dl/tool-1.0.tar.gz?token=abc#x") == "tool-1.0.tar.gz"
        assert derive_filename({}, "https://example.com/dl/tool-1.0.tar.gz") == "tool-1.0.tar.gz"

    def test_default_name(self):
        assert filename_from_url("https://example.com/") is None
        assert derive_filename({}, "https://example.com/") == DEFAULT_FILENAME

    def test_header_wins_over_url(self):
        headers = {"content-disposition": 'attachment; filename="real.zip"'}
        assert derive_filename(headers, "https://example.com/download?id=3") == "real.zip"

    def test_directory_part_dropped(self):
        headers = {"content-disposition": 'attachment; filename="../../etc/passwd"'}
        assert derive_filename(headers, "https://example.com/x", PlatformKey.LINUX_X86_64) == "passwd"

    def test_windows_substitution(self):
        """Windows 平台替换保留字符"""
        assert sanitize_filename('a<b>:c"d|e?f*g\\h/i.zip', PlatformKey.WINDOWS_X86_64) == "a_b__c_d_e_f_g_h_i.zip"
        assert sanitize_filename("a:b.zip", PlatformKey.LINUX_X86_64) == "a:b.zip"

    @pytest.mark.parametrize("name", ["", ".", ".."])
    def test_degenerate_names(self, name):
        assert sanitize_filename(name) == DEFAULT_FILENAME


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestDownloadCache:
    """DownloadCache 测试"""

    @pytest.mark.asyncio
    async def test_download_writes_cache(self, config):
        payload = b"x" * 200_000
        progress = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=payload)

        async with _client(handler) as client:
            path = await DownloadCache(config, client).fetch(
                "http://x/foo.tar.gz", progress_callback=lambda done, total: progress.append((done, total))
            )

        assert path == config.cache_dir / "foo.tar.gz"
        assert path.read_bytes() == payload
        assert not (config.cache_dir / "foo.tar.gz.part").exists()
        assert progress[-1] == (len(payload), len(payload))

    @pytest.mark.asyncio
    async def test_filename_from_response_header(self, config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Disposition": 'attachment; filename="tool-2.0.zip"'},
                content=b"zip",
            )

        async with _client(handler) as client:
            path = await DownloadCache(config, client).fetch("http://x/download?id=7")

        assert path.name == "tool-2.0.zip"

    @pytest.mark.asyncio
    async def test_cache_hit_keeps_existing_file(self, config):
        """缓存命中时不写入响应体"""
        cached = config.cache_dir / "foo.tar.gz"
        cached.write_bytes(b"old")
        progress = []

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"new")

        async with _client(handler) as client:
            path = await DownloadCache(config, client).fetch(
                "http://x/foo.tar.gz", progress_callback=lambda d, t: progress.append(d)
            )

        assert path == cached
        assert cached.read_bytes() == b"old"
        assert progress == []

    @pytest.mark.asyncio
    async def test_http_error(self, config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await DownloadCache(config, client).fetch("http://x/foo.tar.gz")

        assert list(config.cache_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_transport_error(self, config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(NetworkError):
                await DownloadCache(config, client).fetch("http://x/foo.tar.gz")
