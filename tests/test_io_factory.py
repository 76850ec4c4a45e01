"""Tests for executor factory functions."""

import pytest

from lostream.io import open_executor, open_executor_async
from lostream.io.http_async import AsyncHTTPFunctionExecutor
from lostream.io.http_sync import HTTPFunctionExecutor
from lostream.io.local import LocalAsyncFunctionExecutor, LocalFunctionExecutor


class TestFactoryFunctions:
    """Test the main factory functions."""

    def test_open_executor_passes_executor_through(self):
        executor = LocalFunctionExecutor()
        assert open_executor(executor) is executor

    def test_open_executor_rejects_options_for_executor(self):
        executor = LocalFunctionExecutor()
        with pytest.raises(TypeError, match="max_transfer_block_size"):
            open_executor(executor, max_transfer_block_size=16)
        assert executor.max_transfer_block_size != 16

    def test_open_executor_rejects_async_executor(self):
        with pytest.raises(TypeError):
            open_executor(LocalAsyncFunctionExecutor())

    def test_open_executor_with_http_url(self):
        executor = open_executor("http://example.com/lo", server_version=(9, 2), max_transfer_block_size=1024)
        assert isinstance(executor, HTTPFunctionExecutor)
        assert executor.url == "http://example.com/lo"
        assert executor.max_transfer_block_size == 1024
        assert not executor.supports_64bit_offsets

    def test_open_executor_with_https_url(self):
        assert isinstance(open_executor("https://example.com/"), HTTPFunctionExecutor)

    def test_open_executor_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported executor source"):
            open_executor("ftp://example.com")

    @pytest.mark.asyncio
    async def test_open_executor_async_wraps_sync(self):
        backend = LocalFunctionExecutor()
        executor = await open_executor_async(backend)
        assert isinstance(executor, LocalAsyncFunctionExecutor)
        assert executor.sync_executor is backend

    @pytest.mark.asyncio
    async def test_open_executor_async_passes_async_through(self):
        executor = LocalAsyncFunctionExecutor()
        assert await open_executor_async(executor) is executor

    @pytest.mark.asyncio
    async def test_open_executor_async_rejects_options_for_executor(self):
        with pytest.raises(TypeError, match="server_version"):
            await open_executor_async(LocalFunctionExecutor(), server_version=(9, 2))
        with pytest.raises(TypeError, match="server_version"):
            await open_executor_async(LocalAsyncFunctionExecutor(), server_version=(9, 2))

    @pytest.mark.asyncio
    async def test_open_executor_async_with_http_url(self):
        executor = await open_executor_async("http://example.com/lo")
        assert isinstance(executor, AsyncHTTPFunctionExecutor)
        await executor.aclose()

    @pytest.mark.asyncio
    async def test_open_executor_async_unsupported(self):
        with pytest.raises(ValueError):
            await open_executor_async("/tmp/not-a-backend")
