"""Tests for HTTP function executors."""

import json

import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from lostream import LargeObjectManager, AsyncLargeObjectManager
from lostream.core.util import decode_value, encode_value
from lostream.io.base import RemoteCallError
from lostream.io.http_async import AsyncHTTPFunctionExecutor, open_http_executor_async
from lostream.io.http_sync import HTTPFunctionExecutor, open_http_executor
from lostream.io.local import LocalFunctionExecutor


class BackendServer:
    """HTTP test server answering remote calls from an in-process store."""

    def __init__(self):
        self.store = LocalFunctionExecutor()
        self.server = HTTPServer(host="127.0.0.1", port=0)
        self.server.expect_request("/call", method="POST").respond_with_handler(self._handle_call)
        self.server.expect_request("/broken/call", method="POST").respond_with_handler(self._handle_broken)
        self.server.start()
        self.url = f"http://127.0.0.1:{self.server.port}"

    def stop(self):
        self.server.stop()

    def _handle_call(self, request: Request) -> Response:
        body = request.get_json()
        args = [decode_value(a) for a in body["args"]]
        try:
            result = self.store.execute_function(body["function"], *args)
        except RemoteCallError as e:
            return Response(json.dumps({"error": str(e)}), status=500, content_type="application/json")
        return Response(json.dumps({"result": encode_value(result)}), status=200,
                        content_type="application/json")

    def _handle_broken(self, request: Request) -> Response:
        return Response("not json", status=200)


@pytest.fixture
def backend_server():
    server = BackendServer()
    yield server
    server.stop()


class TestHTTPFunctionExecutor:
    """Test synchronous HTTP executor."""

    def test_stream_round_trip(self, backend_server):
        executor = HTTPFunctionExecutor(backend_server.url, max_transfer_block_size=4)
        manager = LargeObjectManager(executor)

        oid = manager.create()
        with manager.open_read_write(oid) as stream:
            stream.write(b"0123456789")
            stream.seek(2)
            assert stream.read(3) == b"234"
            assert stream.length == 10

        assert bytes(backend_server.store.objects[oid]) == b"0123456789"
        # create, open, 3 writes, seek, 1 read, 2 length seeks, close
        assert executor.requests_made == 10

    def test_remote_error(self, backend_server):
        executor = open_http_executor(backend_server.url)
        assert isinstance(executor, HTTPFunctionExecutor)
        with pytest.raises(RemoteCallError, match="status 500: large object 5 does not exist"):
            executor.execute_function("lo_open", 5, 0x40000)

    def test_invalid_body(self, backend_server):
        executor = HTTPFunctionExecutor(f"{backend_server.url}/broken")
        with pytest.raises(RemoteCallError):
            executor.execute_function("lo_create", 0)

    def test_connection_error(self):
        executor = HTTPFunctionExecutor("http://127.0.0.1:1", timeout=1)
        with pytest.raises(RemoteCallError, match="request failed"):
            executor.execute_function("lo_create", 0)

    def test_capability(self):
        assert HTTPFunctionExecutor("http://x", server_version=(9, 3)).supports_64bit_offsets
        assert not HTTPFunctionExecutor("http://x", server_version=(9, 2)).supports_64bit_offsets

    def test_context_manager(self, backend_server):
        with HTTPFunctionExecutor(backend_server.url) as executor:
            assert executor.execute_function("lo_create", 0) in backend_server.store.objects


class TestAsyncHTTPFunctionExecutor:
    """Test asynchronous HTTP executor."""

    @pytest.mark.asyncio
    async def test_stream_round_trip(self, backend_server):
        async with AsyncHTTPFunctionExecutor(backend_server.url, max_transfer_block_size=4) as executor:
            manager = AsyncLargeObjectManager(executor)
            oid = await manager.create()
            async with await manager.open_read_write(oid) as stream:
                await stream.write(b"async payload")
                await stream.seek(6)
                assert await stream.read() == b"payload"
                assert await stream.get_length() == 13

        assert bytes(backend_server.store.objects[oid]) == b"async payload"

    @pytest.mark.asyncio
    async def test_remote_error(self, backend_server):
        executor = await open_http_executor_async(backend_server.url)
        try:
            with pytest.raises(RemoteCallError, match="does not exist"):
                await executor.execute_function("lo_unlink", 12345)
        finally:
            await executor.aclose()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        async with AsyncHTTPFunctionExecutor("http://127.0.0.1:1", timeout=1) as executor:
            with pytest.raises(RemoteCallError, match="request failed"):
                await executor.execute_function("lo_create", 0)
