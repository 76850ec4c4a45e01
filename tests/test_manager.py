"""Tests for object-level operations."""

import pytest

from lostream import (
    AsyncLargeObjectManager,
    AsyncLargeObjectStream,
    INV_READ,
    INV_WRITE,
    LargeObjectManager,
    LargeObjectStream,
    ProtocolViolationError,
    RemoteCallError,
    open_large_object,
    open_large_object_async,
)
from lostream.io.local import FIRST_OID, LocalAsyncFunctionExecutor, LocalFunctionExecutor


class TestLargeObjectManager:
    """Test the synchronous manager."""

    def setup_method(self):
        self.backend = LocalFunctionExecutor(record_calls=True, max_transfer_block_size=8)
        self.manager = LargeObjectManager(self.backend)

    def test_capabilities(self):
        assert self.manager.max_transfer_block_size == 8
        assert self.manager.has_64bit_support
        old = LargeObjectManager(LocalFunctionExecutor(record_calls=True, server_version=(9, 2, 4)))
        assert not old.has_64bit_support

    def test_create(self):
        assert self.manager.create() == FIRST_OID
        assert self.manager.create(42) == 42
        with pytest.raises(RemoteCallError, match="already exists"):
            self.manager.create(42)

    def test_open_modes(self):
        oid = self.manager.create()
        with self.manager.open_read(oid) as stream:
            assert isinstance(stream, LargeObjectStream)
            assert not stream.handle.writable
        with self.manager.open_read_write(oid) as stream:
            assert stream.handle.writable
        modes = [args[1] for name, args in self.backend.calls if name == "lo_open"]
        assert modes == [INV_READ, INV_READ | INV_WRITE]

    def test_open_missing_object(self):
        with pytest.raises(RemoteCallError, match="does not exist"):
            self.manager.open_read(999)

    def test_write_then_read_back(self):
        oid = self.manager.create()
        with self.manager.open_read_write(oid) as stream:
            stream.write(b"x" * 20)
        with self.manager.open_read(oid) as stream:
            assert stream.length == 20
            assert stream.read() == b"x" * 20
        assert self.backend.open_descriptors == 0

    def test_unlink(self):
        oid = self.manager.create()
        self.manager.unlink(oid)
        assert oid not in self.backend.objects
        with pytest.raises(RemoteCallError):
            self.manager.unlink(oid)

    def test_import_export(self, tmp_path):
        source = tmp_path / "in.bin"
        source.write_bytes(b"remote file contents")
        oid = self.manager.import_remote(str(source))
        assert bytes(self.backend.objects[oid]) == b"remote file contents"

        oid2 = self.manager.import_remote(str(source), 777)
        assert oid2 == 777

        target = tmp_path / "out.bin"
        self.manager.export_remote(oid, str(target))
        assert target.read_bytes() == b"remote file contents"

    def test_non_integer_descriptor_is_protocol_violation(self):
        class BadOpen(LocalFunctionExecutor):
            def execute_function(self, name, *args):
                if name == "lo_open":
                    return "fd"
                return super().execute_function(name, *args)

        manager = LargeObjectManager(BadOpen(record_calls=True))
        with pytest.raises(ProtocolViolationError):
            manager.open_read(manager.create())


class TestAsyncLargeObjectManager:
    """Test the asynchronous manager."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        backend = LocalFunctionExecutor(record_calls=True, max_transfer_block_size=8)
        manager = AsyncLargeObjectManager(LocalAsyncFunctionExecutor(backend))
        assert manager.max_transfer_block_size == 8
        assert manager.has_64bit_support

        oid = await manager.create()
        async with await manager.open_read_write(oid) as stream:
            assert isinstance(stream, AsyncLargeObjectStream)
            await stream.write(b"async data")
        async with await manager.open_read(oid) as stream:
            assert await stream.read() == b"async data"

        await manager.unlink(oid)
        assert backend.objects == {}

    @pytest.mark.asyncio
    async def test_import_export(self, tmp_path):
        manager = AsyncLargeObjectManager(LocalAsyncFunctionExecutor())
        source = tmp_path / "in.bin"
        source.write_bytes(b"abc")
        oid = await manager.import_remote(str(source))
        await manager.export_remote(oid, str(tmp_path / "out.bin"))
        assert (tmp_path / "out.bin").read_bytes() == b"abc"


class TestOpenLargeObject:
    """Test the top-level convenience openers."""

    def test_open_large_object(self):
        backend = LocalFunctionExecutor(record_calls=True)
        oid = LargeObjectManager(backend).create()
        with open_large_object(backend, oid, writable=True) as stream:
            stream.write(b"hello")
        with open_large_object(backend, oid) as stream:
            assert not stream.can_write
            assert stream.read() == b"hello"

    @pytest.mark.asyncio
    async def test_open_large_object_async_wraps_sync_executor(self):
        backend = LocalFunctionExecutor(record_calls=True)
        oid = LargeObjectManager(backend).create()
        async with await open_large_object_async(backend, oid, writable=True) as stream:
            await stream.write(b"hello")
        assert bytes(backend.objects[oid]) == b"hello"
