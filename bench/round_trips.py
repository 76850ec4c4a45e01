"""Round-trip count benchmark for large object streams.

Quick script to report how many remote calls a transfer costs for a range of
block sizes, using the in-process backend. Meant for manual runs.
"""

import asyncio
import sys
import time
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lostream import AsyncLargeObjectManager, LargeObjectManager
from lostream.io.local import LocalAsyncFunctionExecutor, LocalFunctionExecutor

PAYLOAD = b"\xab" * (8 * 1024 * 1024)
BLOCK_SIZES = [64 * 1024, 512 * 1024, 4 * 1024 * 1024]


def run_sync(block_size: int) -> None:
    backend = LocalFunctionExecutor(max_transfer_block_size=block_size)
    manager = LargeObjectManager(backend)
    oid = manager.create()

    start = time.perf_counter()
    with manager.open_read_write(oid) as stream:
        stream.write(PAYLOAD)
        stream.seek(0)
        assert stream.read() == PAYLOAD
    elapsed = time.perf_counter() - start

    print(f"sync  block={block_size:>8}  calls={backend.requests_made:>4}  {elapsed * 1000:.1f} ms")


async def run_async(block_size: int) -> None:
    backend = LocalFunctionExecutor(max_transfer_block_size=block_size)
    manager = AsyncLargeObjectManager(LocalAsyncFunctionExecutor(backend))
    oid = await manager.create()

    start = time.perf_counter()
    async with await manager.open_read_write(oid) as stream:
        await stream.write(PAYLOAD)
        await stream.seek(0)
        assert await stream.read() == PAYLOAD
    elapsed = time.perf_counter() - start

    print(f"async block={block_size:>8}  calls={backend.requests_made:>4}  {elapsed * 1000:.1f} ms")


if __name__ == "__main__":
    print("lostream round-trip benchmark")
    print("=" * 40)

    for size in BLOCK_SIZES:
        run_sync(size)
    print()
    for size in BLOCK_SIZES:
        asyncio.run(run_async(size))

    print("\nBenchmark complete!")
