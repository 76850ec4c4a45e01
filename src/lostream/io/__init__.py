"""Function executors for lostream - carry remote large object calls."""

import inspect

# Re-export these for import convenience
from .base import FunctionExecutor, AsyncFunctionExecutor, RemoteCallError
from .local import LocalFunctionExecutor, LocalAsyncFunctionExecutor
from .http_sync import HTTPFunctionExecutor, open_http_executor
from .http_async import AsyncHTTPFunctionExecutor, open_http_executor_async


def _is_executor(source) -> bool:
    return callable(getattr(source, "execute_function", None))


def _reject_options(options):
    if options:
        raise TypeError(f"Executor options {sorted(options)} only apply when opening a URL")


def open_executor(source, **options):
    """Factory function to create the appropriate FunctionExecutor for a source."""
    if _is_executor(source):
        _reject_options(options)
        if inspect.iscoroutinefunction(source.execute_function):
            raise TypeError("An asynchronous executor cannot be used synchronously")
        return source

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return open_http_executor(source_str, **options)
    raise ValueError(f"Unsupported executor source: {source_str!r}")


async def open_executor_async(source, **options):
    """Factory function to create the appropriate AsyncFunctionExecutor for a source."""
    if _is_executor(source):
        _reject_options(options)
        if inspect.iscoroutinefunction(source.execute_function):
            return source
        return LocalAsyncFunctionExecutor(source)

    source_str = str(source)
    if source_str.startswith(('http://', 'https://')):
        return await open_http_executor_async(source_str, **options)
    raise ValueError(f"Unsupported executor source: {source_str!r}")
