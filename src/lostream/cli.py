"""CLI implementation for lostream."""

import json
import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer

from .core.model import LargeObjectError
from .core.util import handle_asdict, parse_server_version
from .io import open_executor
from .io.base import DEFAULT_MAX_TRANSFER_BLOCK_SIZE
from .manager import LargeObjectManager

app = typer.Typer(add_completion=False, help="Read, write and inspect remote large objects.")

URL_ARG = typer.Argument(..., help="Backend URL serving the large object functions")
OID_ARG = typer.Argument(..., min=0, help="Large object id")
SERVER_VERSION_OPT = typer.Option("9.3", "--server-version", help="Server version, decides 64-bit offset support")
BLOCK_SIZE_OPT = typer.Option(DEFAULT_MAX_TRANSFER_BLOCK_SIZE, "--block-size", min=1,
                              help="Largest payload sent or received per call")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log remote calls")):
    """Read, write and inspect remote large objects."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _manager(url: str, server_version: str, block_size: int) -> LargeObjectManager:
    executor = open_executor(url, server_version=parse_server_version(server_version),
                             max_transfer_block_size=block_size)
    return LargeObjectManager(executor)


@contextmanager
def _reported_errors():
    try:
        yield
    except (LargeObjectError, ValueError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


@app.command()
def stat(url: str = URL_ARG, oid: int = OID_ARG,
         server_version: str = SERVER_VERSION_OPT, block_size: int = BLOCK_SIZE_OPT):
    """Print the length and transfer capability of a large object."""
    with _reported_errors():
        manager = _manager(url, server_version, block_size)
        with manager.open_read(oid) as stream:
            length = stream.length
        payload = handle_asdict(
            stream.handle,
            length=length,
            max_transfer_block_size=stream.capability.max_transfer_block_size,
            supports_64bit_offsets=stream.capability.supports_64bit_offsets,
        )
    typer.echo(json.dumps(payload, indent=2))


@app.command("export")
def export_object(url: str = URL_ARG, oid: int = OID_ARG,
                  output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write to PATH instead of stdout"),
                  server_version: str = SERVER_VERSION_OPT, block_size: int = BLOCK_SIZE_OPT):
    """Copy a large object to a local file or stdout."""
    with _reported_errors():
        manager = _manager(url, server_version, block_size)
        # The output file is only created once the object is open.
        with manager.open_read(oid) as stream:
            if output:
                with open(output, "wb") as sink:
                    shutil.copyfileobj(stream, sink, block_size)
            else:
                sink = typer.get_binary_stream("stdout")
                shutil.copyfileobj(stream, sink, block_size)
                sink.flush()


@app.command("import")
def import_object(url: str = URL_ARG,
                  path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file to upload"),
                  oid: int = typer.Option(0, "--oid", min=0, help="Preferred object id (0 lets the server pick)"),
                  server_version: str = SERVER_VERSION_OPT, block_size: int = BLOCK_SIZE_OPT):
    """Create a large object holding the contents of a local file."""
    with _reported_errors():
        manager = _manager(url, server_version, block_size)
        new_oid = manager.create(oid)
        with manager.open_read_write(new_oid) as stream, open(path, "rb") as source:
            shutil.copyfileobj(source, stream, block_size)
            length = stream.tell()
    typer.echo(json.dumps({"object_id": new_oid, "length": length}))


@app.command()
def truncate(url: str = URL_ARG, oid: int = OID_ARG,
             length: int = typer.Argument(..., min=0, help="New length in bytes"),
             server_version: str = SERVER_VERSION_OPT, block_size: int = BLOCK_SIZE_OPT):
    """Truncate or zero-extend a large object."""
    with _reported_errors():
        manager = _manager(url, server_version, block_size)
        with manager.open_read_write(oid) as stream:
            stream.truncate(length)


@app.command()
def unlink(url: str = URL_ARG, oid: int = OID_ARG,
           server_version: str = SERVER_VERSION_OPT, block_size: int = BLOCK_SIZE_OPT):
    """Delete a large object."""
    with _reported_errors():
        _manager(url, server_version, block_size).unlink(oid)


if __name__ == "__main__":
    app()
