"""Pre-compression of static site files with gzip and brotli."""

from __future__ import annotations

import asyncio
import gzip
import logging
import os
import time
from pathlib import Path
from typing import Union

import brotli

from .fsutil import FsError
from .logger import TRACE

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


async def compress_static_files(path: PathLike) -> None:
    """Compress every file below ``path`` without blocking the event loop."""
    start = time.monotonic()
    await asyncio.to_thread(compress_dir_all, path)
    elapsed_ms = int((time.monotonic() - start) * 1000)
    log.info("Precompression of static files finished after %d ms", elapsed_ms)


def compress_dir_all(path: PathLike) -> None:
    """Write ``.gz`` and ``.br`` siblings for every uncompressed file below ``path``."""
    directory = Path(path)
    log.log(TRACE, "FS compress_dir_all %r", str(directory))
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise FsError(f"Could not read {str(directory)!r}") from exc

    for entry in entries:
        if entry.is_dir():
            compress_dir_all(entry)
            continue
        if entry.name.endswith((".gz", ".br")):
            continue
        data = entry.read_bytes()
        Path(f"{entry}.gz").write_bytes(gzip.compress(data, mtime=0))
        Path(f"{entry}.br").write_bytes(brotli.compress(data))