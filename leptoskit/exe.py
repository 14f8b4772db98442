"""Locating, downloading and caching external tool executables."""

from __future__ import annotations

import io
import logging
import os
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Optional, Union

import httpx

from .logger import GRAY
from .tools import ExeMeta, Tool, get_cache_dir
from .util import os_arch, paint

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class ExeCache:
    """One tool version inside the cache directory, downloaded on demand."""

    def __init__(
        self,
        meta: ExeMeta,
        exe_dir: PathLike,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.meta = meta
        self.exe_dir = Path(exe_dir)
        self._transport = transport

    def __repr__(self) -> str:
        return f"ExeCache(meta={self.meta!r}, exe_dir={str(self.exe_dir)!r})"

    def exe_in_cache(self) -> Path:
        """Path of the cached executable; FileNotFoundError if it is missing."""
        path = self.exe_dir / self.meta.exe
        if not path.exists():
            raise FileNotFoundError(f"The path {str(path)!r} doesn't exist")
        return path

    async def fetch_archive(self) -> bytes:
        """Download the archive or binary the metadata points at."""
        log.debug("Install downloading %s %s", self.meta.name, paint(GRAY, self.meta.url))
        async with httpx.AsyncClient(
            transport=self._transport, follow_redirects=True
        ) as client:
            response = await client.get(self.meta.url)
        if not response.is_success:
            raise RuntimeError(f"Could not download from {self.meta.url}")
        return response.content

    def extract_downloaded(self, data: bytes) -> None:
        """Unpack a zip or tar.gz download, or store a plain binary."""
        if self.meta.url.endswith(".zip"):
            extract_zip(data, self.exe_dir)
        elif self.meta.url.endswith(".tar.gz"):
            extract_tar(data, self.exe_dir)
        else:
            try:
                self.write_binary(data)
            except OSError as exc:
                raise RuntimeError(f"Could not write binary {self.meta.full_name}") from exc
        log.debug(
            "Install decompressing %s %s", self.meta.name, paint(GRAY, str(self.exe_dir))
        )

    def write_binary(self, data: bytes) -> None:
        """Write a downloaded executable and make it read/execute only."""
        self.exe_dir.mkdir(parents=True, exist_ok=True)
        path = self.exe_dir / self.meta.exe
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise OSError(f"Error writing binary file: {str(path)!r}") from exc
        if os.name == "posix":
            path.chmod(0o550)

    async def download(self) -> Path:
        """Fetch and unpack the tool, returning the executable path."""
        log.info("Command installing %s ...", self.meta.full_name)
        try:
            data = await self.fetch_archive()
        except (httpx.HTTPError, RuntimeError) as exc:
            raise RuntimeError(f"Could not download {self.meta.full_name}") from exc
        try:
            self.extract_downloaded(data)
        except (OSError, RuntimeError, tarfile.TarError, zipfile.BadZipFile) as exc:
            raise RuntimeError(f"Could not extract {self.meta.full_name}") from exc
        try:
            binary = self.exe_in_cache()
        except FileNotFoundError as exc:
            raise RuntimeError(
                "Binary downloaded and extracted but could still not be found at "
                f"{str(self.exe_dir)!r}"
            ) from exc
        log.info("Command %s installed.", self.meta.full_name)
        return binary

    async def get(self) -> Path:
        """The cached executable, downloading it first when needed."""
        try:
            return self.exe_in_cache()
        except FileNotFoundError:
            return await self.download()


def _extract_filter_kwargs() -> dict:
    return {"filter": "data"} if hasattr(tarfile, "data_filter") else {}


def extract_tar(data: bytes, dest: PathLike) -> None:
    """Unpack a gzip compressed tar archive into ``dest``."""
    destination = Path(dest)
    destination.mkdir(parents=True, exist_ok=True)
    with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
        archive.extractall(destination, **_extract_filter_kwargs())


def extract_zip(data: bytes, dest: PathLike) -> None:
    """Unpack a zip archive into ``dest``, keeping unix permissions."""
    destination = Path(dest)
    destination.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        for info in archive.infolist():
            extracted = Path(archive.extract(info, destination))
            mode = (info.external_attr >> 16) & 0o777
            if mode and os.name == "posix" and not info.is_dir():
                extracted.chmod(mode)


async def _cached(
    meta: ExeMeta,
    cache_dir: PathLike,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Path:
    exe_dir = Path(cache_dir) / meta.full_name
    return await ExeCache(meta, exe_dir, transport=transport).get()


async def with_cache_dir(meta: ExeMeta, cache_dir: PathLike) -> Path:
    """The executable for ``meta`` cached below ``cache_dir``."""
    return await _cached(meta, cache_dir)


async def get_exe(tool: Tool, allow_downloads: bool = True) -> Path:
    """Find the tool on PATH, else in the cache, downloading it if allowed."""
    target_os, target_arch = os_arch()
    meta = await tool.exe_meta(target_os, target_arch)

    found = shutil.which(meta.name)
    if found:
        path = Path(found)
    elif not allow_downloads:
        raise RuntimeError(
            f"{meta.name} is required but was not found. "
            "Please install it using your OS's tool of choice"
        )
    else:
        try:
            path = await _cached(
                meta, get_cache_dir() / meta.full_name, tool._transport
            )
        except (OSError, RuntimeError, httpx.HTTPError) as exc:
            raise RuntimeError(meta.manual) from exc

    log.debug("Command using %s %s %s", meta.name, meta.version, paint(GRAY, str(path)))
    return path