"""Site output files and change tracking by content hash."""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .fsutil import copy, create_dir_all, read, write
from .logger import TRACE
from .paths import test_string, without_last

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def file_hash(path: PathLike) -> int:
    """64-bit content hash of the file at ``path``."""
    return _hash(read(path))


def _hash(data: bytes) -> int:
    return int.from_bytes(hashlib.blake2b(data, digest_size=8).digest(), "little")


@dataclass(frozen=True, repr=False)
class SiteFile:
    """A file in the site: ``dest`` relative to the root, ``site`` relative to the site dir."""

    dest: Path
    site: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "dest", Path(self.dest))
        object.__setattr__(self, "site", Path(self.site))

    def __str__(self) -> str:
        return f"@{self.site}"

    def __repr__(self) -> str:
        return f"SiteFile(dest={test_string(self.dest)!r}, site={test_string(self.site)!r})"


@dataclass(frozen=True, repr=False)
class SourcedSiteFile:
    """A site file that is copied from a ``source`` file."""

    source: Path
    dest: Path
    site: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", Path(self.source))
        object.__setattr__(self, "dest", Path(self.dest))
        object.__setattr__(self, "site", Path(self.site))

    def as_site_file(self) -> SiteFile:
        return SiteFile(dest=self.dest, site=self.site)

    def __str__(self) -> str:
        return f"{self.source} -> @{self.site}"

    def __repr__(self) -> str:
        return (
            f"SourcedSiteFile(source={test_string(self.source)!r}, "
            f"dest={test_string(self.dest)!r}, site={test_string(self.site)!r})"
        )


class Site:
    """The served site: its addresses, directories and the hashes of written files."""

    def __init__(
        self,
        addr: tuple[str, int],
        reload_port: int,
        root_dir: PathLike,
        pkg_dir: PathLike,
    ) -> None:
        host, port = addr
        self.addr = (host, int(port))
        self.reload = (host, int(reload_port))
        self.root_dir = Path(root_dir)
        self.pkg_dir = Path(pkg_dir)
        self._file_reg: dict[str, int] = {}
        self._ext_file_reg: dict[str, int] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"Site(addr={self.addr!r}, reload={self.reload!r}, "
                f"root_dir={str(self.root_dir)!r}, pkg_dir={str(self.pkg_dir)!r}, "
                f"file_reg={self._file_reg!r}, ext_file_reg={self._ext_file_reg!r})"
            )

    def root_relative_pkg_dir(self) -> Path:
        return self.root_dir / self.pkg_dir

    def did_external_file_change(self, path: PathLike) -> bool:
        """True if the file outside the site changed since it was last seen."""
        key = os.fspath(path)
        new_hash = file_hash(path)
        with self._lock:
            if self._ext_file_reg.get(key) == new_hash:
                return False
            self._ext_file_reg[key] = new_hash
        log.log(TRACE, "Site update hash for %s to %s", key, new_hash)
        return True

    def updated(self, file: SourcedSiteFile) -> bool:
        """Copy the source to its destination if its content differs; True if copied."""
        create_dir_all(without_last(file.dest))
        new_hash = file_hash(file.source)
        if self._current_hash(file.site, file.dest) == new_hash:
            return False
        copy(file.source, file.dest)
        with self._lock:
            self._file_reg[str(file.site)] = new_hash
        return True

    def did_file_change(self, file: SiteFile) -> bool:
        """After the file was written, True if its content differs from the last record."""
        new_hash = file_hash(file.dest)
        key = str(file.site)
        with self._lock:
            if self._file_reg.get(key) == new_hash:
                return False
            self._file_reg[key] = new_hash
        return True

    def updated_with(self, file: SiteFile, data: bytes) -> bool:
        """Write ``data`` to the file if it differs from what is there; True if written."""
        create_dir_all(without_last(file.dest))
        new_hash = _hash(data)
        if self._current_hash(file.site, file.dest) == new_hash:
            return False
        write(file.dest, data)
        with self._lock:
            self._file_reg[str(file.site)] = new_hash
        return True

    def _current_hash(self, site: Path, dest: Path) -> Optional[int]:
        with self._lock:
            recorded = self._file_reg.get(str(site))
        if recorded is not None:
            return recorded
        if dest.exists():
            return file_hash(dest)
        return None