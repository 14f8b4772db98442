"""File system operations that raise errors carrying the paths involved."""

from __future__ import annotations

import logging
import os
import shutil
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .logger import TRACE
from .paths import PathError, rebase

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


class FsError(OSError):
    """A file system operation failed; the underlying error is the cause."""


@contextmanager
def _context(message: str) -> Iterator[None]:
    try:
        yield
    except (OSError, PathError) as exc:
        raise FsError(message) from exc


def _show(path: PathLike) -> str:
    return repr(os.fspath(path))


def rm_dir_content(directory: PathLike) -> None:
    """Remove everything inside ``directory``, keeping the directory itself."""
    directory = Path(directory)
    with _context(f"Could not remove contents of {_show(directory)}"):
        if not directory.exists():
            log.debug("Leptos not cleaning %r because it does not exist", str(directory))
            return
        for entry in read_dir(directory):
            if entry.is_dir() and not entry.is_symlink():
                remove_dir_all(entry)
            else:
                remove_file(entry)


def write(path: PathLike, contents: Union[bytes, str]) -> None:
    """Write bytes or text to ``path``."""
    data = contents.encode() if isinstance(contents, str) else contents
    with _context(f"Could not write to {_show(path)}"):
        Path(path).write_bytes(data)


def read(path: PathLike) -> bytes:
    """Read the whole file as bytes."""
    with _context(f"Could not read {_show(path)}"):
        return Path(path).read_bytes()


def create_dir(path: PathLike) -> None:
    """Create a single directory; the parent must exist."""
    log.log(TRACE, "FS create_dir %r", os.fspath(path))
    with _context(f"Could not create dir {_show(path)}"):
        Path(path).mkdir()


def create_dir_all(path: PathLike) -> None:
    """Create a directory and all missing parents."""
    log.log(TRACE, "FS create_dir_all %r", os.fspath(path))
    with _context(f"Could not create {_show(path)}"):
        Path(path).mkdir(parents=True, exist_ok=True)


def read_to_string(path: PathLike) -> str:
    """Read the whole file as UTF-8 text."""
    with _context(f"Could not read to string {_show(path)}"):
        return Path(path).read_text(encoding="utf-8")


def copy(src: PathLike, dst: PathLike) -> int:
    """Copy a file with its permissions; return the number of bytes copied."""
    with _context(f"copy {_show(src)} to {_show(dst)}"):
        shutil.copy(src, dst)
        return os.path.getsize(dst)


def read_dir(path: PathLike) -> list[Path]:
    """List the entries of a directory, sorted."""
    with _context(f"Could not read dir {_show(path)}"):
        return sorted(Path(path).iterdir())


def rename(src: PathLike, dst: PathLike) -> None:
    """Rename ``src`` to ``dst``."""
    with _context(f"Could not rename from {_show(src)} to {_show(dst)}"):
        os.replace(src, dst)


def remove_file(path: PathLike) -> None:
    """Remove a file."""
    with _context(f"Could not remove file {_show(path)}"):
        Path(path).unlink()


def remove_dir(path: PathLike) -> None:
    """Remove an empty directory."""
    with _context(f"Could not remove dir {_show(path)}"):
        Path(path).rmdir()


def remove_dir_all(path: PathLike) -> None:
    """Remove a directory and everything below it."""
    with _context(f"Could not remove dir {_show(path)}"):
        shutil.rmtree(path)


def copy_dir_all(src: PathLike, dst: PathLike) -> None:
    """Copy the tree at ``src`` into ``dst``, breadth first."""
    with _context(f"Copy dir recursively from {_show(src)} to {_show(dst)}"):
        _copy_tree(Path(src), Path(dst))


def _copy_tree(src: Path, dst: Path) -> None:
    create_dir_all(dst)
    pending = deque([src])
    while pending:
        current = pending.popleft()
        with os.scandir(current) as entries:
            for entry in entries:
                origin = Path(entry.path)
                target = rebase(origin, src, dst)
                if entry.is_dir(follow_symlinks=False):
                    create_dir(target)
                    pending.append(origin)
                else:
                    copy(origin, target)