"""Platform detection and small string helpers."""

from __future__ import annotations

import glob
import os
import platform
from pathlib import Path
from typing import Union

_OS_NAMES = {"Windows": "windows", "Darwin": "macos", "Linux": "linux"}
_ARCH_NAMES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


class UnsupportedPlatformError(RuntimeError):
    """Raised when the running OS or architecture is not supported."""


def os_arch() -> tuple[str, str]:
    """Return the ``(os, arch)`` pair used to pick tool downloads."""
    target_os = _OS_NAMES.get(platform.system())
    if target_os is None:
        raise UnsupportedPlatformError("unsupported OS")
    target_arch = _ARCH_NAMES.get(platform.machine().lower())
    if target_arch is None:
        raise UnsupportedPlatformError("unsupported target architecture")
    return target_os, target_arch


def is_linux_musl_env() -> bool:
    """True when running on Linux with the musl C library."""
    if platform.system() != "Linux":
        return False
    return bool(glob.glob("/lib/ld-musl-*"))


def pad_left_to(text: str, length: int) -> str:
    """Left-pad ``text`` with spaces up to ``length`` characters."""
    return text.rjust(length)


def to_created_dir(path: Union[str, "os.PathLike[str]"]) -> Path:
    """Return ``path`` as a Path, creating the directory if it is missing."""
    directory = Path(path)
    if not directory.exists():
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"Could not create dir {str(path)!r}") from exc
    return directory


def paint(color: int, text: str) -> str:
    """Wrap ``text`` in an ANSI 256-colour foreground sequence."""
    return f"\x1b[38;5;{color}m{text}\x1b[0m"