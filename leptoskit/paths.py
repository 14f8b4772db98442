"""Path helpers: rebasing, prefix checks and file name manipulation."""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from typing import Iterable, Optional, Sequence, Union

PathLike = Union[str, "os.PathLike[str]"]

_VERBATIM_PREFIX = "\\\\?\\"


class PathError(ValueError):
    """Raised when a path cannot be transformed as requested."""


def _starts_with(path: PurePath, prefix: PurePath) -> bool:
    """Component-wise prefix test."""
    return path.parts[: len(prefix.parts)] == prefix.parts


def relative_to(path: PathLike, root: PathLike) -> Optional[Path]:
    """Make an absolute path relative to ``root`` if it lies below it."""
    path, root = Path(path), Path(root)
    if path.is_absolute() and _starts_with(path, root):
        return Path(*path.parts[len(root.parts):])
    return None


def unbase(path: PathLike, base: PathLike) -> Path:
    """Remove ``base`` from the start of ``path``; ``.`` when nothing is left."""
    path, base = Path(path), Path(base)
    if not _starts_with(path, base):
        raise PathError(f"Could not remove base {str(base)!r} from {str(path)!r}")
    rest = path.parts[len(base.parts):]
    return Path(*rest) if rest else Path(".")


def rebase(path: PathLike, src_root: PathLike, dest_root: PathLike) -> Path:
    """Replace the ``src_root`` prefix of ``path`` with ``dest_root``."""
    try:
        unbased = unbase(path, src_root)
    except PathError as exc:
        raise PathError(f"Rebase {path} from {src_root} to {dest_root}") from exc
    return Path(dest_root) / unbased


def without_last(path: PathLike) -> Path:
    """Drop the last path component."""
    return Path(path).parent


def test_string(path: PathLike) -> str:
    """Platform independent rendering of a path, without a trailing ``.exe``."""
    text = str(path).replace("\\", "/")
    return text[:-4] if text.endswith(".exe") else text


test_string.__test__ = False  # keep pytest from collecting it


def starts_with_any(path: PathLike, prefixes: Iterable[PathLike]) -> bool:
    """True if ``path`` starts with any of ``prefixes`` (component-wise)."""
    path = PurePath(path)
    return any(_starts_with(path, PurePath(prefix)) for prefix in prefixes)


def is_ext_any(path: PathLike, extensions: Sequence[str]) -> bool:
    """True if the file extension of ``path`` is one of ``extensions``."""
    suffix = PurePath(path).suffix
    if not suffix:
        return False
    return suffix[1:] in extensions


def resolve_home_dir(path: PathLike) -> Path:
    """Expand a leading ``~`` component using ``$HOME``."""
    path = Path(path)
    if path.parts[:1] != ("~",):
        return path
    home = os.environ.get("HOME")
    if home is None:
        raise PathError("Could not resolve $HOME")
    return Path(home).joinpath(*path.parts[1:])


def clean_windows_path(path: PathLike) -> Path:
    """Strip the verbatim ``\\\\?\\`` prefix from simple Windows drive paths."""
    path = Path(path)
    if os.name != "nt":
        return path
    text = str(path)
    if not text.startswith(_VERBATIM_PREFIX):
        return path
    rest = text[len(_VERBATIM_PREFIX):]
    if rest.upper().startswith("UNC\\"):
        return path
    if len(rest) >= 3 and rest[1] == ":" and rest[2] == "\\" and len(rest) < 260:
        return Path(rest)
    return path


def ls_ascii(path: PathLike, indent: int = 0) -> str:
    """Render a directory tree: files first, then sub-directories, each sorted."""
    path = Path(path)
    entries = list(path.iterdir())
    dirs = sorted(entry for entry in entries if entry.is_dir())
    files = sorted(entry for entry in entries if not entry.is_dir())
    pad = "  " * (indent + 1)
    lines = [f"{'  ' * indent}{path.name}:"]
    lines.extend(f"{pad}{entry.name}" for entry in files)
    lines.extend(ls_ascii(entry, indent + 1) for entry in dirs)
    return "\n".join(lines)


def remove_nested(paths: Iterable[PathLike]) -> list[Path]:
    """Keep only the outermost directories among ``paths``."""
    result: list[Path] = []
    for path in map(Path, paths):
        for position, added in enumerate(result):
            if _starts_with(added, path):
                result[position] = path
                break
            if _starts_with(path, added):
                break
        else:
            result.append(path)
    return result


def _file_stem(path: Path) -> Optional[str]:
    if path.name in ("", ".."):
        return None
    return path.stem


def append_str_to_filename(path: PathLike, suffix: str) -> Path:
    """Insert ``suffix`` between the file stem and its extension."""
    path = Path(path)
    stem = _file_stem(path)
    if stem is None:
        raise PathError(f"no file present in provided path {str(path)!r}")
    return path.parent / f"{stem}{suffix}{path.suffix}"


def determine_pdb_filename(path: PathLike) -> Optional[Path]:
    """Path of the ``.pdb`` next to ``path``, or None if it does not exist."""
    path = Path(path)
    stem = _file_stem(path)
    if stem is None:
        return None
    candidate = path.parent / f"{stem}.pdb"
    return candidate if candidate.exists() else None