"""External CSS tools: version resolution, download URLs and executable names."""

from __future__ import annotations

import abc
import logging
import os
import platform
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import httpx
import semver

from .logger import TRACE
from .util import UnsupportedPlatformError, is_linux_musl_env

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

CACHE_DIR_NAME = "leptoskit"
_USER_AGENT = "leptoskit"
_ONE_DAY_MS = 24 * 60 * 60 * 1000

_cache_dir_logged = False


@dataclass(frozen=True)
class ExeMeta:
    """Everything needed to locate or download one tool executable."""

    name: str
    version: str
    url: str
    exe: str
    manual: str

    @property
    def full_name(self) -> str:
        return f"{self.name}-{self.version}"


def sanitize_version_prefix(version: str) -> str:
    """Strip a leading ``v`` from a version string."""
    return version[1:] if version.startswith("v") else version


def normalize_version(version: str) -> Optional[semver.Version]:
    """Turn a loose version string (``v1.2.3``, ``5``, ``0.2``) into a semver Version."""
    text = sanitize_version_prefix(version)
    try:
        return semver.Version.parse(text)
    except ValueError:
        pass
    if text.isascii() and text.isdigit():
        return semver.Version(int(text))
    try:
        return semver.Version.parse(f"{text}.0")
    except ValueError:
        log.error("Command failed to normalize version: %s", text)
        return None


def _system_cache_dir() -> Path:
    system = platform.system()
    if system == "Windows":
        local = os.environ.get("LOCALAPPDATA")
        if not local:
            raise OSError("Cache directory does not exist")
        return Path(local)
    if system == "Darwin":
        return Path.home() / "Library" / "Caches"
    xdg = os.environ.get("XDG_CACHE_HOME")
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return Path.home() / ".cache"


def get_cache_dir() -> Path:
    """Absolute path of the application cache directory, created if missing."""
    global _cache_dir_logged
    try:
        directory = _system_cache_dir() / CACHE_DIR_NAME
    except RuntimeError as exc:
        raise OSError("Cache directory does not exist") from exc
    if not directory.exists():
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f"Could not create dir {str(directory)!r}") from exc
    if not _cache_dir_logged:
        _cache_dir_logged = True
        log.debug("Command cache dir: %s", directory)
    return directory


class Tool(abc.ABC):
    """A downloadable command line tool with a pinnable version."""

    name: str = ""
    github_owner: str = ""
    github_repo: str = ""
    default_version: str = ""
    env_var_version_name: str = ""
    manual: str = "Try manually installing the command"

    def __init__(
        self,
        *,
        musl: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.musl = is_linux_musl_env() if musl is None else musl
        self._transport = transport

    def __repr__(self) -> str:
        return f"{type(self).__name__}(musl={self.musl})"

    def version(self) -> str:
        """The requested version: the environment override or the default."""
        return os.environ.get(self.env_var_version_name, self.default_version)

    @abc.abstractmethod
    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        """Download URL of the tool for the given platform and version."""

    @abc.abstractmethod
    def executable_name(self, target_os: str, target_arch: str, version: str) -> str:
        """Path of the executable relative to the extracted download."""

    def should_check_for_new_version(self, cache_dir: Optional[PathLike] = None) -> bool:
        """True at most once a day, tracked by a marker file in the cache dir."""
        try:
            directory = Path(cache_dir) if cache_dir is not None else get_cache_dir()
        except OSError as exc:
            log.warning("Command %s failed to get cache dir: %s", self.name, exc)
            return False

        marker = directory / f".{self.name}_last_checked"
        if marker.is_dir():
            log.warning(
                "Command [%s] encountered a conflicting dir in the cache, please delete %s",
                self.name,
                marker,
            )
            return False

        now_ms = int(time.time() * 1000)
        if marker.exists():
            try:
                contents = marker.read_text()
            except OSError:
                return False
            try:
                last_checked = int(contents.strip())
            except ValueError:
                last_checked = 0
            if now_ms - last_checked <= _ONE_DAY_MS:
                return False
        return self._write_marker(marker, now_ms)

    @staticmethod
    def _write_marker(marker: Path, now_ms: int) -> bool:
        try:
            marker.write_text(str(now_ms))
        except OSError:
            return False
        return True

    async def check_for_latest_version(self) -> Optional[str]:
        """Ask the GitHub API for the tag of the latest release."""
        log.debug("Command [%s] checking for the latest available version", self.name)
        url = (
            f"https://api.github.com/repos/{self.github_owner}/"
            f"{self.github_repo}/releases/latest"
        )
        async with httpx.AsyncClient(
            headers={"User-Agent": _USER_AGENT}, transport=self._transport
        ) as client:
            try:
                response = await client.get(url)
            except httpx.HTTPError:
                log.debug("Command [%s] failed to check for the latest version", self.name)
                return None

        if not response.is_success:
            log.error(
                "Command [%s] GitHub API request failed: %s",
                self.name,
                response.status_code,
            )
            return None

        try:
            tag_name = response.json()["tag_name"]
        except (ValueError, KeyError, TypeError) as exc:
            log.debug(
                "Command [%s] failed to parse the response JSON from the GitHub API: %s",
                self.name,
                exc,
            )
            return None
        if not isinstance(tag_name, str):
            log.debug("Command [%s] GitHub API returned a non-string tag", self.name)
            return None
        return tag_name

    async def resolve_version(self, cache_dir: Optional[PathLike] = None) -> str:
        """Pick the version to use, hinting when a newer release exists."""
        pinned = self.env_var_version_name in os.environ
        log.log(TRACE, "Command [%s] is_force_pin_version: %s", self.name, pinned)

        if not pinned and not self.should_check_for_new_version(cache_dir):
            log.log(TRACE, "Command [%s] NOT checking for the latest available version", self.name)
            return self.default_version

        version = self.version()
        latest = await self.check_for_latest_version()
        if latest is None:
            log.warning("Command [%s] failed to check for the latest version", self.name)
            return version

        norm_latest = normalize_version(latest)
        norm_version = normalize_version(version)
        if norm_latest is not None and norm_version is not None:
            if norm_version >= norm_latest:
                log.debug(
                    "Command [%s] requested version %s is already same or newer "
                    "than available version %s",
                    self.name,
                    version,
                    latest,
                )
            else:
                log.info(
                    "Command [%s] requested version %s, but a newer version %s is "
                    "available, you can try it out by setting the %s=%s env var and "
                    "re-running the command",
                    self.name,
                    version,
                    latest,
                    self.env_var_version_name,
                    latest,
                )
        return version

    async def exe_meta(
        self, target_os: str, target_arch: str, cache_dir: Optional[PathLike] = None
    ) -> ExeMeta:
        """Resolve the version and build the metadata for this platform."""
        version = await self.resolve_version(cache_dir)
        return ExeMeta(
            name=self.name,
            version=version,
            url=self.download_url(target_os, target_arch, version),
            exe=self.executable_name(target_os, target_arch, version),
            manual=self.manual,
        )


class Tailwind(Tool):
    """The tailwindcss standalone executable."""

    name = "tailwindcss"
    github_owner = "tailwindlabs"
    github_repo = "tailwindcss"
    default_version = "v4.1.4"
    env_var_version_name = "LEPTOS_TAILWIND_VERSION"
    manual = "Try manually installing tailwindcss"

    _ASSETS = {
        ("windows", "x86_64"): "windows-x64.exe",
        ("macos", "x86_64"): "macos-x64",
        ("macos", "aarch64"): "macos-arm64",
        ("linux", "x86_64"): "linux-x64",
        ("linux", "aarch64"): "linux-arm64",
    }

    def _use_musl(self, version: str) -> bool:
        return self.musl and version.startswith("v4")

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        asset = self._ASSETS.get((target_os, target_arch))
        if asset is None:
            raise UnsupportedPlatformError(
                f"Command [{self.name}] failed to find a match for {target_os}-{target_arch} "
            )
        if target_os == "linux" and self._use_musl(version):
            asset = f"{asset}-musl"
        return (
            f"https://github.com/{self.github_owner}/{self.github_repo}"
            f"/releases/download/{version}/{self.name}-{asset}"
        )

    def executable_name(self, target_os: str, target_arch: str, version: str) -> str:
        musl = self._use_musl(version)
        if target_os == "windows":
            return f"{self.name}-windows-x64.exe"
        if target_os == "macos" and target_arch == "x86_64":
            return f"{self.name}-macos-x64"
        if target_os == "macos" and target_arch == "aarch64":
            return f"{self.name}-macos-arm64"
        if target_os == "linux" and target_arch == "x86_64":
            return f"{self.name}-linux-x64-musl" if musl else f"{self.name}-linux-x64"
        return f"{self.name}-linux-arm64-musl" if musl else f"{self.name}-linux-arm64"


class Sass(Tool):
    """The dart-sass distribution."""

    name = "sass"
    github_owner = "sass"
    github_repo = "dart-sass"
    default_version = "1.86.0"
    env_var_version_name = "LEPTOS_SASS_VERSION"
    manual = "Try manually installing sass"

    _ARCHES = {"x86_64": "x64", "aarch64": "arm64"}

    def download_url(self, target_os: str, target_arch: str, version: str) -> str:
        base = f"https://github.com/{self.github_owner}/{self.github_repo}/releases/download/{version}"
        arch = self._ARCHES.get(target_arch)
        if self.musl:
            if arch is None:
                raise UnsupportedPlatformError(
                    f"No sass tar binary found for linux-musl {target_arch}"
                )
            return f"{base}/dart-sass-{version}-linux-{arch}.tar.gz"
        if target_os == "windows" and target_arch == "x86_64":
            return f"{base}/dart-sass-{version}-windows-x64.zip"
        if target_os in ("macos", "linux") and arch is not None:
            return f"{base}/dart-sass-{version}-{target_os}-{arch}.tar.gz"
        raise UnsupportedPlatformError(
            f"No sass tar binary found for {target_os} {target_arch}"
        )

    def executable_name(self, target_os: str, target_arch: str, version: str) -> str:
        return "dart-sass/sass.bat" if target_os == "windows" else "dart-sass/sass"