"""Running the application server binary and restarting it on demand."""

from __future__ import annotations

import asyncio
import logging
import os
import platform
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from .fsutil import copy
from .logger import GRAY, TRACE
from .paths import append_str_to_filename, determine_pdb_filename
from .util import paint

log = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

_SITE_ADDR_VAR = "LEPTOS_SITE_ADDR"


class ServerProcess:
    """The server binary, started with extra environment variables and arguments."""

    def __init__(
        self,
        binary: PathLike,
        envs: Optional[Mapping[str, str]] = None,
        bin_args: Optional[Iterable[str]] = None,
    ) -> None:
        self.binary = Path(binary)
        self.envs = dict(envs or {})
        self.bin_args = list(bin_args or ())
        self.process: Optional[asyncio.subprocess.Process] = None

    def __repr__(self) -> str:
        return f"ServerProcess(binary={str(self.binary)!r}, running={self.process is not None})"

    async def __aenter__(self) -> "ServerProcess":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.kill()

    def _runnable_binary(self) -> Path:
        if platform.system() != "Windows":
            return self.binary
        # A running binary cannot be overwritten here, so run a copy of it.
        copied = append_str_to_filename(self.binary, "_leptos")
        log.debug(
            "Copying server binary %s to %s",
            paint(GRAY, str(self.binary)),
            paint(GRAY, str(copied)),
        )
        copy(self.binary, copied)
        pdb = determine_pdb_filename(self.binary)
        if pdb is not None:
            copied_pdb = append_str_to_filename(pdb, "_leptos")
            log.debug(
                "Copying server binary debug info %s to %s",
                paint(GRAY, str(pdb)),
                paint(GRAY, str(copied_pdb)),
            )
            copy(pdb, copied_pdb)
        return copied

    async def start(self) -> None:
        """Start the binary if it exists; otherwise leave no process running."""
        if not self.binary.exists():
            log.debug("Serve no exe found %s", paint(GRAY, str(self.binary)))
            self.process = None
            return
        bin_path = self._runnable_binary()
        log.debug("Serve running %s", paint(GRAY, str(bin_path)))
        self.process = await asyncio.create_subprocess_exec(
            str(bin_path), *self.bin_args, env={**os.environ, **self.envs}
        )
        log.info("Serving at http://%s", self.envs.get(_SITE_ADDR_VAR, ""))

    async def kill(self) -> None:
        """Kill the running process, if any."""
        process, self.process = self.process, None
        if process is None:
            return
        try:
            if process.returncode is None:
                process.kill()
            await process.wait()
        except ProcessLookupError:
            log.log(TRACE, "Serve stopped")
        except OSError as exc:
            log.error("Serve error killing server process: %s", exc)
        else:
            log.log(TRACE, "Serve stopped")

    async def restart(self) -> None:
        await self.kill()
        await self.start()
        log.log(TRACE, "Serve restarted")

    async def wait(self) -> None:
        """Wait for the running process to exit."""
        if self.process is None:
            return
        try:
            await self.process.wait()
        except OSError as exc:
            log.error("Serve error while waiting for server process to exit: %s", exc)
        else:
            log.log(TRACE, "Serve process exited")