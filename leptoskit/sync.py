"""Waiting on child processes and sockets, interruptibly."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Mapping, Optional, Sequence

from .logger import TRACE

log = logging.getLogger(__name__)

_ATTEMPTS = 20
_DELAY = 0.5


class CommandOutcome(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INTERRUPTED = "interrupted"


def has_output(data: bytes) -> bool:
    """True when captured output holds more than a single byte."""
    return len(data) > 1


@dataclass(frozen=True)
class CommandResult:
    """How a command ended, with its captured output when piped."""

    outcome: CommandOutcome
    returncode: Optional[int] = None
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode(errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode(errors="replace")

    @property
    def has_stdout(self) -> bool:
        return has_output(self.stdout)

    @property
    def has_stderr(self) -> bool:
        return has_output(self.stderr)


async def _await_interrupt(interrupt: Any) -> None:
    try:
        await interrupt.recv()
    except Exception:  # a lagged or broken channel still counts as an interrupt
        pass


async def _race(work: Awaitable[Any], interrupt: Any) -> Optional[asyncio.Future]:
    """Run ``work`` until it finishes or an interrupt arrives; the work task if it won."""
    work_task = asyncio.ensure_future(work)
    interrupt_task = asyncio.ensure_future(_await_interrupt(interrupt))
    try:
        await asyncio.wait({work_task, interrupt_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (work_task, interrupt_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(work_task, interrupt_task, return_exceptions=True)
    if work_task.done() and not work_task.cancelled():
        return work_task
    return None


async def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


async def wait_interruptible(
    name: str, process: asyncio.subprocess.Process, interrupt: Any
) -> CommandResult:
    """Wait for ``process``; kill it when ``interrupt`` receives a value first."""
    log.log(TRACE, "Waiting for process %s to finish", process.pid)
    finished = await _race(process.wait(), interrupt)
    if finished is None:
        try:
            await _kill(process)
        except OSError as exc:
            raise RuntimeError("Could not kill process") from exc
        log.log(TRACE, "%s process interrupted", name)
        return CommandResult(CommandOutcome.INTERRUPTED, process.returncode)
    try:
        code = finished.result()
    except Exception as exc:
        raise RuntimeError(f"Command failed due to: {exc}") from exc
    if code == 0:
        log.log(TRACE, "%s process finished with success", name)
        return CommandResult(CommandOutcome.SUCCESS, code)
    log.log(TRACE, "%s process finished with code %s", name, code)
    return CommandResult(CommandOutcome.FAILURE, code)


async def wait_piped_interruptible(
    name: str,
    args: Sequence[str],
    interrupt: Any,
    env: Optional[Mapping[str, str]] = None,
) -> CommandResult:
    """Run ``args`` capturing its output; kill it when interrupted."""
    log.log(TRACE, "Waiting for command (piped) %s", list(args))
    environment = {**os.environ, **env} if env else None
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=environment,
    )
    finished = await _race(process.communicate(), interrupt)
    if finished is None:
        await _kill(process)
        log.log(TRACE, "%s process interrupted", name)
        return CommandResult(CommandOutcome.INTERRUPTED, process.returncode)
    try:
        stdout, stderr = finished.result()
    except Exception as exc:
        raise RuntimeError(f"Command failed due to: {exc}") from exc
    code = process.returncode
    if code == 0:
        log.log(TRACE, "%s process finished with success", name)
        outcome = CommandOutcome.SUCCESS
    else:
        log.log(TRACE, "%s process finished with code %s", name, code)
        outcome = CommandOutcome.FAILURE
    return CommandResult(outcome, code, stdout or b"", stderr or b"")


async def wait_for_socket(name: str, host: str, port: int) -> bool:
    """Poll until a TCP connection to ``host:port`` succeeds, or give up."""
    for _ in range(_ATTEMPTS):
        try:
            _, writer = await asyncio.open_connection(host, port)
        except OSError:
            await asyncio.sleep(_DELAY)
            continue
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        log.debug("%s server port %s:%s open", name, host, port)
        return True
    log.warning("%s timed out waiting for port %s:%s", name, host, port)
    return False