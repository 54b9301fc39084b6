"""Async subprocess helper shared by audio playback and speech engines."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60  # seconds


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_process(*argv: str, timeout: float = DEFAULT_TIMEOUT) -> ProcessResult:
    """Run a command without a shell. Never raises for missing binaries.

    A missing executable reports returncode 127, a timeout kills the process
    and reports returncode -1.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as e:
        logger.debug("Cannot run %s: %s", argv[0], e)
        return ProcessResult(127, stderr=str(e))

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        logger.warning("%s timed out after %ss", argv[0], timeout)
        return ProcessResult(-1, stderr=f"timed out after {timeout}s")
    except asyncio.CancelledError:
        proc.kill()
        raise

    return ProcessResult(
        proc.returncode if proc.returncode is not None else -1,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )
