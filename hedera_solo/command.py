"""Runs external tools such as helm as asyncio subprocesses."""

import asyncio
from dataclasses import dataclass
import logging
import os
import shlex
import subprocess

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)

# Bounds the number of tool processes running at once, e.g. helm
# installs into many clusters.
_MAX_PROCESSES = 8
_SEM = asyncio.Semaphore(_MAX_PROCESSES)
_TIMEOUT = 60.0


__all__: list[str] = []


@dataclass
class Command:
    """A tool invocation."""

    cmd: list[str]
    """Command line arguments, starting with the binary."""

    exc: type[CommandException] = CommandException
    """Exception raised when the tool fails or times out."""

    env: dict[str, str] | None = None
    """Variables added to the environment of this process."""

    timeout: float = _TIMEOUT
    """Seconds the tool may run before it is killed."""

    def __str__(self) -> str:
        """Render the command line as it would be typed in a shell."""
        return shlex.join(self.cmd)

    async def run(self) -> str:
        """Run the tool, returning its stdout."""
        _LOGGER.debug("Running command: %s", self)
        proc = await asyncio.create_subprocess_shell(
            str(self),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env={**os.environ, **(self.env or {})},
        )
        try:
            out, err = await asyncio.wait_for(proc.communicate(), self.timeout)
        except asyncio.TimeoutError as timeout_err:
            proc.kill()
            await proc.wait()
            raise self.exc(
                f"Command '{self}' timed out after {self.timeout}s"
            ) from timeout_err
        except asyncio.CancelledError:
            proc.kill()
            raise
        if proc.returncode:
            message = f"Command '{self}' failed with return code {proc.returncode}"
            if detail := (err or out).decode("utf-8").strip():
                message = f"{message}: {detail}"
            _LOGGER.debug(message)
            raise self.exc(message)
        return out.decode("utf-8")


async def run(cmd: Command) -> str:
    """Run the command once a process slot is free and return stdout."""
    async with _SEM:
        return await cmd.run()
