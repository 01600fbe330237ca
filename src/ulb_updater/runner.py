"""Subprocess execution for the updater.

All subprocess calls made by the updater go through a ``ProcessRunner``
so tests can substitute a fake and never touch the real system.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from ulb_updater.constants import COMMAND_NOT_EXECUTABLE, COMMAND_NOT_FOUND
from ulb_updater.logging import get_logger

log = get_logger("ulb_updater.runner")


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ProcessRunner(Protocol):
    """Runs a command to completion."""

    async def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult:
        """Run *args* and return its result.

        With ``capture=False`` the child inherits the terminal, so prompts
        (``sudo``) and installer progress reach the user directly; stdout
        and stderr of the result are then empty.
        """
        ...


class SubprocessRunner:
    """ProcessRunner using ``asyncio`` subprocesses."""

    async def run(self, args: Sequence[str], *, capture: bool = True) -> CommandResult:
        argv = [str(arg) for arg in args]
        pipe = asyncio.subprocess.PIPE if capture else None
        try:
            proc = await asyncio.create_subprocess_exec(*argv, stdout=pipe, stderr=pipe)
        except FileNotFoundError:
            log.warning("command_not_found", cmd=argv[0])
            return CommandResult(returncode=COMMAND_NOT_FOUND, stderr=f"{argv[0]}: not found")
        except PermissionError as exc:
            log.warning("command_not_executable", cmd=argv[0], error=str(exc))
            return CommandResult(returncode=COMMAND_NOT_EXECUTABLE, stderr=str(exc))

        stdout, stderr = await proc.communicate()
        result = CommandResult(
            returncode=proc.returncode if proc.returncode is not None else 1,
            stdout=stdout.decode(errors="replace") if stdout else "",
            stderr=stderr.decode(errors="replace") if stderr else "",
        )
        if not result.ok:
            log.debug(
                "command_failed",
                cmd=argv,
                returncode=result.returncode,
                stderr=result.stderr[:500],
            )
        return result
