"""Debuggers started in the current terminal."""

import asyncio
import logging
import shutil
from abc import abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from c_binary_tests.debuggers.base import (
    DebuggerBackend,
    DebuggerLaunchError,
    DebugLaunchDescriptor,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TerminalDebugger(DebuggerBackend):
    """A command-line debugger sharing the caller's stdin, stdout and stderr.

    The session counts as launched once the debugger process has started;
    ``launch`` then waits for the user to quit it so the terminal is not
    shared with the next session.
    """

    executable: str
    extra_args: Sequence[str] = ()

    @abstractmethod
    def build_command(self, executable: str, program: str) -> list[str]:
        """Command line that starts the debugger on *program*."""

    async def launch(self, descriptor: DebugLaunchDescriptor) -> None:
        """Start the debugger on the descriptor's program and wait for it to exit."""
        executable = shutil.which(self.executable)
        if executable is None:
            raise DebuggerLaunchError(
                f"Debugger '{self.executable}' ({descriptor.backend}) not found on PATH"
            )

        command = self.build_command(executable, str(descriptor.program))
        log.info("Starting %s in %s", " ".join(command), descriptor.cwd)
        try:
            process = await asyncio.create_subprocess_exec(*command, cwd=descriptor.cwd)
        except OSError as e:
            raise DebuggerLaunchError(f"Failed to start {executable}: {e}") from e

        returncode = await process.wait()
        log.debug("Debug session for %s ended (%d)", descriptor.program, returncode)
