"""GDB debugger backend implementation."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from c_binary_tests.debuggers.gdb.config import GdbConfig
from c_binary_tests.debuggers.terminal import TerminalDebugger


@dataclass(frozen=True, kw_only=True)
class GdbBackend(TerminalDebugger):
    """Runs the program under ``gdb --args``."""

    executable: str = "gdb"

    @classmethod
    @asynccontextmanager
    async def from_config(cls, config: GdbConfig) -> AsyncGenerator["GdbBackend", None]:
        """Create backend from its configuration."""
        yield cls(executable=config.executable, extra_args=tuple(config.extra_args))

    def build_command(self, executable: str, program: str) -> list[str]:
        """Command line that starts gdb on *program*."""
        return [executable, *self.extra_args, "--args", program]
