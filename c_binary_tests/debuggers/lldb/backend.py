"""LLDB debugger backend implementation."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from c_binary_tests.debuggers.lldb.config import LldbConfig
from c_binary_tests.debuggers.terminal import TerminalDebugger


@dataclass(frozen=True, kw_only=True)
class LldbBackend(TerminalDebugger):
    """Runs the program under ``lldb --``."""

    executable: str = "lldb"

    @classmethod
    @asynccontextmanager
    async def from_config(cls, config: LldbConfig) -> AsyncGenerator["LldbBackend", None]:
        """Create backend from its configuration."""
        yield cls(executable=config.executable, extra_args=tuple(config.extra_args))

    def build_command(self, executable: str, program: str) -> list[str]:
        """Command line that starts lldb on *program*."""
        return [executable, *self.extra_args, "--", program]
