"""Abstract base class for external debugger backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


class DebuggerLaunchError(Exception):
    """Raised when a debug session cannot be started."""


@dataclass(frozen=True, kw_only=True)
class DebugLaunchDescriptor:
    """Everything a debugger needs to start a session on a test binary."""

    program: Path
    cwd: Path
    backend: str


@dataclass(frozen=True, kw_only=True)
class DebuggerBackend(ABC):
    """Abstract base for debuggers that can launch a test binary."""

    @abstractmethod
    async def launch(self, descriptor: DebugLaunchDescriptor) -> None:
        """Start a debug session for the descriptor's program.

        Args:
            descriptor: Program, working directory and backend identifier

        Raises:
            DebuggerLaunchError: If the session could not be started

        """
