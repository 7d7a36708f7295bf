"""Loading of debugger backends from entry points."""

from collections.abc import Sequence
from importlib.metadata import entry_points
from typing import Any

from c_binary_tests.debuggers.manifest import DebuggerManifest

ENTRY_POINT_GROUP = "c_binary_tests.debuggers"


class DebuggerNotFoundError(Exception):
    """Raised when no installed debugger backend has the requested key."""


def available_debuggers() -> Sequence[str]:
    """Keys of every installed debugger backend, sorted."""
    return sorted({entry.name for entry in entry_points(group=ENTRY_POINT_GROUP)})


def load_debugger_manifest(key: str) -> DebuggerManifest[Any]:
    """Load the manifest of the debugger backend registered under *key*.

    Args:
        key: Backend key, e.g. "gdb" or "lldb"

    Returns:
        The backend's manifest

    Raises:
        DebuggerNotFoundError: If no installed backend uses the key

    """
    matches = entry_points(group=ENTRY_POINT_GROUP, name=key)
    for entry in matches:
        manifest: DebuggerManifest[Any] = entry.load()
        return manifest

    installed = ", ".join(available_debuggers()) or "none installed"
    raise DebuggerNotFoundError(
        f"Debugger '{key}' not found. Available debuggers: {installed}"
    )
