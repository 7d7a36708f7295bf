"""Hand a test binary off to an external debugger."""

import logging
from pathlib import Path

from c_binary_tests.debuggers.base import (
    DebuggerBackend,
    DebuggerLaunchError,
    DebugLaunchDescriptor,
)
from c_binary_tests.models.result import Errored, Passed, RunResult
from c_binary_tests.tree import TestLeaf

log = logging.getLogger(__name__)


async def debug_leaf(
    leaf: TestLeaf,
    workspace_root: Path,
    backend: DebuggerBackend,
    backend_key: str,
) -> RunResult:
    """Launch *leaf* under a debugger with the workspace root as working directory.

    Only starting the session is observed: Passed means the debugger was
    launched, Errored means it could not be.
    """
    descriptor = DebugLaunchDescriptor(
        program=leaf.executable, cwd=workspace_root, backend=backend_key
    )
    try:
        await backend.launch(descriptor)
    except DebuggerLaunchError as e:
        log.error("Could not debug %s: %s", leaf.relative_path, e)
        return Errored(message=str(e))
    return Passed(duration=0.0)
