"""Tests for terminal debugger backends."""

from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from c_binary_tests.debuggers.base import DebuggerLaunchError, DebugLaunchDescriptor
from c_binary_tests.debuggers.gdb import GdbBackend, GdbConfig, gdb_manifest
from c_binary_tests.debuggers.lldb import LldbBackend, LldbConfig

DESCRIPTOR = DebugLaunchDescriptor(
    program=Path("/ws/build/test_x"), cwd=Path("/ws"), backend="gdb"
)


def test_gdb_command() -> None:
    """gdb receives the program after --args."""
    backend = GdbBackend(extra_args=("-q",))

    assert backend.build_command("/usr/bin/gdb", "/ws/t") == [
        "/usr/bin/gdb",
        "-q",
        "--args",
        "/ws/t",
    ]


def test_lldb_command() -> None:
    """lldb receives the program after --."""
    assert LldbBackend().build_command("/usr/bin/lldb", "/ws/t") == [
        "/usr/bin/lldb",
        "--",
        "/ws/t",
    ]


async def test_from_config_builds_backend() -> None:
    """The manifest factory yields a configured backend."""
    config = GdbConfig(executable="gdb-multiarch", extra_args=["-nx"])

    async with gdb_manifest.backend_factory(config) as backend:
        assert backend == GdbBackend(executable="gdb-multiarch", extra_args=("-nx",))


async def test_from_config_defaults() -> None:
    """Default configuration runs the debugger from PATH."""
    async with LldbBackend.from_config(LldbConfig()) as backend:
        assert backend.executable == "lldb"


async def test_launch_raises_when_debugger_missing() -> None:
    """A debugger that is not on PATH cannot be launched."""
    backend = GdbBackend(executable="definitely-not-a-debugger-xyz")

    with pytest.raises(DebuggerLaunchError, match="not found on PATH"):
        await backend.launch(DESCRIPTOR)


async def test_launch_starts_debugger_in_workspace() -> None:
    """Starts the debugger with the workspace as working directory."""
    process = Mock()
    process.wait = AsyncMock(return_value=0)

    with (
        patch(
            "c_binary_tests.debuggers.terminal.shutil.which",
            return_value="/usr/bin/gdb",
        ),
        patch(
            "c_binary_tests.debuggers.terminal.asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            return_value=process,
        ) as mock_exec,
    ):
        await GdbBackend().launch(DESCRIPTOR)

    mock_exec.assert_awaited_once_with(
        "/usr/bin/gdb", "--args", "/ws/build/test_x", cwd=Path("/ws")
    )


async def test_launch_wraps_os_errors() -> None:
    """OS errors while spawning become DebuggerLaunchError."""
    with (
        patch(
            "c_binary_tests.debuggers.terminal.shutil.which",
            return_value="/usr/bin/gdb",
        ),
        patch(
            "c_binary_tests.debuggers.terminal.asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            side_effect=PermissionError("denied"),
        ),
        pytest.raises(DebuggerLaunchError, match="denied"),
    ):
        await GdbBackend().launch(DESCRIPTOR)
