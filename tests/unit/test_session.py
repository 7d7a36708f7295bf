"""Tests for TestSession run and debug orchestration."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from c_binary_tests.config_loader import ConfigError
from c_binary_tests.debuggers.base import DebuggerBackend, DebuggerLaunchError
from c_binary_tests.execution.engine import ExecutionEngine
from c_binary_tests.models.result import Errored, Failed, Passed
from c_binary_tests.reporting import RunReporter
from c_binary_tests.session import NoWorkspaceError, TestSession
from c_binary_tests.testing.factories import TestLeafFactory
from c_binary_tests.tree import TestTree


@pytest.fixture
def engine_mock() -> Mock:
    """Create mock execution engine."""
    engine = Mock(spec=ExecutionEngine)
    engine.run = AsyncMock(return_value=Passed(duration=0.5))
    return engine


@pytest.fixture
def reporter_mock() -> Mock:
    """Create mock reporter."""
    return Mock(spec=RunReporter)


@pytest.fixture
def session(tmp_path: Path, engine_mock: Mock) -> TestSession:
    """Create session with a mock engine."""
    return TestSession(
        workspace_root=tmp_path,
        config_path=tmp_path / "config.yaml",
        engine=engine_mock,
    )


async def test_run_reports_every_lifecycle_step(
    session: TestSession, engine_mock: Mock, reporter_mock: Mock
) -> None:
    """Enqueues, starts and reports each leaf."""
    leaf_a = TestLeafFactory.build(id="leaf:a")
    leaf_b = TestLeafFactory.build(id="leaf:b")
    engine_mock.run.side_effect = [
        Passed(duration=0.5),
        Failed(duration=0.1, message="Process exited with code 1"),
    ]

    results = await session.run([leaf_a, leaf_b], reporter_mock)

    assert [r.leaf for r in results] == [leaf_a, leaf_b]
    assert isinstance(results[1].result, Failed)
    assert reporter_mock.enqueued.call_count == 2
    assert reporter_mock.started.call_count == 2
    reporter_mock.report.assert_any_call(leaf_a, Passed(duration=0.5))
    engine_mock.run.assert_any_await(
        leaf_a.executable, reporter_mock, cancel=None, leaf=leaf_a
    )


async def test_run_skips_leaves_after_cancellation(
    session: TestSession, engine_mock: Mock, reporter_mock: Mock
) -> None:
    """Leaves not yet started when the token fires are reported as errored."""
    cancel = asyncio.Event()

    async def run_and_cancel(*args: object, **kwargs: object) -> Errored:
        cancel.set()
        return Errored(message="Cancelled")

    engine_mock.run.side_effect = run_and_cancel
    leaves = [TestLeafFactory.build(id="leaf:a"), TestLeafFactory.build(id="leaf:b")]

    results = await session.run(leaves, reporter_mock, cancel=cancel)

    assert engine_mock.run.await_count == 1
    assert results[1].result == Errored(message="Cancelled before start")


async def test_run_limits_parallelism(
    session: TestSession, engine_mock: Mock, reporter_mock: Mock
) -> None:
    """Never runs more than max_parallel executions at once."""
    in_flight = 0
    peak = 0

    async def slow_run(*args: object, **kwargs: object) -> Passed:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        return Passed(duration=0.01)

    engine_mock.run.side_effect = slow_run
    leaves = [TestLeafFactory.build(id=f"leaf:{i}") for i in range(6)]

    await session.run(leaves, reporter_mock, max_parallel=2)

    assert peak == 2


async def test_debug_launches_each_leaf(
    session: TestSession, reporter_mock: Mock
) -> None:
    """Reports Passed for launched sessions and Errored for failed launches."""
    backend = Mock(spec=DebuggerBackend)
    backend.launch = AsyncMock(side_effect=[None, DebuggerLaunchError("no gdb")])
    leaves = [TestLeafFactory.build(id="leaf:a"), TestLeafFactory.build(id="leaf:b")]

    results = await session.debug(leaves, backend, "gdb", reporter_mock)

    assert results[0].result == Passed(duration=0.0)
    assert results[1].result == Errored(message="no gdb")
    assert backend.launch.await_count == 2


async def test_discover_requires_workspace(tmp_path: Path) -> None:
    """A missing workspace root aborts discovery."""
    session = TestSession(
        workspace_root=tmp_path / "missing", config_path=tmp_path / "c.yaml"
    )

    with pytest.raises(NoWorkspaceError):
        await session.discover()


async def test_failed_discovery_keeps_previous_tree(tmp_path: Path) -> None:
    """A configuration error leaves the current tree in place."""
    session = TestSession(workspace_root=tmp_path, config_path=tmp_path / "c.yaml")
    previous = TestTree(items=())
    session.tree = previous
    (tmp_path / "c.yaml").write_text("testRoots: [{pattern: x}]\n")

    with pytest.raises(ConfigError):
        await session.discover()

    assert session.tree is previous
