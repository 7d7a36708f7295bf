"""Test session: discovery passes, run sessions and debug launches."""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from c_binary_tests.config_loader import load_config
from c_binary_tests.debug_launcher import debug_leaf
from c_binary_tests.debuggers.base import DebuggerBackend
from c_binary_tests.discovery.walker import DiscoveredBinary, discover_binaries
from c_binary_tests.execution.engine import ExecutionEngine
from c_binary_tests.models.result import Errored, LeafResult
from c_binary_tests.reporting import RunReporter
from c_binary_tests.resolver import ResolutionError, ResolvedRoot, resolve_root
from c_binary_tests.source_mapper import SourceMapper
from c_binary_tests.tree import TestLeaf, TestTree, TestTreeBuilder
from c_binary_tests.workspace import LocalWorkspaceFiles, WorkspaceFiles

log = logging.getLogger(__name__)


class NoWorkspaceError(Exception):
    """Raised when the workspace root is missing."""


@dataclass(kw_only=True)
class TestSession:
    """Owns the discovered tree and everything scoped to discovery passes.

    Created once per process; each :meth:`discover` call rebuilds the tree
    from scratch and replaces it only when the pass succeeds.
    """

    __test__ = False

    workspace_root: Path
    config_path: Path
    source_extension: str = "c"
    workspace_files: WorkspaceFiles | None = None
    engine: ExecutionEngine | None = None
    tree: TestTree = field(default_factory=TestTree, init=False)
    _source_mapper: SourceMapper = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.workspace_files is None:
            self.workspace_files = LocalWorkspaceFiles(root=self.workspace_root)
        if self.engine is None:
            self.engine = ExecutionEngine(cwd=self.workspace_root)
        self._source_mapper = SourceMapper(
            workspace_files=self.workspace_files,
            workspace_root=self.workspace_root,
            source_extension=self.source_extension,
        )

    async def discover(self) -> TestTree:
        """Run a full discovery pass and swap in the new tree.

        Raises:
            NoWorkspaceError: If the workspace root is not a directory
            ConfigError: If the configuration is malformed or invalid

        """
        if not self.workspace_root.is_dir():
            raise NoWorkspaceError(f"Workspace root not found: {self.workspace_root}")

        self._source_mapper.reset()
        specs = await load_config(self.config_path)

        roots: list[ResolvedRoot] = []
        for index, spec in enumerate(specs):
            try:
                roots.append(resolve_root(spec, index, self.workspace_root))
            except ResolutionError as e:
                log.warning("Skipping root %d: %s", index, e)

        per_root = await asyncio.gather(
            *(self._discover_root(root) for root in roots)
        )

        builder = TestTreeBuilder()
        for root, binaries in zip(roots, per_root):
            builder.add_root(root, binaries)

        self.tree = builder.build()
        log.info(
            "Discovered %d test binary(ies) in %d root(s)",
            sum(1 for _ in self.tree.leaves()),
            len(roots),
        )
        return self.tree

    async def _discover_root(
        self, root: ResolvedRoot
    ) -> list[tuple[DiscoveredBinary, Path | None]]:
        binaries = await discover_binaries(root.directory, root.spec.pattern)
        sources = await asyncio.gather(
            *(
                self._source_mapper.find_source(b.base_name, b.relative_dir)
                for b in binaries
            )
        )
        return list(zip(binaries, sources))

    async def run(
        self,
        leaves: Sequence[TestLeaf],
        reporter: RunReporter,
        cancel: asyncio.Event | None = None,
        max_parallel: int = 1,
    ) -> Sequence[LeafResult]:
        """Run *leaves*, reporting each lifecycle step.

        Args:
            leaves: Leaves to execute, in order
            reporter: Presentation surface for lifecycle events and output
            cancel: Cancellation token shared by every execution
            max_parallel: Number of executions allowed in flight at once

        Returns:
            One result per leaf, in the order given

        """
        assert self.engine is not None
        engine = self.engine
        semaphore = asyncio.Semaphore(max(1, max_parallel))

        for leaf in leaves:
            reporter.enqueued(leaf)

        async def run_one(leaf: TestLeaf) -> LeafResult:
            async with semaphore:
                if cancel is not None and cancel.is_set():
                    result = Errored(message="Cancelled before start")
                else:
                    reporter.started(leaf)
                    result = await engine.run(
                        leaf.executable, reporter, cancel=cancel, leaf=leaf
                    )
                reporter.report(leaf, result)
                return LeafResult(leaf=leaf, result=result)

        log.info("Running %d test(s)...", len(leaves))
        results = await asyncio.gather(*(run_one(leaf) for leaf in leaves))
        log.info("Test execution completed")
        return results

    async def debug(
        self,
        leaves: Sequence[TestLeaf],
        backend: DebuggerBackend,
        backend_key: str,
        reporter: RunReporter,
    ) -> Sequence[LeafResult]:
        """Launch each leaf under *backend*, one session at a time."""
        results: list[LeafResult] = []
        for leaf in leaves:
            reporter.enqueued(leaf)
        for leaf in leaves:
            reporter.started(leaf)
            result = await debug_leaf(leaf, self.workspace_root, backend, backend_key)
            reporter.report(leaf, result)
            results.append(LeafResult(leaf=leaf, result=result))
        return results
