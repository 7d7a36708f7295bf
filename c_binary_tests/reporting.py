"""Presentation surface: run lifecycle reporting, output streaming and summaries."""

import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, TextIO

from c_binary_tests.models.result import Errored, Failed, LeafResult, Passed, RunResult
from c_binary_tests.tree import TestGroup, TestLeaf, TestNode, TestTree

STATUS_SYMBOLS = {
    "passed": "✓",
    "failed": "✗",
    "errored": "!",
}


def status_of(result: RunResult) -> str:
    """Short status name of a result."""
    match result:
        case Passed():
            return "passed"
        case Failed():
            return "failed"
        case Errored():
            return "errored"


class OutputSink(ABC):
    """Receives streamed process output."""

    @abstractmethod
    def append_output(self, text: str, leaf: TestLeaf | None = None) -> None:
        """Append output text, optionally attributed to a leaf."""


class RunReporter(OutputSink):
    """Receives the lifecycle of a run session."""

    @abstractmethod
    def enqueued(self, leaf: TestLeaf) -> None:
        """Leaf was scheduled."""

    @abstractmethod
    def started(self, leaf: TestLeaf) -> None:
        """Leaf started executing."""

    @abstractmethod
    def passed(self, leaf: TestLeaf, duration: float) -> None:
        """Leaf passed."""

    @abstractmethod
    def failed(self, leaf: TestLeaf, duration: float, message: str) -> None:
        """Leaf failed."""

    @abstractmethod
    def errored(self, leaf: TestLeaf, message: str) -> None:
        """Leaf could not be run."""

    def report(self, leaf: TestLeaf, result: RunResult) -> None:
        """Dispatch a result to the matching lifecycle call."""
        match result:
            case Passed(duration=duration):
                self.passed(leaf, duration)
            case Failed(duration=duration, message=message):
                self.failed(leaf, duration, message)
            case Errored(message=message):
                self.errored(leaf, message)


@dataclass(kw_only=True)
class LoggingReporter(RunReporter):
    """Reports lifecycle events through logging and echoes output to a stream."""

    stream: TextIO = field(default_factory=lambda: sys.stdout)
    log: logging.Logger = field(
        default_factory=lambda: logging.getLogger("c_binary_tests")
    )

    def append_output(self, text: str, leaf: TestLeaf | None = None) -> None:
        self.stream.write(text)
        self.stream.flush()

    def enqueued(self, leaf: TestLeaf) -> None:
        self.log.debug("Queued %s", leaf.relative_path)

    def started(self, leaf: TestLeaf) -> None:
        self.log.info("Running %s", leaf.relative_path)

    def passed(self, leaf: TestLeaf, duration: float) -> None:
        self.log.info("%s %s (%.2fs)", STATUS_SYMBOLS["passed"], leaf.relative_path, duration)

    def failed(self, leaf: TestLeaf, duration: float, message: str) -> None:
        self.log.error(
            "%s %s (%.2fs)\n%s",
            STATUS_SYMBOLS["failed"],
            leaf.relative_path,
            duration,
            message,
        )

    def errored(self, leaf: TestLeaf, message: str) -> None:
        self.log.error("%s %s: %s", STATUS_SYMBOLS["errored"], leaf.relative_path, message)


def render_tree(tree: TestTree) -> str:
    """Render a tree as indented text, one node per line."""
    lines: list[str] = []
    stack: list[tuple[TestNode, int]] = [(node, 0) for node in reversed(tree.items)]
    while stack:
        node, depth = stack.pop()
        indent = "  " * depth
        if isinstance(node, TestGroup):
            line = f"{indent}{node.label}/"
            if node.description:
                line += f"  ({node.description})"
            lines.append(line)
            stack.extend((child, depth + 1) for child in reversed(node.children))
        else:
            source = f" -> {node.source}" if node.source else ""
            lines.append(f"{indent}{node.label}  [{node.id}]{source}")
    return "\n".join(lines)


def log_results_summary(log: logging.Logger, results: Sequence[LeafResult]) -> None:
    """Log a formatted summary of run results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for leaf_result in results:
        status = status_of(leaf_result.result)
        duration = getattr(leaf_result.result, "duration", 0.0)
        log.info(
            "%s %s: %s (%.2fs)",
            STATUS_SYMBOLS[status],
            leaf_result.leaf.relative_path,
            status,
            duration,
        )


def format_summary(results: Sequence[LeafResult]) -> dict[str, Any]:
    """Format run results for JSON output."""
    all_results: list[dict[str, Any]] = []
    for leaf_result in results:
        result = leaf_result.result
        all_results.append(
            {
                "id": leaf_result.leaf.id,
                "path": str(leaf_result.leaf.executable),
                "status": status_of(result),
                "duration": getattr(result, "duration", None),
                "message": getattr(result, "message", None),
            }
        )

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "passed"),
        "failed": sum(1 for r in all_results if r["status"] == "failed"),
        "errors": sum(1 for r in all_results if r["status"] == "errored"),
        "results": all_results,
    }
