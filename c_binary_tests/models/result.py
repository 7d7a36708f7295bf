"""Models for test execution results."""

from dataclasses import dataclass
from typing import TypeAlias

from c_binary_tests.tree import TestLeaf


@dataclass(frozen=True, kw_only=True)
class Passed:
    """The executable exited with code 0."""

    duration: float


@dataclass(frozen=True, kw_only=True)
class Failed:
    """The executable exited with a nonzero code or was killed by a signal."""

    duration: float
    message: str


@dataclass(frozen=True, kw_only=True)
class Errored:
    """The executable (or debugger) could not be started, or the run was cancelled."""

    message: str


RunResult: TypeAlias = Passed | Failed | Errored


@dataclass(frozen=True, kw_only=True)
class LeafResult:
    """Result container for one executed (or debugged) leaf."""

    leaf: TestLeaf
    result: RunResult
