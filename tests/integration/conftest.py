"""Fixtures for integration tests."""

import os
import stat
from pathlib import Path
from typing import Protocol

import pytest


class MakeScriptFn(Protocol):
    """Protocol for executable script creation function."""

    def __call__(self, relative_path: str, body: str = "exit 0") -> Path:
        """Create an executable shell script and return its path."""


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create an empty workspace directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def make_script(workspace: Path) -> MakeScriptFn:
    """Return a function to create executable scripts in the workspace."""

    def _create(relative_path: str, body: str = "exit 0") -> Path:
        script = workspace / relative_path
        script.parent.mkdir(parents=True, exist_ok=True)
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _create


@pytest.fixture
def running_as_root() -> bool:
    """Whether permission checks are bypassed for the current user."""
    return hasattr(os, "geteuid") and os.geteuid() == 0
