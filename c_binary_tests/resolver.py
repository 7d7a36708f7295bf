"""Resolve configured root paths to absolute directories."""

import os
from dataclasses import dataclass
from pathlib import Path

from c_binary_tests.models.config import RootSpec


class ResolutionError(Exception):
    """Raised when a root's directory cannot be resolved."""

    def __init__(self, spec: RootSpec, message: str) -> None:
        super().__init__(message)
        self.spec = spec


@dataclass(frozen=True, kw_only=True)
class ResolvedRoot:
    """A root spec paired with its absolute directory."""

    spec: RootSpec
    index: int
    directory: Path


def resolve_path(raw: str, base_dir: Path) -> Path:
    """Resolve *raw* to a normalized absolute path.

    ``~`` and ``~/...`` expand against the home directory, absolute paths are
    normalized, anything else is joined to *base_dir*. Normalization is
    lexical; symlinks are not resolved.
    """
    if raw == "~" or raw.startswith(("~/", "~" + os.sep)):
        return Path(os.path.normpath(os.path.expanduser(raw)))
    if os.path.isabs(raw):
        return Path(os.path.normpath(raw))
    return Path(os.path.normpath(os.path.join(base_dir, raw)))


def resolve_root(spec: RootSpec, index: int, workspace_root: Path) -> ResolvedRoot:
    """Resolve a root spec against the workspace root.

    Args:
        spec: Configured root
        index: Position of the root in the configuration
        workspace_root: Base directory for relative paths

    Returns:
        The resolved root

    Raises:
        ResolutionError: If the directory does not exist or is not a directory

    """
    directory = resolve_path(spec.raw_path, workspace_root)
    if not directory.exists():
        raise ResolutionError(spec, f"Root directory does not exist: {directory}")
    if not directory.is_dir():
        raise ResolutionError(spec, f"Root path is not a directory: {directory}")
    return ResolvedRoot(spec=spec, index=index, directory=directory)
