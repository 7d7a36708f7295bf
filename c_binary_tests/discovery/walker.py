"""Walk root directories for executable test binaries."""

import asyncio
import logging
import os
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from c_binary_tests.discovery.pattern import compile_pattern, matches

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class DiscoveredBinary:
    """A file under a root whose basename matched the root's pattern."""

    path: Path
    relative_dir: str
    relative_path: str

    @property
    def base_name(self) -> str:
        """File name without its extension."""
        return self.path.stem

    @property
    def relative_dir_parts(self) -> Sequence[str]:
        """Directory segments between the root and the file."""
        return tuple(self.relative_dir.split("/")) if self.relative_dir else ()


def is_executable(path: Path) -> bool:
    """Check that *path* is a regular file the current user may execute."""
    return path.is_file() and os.access(path, os.X_OK)


def _list_dir(directory: Path) -> list[os.DirEntry[str]] | None:
    try:
        with os.scandir(directory) as it:
            return list(it)
    except OSError as e:
        log.debug("Skipping unreadable directory %s: %s", directory, e)
        return None


def scan_root(root_dir: Path, pattern: str) -> list[DiscoveredBinary]:
    """List every regular file under *root_dir* whose basename matches.

    Executability is not checked here. Unreadable directories are skipped and
    symlinked directories are not followed. Results follow directory
    enumeration order, depth first.
    """
    regex = compile_pattern(pattern)
    found: list[DiscoveredBinary] = []

    top = _list_dir(root_dir)
    if top is None:
        return found

    stack: list[tuple[tuple[str, ...], Iterator[os.DirEntry[str]]]] = [
        ((), iter(top))
    ]
    while stack:
        parts, entries = stack[-1]
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            continue

        try:
            if entry.is_dir(follow_symlinks=False):
                children = _list_dir(Path(entry.path))
                if children is not None:
                    stack.append(((*parts, entry.name), iter(children)))
                continue
            if not entry.is_file():
                continue
        except OSError as e:
            log.debug("Skipping %s: %s", entry.path, e)
            continue

        if matches(regex, entry.name):
            found.append(
                DiscoveredBinary(
                    path=Path(entry.path),
                    relative_dir="/".join(parts),
                    relative_path="/".join((*parts, entry.name)),
                )
            )

    return found


def _discover(root_dir: Path, pattern: str) -> list[DiscoveredBinary]:
    binaries: list[DiscoveredBinary] = []
    for candidate in scan_root(root_dir, pattern):
        if is_executable(candidate.path):
            binaries.append(candidate)
        else:
            log.debug("Skipping non-executable match %s", candidate.path)
    return binaries


async def discover_binaries(root_dir: Path, pattern: str) -> Sequence[DiscoveredBinary]:
    """Find executable files under *root_dir* matching *pattern*.

    Args:
        root_dir: Absolute root directory
        pattern: Basename wildcard

    Returns:
        Executable matches in deterministic traversal order.

    """
    binaries = await asyncio.to_thread(_discover, root_dir, pattern)
    log.debug("Found %d binary(ies) under %s", len(binaries), root_dir)
    return binaries
