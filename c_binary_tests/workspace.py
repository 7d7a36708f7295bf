"""File lookup across the whole workspace."""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)

IGNORED_DIRS = frozenset({".git", ".hg", ".svn"})


class WorkspaceFiles(ABC):
    """File enumeration scoped to one workspace root."""

    @abstractmethod
    async def find_files(self, file_name: str) -> Sequence[Path]:
        """Return absolute paths of every workspace file named *file_name*."""

    def reset(self) -> None:
        """Forget anything remembered from a previous discovery pass."""


@dataclass(kw_only=True)
class LocalWorkspaceFiles(WorkspaceFiles):
    """Indexes the local workspace tree by file name, once per pass."""

    root: Path
    ignored_dirs: frozenset[str] = IGNORED_DIRS
    _index: dict[str, list[Path]] | None = field(default=None, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def find_files(self, file_name: str) -> Sequence[Path]:
        """Return absolute paths of every workspace file named *file_name*."""
        async with self._lock:
            if self._index is None:
                self._index = await asyncio.to_thread(self._build_index)
        return tuple(self._index.get(file_name, ()))

    def reset(self) -> None:
        """Drop the file index so the next lookup rescans the workspace."""
        self._index = None

    def _build_index(self) -> dict[str, list[Path]]:
        index: dict[str, list[Path]] = {}

        def on_error(error: OSError) -> None:
            log.debug("Skipping unreadable workspace directory: %s", error)

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=on_error):
            dirnames[:] = [d for d in dirnames if d not in self.ignored_dirs]
            for name in filenames:
                index.setdefault(name, []).append(Path(dirpath, name))

        log.debug("Indexed %d file name(s) under %s", len(index), self.root)
        return index
