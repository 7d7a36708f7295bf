"""Map test binaries to their probable source files by naming convention."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from c_binary_tests.workspace import WorkspaceFiles

log = logging.getLogger(__name__)

SUFFIX_MATCH_WEIGHT = 1000
TESTS_FOLDER_BONUS = 50
MAX_DEPTH_BONUS = 20
TESTS_FOLDER_NAMES = frozenset({"test", "tests"})


def suffix_match_length(candidate: Sequence[str], binary: Sequence[str]) -> int:
    """Count trailing segments the two directory paths share."""
    count = 0
    for a, b in zip(reversed(candidate), reversed(binary)):
        if a != b:
            break
        count += 1
    return count


def score_candidate(
    candidate_dir_parts: Sequence[str], binary_dir_parts: Sequence[str]
) -> int:
    """Score a candidate source directory against a binary's root-relative directory.

    Args:
        candidate_dir_parts: Workspace-relative directory segments of the source
        binary_dir_parts: Root-relative directory segments of the binary

    Returns:
        Trailing-segment agreement weighted by 1000, plus 50 when the candidate
        sits in a tests folder, plus its depth capped at 20.

    """
    score = suffix_match_length(candidate_dir_parts, binary_dir_parts) * SUFFIX_MATCH_WEIGHT
    if any(part in TESTS_FOLDER_NAMES for part in candidate_dir_parts):
        score += TESTS_FOLDER_BONUS
    score += min(len(candidate_dir_parts), MAX_DEPTH_BONUS)
    return score


@dataclass(kw_only=True)
class SourceMapper:
    """Resolves ``<base_name>.<ext>`` source files, caching per discovery pass."""

    workspace_files: WorkspaceFiles
    workspace_root: Path
    source_extension: str = "c"
    _cache: dict[tuple[str, str], Path | None] = field(
        default_factory=dict, init=False, repr=False
    )

    def reset(self) -> None:
        """Clear cached mappings at the start of a discovery pass."""
        self._cache.clear()
        self.workspace_files.reset()

    async def find_source(self, base_name: str, relative_dir: str) -> Path | None:
        """Find the most likely source file for a binary.

        Args:
            base_name: Binary file name without extension
            relative_dir: Binary directory relative to its root, ``/``-separated

        Returns:
            The chosen source file, or None when no file has the expected name.

        """
        key = (base_name, relative_dir)
        if key in self._cache:
            return self._cache[key]

        file_name = f"{base_name}.{self.source_extension.lstrip('.')}"
        candidates = await self.workspace_files.find_files(file_name)
        binary_parts = tuple(relative_dir.split("/")) if relative_dir else ()
        source = self._choose(file_name, candidates, binary_parts)

        self._cache[key] = source
        return source

    def _dir_parts(self, candidate: Path) -> Sequence[str]:
        directory = candidate.parent
        if directory.is_relative_to(self.workspace_root):
            return directory.relative_to(self.workspace_root).parts
        return directory.parts[1:]

    def _choose(
        self,
        file_name: str,
        candidates: Sequence[Path],
        binary_parts: Sequence[str],
    ) -> Path | None:
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0]

        ranked = sorted(
            candidates,
            key=lambda c: (
                -score_candidate(self._dir_parts(c), binary_parts),
                len(str(c)),
            ),
        )
        log.info(
            "Ambiguous source for %s (binary dir %r): chose %s over %s",
            file_name,
            "/".join(binary_parts),
            ranked[0],
            ", ".join(str(c) for c in ranked[1:4]),
        )
        return ranked[0]
