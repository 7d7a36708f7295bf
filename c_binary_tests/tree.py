"""Hierarchical test tree of groups and binary leaves."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from c_binary_tests.discovery.walker import DiscoveredBinary
from c_binary_tests.resolver import ResolvedRoot

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class TestLeaf:
    """A discovered test binary."""

    __test__ = False

    id: str
    label: str
    executable: Path
    source: Path | None = None
    relative_path: str


@dataclass(kw_only=True)
class TestGroup:
    """A non-executable node aggregating groups and leaves."""

    __test__ = False

    id: str
    label: str
    description: str = ""
    children: list["TestNode"] = field(default_factory=list)


TestNode: TypeAlias = TestGroup | TestLeaf


@dataclass(frozen=True, kw_only=True)
class TestTree:
    """Ordered forest of top-level nodes produced by one discovery pass."""

    __test__ = False

    items: Sequence[TestNode] = ()

    def walk(self) -> Iterator[TestNode]:
        """Yield every node in depth-first, pre-order."""
        stack: list[TestNode] = list(reversed(self.items))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, TestGroup):
                stack.extend(reversed(node.children))

    def leaves(self) -> Iterator[TestLeaf]:
        """Yield every leaf in tree order."""
        for node in self.walk():
            if isinstance(node, TestLeaf):
                yield node

    def find(self, node_id: str) -> TestNode | None:
        """Look up a node by id."""
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def select(self, node_ids: Iterable[str]) -> list[TestLeaf]:
        """Collect the leaves at or beneath the given nodes, in tree order.

        Unknown ids are ignored.
        """
        wanted = set(node_ids)
        selected: dict[str, TestLeaf] = {}
        for node in self.items:
            _collect(node, wanted, False, selected)
        return list(selected.values())


def _collect(
    node: TestNode, wanted: set[str], inside: bool, out: dict[str, TestLeaf]
) -> None:
    inside = inside or node.id in wanted
    if isinstance(node, TestLeaf):
        if inside:
            out.setdefault(node.id, node)
        return
    for child in node.children:
        _collect(child, wanted, inside, out)


def leaf_id(executable: Path) -> str:
    """Stable identity of a leaf, derived from its absolute executable path."""
    return f"leaf:{executable}"


def effective_label(root: ResolvedRoot) -> str:
    """Display label of a root: its explicit label, else a computed default."""
    label = root.spec.label
    if label is not None and label.strip():
        return label.strip()
    if root.spec.is_workspace_relative:
        return f"workspace: {root.spec.raw_path}"
    return f"path: {root.directory}"


@dataclass(kw_only=True)
class TestTreeBuilder:
    """Assembles discovered binaries into a :class:`TestTree`."""

    __test__ = False

    _items: list[TestNode] = field(default_factory=list, init=False)
    _label_groups: dict[str, TestGroup] = field(default_factory=dict, init=False)
    _leaf_ids: set[str] = field(default_factory=set, init=False)

    def add_root(
        self,
        root: ResolvedRoot,
        binaries: Sequence[tuple[DiscoveredBinary, Path | None]],
    ) -> TestGroup:
        """Add a root's group and its binaries.

        Args:
            root: Resolved root
            binaries: Discovered binaries paired with their mapped source file

        Returns:
            The group holding this root's directory groups and leaves

        """
        root_group = self._root_group(root)
        dir_groups: dict[str, TestGroup] = {"": root_group}

        for binary, source in binaries:
            node_id = leaf_id(binary.path)
            if node_id in self._leaf_ids:
                log.debug("Skipping %s, already listed under another root", binary.path)
                continue
            self._leaf_ids.add(node_id)

            parent = self._dir_group(root_group, dir_groups, binary.relative_dir_parts)
            parent.children.append(
                TestLeaf(
                    id=node_id,
                    label=binary.path.name,
                    executable=binary.path,
                    source=source,
                    relative_path=binary.relative_path,
                )
            )

        return root_group

    def build(self) -> TestTree:
        """Return the assembled tree."""
        return TestTree(items=tuple(self._items))

    def _root_group(self, root: ResolvedRoot) -> TestGroup:
        label = effective_label(root)
        if not root.spec.group_by_label:
            group = TestGroup(
                id=f"root:{root.index}",
                label=label,
                description=str(root.directory),
            )
            self._items.append(group)
            return group

        shared = self._label_groups.get(label)
        if shared is None:
            shared = TestGroup(id=f"label:{label}", label=label)
            self._label_groups[label] = shared
            self._items.append(shared)

        group = TestGroup(
            id=f"{shared.id}/root:{root.index}",
            label=root.spec.raw_path,
            description=str(root.directory),
        )
        shared.children.append(group)
        return group

    @staticmethod
    def _dir_group(
        root_group: TestGroup,
        dir_groups: dict[str, TestGroup],
        parts: Sequence[str],
    ) -> TestGroup:
        parent = root_group
        for depth in range(1, len(parts) + 1):
            key = "/".join(parts[:depth])
            group = dir_groups.get(key)
            if group is None:
                group = TestGroup(id=f"{root_group.id}/dir:{key}", label=parts[depth - 1])
                dir_groups[key] = group
                parent.children.append(group)
            parent = group
        return parent
