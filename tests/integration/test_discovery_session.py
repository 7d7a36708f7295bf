"""End-to-end discovery through TestSession."""

from collections.abc import Callable
from pathlib import Path

import pytest

from c_binary_tests.reporting import render_tree
from c_binary_tests.session import TestSession
from c_binary_tests.tree import TestGroup, TestLeaf


def write_config(workspace: Path, body: str) -> Path:
    config = workspace / ".c-binary-tests.yaml"
    config.write_text(body)
    return config


@pytest.fixture
def populated(workspace: Path, make_script: Callable[..., Path]) -> Path:
    """Workspace with binaries, sources and a config."""
    make_script("build/tests/a/b/test_x")
    make_script("build/tests/test_orphan")
    make_script("build/tests/a/helper")
    for rel in ("src/a/b/test_x.c", "src/test_x.c", "tests/test_x.c"):
        source = workspace / rel
        source.parent.mkdir(parents=True, exist_ok=True)
        source.write_text("int main(void) { return 0; }\n")
    return write_config(
        workspace,
        """
        # unit tests
        testRoots:
          - label: Unit
            workspacePath: build/tests
            pattern: "test_*"
          - workspacePath: does/not/exist
            pattern: "*"
        """.replace("\n        ", "\n"),
    )


async def test_builds_tree_with_sources(workspace: Path, populated: Path) -> None:
    """Binaries are grouped by directory and mapped to their sources."""
    session = TestSession(workspace_root=workspace, config_path=populated)

    tree = await session.discover()

    assert len(tree.items) == 1
    root = tree.items[0]
    assert isinstance(root, TestGroup)
    assert (root.id, root.label) == ("root:0", "Unit")

    leaves = {leaf.relative_path: leaf for leaf in tree.leaves()}
    assert set(leaves) == {"a/b/test_x", "test_orphan"}
    assert leaves["a/b/test_x"].source == workspace / "src" / "a" / "b" / "test_x.c"
    assert leaves["test_orphan"].source is None

    dir_group = tree.find("root:0/dir:a/b")
    assert isinstance(dir_group, TestGroup)
    assert [c.id for c in dir_group.children] == [leaves["a/b/test_x"].id]
    assert isinstance(tree.find(leaves["a/b/test_x"].id), TestLeaf)


async def test_rediscovery_is_idempotent(workspace: Path, populated: Path) -> None:
    """Discovering an unchanged workspace twice yields the same tree."""
    session = TestSession(workspace_root=workspace, config_path=populated)

    first = render_tree(await session.discover())
    second = render_tree(await session.discover())

    assert first == second


async def test_rediscovery_sees_new_binaries(
    workspace: Path, populated: Path, make_script: Callable[..., Path]
) -> None:
    """A later pass picks up binaries added since the previous one."""
    session = TestSession(workspace_root=workspace, config_path=populated)
    await session.discover()

    make_script("build/tests/test_new")
    tree = await session.discover()

    assert "test_new" in {leaf.relative_path for leaf in tree.leaves()}


async def test_grouped_roots_share_a_label(
    workspace: Path, make_script: Callable[..., Path]
) -> None:
    """Roots grouped by the same label sit under one group."""
    make_script("out/debug/test_a")
    make_script("out/release/test_a")
    config = write_config(
        workspace,
        '{"testRoots": ['
        '{"label": "All", "groupByLabel": true, "workspacePath": "out/debug", "pattern": "test_*"},'
        '{"label": "All", "groupByLabel": true, "workspacePath": "out/release", "pattern": "test_*"}'
        "]}",
    )
    session = TestSession(workspace_root=workspace, config_path=config)

    tree = await session.discover()

    assert [node.id for node in tree.items] == ["label:All"]
    shared = tree.items[0]
    assert isinstance(shared, TestGroup)
    assert [c.id for c in shared.children] == ["label:All/root:0", "label:All/root:1"]
    assert len(list(tree.leaves())) == 2
