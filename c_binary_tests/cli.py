"""CLI entry point for discovering, running and debugging C test binaries."""

import argparse
import asyncio
import json
import logging
import signal
import sys
import webbrowser
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, metadata
from pathlib import Path

from pydantic import ValidationError

from c_binary_tests.config_loader import (
    DEFAULT_CONFIG_NAME,
    ConfigError,
    create_default_config,
)
from c_binary_tests.debuggers.loading import (
    DebuggerNotFoundError,
    available_debuggers,
    load_debugger_manifest,
)
from c_binary_tests.models.result import Passed
from c_binary_tests.reporting import (
    LoggingReporter,
    format_summary,
    log_results_summary,
    render_tree,
)
from c_binary_tests.session import NoWorkspaceError, TestSession
from c_binary_tests.tree import TestLeaf, TestTree
from c_binary_tests.watcher import ConfigWatcher

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ERROR = 2

log = logging.getLogger("c_binary_tests")


def select_leaves(tree: TestTree, selectors: Sequence[str]) -> list[TestLeaf]:
    """Pick leaves by node id or by a substring of their root-relative path.

    No selectors selects every leaf. Order follows the tree.
    """
    if not selectors:
        return list(tree.leaves())

    ids = [s for s in selectors if tree.find(s) is not None]
    wanted = {leaf.id for leaf in tree.select(ids)}
    substrings = [s for s in selectors if s not in ids]
    for leaf in tree.leaves():
        if any(s in leaf.relative_path for s in substrings):
            wanted.add(leaf.id)

    return [leaf for leaf in tree.leaves() if leaf.id in wanted]


async def discover(session: TestSession) -> int:
    """Run discovery and print the tree."""
    tree = await session.discover()
    print(render_tree(tree))
    return EXIT_OK


async def run_tests(
    session: TestSession,
    selectors: Sequence[str],
    jobs: int = 1,
    as_json: bool = False,
) -> int:
    """Discover, then run the selected tests; Ctrl-C cancels the running ones."""
    tree = await session.discover()
    leaves = select_leaves(tree, selectors)
    if not leaves:
        log.info("No tests selected")
        if as_json:
            print(json.dumps(format_summary([])))
        return EXIT_OK

    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, cancel.set)
    try:
        results = await session.run(
            leaves, LoggingReporter(log=log), cancel=cancel, max_parallel=jobs
        )
    finally:
        loop.remove_signal_handler(signal.SIGINT)

    log_results_summary(log, results)
    if as_json:
        print(json.dumps(format_summary(results), indent=2))

    all_passed = all(isinstance(r.result, Passed) for r in results)
    return EXIT_OK if all_passed else EXIT_FAILURES


async def debug_tests(
    session: TestSession,
    selectors: Sequence[str],
    debugger_key: str,
    debugger_config_json: str = "{}",
) -> int:
    """Discover, then launch the selected tests under a debugger."""
    manifest = load_debugger_manifest(debugger_key)
    try:
        config = manifest.config_cls.model_validate(json.loads(debugger_config_json))
    except (json.JSONDecodeError, ValidationError) as e:
        log.error("Invalid --debugger-config for '%s': %s", debugger_key, e)
        return EXIT_ERROR

    tree = await session.discover()
    leaves = select_leaves(tree, selectors)
    if not leaves:
        log.info("No tests selected")
        return EXIT_OK

    async with manifest.backend_factory(config) as backend:
        results = await session.debug(
            leaves, backend, debugger_key, LoggingReporter(log=log)
        )

    all_launched = all(isinstance(r.result, Passed) for r in results)
    return EXIT_OK if all_launched else EXIT_FAILURES


async def watch(session: TestSession) -> int:
    """Re-run discovery whenever the configuration file changes."""
    loop = asyncio.get_running_loop()
    changed = asyncio.Event()
    watcher = ConfigWatcher(
        session.config_path, lambda: loop.call_soon_threadsafe(changed.set)
    )

    await _rediscover(session)
    watcher.start()
    try:
        while True:
            await changed.wait()
            changed.clear()
            await _rediscover(session)
    finally:
        watcher.stop()


async def _rediscover(session: TestSession) -> None:
    try:
        tree = await session.discover()
    except ConfigError as e:
        log.error("%s (keeping previous tree)", e)
        return
    print(render_tree(tree), flush=True)


def init_config(config_path: Path) -> int:
    """Create the default configuration if it does not exist."""
    if create_default_config(config_path):
        print(f"Created {config_path}")
    else:
        print(f"{config_path} already exists")
    return EXIT_OK


def open_docs() -> int:
    """Open the project documentation, or print the usage help without one."""
    try:
        urls = metadata("c-binary-tests").get_all("Project-URL") or []
    except PackageNotFoundError:
        urls = []
    for entry in urls:
        name, _, url = entry.partition(",")
        if name.strip().lower() == "documentation":
            webbrowser.open(url.strip())
            print(url.strip())
            return EXIT_OK
    build_parser().print_help()
    return EXIT_OK


async def dispatch(args: argparse.Namespace) -> int:
    """Execute the selected subcommand."""
    workspace: Path = args.workspace.resolve()
    config_path: Path = (
        args.config if args.config is not None else workspace / DEFAULT_CONFIG_NAME
    )
    if not config_path.is_absolute():
        config_path = workspace / config_path

    if args.command == "init":
        return init_config(config_path)
    if args.command == "docs":
        return open_docs()

    session = TestSession(
        workspace_root=workspace,
        config_path=config_path,
        source_extension=args.source_ext,
    )

    try:
        match args.command:
            case "discover":
                return await discover(session)
            case "run":
                return await run_tests(session, args.tests, args.jobs, args.json)
            case "debug":
                return await debug_tests(
                    session, args.tests, args.debugger, args.debugger_config
                )
            case "watch":
                return await watch(session)
    except (ConfigError, NoWorkspaceError, DebuggerNotFoundError) as e:
        log.error("%s", e)
        return EXIT_ERROR

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="c-binary-tests",
        description="Discover, run and debug prebuilt C test binaries",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        default=Path.cwd(),
        help="Workspace root (default: current directory)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: <workspace>/{DEFAULT_CONFIG_NAME})",
    )
    parser.add_argument(
        "--source-ext",
        default="c",
        help="Extension of the source file mapped to each binary (default: c)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("init", help="Create the default configuration if absent")
    subparsers.add_parser("discover", help="Discover tests and print the tree")
    subparsers.add_parser("watch", help="Re-discover whenever the configuration changes")
    subparsers.add_parser("docs", help="Open the documentation")

    run_parser = subparsers.add_parser("run", help="Run selected or all tests")
    run_parser.add_argument(
        "tests", nargs="*", help="Node ids or path substrings (default: all)"
    )
    run_parser.add_argument(
        "-j", "--jobs", type=int, default=1, help="Tests to run in parallel"
    )
    run_parser.add_argument(
        "--json", action="store_true", help="Print a JSON summary to stdout"
    )

    debug_parser = subparsers.add_parser("debug", help="Debug selected or all tests")
    debug_parser.add_argument(
        "tests", nargs="*", help="Node ids or path substrings (default: all)"
    )
    debug_parser.add_argument(
        "--debugger",
        default="gdb",
        help=f"Debugger backend key (installed: {', '.join(available_debuggers())})",
    )
    debug_parser.add_argument(
        "--debugger-config", default="{}", help="JSON configuration for the debugger"
    )

    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        exit_code = asyncio.run(dispatch(args))
    except KeyboardInterrupt:
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
