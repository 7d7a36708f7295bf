"""Load and create the test roots configuration file."""

import asyncio
import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from c_binary_tests.models.config import RootSpec, TestRootsConfig

log = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = ".c-binary-tests.yaml"

DEFAULT_CONFIG_TEMPLATE = """\
# Test binary discovery roots.
#
# Each entry needs exactly one of:
#   workspacePath: directory relative to the workspace root
#   path:          absolute directory, or relative to the workspace root
# and a basename pattern where '*' matches any run of characters.
testRoots:
  - label: "Unit tests"
    groupByLabel: false
    workspacePath: "build/tests"
    pattern: "test_*"
"""


class ConfigError(ValueError):
    """Raised when the configuration cannot be parsed or is invalid.

    Attributes:
        line: 1-based line of a parse error, if known
        column: 1-based column of a parse error, if known
        location: dotted location of the offending entry, if known

    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
        location: str | None = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column
        self.location = location


def offset_to_line_column(text: str, offset: int) -> tuple[int, int]:
    """Convert a character offset in *text* to a 1-based (line, column)."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return line, column


def format_location(loc: Sequence[int | str]) -> str:
    """Render a pydantic error location as ``testRoots[2].pattern``."""
    rendered = ""
    for part in loc:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else part
    return rendered


def _syntax_error(text: str, offset: int, problem: str | None) -> ConfigError:
    line, column = offset_to_line_column(text, offset)
    return ConfigError(
        f"Invalid configuration at line {line}, column {column}: {problem}",
        line=line,
        column=column,
    )


def _load_document(text: str) -> Any:
    # YAML rejects tab indentation, which JSON allows.
    if text.lstrip().startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError as json_error:
            try:
                return yaml.safe_load(text)
            except yaml.YAMLError:
                raise _syntax_error(text, json_error.pos, json_error.msg) from json_error

    try:
        return yaml.safe_load(text)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        if mark is None:
            raise ConfigError(f"Invalid configuration: {e}") from e
        raise _syntax_error(text, mark.index, e.problem) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def parse_config(text: str) -> Sequence[RootSpec]:
    """Parse configuration text into validated root specs.

    Args:
        text: Raw configuration file content

    Returns:
        Root specs in configured order. Empty content yields no roots.

    Raises:
        ConfigError: On malformed syntax or any invalid entry

    """
    data = _load_document(text)
    if data is None:
        return []

    if not isinstance(data, dict):
        raise ConfigError("Invalid configuration: top level must be a mapping")

    try:
        config = TestRootsConfig.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = format_location(first["loc"])
        raise ConfigError(
            f"Invalid configuration at {location or '<root>'}: {first['msg']}",
            location=location,
        ) from e

    return list(config.test_roots)


async def load_config(path: Path) -> Sequence[RootSpec]:
    """Load the configuration file at *path*.

    Raises:
        ConfigError: If the file is missing, unreadable, malformed or invalid

    """
    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Configuration file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e

    roots = parse_config(text)
    log.debug("Loaded %d root(s) from %s", len(roots), path)
    return roots


def create_default_config(path: Path) -> bool:
    """Write the default configuration template unless *path* already exists.

    Returns:
        True if the file was created, False if it already existed

    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("x", encoding="utf-8") as f:
            f.write(DEFAULT_CONFIG_TEMPLATE)
    except FileExistsError:
        log.info("Configuration already exists: %s", path)
        return False
    log.info("Created default configuration: %s", path)
    return True
