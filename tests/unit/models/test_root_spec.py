"""Tests for RootSpec and TestRootsConfig models."""

import logging

import pytest
from pydantic import ValidationError

from c_binary_tests.models.config import RootSpec, TestRootsConfig
from c_binary_tests.testing.factories import RootSpecFactory


def test_reads_camel_case_aliases() -> None:
    """Populates fields from the configuration file keys."""
    spec = RootSpec.model_validate(
        {"workspacePath": "build", "groupByLabel": True, "pattern": "test_*"}
    )

    assert spec.workspace_path == "build"
    assert spec.group_by_label is True
    assert spec.label is None


def test_path_root_is_not_workspace_relative() -> None:
    """Roots configured through path report it."""
    spec = RootSpec.model_validate({"path": "~/tests", "pattern": "*"})

    assert not spec.is_workspace_relative
    assert spec.raw_path == "~/tests"


def test_ignores_unknown_keys(caplog: pytest.LogCaptureFixture) -> None:
    """Unknown keys are dropped and logged at debug level."""
    caplog.set_level(logging.DEBUG, logger="c_binary_tests.models.base")

    spec = RootSpec.model_validate({"path": "a", "pattern": "*", "glob": "**"})

    assert spec.raw_path == "a"
    assert not hasattr(spec, "glob")
    assert "Ignoring unknown RootSpec key(s): glob" in caplog.text


def test_null_path_counts_as_absent() -> None:
    """An explicit null does not count as a configured path."""
    with pytest.raises(ValidationError, match="exactly one of"):
        RootSpec.model_validate({"path": None, "workspacePath": None, "pattern": "*"})


def test_is_frozen() -> None:
    """Specs are immutable."""
    spec = RootSpecFactory.build()

    with pytest.raises(ValidationError):
        spec.pattern = "other"  # type: ignore[misc]


def test_config_defaults_to_no_roots() -> None:
    """testRoots is optional."""
    assert list(TestRootsConfig.model_validate({}).test_roots) == []
