"""Models for test root definitions loaded from the configuration file."""

from collections.abc import Sequence
from typing import Any

from pydantic import Field, StrictBool, StrictStr, model_validator

from c_binary_tests.models.base import Model

_PATH_KEYS = (("workspacePath", "workspace_path"), ("path",))


class RootSpec(Model):
    """One configured search root."""

    label: StrictStr | None = Field(default=None, description="Display name")
    group_by_label: StrictBool = Field(
        default=False,
        alias="groupByLabel",
        description="Share one top-level group with roots of the same label",
    )
    workspace_path: StrictStr | None = Field(
        default=None,
        alias="workspacePath",
        description="Directory relative to the workspace root",
    )
    path: StrictStr | None = Field(
        default=None, description="Absolute or relative directory"
    )
    pattern: StrictStr = Field(
        ..., min_length=1, description="Basename wildcard, e.g. 'test_*'"
    )

    @model_validator(mode="before")
    @classmethod
    def _exactly_one_path(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        present = [
            any(data.get(key) is not None for key in keys) for keys in _PATH_KEYS
        ]
        if present.count(True) != 1:
            raise ValueError("exactly one of 'workspacePath' or 'path' must be set")
        return data

    @property
    def raw_path(self) -> str:
        """The configured path, whichever of the two fields holds it."""
        if self.workspace_path is not None:
            return self.workspace_path
        assert self.path is not None
        return self.path

    @property
    def is_workspace_relative(self) -> bool:
        """Whether the root was configured through ``workspacePath``."""
        return self.workspace_path is not None


class TestRootsConfig(Model):
    """Complete configuration file content."""

    __test__ = False

    test_roots: Sequence[RootSpec] = Field(
        default_factory=list, alias="testRoots", description="Configured roots"
    )
