"""Debugger manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from c_binary_tests.debuggers.base import DebuggerBackend

ConfigT = TypeVar("ConfigT", bound=BaseModel)


@dataclass(frozen=True, kw_only=True)
class DebuggerManifest(Generic[ConfigT]):
    """Manifest describing a debugger plugin.

    The manifest contains references to the configuration class and the
    backend factory function for lazy loading of debuggers based on their key.
    """

    config_cls: type[ConfigT]
    backend_factory: Callable[[ConfigT], AbstractAsyncContextManager[DebuggerBackend]]
