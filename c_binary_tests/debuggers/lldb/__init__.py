"""LLDB debugger module."""

from c_binary_tests.debuggers.lldb.backend import LldbBackend
from c_binary_tests.debuggers.lldb.config import LldbConfig
from c_binary_tests.debuggers.lldb.manifest import lldb_manifest

__all__ = ["LldbBackend", "LldbConfig", "lldb_manifest"]
