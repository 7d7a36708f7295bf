"""GDB debugger module."""

from c_binary_tests.debuggers.gdb.backend import GdbBackend
from c_binary_tests.debuggers.gdb.config import GdbConfig
from c_binary_tests.debuggers.gdb.manifest import gdb_manifest

__all__ = ["GdbBackend", "GdbConfig", "gdb_manifest"]
