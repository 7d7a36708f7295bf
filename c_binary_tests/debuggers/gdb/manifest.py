"""GDB debugger manifest."""

from c_binary_tests.debuggers.gdb.backend import GdbBackend
from c_binary_tests.debuggers.gdb.config import GdbConfig
from c_binary_tests.debuggers.manifest import DebuggerManifest

gdb_manifest = DebuggerManifest(
    config_cls=GdbConfig,
    backend_factory=GdbBackend.from_config,
)
