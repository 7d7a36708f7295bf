"""LLDB debugger manifest."""

from c_binary_tests.debuggers.lldb.backend import LldbBackend
from c_binary_tests.debuggers.lldb.config import LldbConfig
from c_binary_tests.debuggers.manifest import DebuggerManifest

lldb_manifest = DebuggerManifest(
    config_cls=LldbConfig,
    backend_factory=LldbBackend.from_config,
)
