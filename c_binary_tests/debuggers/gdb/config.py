"""Configuration for the GDB debugger backend."""

from collections.abc import Sequence

from pydantic import BaseModel


class GdbConfig(BaseModel):
    """Configuration for the GDB debugger backend."""

    executable: str = "gdb"
    extra_args: Sequence[str] = ()
