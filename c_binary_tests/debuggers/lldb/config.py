"""Configuration for the LLDB debugger backend."""

from collections.abc import Sequence

from pydantic import BaseModel


class LldbConfig(BaseModel):
    """Configuration for the LLDB debugger backend."""

    executable: str = "lldb"
    extra_args: Sequence[str] = ()
