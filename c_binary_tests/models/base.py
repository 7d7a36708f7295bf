"""Base model configuration for persisted configuration structures."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

log = logging.getLogger(__name__)


class Model(BaseModel):
    """Base model with standard configuration.

    Keys are read by their camelCase alias as written in the configuration
    file. Unknown keys, such as ``$schema``, are ignored with a debug log.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _log_unknown_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            known = set(cls.model_fields)
            known.update(f.alias for f in cls.model_fields.values() if f.alias)
            unknown = sorted(str(key) for key in data if key not in known)
            if unknown:
                log.debug(
                    "Ignoring unknown %s key(s): %s", cls.__name__, ", ".join(unknown)
                )
        return data
