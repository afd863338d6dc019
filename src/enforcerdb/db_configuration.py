# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Connection configuration.

The daemon hands the database layer a flat mapping of string keys to string
values (``backend``, ``file`` for SQLite, ``url`` for CouchDB). This module
turns that mapping into a validated, immutable model.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .constants import BackendName, ConfigurationConstants, ErrorMessages
from .errors import ConfigurationError


class DatabaseConfiguration(BaseModel):
    """
    Validated connection options.

    :class: DatabaseConfiguration
    :synopsis: Backend name plus the location options that backend needs
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    backend: BackendName
    file: Optional[str] = None
    url: Optional[str] = None
    timeout: float = Field(default=ConfigurationConstants.DEFAULT_TIMEOUT, gt=0)

    @model_validator(mode="after")
    def check_location(self) -> "DatabaseConfiguration":
        if self.backend == BackendName.SQLITE and not self.file:
            raise ValueError(f"backend {self.backend.value} requires '{ConfigurationConstants.FILE_KEY}'")
        if self.backend == BackendName.COUCHDB and not self.url:
            raise ValueError(f"backend {self.backend.value} requires '{ConfigurationConstants.URL_KEY}'")
        return self

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "DatabaseConfiguration":
        """
        Build a configuration from a flat name/value mapping.

        :raises ConfigurationError: If keys are missing, unknown or inconsistent
        """
        data: Dict[str, Any] = {str(k).strip(): v for k, v in options.items()}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            errors = [f"{'.'.join(str(p) for p in e['loc']) or 'configuration'}: {e['msg']}" for e in exc.errors()]
            raise ConfigurationError(ErrorMessages.INVALID_CONFIGURATION.format(errors="; ".join(errors))) from exc

    @property
    def address(self) -> str:
        """Where the store lives, for log and error messages."""
        return self.file if self.backend == BackendName.SQLITE else self.url  # type: ignore[return-value]
