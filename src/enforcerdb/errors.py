# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Exception hierarchy for the enforcer database layer.

Every engine operation reports failure through one of these types; there is
no generic failure flag. All errors inherit from :class:`DatabaseError`, which
carries a machine readable ``code`` and a ``details`` mapping.

:module: errors
:synopsis: Error kinds raised by values, clauses, drivers, cursors and entities
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DatabaseError(Exception):
    """Base exception for all database layer errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    default_code = "DATABASE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}


# -----------------------------------------------------------------------------
# Value and schema misuse
# -----------------------------------------------------------------------------

class KindMismatch(DatabaseError):
    """A value already holding one kind was assigned a different kind."""

    default_code = "KIND_MISMATCH"


class NotSet(DatabaseError):
    """A value was read before anything was assigned to it."""

    default_code = "NOT_SET"


class WrongKind(DatabaseError):
    """A value was read as a kind it does not hold."""

    default_code = "WRONG_KIND"


class InvalidEnumText(DatabaseError):
    """Text does not name any member of an enum mapping."""

    default_code = "INVALID_ENUM_TEXT"

    def __init__(self, message: str, text: Optional[str] = None) -> None:
        super().__init__(message, details={"text": text})
        self.text = text


class UnknownField(DatabaseError):
    """A field name is not part of the schema it was used against."""

    default_code = "UNKNOWN_FIELD"

    def __init__(self, message: str, field_name: Optional[str] = None, schema_name: Optional[str] = None) -> None:
        super().__init__(message, details={"field": field_name, "schema": schema_name})
        self.field_name = field_name
        self.schema_name = schema_name


# -----------------------------------------------------------------------------
# Backend capability
# -----------------------------------------------------------------------------

class UnsupportedPredicate(DatabaseError):
    """The backend cannot express a clause in its native query form."""

    default_code = "UNSUPPORTED_PREDICATE"


class UnsupportedOperation(DatabaseError):
    """The backend does not offer the requested primitive."""

    default_code = "UNSUPPORTED_OPERATION"


# -----------------------------------------------------------------------------
# Store outcomes
# -----------------------------------------------------------------------------

class ConstraintViolation(DatabaseError):
    """A uniqueness, not-null or reference constraint was violated.

    Raised when:
    - A non-nullable field is unset or null on create/update
    - A unique field collides with a stored record
    - A foreign key points at a missing record (relational backends)
    """

    default_code = "CONSTRAINT_VIOLATION"


class NotFound(DatabaseError):
    """No stored record matches the requested identity."""

    default_code = "NOT_FOUND"


class RevisionConflict(DatabaseError):
    """The stored revision no longer matches the one supplied.

    The record was modified concurrently since it was read. Callers must
    re-read and decide whether to retry; the engine never retries.
    """

    default_code = "REVISION_CONFLICT"


class HydrationError(DatabaseError):
    """A stored value does not fit the declared kind of its field."""

    default_code = "HYDRATION_ERROR"

    def __init__(self, message: str, field_name: Optional[str] = None, raw: Any = None) -> None:
        super().__init__(message, details={"field": field_name, "raw": raw})
        self.field_name = field_name
        self.raw = raw


class ConnectionError(DatabaseError):
    """Failed to reach or talk to the backing store.

    Raised when:
    - The store is unreachable or the database file cannot be opened
    - A request times out
    - The transport fails mid-operation
    """

    default_code = "CONNECTION_ERROR"

    def __init__(self, message: str, address: Optional[str] = None) -> None:
        super().__init__(message, details={"address": address})
        self.address = address


class BackendError(DatabaseError):
    """The store answered with something the driver does not understand."""

    default_code = "BACKEND_ERROR"

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message, details={"status": status})
        self.status = status


# -----------------------------------------------------------------------------
# Lifecycle, cursor, configuration
# -----------------------------------------------------------------------------

class EntityStateError(DatabaseError):
    """A CRUD call does not fit the entity's lifecycle state."""

    default_code = "ENTITY_STATE_ERROR"


class AlreadyDeleted(EntityStateError):
    """The entity was deleted through this handle; it is terminal."""

    default_code = "ALREADY_DELETED"


class CursorError(DatabaseError):
    """A cursor was used after it was advanced, exhausted or closed."""

    default_code = "CURSOR_ERROR"


class ConfigurationError(DatabaseError):
    """The connection configuration is incomplete or inconsistent."""

    default_code = "CONFIGURATION_ERROR"


class DatabaseVersionMismatch(DatabaseError):
    """The stored schema version differs from the one the code expects."""

    default_code = "DATABASE_VERSION_MISMATCH"

    def __init__(self, message: str, expected: Optional[int] = None, actual: Optional[int] = None) -> None:
        super().__init__(message, details={"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual
