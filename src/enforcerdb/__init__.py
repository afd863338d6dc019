# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
enforcerdb: backend-agnostic object mapping for the DNSSEC enforcer database.

Typed entities are stored in SQLite or CouchDB through one connection
contract; see :func:`connect`.
"""

from .constants import BackendName
from .db_clause import ClauseBuilder, ClauseTree, Comparator, Connective, FieldRef
from .db_configuration import DatabaseConfiguration
from .db_connection import Connection, connect, register_backend
from .db_entity import (
    Entity,
    EntityList,
    EntityState,
    db_entity,
    entity_field,
    enum_field,
    foreign_key_field,
)
from .db_enum import EnumMapping
from .db_object import ObjectEngine
from .db_result import HydratedRow, ResultCursor, ResultRow
from .db_schema import FieldDefinition, ObjectSchema, get_schema_registry
from .db_value import Value, ValueKind, compare
from .errors import (
    AlreadyDeleted,
    BackendError,
    ConfigurationError,
    ConnectionError,
    ConstraintViolation,
    CursorError,
    DatabaseError,
    DatabaseVersionMismatch,
    EntityStateError,
    HydrationError,
    InvalidEnumText,
    KindMismatch,
    NotFound,
    NotSet,
    RevisionConflict,
    UnknownField,
    UnsupportedOperation,
    UnsupportedPredicate,
    WrongKind,
)
from .models import (
    DatabaseVersion,
    DatabaseVersionList,
    HsmKey,
    HsmKeyBackup,
    HsmKeyList,
    HsmKeyRole,
    Policy,
    PolicyList,
    read_database_version,
    verify_database_version,
)

__version__ = "0.1.0"

__all__ = [
    "BackendName",
    "ClauseBuilder",
    "ClauseTree",
    "Comparator",
    "Connective",
    "FieldRef",
    "DatabaseConfiguration",
    "Connection",
    "connect",
    "register_backend",
    "Entity",
    "EntityList",
    "EntityState",
    "db_entity",
    "entity_field",
    "enum_field",
    "foreign_key_field",
    "EnumMapping",
    "ObjectEngine",
    "HydratedRow",
    "ResultCursor",
    "ResultRow",
    "FieldDefinition",
    "ObjectSchema",
    "get_schema_registry",
    "Value",
    "ValueKind",
    "compare",
    "AlreadyDeleted",
    "BackendError",
    "ConfigurationError",
    "ConnectionError",
    "ConstraintViolation",
    "CursorError",
    "DatabaseError",
    "DatabaseVersionMismatch",
    "EntityStateError",
    "HydrationError",
    "InvalidEnumText",
    "KindMismatch",
    "NotFound",
    "NotSet",
    "RevisionConflict",
    "UnknownField",
    "UnsupportedOperation",
    "UnsupportedPredicate",
    "WrongKind",
    "DatabaseVersion",
    "DatabaseVersionList",
    "HsmKey",
    "HsmKeyBackup",
    "HsmKeyList",
    "HsmKeyRole",
    "Policy",
    "PolicyList",
    "read_database_version",
    "verify_database_version",
]
