# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Constants module for the enforcer database layer.

This module centralizes message templates, backend keywords and limits used
throughout the package. No magic values are allowed elsewhere.

:module: constants
:synopsis: Centralized constants and configuration for enforcerdb
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final


# ============================================================================
# VALUE LIMITS
# ============================================================================

class ValueLimits:
    """Inclusive integer ranges per value kind."""

    INT32_MIN: Final[int] = -(2 ** 31)
    INT32_MAX: Final[int] = 2 ** 31 - 1
    UINT32_MAX: Final[int] = 2 ** 32 - 1
    INT64_MIN: Final[int] = -(2 ** 63)
    INT64_MAX: Final[int] = 2 ** 63 - 1
    UINT64_MAX: Final[int] = 2 ** 64 - 1


# ============================================================================
# BACKEND NAMES
# ============================================================================

class BackendName(StrEnum):
    """Names accepted by the ``backend`` configuration key."""

    SQLITE = "sqlite"
    COUCHDB = "couchdb"


# ============================================================================
# CONFIGURATION CONSTANTS
# ============================================================================

class ConfigurationConstants:
    """Keys and defaults of the flat connection configuration."""

    # @@ STEP 1: Define recognised keys
    BACKEND_KEY: Final[str] = "backend"
    FILE_KEY: Final[str] = "file"
    URL_KEY: Final[str] = "url"
    TIMEOUT_KEY: Final[str] = "timeout"

    # @@ STEP 2: Define defaults
    DEFAULT_TIMEOUT: Final[float] = 10.0


# ============================================================================
# SQL CONSTANTS
# ============================================================================

class SQLConstants(StrEnum):
    """SQL keywords and fragments emitted by the SQLite driver."""

    # @@ STEP 1: Define DDL keywords
    CREATE_TABLE: Final[str] = "CREATE TABLE IF NOT EXISTS"
    PRIMARY_KEY_COLUMN: Final[str] = "INTEGER PRIMARY KEY AUTOINCREMENT"
    NOT_NULL: Final[str] = "NOT NULL"
    UNIQUE: Final[str] = "UNIQUE"
    REFERENCES: Final[str] = "REFERENCES"
    FOREIGN_KEYS_ON: Final[str] = "PRAGMA foreign_keys = ON"

    # @@ STEP 2: Define column types
    INTEGER: Final[str] = "INTEGER"
    TEXT: Final[str] = "TEXT"
    BLOB: Final[str] = "BLOB"

    # @@ STEP 3: Define predicate fragments
    AND: Final[str] = "AND"
    OR: Final[str] = "OR"
    NOT: Final[str] = "NOT"
    IS_NULL: Final[str] = "IS NULL"
    IS_NOT: Final[str] = "IS NOT"
    PLACEHOLDER: Final[str] = "?"
    MATCH_ALL: Final[str] = "1 = 1"

    # @@ STEP 4: Define transaction statements
    BEGIN: Final[str] = "BEGIN"
    COMMIT: Final[str] = "COMMIT"
    ROLLBACK: Final[str] = "ROLLBACK"


# ============================================================================
# COUCHDB CONSTANTS
# ============================================================================

class CouchConstants:
    """Document layout, endpoints and Mango operators used by the CouchDB driver."""

    # @@ STEP 1: Define document keys
    ID_KEY: Final[str] = "_id"
    REV_KEY: Final[str] = "_rev"
    TYPE_KEY: Final[str] = "type"

    # @@ STEP 2: Define endpoints
    FIND_ENDPOINT: Final[str] = "_find"
    INDEX_ENDPOINT: Final[str] = "_index"
    BULK_DOCS_ENDPOINT: Final[str] = "_bulk_docs"
    TYPE_INDEX_NAME: Final[str] = "enforcerdb-type"

    # @@ STEP 3: Define Mango operators
    OP_EQ: Final[str] = "$eq"
    OP_NE: Final[str] = "$ne"
    OP_LT: Final[str] = "$lt"
    OP_LTE: Final[str] = "$lte"
    OP_GT: Final[str] = "$gt"
    OP_GTE: Final[str] = "$gte"
    OP_AND: Final[str] = "$and"
    OP_OR: Final[str] = "$or"
    OP_NOT: Final[str] = "$not"
    OP_TYPE: Final[str] = "$type"
    TYPE_NUMBER: Final[str] = "number"
    TYPE_STRING: Final[str] = "string"

    # @@ STEP 4: Define paging and status codes
    PAGE_SIZE: Final[int] = 200
    STATUS_NOT_FOUND: Final[int] = 404
    STATUS_CONFLICT: Final[int] = 409
    STATUS_PRECONDITION_FAILED: Final[int] = 412


# ============================================================================
# ERROR MESSAGE CONSTANTS
# ============================================================================

class ErrorMessages:
    """Error message templates."""

    # @@ STEP 1: Define value errors
    KIND_MISMATCH: Final[str] = "Value holds {current}; cannot assign {requested} without reset"
    VALUE_NOT_SET: Final[str] = "Value has not been set"
    WRONG_KIND: Final[str] = "Value holds {current}, not {requested}"
    INVALID_PAYLOAD: Final[str] = "Invalid payload for {kind}: {payload!r}"
    INTEGER_OUT_OF_RANGE: Final[str] = "Integer {payload} out of range for {kind}"

    # @@ STEP 2: Define enum errors
    INVALID_ENUM_TEXT: Final[str] = "Invalid {enum} text: {text!r}, valid: {valid}"
    INVALID_ENUM_CODE: Final[str] = "Invalid {enum} code: {code!r}"

    # @@ STEP 3: Define schema and clause errors
    UNKNOWN_FIELD: Final[str] = "Field {field_name} not found in schema {schema_name}"
    DUPLICATE_FIELD: Final[str] = "Schema {schema_name} declares field {field_name} twice"
    RESERVED_FIELD: Final[str] = "Field name {field_name} is reserved in schema {schema_name}"
    FIELD_KIND_REQUIRED: Final[str] = "Field {field_name} needs a kind unless it is a foreign key"
    ENUM_MAPPING_REQUIRED: Final[str] = "Enum field {field_name} needs an enum mapping"
    SCHEMA_MISMATCH: Final[str] = "Clause tree built for {tree_schema} used against {schema_name}"
    NOT_ARITY: Final[str] = "NOT takes exactly one child, got {count}"
    CONNECTIVE_ARITY: Final[str] = "{connective} needs at least one child"
    UNKNOWN_COMPARATOR: Final[str] = "Unknown comparator: {op!r}"
    UNKNOWN_SCHEMA: Final[str] = "Schema {schema_name} is not registered"

    # @@ STEP 4: Define engine errors
    NOT_NULL_VIOLATION: Final[str] = "Field {field_name} of {schema_name} must not be null"
    RECORD_NOT_FOUND: Final[str] = "{schema_name} {identity} not found"
    REVISION_CONFLICT: Final[str] = "{schema_name} {identity} was modified concurrently"
    REVISION_REQUIRED: Final[str] = "{schema_name} {identity} needs a revision on this backend"
    UNIQUE_VIOLATION: Final[str] = "{schema_name}.{field_name} already holds {value!r}"

    # @@ STEP 5: Define lifecycle errors
    ALREADY_PERSISTED: Final[str] = "{schema_name} is already persisted as {identity}"
    NOT_PERSISTED: Final[str] = "{schema_name} has not been persisted"
    ALREADY_DELETED: Final[str] = "{schema_name} {identity} has been deleted"
    WRONG_ENTITY_TYPE: Final[str] = "Cannot copy {other} into {schema_name}"
    WRONG_COMPARE_TYPE: Final[str] = "Cannot compare {schema_name} with {other}"

    # @@ STEP 6: Define cursor errors
    CURSOR_ADVANCED: Final[str] = "Cursor already advanced; begin() needs a fresh query"
    CURSOR_CLOSED: Final[str] = "Cursor is closed; run a fresh query"

    # @@ STEP 7: Define connection and backend errors
    CONNECTION_FAILED: Final[str] = "Failed to connect to {address}: {error}"
    CONNECTION_CLOSED: Final[str] = "Database connection is closed"
    UNKNOWN_BACKEND: Final[str] = "Unknown backend {backend!r}, registered: {registered}"
    TRANSPORT_FAILED: Final[str] = "Request {method} {path} failed: {error}"
    UNEXPECTED_STATUS: Final[str] = "Request {method} {path} answered {status}: {body}"
    TRANSACTIONS_UNSUPPORTED: Final[str] = "Backend {backend} does not support transactions"
    UNSUPPORTED_ORDERING: Final[str] = "Backend {backend} cannot order {kind} field {field_name}"
    UNSUPPORTED_NULL_ORDERING: Final[str] = "Ordered comparison {op} against null on {field_name}"
    UNSUPPORTED_INTEGER_RANGE: Final[str] = "Backend {backend} cannot bind integer {value} on {field_name}"

    # @@ STEP 8: Define hydration errors
    HYDRATION_FAILED: Final[str] = "Stored value {raw!r} does not fit {kind} field {field_name}"
    MISSING_COLUMN: Final[str] = "Row of {schema_name} has no value for {field_name}"

    # @@ STEP 9: Define configuration errors
    INVALID_CONFIGURATION: Final[str] = "Invalid database configuration: {errors}"
    DATABASE_VERSION_MISMATCH: Final[str] = "Database schema version is {actual}, expected {expected}"
