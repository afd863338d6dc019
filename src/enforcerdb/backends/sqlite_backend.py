# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
SQLite driver.

One table per schema with an auto-increment integer primary key. Clause trees
become parameterised ``WHERE`` clauses; values are bound, never interpolated.
Enums are stored as their integer codes. Records carry no revision.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import sqlite3
from threading import RLock
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..constants import BackendName, ConfigurationConstants, ErrorMessages, SQLConstants, ValueLimits
from ..db_clause import ClauseTree, Clause, Comparator, ConnectiveClause, Connective, FieldClause
from ..db_result import HydratedRow, ResultCursor
from ..db_schema import FieldDefinition, ObjectSchema, get_schema_registry
from ..db_value import Value, ValueKind
from ..errors import (
    BackendError,
    ConnectionError,
    ConstraintViolation,
    HydrationError,
    NotFound,
    UnsupportedPredicate,
)

logger = logging.getLogger(__name__)

_COLUMN_TYPES = {
    ValueKind.INT32: SQLConstants.INTEGER,
    ValueKind.UINT32: SQLConstants.INTEGER,
    ValueKind.INT64: SQLConstants.INTEGER,
    ValueKind.UINT64: SQLConstants.INTEGER,
    ValueKind.TEXT: SQLConstants.TEXT,
    ValueKind.BINARY: SQLConstants.BLOB,
    ValueKind.ENUM: SQLConstants.INTEGER,
}


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _encode(value: Value) -> Any:
    """Native SQLite parameter for ``value``."""
    if value.kind in (ValueKind.UNSET, ValueKind.NULL):
        return None
    if value.kind == ValueKind.ENUM:
        return value.payload[0]
    return value.payload


def _decode(schema: ObjectSchema, definition: FieldDefinition, raw: Any) -> Value:
    """Stored column value -> :class:`Value` of the field's declared kind."""
    if raw is None:
        return Value.null()
    kind = ValueKind.INT64 if definition.is_foreign_key else definition.kind
    try:
        if kind == ValueKind.ENUM:
            if type(raw) is not int:
                raise ValueError(raw)
            return definition.enum.value_of(raw)
        return Value.of(kind, raw)
    except ValueError:
        raise HydrationError(
            ErrorMessages.HYDRATION_FAILED.format(raw=raw, kind=kind.name, field_name=definition.name),
            field_name=definition.name,
            raw=raw,
        ) from None


class SQLiteConnection:
    """
    Connection to one SQLite database file.

    :class: SQLiteConnection
    :synopsis: Relational driver with integer identities and real transactions
    """

    backend_name = BackendName.SQLITE
    identity_kind = ValueKind.INT64
    supports_revisions = False
    supports_transactions = True

    def __init__(self, path: str, timeout: float = ConfigurationConstants.DEFAULT_TIMEOUT) -> None:
        """
        Open the database file, creating it when missing.

        Args:
            path: Database file path (``:memory:`` for a private in-memory store)
            timeout: Seconds to wait on a locked database

        Raises:
            ConnectionError: If the file cannot be opened
        """
        # @@ STEP 1: Initialise state before anything can fail
        self.path = path
        self._lock = RLock()
        self._closed = False
        self._in_transaction = False
        conn: Optional[sqlite3.Connection] = None

        # @@ STEP 2: Open in autocommit mode; transaction() issues BEGIN/COMMIT itself
        # || S.1: Foreign keys are off by default in SQLite and must be enabled per connection
        try:
            conn = sqlite3.connect(path, timeout=timeout, isolation_level=None, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute(SQLConstants.FOREIGN_KEYS_ON)
        except sqlite3.Error as exc:
            if conn is not None:
                conn.close()
            raise ConnectionError(ErrorMessages.CONNECTION_FAILED.format(address=path, error=exc), address=path) from exc
        self._conn = conn
        logger.debug("Opened SQLite database %s", path)

    @classmethod
    def open(cls, configuration: Any) -> SQLiteConnection:
        return cls(configuration.file, timeout=configuration.timeout)

    # -------------------------------------------------------------------------
    # Statement execution
    # -------------------------------------------------------------------------

    def _run(self, sql: str, parameters: Sequence[Any] = (), writing: bool = False) -> sqlite3.Cursor:
        """
        Execute one statement, mapping driver errors to database errors.

        An integer outside the signed 64-bit range is a :class:`ConstraintViolation`
        when ``writing`` stores it, otherwise a :class:`BackendError`.
        """
        with self._lock:
            if self._closed:
                raise ConnectionError(ErrorMessages.CONNECTION_CLOSED, address=self.path)
            logger.debug("SQL: %s %r", sql, list(parameters))
            try:
                return self._conn.execute(sql, tuple(parameters))
            except sqlite3.IntegrityError as exc:
                raise ConstraintViolation(str(exc)) from exc
            except OverflowError as exc:
                # UINT64 payloads above the signed 64-bit range
                if writing:
                    raise ConstraintViolation(str(exc)) from exc
                raise BackendError(str(exc)) from exc
            except sqlite3.Error as exc:
                logger.error("SQLite rejected %s: %s", sql, exc)
                raise BackendError(str(exc)) from exc

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> int:
        """Run raw SQL; return the number of rows it changed."""
        cursor = self._run(statement, parameters)
        try:
            return max(cursor.rowcount, 0)
        finally:
            cursor.close()

    # -------------------------------------------------------------------------
    # Translation
    # -------------------------------------------------------------------------

    def translate(self, schema: ObjectSchema, tree: ClauseTree) -> Tuple[str, List[Any]]:
        """
        Translate ``tree`` into a ``WHERE`` fragment plus bound parameters.

        ``=`` against NULL becomes ``IS NULL``; ``!=`` uses ``IS NOT`` so that
        NULL columns compare unequal to any value.

        :raises UnsupportedPredicate: For ordered comparisons against NULL or an
            integer operand outside the signed 64-bit range
        """
        parameters: List[Any] = []
        if tree.is_empty:
            return SQLConstants.MATCH_ALL.value, parameters
        return self._translate_node(schema, tree.root, parameters), parameters

    def _translate_node(self, schema: ObjectSchema, node: Clause, parameters: List[Any]) -> str:
        if isinstance(node, FieldClause):
            return self._translate_leaf(schema, node, parameters)
        if isinstance(node, ConnectiveClause):
            parts = [self._translate_node(schema, child, parameters) for child in node.children]
            if node.connective == Connective.NOT:
                return f"{SQLConstants.NOT} ({parts[0]})"
            joiner = f" {SQLConstants.AND if node.connective == Connective.AND else SQLConstants.OR} "
            return "(" + joiner.join(f"({part})" for part in parts) + ")"
        raise UnsupportedPredicate(f"Cannot translate clause node {node!r}")

    def _translate_leaf(self, schema: ObjectSchema, leaf: FieldClause, parameters: List[Any]) -> str:
        column = _quote(leaf.field)
        operand = leaf.operand
        if operand.is_unset:
            raise UnsupportedPredicate(f"Clause on {leaf.field} compares against an unset value")

        if operand.is_null:
            if leaf.comparator == Comparator.EQ:
                return f"{column} {SQLConstants.IS_NULL}"
            if leaf.comparator == Comparator.NE:
                return f"{column} {SQLConstants.IS_NOT} NULL"
            raise UnsupportedPredicate(
                ErrorMessages.UNSUPPORTED_NULL_ORDERING.format(op=leaf.comparator.value, field_name=leaf.field)
            )

        parameter = _encode(operand)
        if isinstance(parameter, int) and not ValueLimits.INT64_MIN <= parameter <= ValueLimits.INT64_MAX:
            raise UnsupportedPredicate(
                ErrorMessages.UNSUPPORTED_INTEGER_RANGE.format(
                    backend=self.backend_name, value=parameter, field_name=leaf.field
                )
            )
        parameters.append(parameter)
        if leaf.comparator == Comparator.NE:
            return f"{column} {SQLConstants.IS_NOT} {SQLConstants.PLACEHOLDER}"
        return f"{column} {leaf.comparator.value} {SQLConstants.PLACEHOLDER}"

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _select_columns(self, schema: ObjectSchema) -> str:
        return ", ".join(_quote(name) for name in [schema.primary_key, *schema.field_names])

    def decode_row(self, schema: ObjectSchema, raw: sqlite3.Row) -> HydratedRow:
        """Decode one ``sqlite3.Row`` selected by :meth:`query`."""
        identity = raw[schema.primary_key]
        if type(identity) is not int:
            raise HydrationError(
                ErrorMessages.HYDRATION_FAILED.format(raw=identity, kind=ValueKind.INT64.name, field_name=schema.primary_key),
                field_name=schema.primary_key,
                raw=identity,
            )
        values = {definition.name: _decode(schema, definition, raw[definition.name]) for definition in schema}
        return HydratedRow(identity=Value.integer(identity), revision=Value(), values=values)

    def query(self, schema: ObjectSchema, tree: ClauseTree, abort_on_error: bool = False) -> ResultCursor:
        where, parameters = self.translate(schema, tree)
        sql = (
            f"SELECT {self._select_columns(schema)} FROM {_quote(schema.name)} "
            f"WHERE {where} ORDER BY {_quote(schema.primary_key)}"
        )
        cursor = self._run(sql, parameters)
        return ResultCursor(schema, cursor, self.decode_row, abort_on_error=abort_on_error)

    def count(self, schema: ObjectSchema, tree: ClauseTree) -> int:
        where, parameters = self.translate(schema, tree)
        cursor = self._run(f"SELECT COUNT(*) FROM {_quote(schema.name)} WHERE {where}", parameters)
        try:
            return int(cursor.fetchone()[0])
        finally:
            cursor.close()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def insert(self, schema: ObjectSchema, values: Mapping[str, Value]) -> Tuple[Value, Value]:
        assigned = [(name, value) for name, value in values.items() if not value.is_unset]
        if assigned:
            columns = ", ".join(_quote(name) for name, _ in assigned)
            placeholders = ", ".join(SQLConstants.PLACEHOLDER for _ in assigned)
            sql = f"INSERT INTO {_quote(schema.name)} ({columns}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {_quote(schema.name)} DEFAULT VALUES"
        cursor = self._run(sql, [_encode(value) for _, value in assigned], writing=True)
        try:
            identity = cursor.lastrowid
        finally:
            cursor.close()
        return Value.integer(identity), Value()

    def update(self, schema: ObjectSchema, identity: Value, revision: Value, values: Mapping[str, Value]) -> Value:
        """Update by primary key only; ``revision`` is ignored on this backend."""
        _ = revision  # Mark as intentionally unused
        assigned = [(name, value) for name, value in values.items() if not value.is_unset]
        key = _encode(identity)
        if not assigned:
            if not self._exists(schema, key):
                raise NotFound(ErrorMessages.RECORD_NOT_FOUND.format(schema_name=schema.name, identity=key))
            return Value()

        settings = ", ".join(f"{_quote(name)} = {SQLConstants.PLACEHOLDER}" for name, _ in assigned)
        sql = f"UPDATE {_quote(schema.name)} SET {settings} WHERE {_quote(schema.primary_key)} = {SQLConstants.PLACEHOLDER}"
        cursor = self._run(sql, [*(_encode(value) for _, value in assigned), key], writing=True)
        try:
            changed = cursor.rowcount
        finally:
            cursor.close()
        if changed == 0:
            raise NotFound(ErrorMessages.RECORD_NOT_FOUND.format(schema_name=schema.name, identity=key))
        return Value()

    def delete(self, schema: ObjectSchema, identity: Value, revision: Value) -> None:
        _ = revision  # Mark as intentionally unused
        key = _encode(identity)
        sql = f"DELETE FROM {_quote(schema.name)} WHERE {_quote(schema.primary_key)} = {SQLConstants.PLACEHOLDER}"
        if self.execute(sql, [key]) == 0:
            raise NotFound(ErrorMessages.RECORD_NOT_FOUND.format(schema_name=schema.name, identity=key))

    def _exists(self, schema: ObjectSchema, key: Any) -> bool:
        cursor = self._run(
            f"SELECT 1 FROM {_quote(schema.name)} WHERE {_quote(schema.primary_key)} = {SQLConstants.PLACEHOLDER}",
            [key],
        )
        try:
            return cursor.fetchone() is not None
        finally:
            cursor.close()

    # -------------------------------------------------------------------------
    # Schema
    # -------------------------------------------------------------------------

    def table_definition(self, schema: ObjectSchema) -> str:
        """``CREATE TABLE`` statement for ``schema``."""
        columns = [f"{_quote(schema.primary_key)} {SQLConstants.PRIMARY_KEY_COLUMN}"]
        for definition in schema:
            column_type = SQLConstants.INTEGER if definition.is_foreign_key else _COLUMN_TYPES[definition.kind]
            parts = [_quote(definition.name), column_type.value]
            if not definition.nullable:
                parts.append(SQLConstants.NOT_NULL.value)
            if definition.unique:
                parts.append(SQLConstants.UNIQUE.value)
            if definition.is_foreign_key:
                target = get_schema_registry().get_schema(definition.references)
                parts.append(f"{SQLConstants.REFERENCES} {_quote(target.name)}({_quote(target.primary_key)})")
            columns.append(" ".join(parts))
        return f"{SQLConstants.CREATE_TABLE} {_quote(schema.name)} ({', '.join(columns)})"

    def ensure_schema(self, schema: ObjectSchema) -> None:
        self.execute(self.table_definition(schema))

    # -------------------------------------------------------------------------
    # Transactions and lifetime
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[SQLiteConnection]:
        """
        Run the enclosed statements atomically.

        Commits on normal exit and rolls back on any exception, which is then
        re-raised. Nested use joins the outer transaction.
        """
        with self._lock:
            if self._in_transaction:
                yield self
                return
            self.execute(SQLConstants.BEGIN)
            self._in_transaction = True
            try:
                yield self
                self.execute(SQLConstants.COMMIT)
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute(SQLConstants.ROLLBACK)
                    logger.debug("Rolled back transaction on %s", self.path)
                raise
            finally:
                self._in_transaction = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._conn.close()
            logger.debug("Closed SQLite database %s", self.path)

    def __enter__(self) -> SQLiteConnection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb  # Mark as intentionally unused
        self.close()

    def __repr__(self) -> str:
        return f"<SQLiteConnection {self.path}>"
