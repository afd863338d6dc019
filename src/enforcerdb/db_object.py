# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Generic CRUD engine.

:class:`ObjectEngine` performs create/read/update/delete/count for any
:class:`~enforcerdb.db_schema.ObjectSchema` over any connection. It owns the
checks that do not depend on the backend (not-null fields, value kinds, clause
trees built for the right schema) and leaves storage encoding, constraint
enforcement and revision checking to the driver.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from .constants import ErrorMessages
from .db_clause import ClauseTree, Comparator, FieldClause
from .db_connection import Connection
from .db_result import ResultCursor
from .db_schema import ObjectSchema, identity_value
from .db_value import Value, ValueKind
from .errors import ConstraintViolation

logger = logging.getLogger(__name__)


class ObjectEngine:
    """
    CRUD operations for one schema on one connection.

    :class: ObjectEngine
    :synopsis: Backend-neutral create/read/update/delete/count
    """

    def __init__(self, schema: ObjectSchema, connection: Connection) -> None:
        self.schema = schema
        self.connection = connection

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _coerce_values(self, values: Mapping[str, Any]) -> Dict[str, Value]:
        """Convert natives to :class:`Value` and reject fields the schema lacks."""
        coerced: Dict[str, Value] = {}
        for name, native in values.items():
            definition = self.schema.field(name)
            if isinstance(native, Value) and native.is_unset:
                coerced[name] = native.copy()
            else:
                coerced[name] = definition.make_value(native)
        return coerced

    def _check_kinds(self, values: Mapping[str, Value]) -> None:
        """Foreign keys must hold the connection's identity kind."""
        for name in self.schema.foreign_keys:
            value = values.get(name)
            if value is None or value.kind in (ValueKind.UNSET, ValueKind.NULL):
                continue
            if value.kind != self.connection.identity_kind:
                raise ValueError(
                    ErrorMessages.INVALID_PAYLOAD.format(kind=self.connection.identity_kind.name, payload=value)
                )

    def _check_not_null(self, values: Mapping[str, Value], creating: bool) -> None:
        """
        Non-nullable fields must be assigned on create and never set to NULL.

        On update an unset field keeps its stored value and is not checked.
        """
        for definition in self.schema:
            if definition.nullable:
                continue
            value = values.get(definition.name)
            missing = value is None or value.is_unset
            if (value is not None and value.is_null) or (creating and missing):
                raise ConstraintViolation(
                    ErrorMessages.NOT_NULL_VIOLATION.format(field_name=definition.name, schema_name=self.schema.name)
                )

    def _check_tree(self, tree: ClauseTree) -> None:
        if tree.schema_name != self.schema.name:
            raise ValueError(
                ErrorMessages.SCHEMA_MISMATCH.format(tree_schema=tree.schema_name, schema_name=self.schema.name)
            )

    def _identity(self, identity: Any) -> Value:
        value = identity_value(identity)
        if value.kind != self.connection.identity_kind:
            raise ValueError(
                ErrorMessages.INVALID_PAYLOAD.format(kind=self.connection.identity_kind.name, payload=identity)
            )
        return value

    def _revision(self, identity: Value, revision: Any) -> Value:
        if not self.connection.supports_revisions:
            return Value()
        if isinstance(revision, Value):
            value = revision.copy()
        elif isinstance(revision, str):
            value = Value.text(revision)
        else:
            value = Value()
        if value.kind != ValueKind.TEXT:
            raise ValueError(
                ErrorMessages.REVISION_REQUIRED.format(schema_name=self.schema.name, identity=identity.payload)
            )
        return value

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create(self, values: Mapping[str, Any]) -> Tuple[Value, Value]:
        """
        Store a new record.

        Args:
            values: Field name -> :class:`Value` or Python native

        Returns:
            ``(identity, revision)``; the revision is unset on backends
            without revision support

        Raises:
            ConstraintViolation: If a non-nullable field is missing or a store
                constraint fails
            ConnectionError: If the store cannot be reached
        """
        coerced = self._coerce_values(values)
        self._check_not_null(coerced, creating=True)
        self._check_kinds(coerced)
        identity, revision = self.connection.insert(self.schema, coerced)
        logger.debug("Created %s %r", self.schema.name, identity)
        return identity, revision

    def get_by_id(self, identity: Any) -> ResultCursor:
        """Cursor over the record with ``identity``; empty when there is none."""
        tree = ClauseTree(self.schema.name, FieldClause(self.schema.primary_key, Comparator.EQ, self._identity(identity)))
        return self.connection.query(self.schema, tree)

    def get_by_clause(self, tree: ClauseTree, abort_on_error: bool = False) -> ResultCursor:
        self._check_tree(tree)
        return self.connection.query(self.schema, tree, abort_on_error=abort_on_error)

    def list(self, abort_on_error: bool = False) -> ResultCursor:
        """Cursor over every record of the schema."""
        return self.connection.query(self.schema, ClauseTree(self.schema.name), abort_on_error=abort_on_error)

    def update(self, identity: Any, values: Mapping[str, Any], revision: Any = None) -> Value:
        """
        Overwrite the assigned ``values`` of the record ``identity``.

        Backends with revisions require the revision the caller last read and
        raise :class:`RevisionConflict` when it is stale. The engine never
        retries.

        Returns:
            The new revision (unset without revision support)
        """
        key = self._identity(identity)
        rev = self._revision(key, revision)
        coerced = self._coerce_values(values)
        self._check_not_null(coerced, creating=False)
        self._check_kinds(coerced)
        new_revision = self.connection.update(self.schema, key, rev, coerced)
        logger.debug("Updated %s %r", self.schema.name, key)
        return new_revision

    def delete(self, identity: Any, revision: Any = None) -> None:
        key = self._identity(identity)
        rev = self._revision(key, revision)
        self.connection.delete(self.schema, key, rev)
        logger.debug("Deleted %s %r", self.schema.name, key)

    def count(self, tree: Optional[ClauseTree] = None) -> int:
        """Number of matching records, without hydrating any of them."""
        if tree is None:
            tree = ClauseTree(self.schema.name)
        self._check_tree(tree)
        return self.connection.count(self.schema, tree)

    def ensure_schema(self) -> None:
        self.connection.ensure_schema(self.schema)

    def __repr__(self) -> str:
        return f"<ObjectEngine({self.schema.name}) on {self.connection!r}>"
