# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the SQLite driver.

Tests cover:
- Table definitions
- Transactions: commit, rollback, nesting
- Constraint and driver errors
- Hydration of rows that do not fit their declared kinds
"""

from __future__ import annotations

import pytest

from enforcerdb import (
    BackendError,
    ConstraintViolation,
    FieldDefinition,
    HsmKey,
    HsmKeyList,
    HydrationError,
    ObjectEngine,
    ObjectSchema,
    Policy,
    PolicyList,
    UnsupportedPredicate,
    ValueKind,
    get_schema_registry,
)
from enforcerdb.constants import ValueLimits

from .conftest import MODEL_SCHEMAS


@pytest.fixture
def prepared(sqlite_connection):
    for schema in MODEL_SCHEMAS:
        sqlite_connection.ensure_schema(schema)
    return sqlite_connection


def _policy(conn, name: str) -> Policy:
    policy = Policy(conn)
    policy.name = name
    policy.create()
    return policy


class TestSchemaDefinition:
    """Test generated DDL."""

    def test_table_definition(self, sqlite_connection):
        ddl = sqlite_connection.table_definition(HsmKey.schema())
        assert ddl.startswith('CREATE TABLE IF NOT EXISTS "hsm_key" ("id" INTEGER PRIMARY KEY AUTOINCREMENT')
        assert '"policy_id" INTEGER NOT NULL REFERENCES "policy"("id")' in ddl
        assert '"locator" TEXT NOT NULL UNIQUE' in ddl
        assert '"role" INTEGER' in ddl

    def test_references_target_primary_key(self, prepared):
        zone = ObjectSchema("zone", (FieldDefinition("apex", ValueKind.TEXT),), primary_key="zone_no")
        record = ObjectSchema("zone_record", (FieldDefinition("zone_id", None, references="zone"),))
        get_schema_registry().register(zone)
        get_schema_registry().register(record)
        assert 'REFERENCES "zone"("zone_no")' in prepared.table_definition(record)

        prepared.ensure_schema(zone)
        prepared.ensure_schema(record)
        identity, _ = ObjectEngine(zone, prepared).create({"apex": "example.org"})
        ObjectEngine(record, prepared).create({"zone_id": identity.payload})
        with pytest.raises(ConstraintViolation):
            ObjectEngine(record, prepared).create({"zone_id": identity.payload + 1})

    def test_ensure_schema_is_idempotent(self, prepared):
        for schema in MODEL_SCHEMAS:
            prepared.ensure_schema(schema)
        assert PolicyList(prepared).count() == 0

    def test_identities_are_integers(self, prepared):
        policy = _policy(prepared, "default")
        assert isinstance(policy.id, int)
        assert policy.rev is None
        assert policy.revision.is_unset


class TestTransactions:
    """Test BEGIN/COMMIT/ROLLBACK handling."""

    def test_commit(self, prepared):
        with prepared.transaction():
            _policy(prepared, "a")
            _policy(prepared, "b")
        assert PolicyList(prepared).count() == 2

    def test_rollback_on_error(self, prepared):
        with pytest.raises(RuntimeError):
            with prepared.transaction():
                _policy(prepared, "a")
                raise RuntimeError("abort")
        assert PolicyList(prepared).count() == 0

    def test_rollback_on_constraint_violation(self, prepared):
        with pytest.raises(ConstraintViolation):
            with prepared.transaction():
                _policy(prepared, "a")
                _policy(prepared, "a")
        assert PolicyList(prepared).count() == 0

    def test_nested_joins_outer(self, prepared):
        with pytest.raises(RuntimeError):
            with prepared.transaction():
                with prepared.transaction():
                    _policy(prepared, "inner")
                raise RuntimeError("abort outer")
        assert PolicyList(prepared).count() == 0

    def test_usable_after_rollback(self, prepared):
        with pytest.raises(RuntimeError):
            with prepared.transaction():
                raise RuntimeError("abort")
        with prepared.transaction():
            _policy(prepared, "after")
        assert PolicyList(prepared).count() == 1


class TestDriverErrors:
    """Test error mapping."""

    def test_foreign_key_violation(self, prepared):
        key = HsmKey(prepared)
        key.policy_id = 999
        key.locator = "orphan"
        with pytest.raises(ConstraintViolation):
            key.create()

    def test_delete_referenced_policy_violates(self, prepared):
        policy = _policy(prepared, "owner")
        key = HsmKey(prepared)
        key.policy_id = policy
        key.locator = "child"
        key.create()
        with pytest.raises(ConstraintViolation):
            policy.delete()

    def test_uint64_above_signed_range(self, prepared):
        schema = ObjectSchema("serials", (FieldDefinition("serial", ValueKind.UINT64),))
        prepared.ensure_schema(schema)
        engine = ObjectEngine(schema, prepared)
        engine.create({"serial": ValueLimits.INT64_MAX})
        with pytest.raises(ConstraintViolation):
            engine.create({"serial": ValueLimits.UINT64_MAX})
        assert engine.count() == 1

    def test_uint64_above_signed_range_in_queries(self, prepared):
        schema = ObjectSchema("serials", (FieldDefinition("serial", ValueKind.UINT64),))
        prepared.ensure_schema(schema)
        engine = ObjectEngine(schema, prepared)
        engine.create({"serial": 1})
        tree = schema.clause().add_comparison("serial", ">", ValueLimits.INT64_MAX + 1).build()
        with pytest.raises(UnsupportedPredicate):
            engine.get_by_clause(tree)
        with pytest.raises(UnsupportedPredicate):
            engine.count(tree)
        in_range = schema.clause().add_comparison("serial", "<", ValueLimits.INT64_MAX).build()
        assert engine.count(in_range) == 1

    def test_uint64_above_signed_range_on_update(self, prepared):
        schema = ObjectSchema("serials", (FieldDefinition("serial", ValueKind.UINT64),))
        prepared.ensure_schema(schema)
        engine = ObjectEngine(schema, prepared)
        identity, revision = engine.create({"serial": 1})
        with pytest.raises(ConstraintViolation):
            engine.update(identity, {"serial": ValueLimits.UINT64_MAX}, revision)

    def test_malformed_sql_is_backend_error(self, prepared):
        with pytest.raises(BackendError):
            prepared.execute("SELEC nothing")

    def test_execute_returns_rowcount(self, prepared):
        _policy(prepared, "a")
        _policy(prepared, "b")
        assert prepared.execute('UPDATE "policy" SET "description" = ?', ["x"]) == 2


class TestHydration:
    """Test rows whose stored values do not fit the schema."""

    def test_text_in_integer_column(self, prepared):
        policy = _policy(prepared, "p")
        for locator in ("good-1", "bad", "good-2"):
            key = HsmKey(prepared)
            key.policy_id = policy
            key.locator = locator
            key.bits = 2048
            key.create()
        prepared.execute('UPDATE "hsm_key" SET "bits" = ? WHERE "locator" = ?', ["many", "bad"])

        with HsmKeyList(prepared).get() as keys:
            assert [key.locator for key in keys] == ["good-1", "good-2"]

        with ObjectEngine(HsmKey.schema(), prepared).list() as cursor:
            rows = list(cursor.hydrated())
        assert len(rows) == 2
        assert [error.field_name for error in cursor.errors] == ["bits"]

        with HsmKeyList(prepared).get(abort_on_error=True) as aborting:
            with pytest.raises(HydrationError) as exc_info:
                aborting.all()
        assert exc_info.value.field_name == "bits"
        assert exc_info.value.raw == "many"

    def test_unknown_enum_code(self, prepared):
        policy = _policy(prepared, "p")
        key = HsmKey(prepared)
        key.policy_id = policy
        key.locator = "k"
        key.create()
        prepared.execute('UPDATE "hsm_key" SET "role" = 42')
        with pytest.raises(HydrationError):
            HsmKey(prepared).get_by_id(key.id)
