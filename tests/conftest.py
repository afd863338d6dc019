# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and shared fixtures for enforcerdb tests.

The ``connection`` fixture is parametrised over both backends so that every
CRUD scenario runs against SQLite (a temporary file) and CouchDB (an
in-process stand-in reached through ``httpx.MockTransport``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from enforcerdb import (
    DatabaseVersion,
    FieldDefinition,
    HsmKey,
    ObjectSchema,
    Policy,
    ValueKind,
)
from enforcerdb.backends import CouchDBConnection, SQLiteConnection
from enforcerdb.db_enum import EnumMapping
from enforcerdb.models import HsmKeyBackup, HsmKeyRole
from enforcerdb.models.hsm_key import HSM_KEY_BACKUP_TEXTS

from ._couchdb_stub import COUCH_URL, FakeCouchDB

MODEL_SCHEMAS = (Policy.schema(), HsmKey.schema(), DatabaseVersion.schema())

BACKENDS = ("sqlite", "couchdb")


@pytest.fixture(scope="function")
def sqlite_path(tmp_path: Path) -> str:
    """Path of a fresh SQLite database file."""
    return str(tmp_path / "enforcer.db")


@pytest.fixture(scope="function")
def couch_server() -> FakeCouchDB:
    """Fresh in-process CouchDB server."""
    return FakeCouchDB()


@pytest.fixture(scope="function")
def sqlite_connection(sqlite_path: str) -> Generator[SQLiteConnection, None, None]:
    conn = SQLiteConnection(sqlite_path)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def couchdb_connection(couch_server: FakeCouchDB) -> Generator[CouchDBConnection, None, None]:
    conn = CouchDBConnection(COUCH_URL, transport=couch_server.transport)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function", params=BACKENDS)
def backend(request, sqlite_path: str, couch_server: FakeCouchDB):
    """Unprepared connection to each backend in turn."""
    if request.param == "sqlite":
        conn = SQLiteConnection(sqlite_path)
    else:
        conn = CouchDBConnection(COUCH_URL, transport=couch_server.transport)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def connection(backend):
    """Connection to each backend with the enforcer tables/indexes in place."""
    for schema in MODEL_SCHEMAS:
        backend.ensure_schema(schema)
    return backend


@pytest.fixture(scope="session")
def sample_schema() -> ObjectSchema:
    """Stand-alone schema covering every field kind."""
    return ObjectSchema(
        "sample",
        (
            FieldDefinition("name", ValueKind.TEXT, nullable=False, unique=True),
            FieldDefinition("small", ValueKind.INT32),
            FieldDefinition("count", ValueKind.UINT32),
            FieldDefinition("big", ValueKind.INT64),
            FieldDefinition("blob", ValueKind.BINARY),
            FieldDefinition("state", ValueKind.ENUM, enum=EnumMapping(HsmKeyBackup, HSM_KEY_BACKUP_TEXTS)),
            FieldDefinition("role", ValueKind.ENUM, enum=EnumMapping(HsmKeyRole)),
        ),
    )


@pytest.fixture(scope="function")
def sample_connection(backend, sample_schema: ObjectSchema):
    """Connection to each backend with the sample schema in place."""
    backend.ensure_schema(sample_schema)
    return backend


@pytest.fixture(scope="function")
def policy(connection) -> Policy:
    """A stored policy."""
    entity = Policy(connection)
    entity.name = "default"
    entity.description = "Default policy"
    entity.create()
    return entity


@pytest.fixture(scope="function")
def make_key(connection, policy: Policy):
    """Factory storing HSM keys owned by the ``policy`` fixture."""

    def factory(locator: str, **fields) -> HsmKey:
        key = HsmKey(connection)
        key.policy_id = fields.pop("policy_id", policy)
        key.locator = locator
        key.bits = fields.pop("bits", 2048)
        key.algorithm = fields.pop("algorithm", 8)
        key.role = fields.pop("role", HsmKeyRole.ZSK)
        key.backup = fields.pop("backup", HsmKeyBackup.NO_BACKUP)
        for name, value in fields.items():
            setattr(key, name, value)
        key.create()
        return key

    return factory
