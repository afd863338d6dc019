# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database schema version marker.

The store holds a single ``database_version`` record. The daemon reads it at
startup and refuses to run against a store written for another version.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..constants import ErrorMessages
from ..db_clause import ClauseBuilder
from ..db_connection import Connection
from ..db_entity import Entity, EntityList, db_entity, entity_field
from ..db_value import ValueKind
from ..errors import DatabaseVersionMismatch

logger = logging.getLogger(__name__)


@db_entity("database_version")
class DatabaseVersion(Entity):
    version = entity_field(ValueKind.UINT32, not_null=True)

    @classmethod
    def version_clause(cls, builder: ClauseBuilder, version: int) -> ClauseBuilder:
        return builder.add_equals("version", version)


class DatabaseVersionList(EntityList[DatabaseVersion]):
    entity_class = DatabaseVersion


def read_database_version(connection: Connection) -> Optional[int]:
    """
    Version stored in the database, or ``None`` when no marker exists.

    When several markers exist (which should not happen) the highest wins.
    """
    with DatabaseVersionList(connection).get() as versions:
        found = [entry.version for entry in versions if entry.version is not None]
    if len(found) > 1:
        logger.warning("Found %d database version records: %s", len(found), found)
    return max(found) if found else None


def verify_database_version(connection: Connection, expected: int) -> int:
    """
    Check the stored version against ``expected``.

    :return: The stored version
    :raises DatabaseVersionMismatch: If it differs or is missing
    """
    actual = read_database_version(connection)
    if actual != expected:
        raise DatabaseVersionMismatch(
            ErrorMessages.DATABASE_VERSION_MISMATCH.format(actual=actual, expected=expected),
            expected=expected,
            actual=actual,
        )
    logger.debug("Database version %d verified", actual)
    return actual
