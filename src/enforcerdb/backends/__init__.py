# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Backend drivers.

Each driver implements :class:`enforcerdb.db_connection.Connection` on its own.
"""

from .sqlite_backend import SQLiteConnection
from .couchdb_backend import CouchDBConnection

__all__ = ["SQLiteConnection", "CouchDBConnection"]
