# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Connection contract and backend selection.

Every backend implements the :class:`Connection` protocol independently;
there is no shared base class. The capability flags let the engine adapt to
the backend without knowing which one it talks to:

- ``identity_kind``: kind of primary keys the store assigns
- ``supports_revisions``: whether records carry optimistic-concurrency tokens
- ``supports_transactions``: whether :meth:`Connection.transaction` works

A connection is passed explicitly to every engine call; nothing here keeps a
process-wide connection. One connection must not be used from several threads
at once.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ContextManager, Dict, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable

from .constants import BackendName, ErrorMessages
from .db_clause import ClauseTree
from .db_configuration import DatabaseConfiguration
from .db_result import ResultCursor
from .db_schema import ObjectSchema
from .db_value import Value, ValueKind
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class Connection(Protocol):
    """Backend driver bound to one physical store."""

    backend_name: str
    identity_kind: ValueKind
    supports_revisions: bool
    supports_transactions: bool

    def execute(self, statement: Any) -> int:
        """Run a backend-native statement; return the number of rows affected."""
        ...

    def translate(self, schema: ObjectSchema, tree: ClauseTree) -> Any:
        """Translate a clause tree into the backend's native filter form."""
        ...

    def query(self, schema: ObjectSchema, tree: ClauseTree, abort_on_error: bool = False) -> ResultCursor:
        ...

    def count(self, schema: ObjectSchema, tree: ClauseTree) -> int:
        ...

    def insert(self, schema: ObjectSchema, values: Mapping[str, Value]) -> Tuple[Value, Value]:
        """Store a new record; return its identity and initial revision."""
        ...

    def update(self, schema: ObjectSchema, identity: Value, revision: Value, values: Mapping[str, Value]) -> Value:
        """Overwrite a record; return the new revision."""
        ...

    def delete(self, schema: ObjectSchema, identity: Value, revision: Value) -> None:
        ...

    def ensure_schema(self, schema: ObjectSchema) -> None:
        """Create the table/index backing ``schema`` when it does not exist."""
        ...

    def transaction(self) -> ContextManager[Any]:
        ...

    def close(self) -> None:
        ...


ConnectionOpener = Callable[[DatabaseConfiguration], Connection]

_backends: Dict[str, ConnectionOpener] = {}


def register_backend(name: str, opener: ConnectionOpener) -> None:
    """Make ``opener`` available under the ``backend`` configuration value ``name``."""
    _backends[name] = opener


def registered_backends() -> Dict[str, ConnectionOpener]:
    _ensure_builtin_backends()
    return dict(_backends)


def _ensure_builtin_backends() -> None:
    # Deferred so that importing the contract does not import httpx/sqlite3
    if BackendName.SQLITE not in _backends:
        from .backends.sqlite_backend import SQLiteConnection
        register_backend(BackendName.SQLITE, SQLiteConnection.open)
    if BackendName.COUCHDB not in _backends:
        from .backends.couchdb_backend import CouchDBConnection
        register_backend(BackendName.COUCHDB, CouchDBConnection.open)


def connect(
    configuration: Union[DatabaseConfiguration, Mapping[str, Any]],
    **options: Any,
) -> Connection:
    """
    Open a connection to the store described by ``configuration``.

    Either a connected :class:`Connection` is returned or an error is raised
    with nothing left open.

    :param configuration: Validated model or flat name/value mapping
    :param options: Driver-specific keyword arguments (e.g. an httpx transport)
    :raises ConfigurationError: If the configuration is invalid
    :raises ConnectionError: If the store cannot be reached
    """
    if not isinstance(configuration, DatabaseConfiguration):
        configuration = DatabaseConfiguration.from_mapping(configuration)

    _ensure_builtin_backends()
    opener: Optional[ConnectionOpener] = _backends.get(configuration.backend)
    if opener is None:
        raise ConfigurationError(
            ErrorMessages.UNKNOWN_BACKEND.format(backend=configuration.backend, registered=sorted(_backends))
        )

    logger.debug("Connecting to %s backend at %s", configuration.backend.value, configuration.address)
    if options:
        return opener(configuration, **options)  # type: ignore[call-arg]
    return opener(configuration)
