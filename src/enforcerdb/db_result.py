# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Result cursors.

A :class:`ResultCursor` is a lazy, forward-only, non-restartable stream of
rows produced by one query. It owns a backend resource (an open SQLite
cursor, a CouchDB paging position) that is released as soon as the stream is
exhausted or closed; use it as a context manager to release it on every exit
path.

Rows stay raw until asked for: :meth:`ResultRow.hydrate` decodes one row into
:class:`~enforcerdb.db_value.Value` objects through the driver's decoder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from .constants import ErrorMessages
from .db_schema import ObjectSchema
from .db_value import Value
from .errors import CursorError, HydrationError

logger = logging.getLogger(__name__)


@dataclass
class HydratedRow:
    """Decoded row: identity, revision and one value per schema field."""
    identity: Value
    revision: Value
    values: Dict[str, Value] = field(default_factory=dict)


RowDecoder = Callable[[ObjectSchema, Any], HydratedRow]


class ResultRow:
    """One raw backend row plus the decoder that hydrates it on demand."""

    __slots__ = ("schema", "raw", "_decoder", "_hydrated")

    def __init__(self, schema: ObjectSchema, raw: Any, decoder: RowDecoder) -> None:
        self.schema = schema
        self.raw = raw
        self._decoder = decoder
        self._hydrated: Optional[HydratedRow] = None

    def hydrate(self) -> HydratedRow:
        """
        Decode the row.

        :raises HydrationError: If a stored value does not fit its declared kind
        """
        if self._hydrated is None:
            self._hydrated = self._decoder(self.schema, self.raw)
        return self._hydrated

    def __repr__(self) -> str:
        return f"<ResultRow({self.schema.name}): {self.raw!r}>"


class ResultCursor:
    """
    Forward-only stream of :class:`ResultRow` objects.

    ``begin()`` yields the first row (or ``None`` when empty) and is only valid
    before the cursor has advanced. ``next()`` yields the following row or
    ``None`` once exhausted, at which point the backend resource is released.
    """

    def __init__(
        self,
        schema: ObjectSchema,
        rows: Iterator[Any],
        decoder: RowDecoder,
        release: Optional[Callable[[], None]] = None,
        abort_on_error: bool = False,
    ) -> None:
        self.schema = schema
        self.abort_on_error = abort_on_error
        self.errors: List[HydrationError] = []
        self._rows = rows
        self._decoder = decoder
        self._release = release
        self._current: Optional[ResultRow] = None
        self._position = 0
        self._closed = False

    @classmethod
    def empty(cls, schema: ObjectSchema, decoder: RowDecoder) -> ResultCursor:
        return cls(schema, iter(()), decoder)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current(self) -> Optional[ResultRow]:
        return self._current

    @property
    def position(self) -> int:
        """Number of rows read so far."""
        return self._position

    # -------------------------------------------------------------------------
    # Raw row access
    # -------------------------------------------------------------------------

    def begin(self) -> Optional[ResultRow]:
        if self._closed and self._position == 0:
            raise CursorError(ErrorMessages.CURSOR_CLOSED)
        if self._position != 0:
            raise CursorError(ErrorMessages.CURSOR_ADVANCED)
        return self.next()

    def next(self) -> Optional[ResultRow]:
        if self._closed:
            return None
        try:
            raw = next(self._rows)
        except StopIteration:
            self.close()
            return None
        except BaseException:
            self.close()
            raise
        self._position += 1
        self._current = ResultRow(self.schema, raw, self._decoder)
        return self._current

    def __iter__(self) -> Iterator[ResultRow]:
        while True:
            row = self.next()
            if row is None:
                return
            yield row

    # -------------------------------------------------------------------------
    # Hydrated access
    # -------------------------------------------------------------------------

    def begin_hydrated(self) -> Optional[HydratedRow]:
        """Decode the first row; same rules as :meth:`begin` and :meth:`next_hydrated`."""
        row = self.begin()
        if row is None:
            return None
        return self._hydrate(row)

    def next_hydrated(self) -> Optional[HydratedRow]:
        """
        Advance and decode the next row.

        A row that fails to hydrate raises :class:`HydrationError`; the cursor
        stays usable unless ``abort_on_error`` is set, in which case it closes.
        """
        row = self.next()
        if row is None:
            return None
        return self._hydrate(row)

    def hydrated(self) -> Iterator[HydratedRow]:
        """
        Iterate decoded rows.

        Rows that fail to hydrate are logged, collected in :attr:`errors` and
        skipped, unless ``abort_on_error`` is set.
        """
        for row in self:
            try:
                yield self._hydrate(row)
            except HydrationError:
                if self.abort_on_error:
                    raise
                continue

    def _hydrate(self, row: ResultRow) -> HydratedRow:
        try:
            return row.hydrate()
        except HydrationError as exc:
            if self.abort_on_error:
                logger.error("Aborting %s cursor at row %d: %s", self.schema.name, self._position, exc)
                self.close()
            else:
                logger.warning("Skipping %s row %d: %s", self.schema.name, self._position, exc)
                self.errors.append(exc)
            raise

    # -------------------------------------------------------------------------
    # Resource handling
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._current = None
        try:
            close_rows = getattr(self._rows, "close", None)
            if close_rows is not None:
                close_rows()
        finally:
            if self._release is not None:
                release, self._release = self._release, None
                release()

    def __enter__(self) -> ResultCursor:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb  # Mark as intentionally unused
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"at {self._position}"
        return f"<ResultCursor({self.schema.name}) {state}>"
