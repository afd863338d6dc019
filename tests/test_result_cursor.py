# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for forward-only result cursors.

Tests cover:
- begin/next semantics and exhaustion
- Release of the backend resource
- Lazy hydration and error handling modes
"""

from __future__ import annotations

from typing import Any, Iterator, List

import pytest

from enforcerdb import CursorError, HydratedRow, HydrationError, Policy, ResultCursor, Value


def _decode(schema, raw: Any) -> HydratedRow:
    if not isinstance(raw, str):
        raise HydrationError(f"bad row {raw!r}", field_name="name", raw=raw)
    return HydratedRow(identity=Value.integer(len(raw)), revision=Value(), values={"name": Value.text(raw)})


class _TrackedRows:
    """Row source recording how far it was read and whether it was closed."""

    def __init__(self, rows: List[Any]) -> None:
        self._rows: Iterator[Any] = iter(rows)
        self.read = 0
        self.closed = False

    def __iter__(self) -> _TrackedRows:
        return self

    def __next__(self) -> Any:
        row = next(self._rows)
        self.read += 1
        return row

    def close(self) -> None:
        self.closed = True


def _cursor(rows: List[Any], **kwargs: Any) -> ResultCursor:
    return ResultCursor(Policy.schema(), _TrackedRows(rows), _decode, **kwargs)


class TestCursorTraversal:
    """Test begin/next."""

    def test_begin_then_next_until_none(self):
        cursor = _cursor(["a", "bb"])
        assert cursor.begin().raw == "a"
        assert cursor.next().raw == "bb"
        assert cursor.next() is None
        assert cursor.next() is None
        assert cursor.closed

    def test_begin_on_empty(self):
        cursor = _cursor([])
        assert cursor.begin() is None
        with pytest.raises(CursorError):
            cursor.begin()

    def test_begin_after_advance_raises(self):
        cursor = _cursor(["a", "b"])
        cursor.next()
        with pytest.raises(CursorError):
            cursor.begin()

    def test_rows_read_lazily(self):
        rows = _TrackedRows(["a", "b", "c"])
        cursor = ResultCursor(Policy.schema(), rows, _decode)
        assert rows.read == 0
        cursor.begin()
        assert rows.read == 1
        assert cursor.position == 1

    def test_iteration_is_not_restartable(self):
        cursor = _cursor(["a", "b"])
        assert [row.raw for row in cursor] == ["a", "b"]
        assert list(cursor) == []


class TestCursorRelease:
    """Test that the backend resource is released."""

    def test_released_on_exhaustion(self):
        released = []
        rows = _TrackedRows(["a"])
        cursor = ResultCursor(Policy.schema(), rows, _decode, release=lambda: released.append(True))
        list(cursor)
        assert rows.closed
        assert released == [True]

    def test_released_once_on_close(self):
        released = []
        cursor = _cursor(["a", "b"], release=lambda: released.append(True))
        with cursor:
            cursor.begin()
        cursor.close()
        assert released == [True]
        assert cursor.next() is None
        assert cursor.current is None

    def test_source_error_closes_cursor(self):
        def failing() -> Iterator[str]:
            yield "a"
            raise RuntimeError("connection lost")

        cursor = ResultCursor(Policy.schema(), failing(), _decode)
        cursor.begin()
        with pytest.raises(RuntimeError):
            cursor.next()
        assert cursor.closed


class TestHydration:
    """Test decoding rows and hydration failures."""

    def test_hydration_is_cached(self):
        cursor = _cursor(["abc"])
        row = cursor.begin()
        assert row.hydrate() is row.hydrate()
        assert row.hydrate().values["name"] == Value.text("abc")

    def test_next_hydrated_raises_but_cursor_continues(self):
        cursor = _cursor(["a", 7, "c"])
        assert cursor.begin_hydrated().values["name"] == Value.text("a")
        with pytest.raises(HydrationError):
            cursor.next_hydrated()
        assert not cursor.closed
        assert cursor.next_hydrated().values["name"] == Value.text("c")
        assert len(cursor.errors) == 1

    def test_hydrated_skips_bad_rows(self):
        cursor = _cursor(["a", 7, None, "d"])
        names = [row.values["name"].payload for row in cursor.hydrated()]
        assert names == ["a", "d"]
        assert [error.raw for error in cursor.errors] == [7, None]

    def test_abort_on_error_closes(self):
        rows = _TrackedRows(["a", 7, "c"])
        cursor = ResultCursor(Policy.schema(), rows, _decode, abort_on_error=True)
        with pytest.raises(HydrationError):
            list(cursor.hydrated())
        assert cursor.closed
        assert rows.closed
        assert rows.read == 2


class TestBackendCursors:
    """Test cursors returned by each backend."""

    def test_query_cursor_streams_and_closes(self, connection):
        for name in ("a", "b", "c"):
            policy = Policy(connection)
            policy.name = name
            policy.create()
        tree = Policy.clause().build()
        with connection.query(Policy.schema(), tree) as cursor:
            first = cursor.begin()
            remaining = list(cursor)
        names = {row.hydrate().values["name"].payload for row in [first, *remaining]}
        assert names == {"a", "b", "c"}
        assert cursor.closed
