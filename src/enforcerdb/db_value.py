# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Backend-neutral tagged values.

A :class:`Value` holds the content of exactly one field or identity. It starts
out ``UNSET``, which is distinct from ``NULL``: unset means nothing was
assigned since construction or the last reset. Once a value holds a kind it
keeps it until :meth:`Value.reset`.

Values know nothing about storage encodings; mapping to and from native
backend representations belongs to the drivers.

:module: db_value
:synopsis: Tagged value container with a deterministic total order
"""

from __future__ import annotations

from enum import IntEnum
from functools import total_ordering
from typing import Any, Dict, Optional, Tuple

from .constants import ErrorMessages, ValueLimits
from .errors import KindMismatch, NotSet, WrongKind


class ValueKind(IntEnum):
    """
    Kinds a value can hold, in sort order.

    :class: ValueKind
    :synopsis: Ordinal of each kind; comparison between kinds uses this order
    """

    UNSET = 0
    NULL = 1
    INT32 = 2
    UINT32 = 3
    INT64 = 4
    UINT64 = 5
    TEXT = 6
    BINARY = 7
    ENUM = 8

    @property
    def is_integer(self) -> bool:
        return self in _INTEGER_RANGES


_INTEGER_RANGES: Dict[ValueKind, Tuple[int, int]] = {
    ValueKind.INT32: (ValueLimits.INT32_MIN, ValueLimits.INT32_MAX),
    ValueKind.UINT32: (0, ValueLimits.UINT32_MAX),
    ValueKind.INT64: (ValueLimits.INT64_MIN, ValueLimits.INT64_MAX),
    ValueKind.UINT64: (0, ValueLimits.UINT64_MAX),
}


def _validate_payload(kind: ValueKind, payload: Any) -> Any:
    """Check ``payload`` against ``kind`` and return the normalized payload."""
    if kind.is_integer:
        # bool is an int subclass but never a valid integer payload
        if type(payload) is bool or not isinstance(payload, int):
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))
        low, high = _INTEGER_RANGES[kind]
        if payload < low or payload > high:
            raise ValueError(ErrorMessages.INTEGER_OUT_OF_RANGE.format(payload=payload, kind=kind.name))
        return int(payload)

    if kind == ValueKind.TEXT:
        if not isinstance(payload, str):
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))
        return payload

    if kind == ValueKind.BINARY:
        if isinstance(payload, (bytearray, memoryview)):
            return bytes(payload)
        if not isinstance(payload, bytes):
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))
        return payload

    if kind == ValueKind.ENUM:
        if (
            not isinstance(payload, tuple)
            or len(payload) != 2
            or type(payload[0]) is bool
            or not isinstance(payload[0], int)
            or not isinstance(payload[1], str)
        ):
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))
        return (int(payload[0]), payload[1])

    if kind == ValueKind.NULL:
        if payload is not None:
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))
        return None

    # UNSET is reached through reset(), never through set()
    raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=kind.name, payload=payload))


@total_ordering
class Value:
    """
    A tagged, backend-neutral field value.

    :class: Value
    :synopsis: Kind plus payload, ordered by kind ordinal then payload
    """

    __slots__ = ("_kind", "_payload")

    def __init__(self) -> None:
        self._kind = ValueKind.UNSET
        self._payload: Any = None

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def of(cls, kind: ValueKind, payload: Any = None) -> Value:
        """Create a value already holding ``payload`` of ``kind``."""
        value = cls()
        value.set(kind, payload)
        return value

    @classmethod
    def null(cls) -> Value:
        return cls.of(ValueKind.NULL)

    @classmethod
    def integer(cls, payload: int, kind: ValueKind = ValueKind.INT64) -> Value:
        return cls.of(kind, payload)

    @classmethod
    def text(cls, payload: str) -> Value:
        return cls.of(ValueKind.TEXT, payload)

    @classmethod
    def binary(cls, payload: bytes) -> Value:
        return cls.of(ValueKind.BINARY, payload)

    @classmethod
    def enum(cls, code: int, text: str) -> Value:
        return cls.of(ValueKind.ENUM, (code, text))

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def is_unset(self) -> bool:
        return self._kind == ValueKind.UNSET

    @property
    def is_null(self) -> bool:
        return self._kind == ValueKind.NULL

    @property
    def payload(self) -> Any:
        """Raw payload regardless of kind; ``None`` for unset and null."""
        return self._payload

    def set(self, kind: ValueKind, payload: Any = None) -> None:
        """
        Assign ``payload`` of ``kind``.

        :param kind: Kind to store
        :param payload: Payload, validated against ``kind``
        :raises KindMismatch: If the value already holds a different kind
        :raises ValueError: If the payload does not fit ``kind``
        """
        kind = ValueKind(kind)
        if self._kind != ValueKind.UNSET and self._kind != kind:
            raise KindMismatch(
                ErrorMessages.KIND_MISMATCH.format(current=self._kind.name, requested=kind.name)
            )
        self._payload = _validate_payload(kind, payload)
        self._kind = kind

    def get(self, kind: ValueKind) -> Any:
        """
        Return the payload, checking that the value holds ``kind``.

        :raises NotSet: If nothing was assigned
        :raises WrongKind: If the value holds another kind
        """
        if self._kind == ValueKind.UNSET:
            raise NotSet(ErrorMessages.VALUE_NOT_SET)
        if self._kind != kind:
            raise WrongKind(ErrorMessages.WRONG_KIND.format(current=self._kind.name, requested=ValueKind(kind).name))
        return self._payload

    def reset(self) -> None:
        self._kind = ValueKind.UNSET
        self._payload = None

    def copy(self) -> Value:
        other = Value()
        other._kind = self._kind
        other._payload = self._payload
        return other

    def assign(self, other: Value) -> None:
        """Overwrite this value with the kind and payload of ``other``."""
        self._kind = other._kind
        self._payload = other._payload

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def _sort_key(self) -> Tuple[int, Any]:
        if self._kind in (ValueKind.UNSET, ValueKind.NULL):
            return (int(self._kind), 0)
        return (int(self._kind), self._payload)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __repr__(self) -> str:
        if self._kind in (ValueKind.UNSET, ValueKind.NULL):
            return f"Value({self._kind.name})"
        return f"Value({self._kind.name}, {self._payload!r})"


def compare(a: Value, b: Value) -> int:
    """
    Compare two values: negative, zero or positive.

    Kinds are ordered by their ordinal first; payloads only break ties between
    values of the same kind.
    """
    if a == b:
        return 0
    return -1 if a < b else 1


def native_of(value: Optional[Value]) -> Any:
    """Payload of ``value`` as a plain Python object; ``None`` for unset/null."""
    if value is None or value.kind in (ValueKind.UNSET, ValueKind.NULL):
        return None
    return value.payload
