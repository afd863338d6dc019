# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Bidirectional enum <-> text tables.

Each mapping is built once, when the entity module defining the enum is
imported, and never mutated afterwards.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Type

from .constants import ErrorMessages
from .db_value import Value, ValueKind
from .errors import InvalidEnumText

# Sentinel object to distinguish missing lookups from falsy members
_MISSING = object()


class EnumMapping:
    """
    Immutable code/text lookup for one ``IntEnum``.

    :class: EnumMapping
    :synopsis: O(1) conversion between enum members, codes and backend text
    """

    __slots__ = ("_enum_type", "_by_text", "_by_code", "_text_by_code")

    def __init__(self, enum_type: Type[IntEnum], texts: Optional[Mapping[IntEnum, str]] = None) -> None:
        """
        Build the lookup tables.

        :param enum_type: The enum whose members are mapped
        :param texts: Backend-visible text per member; defaults to the member name
        """
        by_text: Dict[str, IntEnum] = {}
        by_code: Dict[int, IntEnum] = {}
        text_by_code: Dict[int, str] = {}
        for member in enum_type:
            text = texts[member] if texts is not None else member.name
            by_text[text] = member
            by_code[int(member)] = member
            text_by_code[int(member)] = text

        object.__setattr__(self, "_enum_type", enum_type)
        object.__setattr__(self, "_by_text", MappingProxyType(by_text))
        object.__setattr__(self, "_by_code", MappingProxyType(by_code))
        object.__setattr__(self, "_text_by_code", MappingProxyType(text_by_code))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def enum_type(self) -> Type[IntEnum]:
        return self._enum_type

    @property
    def texts(self) -> Mapping[int, str]:
        return self._text_by_code

    def code_of(self, text: str) -> int:
        member = self._by_text.get(text, _MISSING)
        if member is _MISSING:
            raise InvalidEnumText(
                ErrorMessages.INVALID_ENUM_TEXT.format(
                    enum=self._enum_type.__name__, text=text, valid=sorted(self._by_text)
                ),
                text=text,
            )
        return int(member)

    def text_of(self, code: int) -> str:
        text = self._text_by_code.get(int(code), _MISSING)
        if text is _MISSING:
            raise ValueError(ErrorMessages.INVALID_ENUM_CODE.format(enum=self._enum_type.__name__, code=code))
        return text

    def member_of(self, code_or_text: Any) -> IntEnum:
        """Resolve a member from itself, its integer code or its backend text."""
        if isinstance(code_or_text, self._enum_type):
            return code_or_text
        if isinstance(code_or_text, str):
            return self._by_code[self.code_of(code_or_text)]
        if type(code_or_text) is not bool and isinstance(code_or_text, int):
            member = self._by_code.get(code_or_text, _MISSING)
            if member is not _MISSING:
                return member
        raise ValueError(ErrorMessages.INVALID_ENUM_CODE.format(enum=self._enum_type.__name__, code=code_or_text))

    def value_of(self, code_or_text: Any) -> Value:
        """Build an ENUM :class:`Value` carrying both code and text."""
        member = self.member_of(code_or_text)
        return Value.of(ValueKind.ENUM, (int(member), self._text_by_code[int(member)]))

    def __contains__(self, item: Any) -> bool:
        if isinstance(item, str):
            return item in self._by_text
        return item in self._by_code

    def __repr__(self) -> str:
        return f"EnumMapping({self._enum_type.__name__}, {dict(self._text_by_code)!r})"
