# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Backend-neutral clause trees.

Leaves compare one field against a :class:`Value`; interior nodes combine
children with AND, OR or NOT. Trees are immutable once built and may be
reused for any number of queries. Field references are checked against the
schema while the tree is built, never at query time.

Each driver translates a tree into its own query form (parameterised SQL,
Mango selectors) or raises :class:`UnsupportedPredicate`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Tuple, Union

from .constants import ErrorMessages
from .db_schema import ObjectSchema
from .db_value import Value


class Comparator(Enum):
    """Comparison operators available to every backend."""

    EQ = "="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="

    @property
    def is_ordering(self) -> bool:
        return self not in (Comparator.EQ, Comparator.NE)

    @classmethod
    def coerce(cls, op: Union["Comparator", str]) -> "Comparator":
        if isinstance(op, Comparator):
            return op
        for member in cls:
            if member.value == op or member.name == str(op).upper():
                return member
        raise ValueError(ErrorMessages.UNKNOWN_COMPARATOR.format(op=op))


class Connective(Enum):
    """Logical connectives for interior clause nodes."""

    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class Clause:
    """Base of all clause nodes; supports ``&``, ``|`` and ``~``."""

    def __and__(self, other: Clause) -> ConnectiveClause:
        return ConnectiveClause(Connective.AND, (self, other))

    def __or__(self, other: Clause) -> ConnectiveClause:
        return ConnectiveClause(Connective.OR, (self, other))

    def __invert__(self) -> ConnectiveClause:
        return ConnectiveClause(Connective.NOT, (self,))

    def fields(self) -> Iterator[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class FieldClause(Clause):
    """Leaf: ``field <comparator> operand``."""
    field: str
    comparator: Comparator
    operand: Value

    def fields(self) -> Iterator[str]:
        yield self.field

    def __repr__(self) -> str:
        return f"({self.field} {self.comparator.value} {self.operand!r})"


@dataclass(frozen=True)
class ConnectiveClause(Clause):
    """Interior node combining ordered children."""
    connective: Connective
    children: Tuple[Clause, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        if self.connective == Connective.NOT:
            if len(self.children) != 1:
                raise ValueError(ErrorMessages.NOT_ARITY.format(count=len(self.children)))
        elif not self.children:
            raise ValueError(ErrorMessages.CONNECTIVE_ARITY.format(connective=self.connective.value))

    def fields(self) -> Iterator[str]:
        for child in self.children:
            yield from child.fields()

    def __repr__(self) -> str:
        if self.connective == Connective.NOT:
            return f"NOT {self.children[0]!r}"
        return "(" + f" {self.connective.value} ".join(repr(c) for c in self.children) + ")"


@dataclass(frozen=True)
class ClauseTree:
    """
    Root handed to the CRUD engine.

    An empty tree (``root is None``) matches every row.
    """
    schema_name: str
    root: Optional[Clause] = None

    @property
    def is_empty(self) -> bool:
        return self.root is None


class FieldRef:
    """
    Schema-checked field reference producing leaves from Python operators.

    ``schema.ref("bits") > 1024`` builds ``FieldClause("bits", GT, 1024)``.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, schema: ObjectSchema, name: str) -> None:
        if not schema.has_field(name):
            schema.field(name)  # raises UnknownField
        self.schema = schema
        self.name = name

    def _leaf(self, comparator: Comparator, operand: Any) -> FieldClause:
        return FieldClause(self.name, comparator, self.schema.make_value(self.name, operand))

    def __eq__(self, other: Any) -> FieldClause:  # type: ignore[override]
        return self._leaf(Comparator.EQ, other)

    def __ne__(self, other: Any) -> FieldClause:  # type: ignore[override]
        return self._leaf(Comparator.NE, other)

    def __lt__(self, other: Any) -> FieldClause:
        return self._leaf(Comparator.LT, other)

    def __le__(self, other: Any) -> FieldClause:
        return self._leaf(Comparator.LTE, other)

    def __gt__(self, other: Any) -> FieldClause:
        return self._leaf(Comparator.GT, other)

    def __ge__(self, other: Any) -> FieldClause:
        return self._leaf(Comparator.GTE, other)

    def __repr__(self) -> str:
        return f"FieldRef({self.schema.name}.{self.name})"


class ClauseBuilder:
    """
    Builds a :class:`ClauseTree` for one schema.

    Top-level additions are AND-ed together. ``equals``/``compare``/
    ``connective`` build standalone nodes for use as children.

    Example::

        tree = (ClauseBuilder(schema)
                .add_equals("policy_id", policy.id)
                .add_comparison("bits", ">", 1024)
                .build())
    """

    def __init__(self, schema: ObjectSchema) -> None:
        self.schema = schema
        self._clauses: List[Clause] = []

    # -------------------------------------------------------------------------
    # Node factories
    # -------------------------------------------------------------------------

    def equals(self, field_name: str, value: Any) -> FieldClause:
        return self.compare(field_name, Comparator.EQ, value)

    def compare(self, field_name: str, op: Union[Comparator, str], value: Any) -> FieldClause:
        comparator = Comparator.coerce(op)
        operand = self.schema.make_value(field_name, value)
        return FieldClause(field_name, comparator, operand)

    def connective(self, connective: Union[Connective, str], children: Iterable[Clause]) -> ConnectiveClause:
        if not isinstance(connective, Connective):
            connective = Connective(str(connective).upper())
        children = tuple(children)
        for child in children:
            self._check(child)
        return ConnectiveClause(connective, children)

    # -------------------------------------------------------------------------
    # Tree assembly
    # -------------------------------------------------------------------------

    def add(self, clause: Clause) -> ClauseBuilder:
        self._check(clause)
        self._clauses.append(clause)
        return self

    def add_equals(self, field_name: str, value: Any) -> ClauseBuilder:
        self._clauses.append(self.equals(field_name, value))
        return self

    def add_comparison(self, field_name: str, op: Union[Comparator, str], value: Any) -> ClauseBuilder:
        self._clauses.append(self.compare(field_name, op, value))
        return self

    def add_connective(self, connective: Union[Connective, str], children: Iterable[Clause]) -> ClauseBuilder:
        self._clauses.append(self.connective(connective, children))
        return self

    def build(self) -> ClauseTree:
        if not self._clauses:
            return ClauseTree(self.schema.name)
        if len(self._clauses) == 1:
            return ClauseTree(self.schema.name, self._clauses[0])
        return ClauseTree(self.schema.name, ConnectiveClause(Connective.AND, tuple(self._clauses)))

    def _check(self, clause: Clause) -> None:
        """Verify that every leaf references a field of this schema."""
        for name in clause.fields():
            if not self.schema.has_field(name):
                self.schema.field(name)  # raises UnknownField
