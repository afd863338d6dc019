# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Static object schemas and the global schema registry.

A schema describes one entity type: its table/collection name, the ordered
field definitions and the primary key. Schemas are created once at import
time, shared by every instance of the entity and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple, Type

from .constants import ErrorMessages
from .db_enum import EnumMapping
from .db_value import Value, ValueKind
from .errors import UnknownField

if TYPE_CHECKING:
    from .db_clause import ClauseBuilder, FieldRef

logger = logging.getLogger(__name__)

# Names used by the engine and the drivers for identity, revision and type
RESERVED_FIELD_NAMES = frozenset({"id", "rev", "type", "_id", "_rev"})

IDENTITY_KINDS = (ValueKind.INT64, ValueKind.TEXT)


def identity_value(native: Any) -> Value:
    """
    Coerce an identity to a :class:`Value`.

    Relational backends use integer identities, document stores text ones.
    """
    if isinstance(native, Value):
        if native.kind not in IDENTITY_KINDS and native.kind != ValueKind.NULL:
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind="identity", payload=native))
        return native.copy()
    if native is None:
        return Value.null()
    if isinstance(native, str):
        return Value.text(native)
    return Value.integer(native)


# -----------------------------------------------------------------------------
# Field-level metadata
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDefinition:
    """
    Metadata for one persisted field.

    :class: FieldDefinition
    :synopsis: Name, kind, nullability, uniqueness and optional enum/foreign key
    """
    name: str
    kind: Optional[ValueKind]
    nullable: bool = True
    unique: bool = False
    enum: Optional[EnumMapping] = None
    references: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is None and self.references is None:
            raise ValueError(ErrorMessages.FIELD_KIND_REQUIRED.format(field_name=self.name))
        if self.kind == ValueKind.ENUM and self.enum is None:
            raise ValueError(ErrorMessages.ENUM_MAPPING_REQUIRED.format(field_name=self.name))

    @property
    def is_foreign_key(self) -> bool:
        return self.references is not None

    def make_value(self, native: Any) -> Value:
        """
        Convert a Python object to a :class:`Value` of this field's kind.

        ``None`` becomes NULL; enum fields accept members, codes and text;
        foreign keys accept any identity.
        """
        if isinstance(native, Value) and not self.is_foreign_key:
            if native.kind in (ValueKind.NULL, self.kind):
                return native.copy()
            raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind=self.kind.name, payload=native))
        if native is None:
            return Value.null()
        if self.is_foreign_key:
            return identity_value(native)
        if self.kind == ValueKind.ENUM:
            return self.enum.value_of(native)
        return Value.of(self.kind, native)


@dataclass(frozen=True)
class ObjectSchema:
    """
    Immutable descriptor shared by every instance of one entity type.

    :class: ObjectSchema
    :synopsis: Table/collection name, ordered fields and primary key
    """
    name: str
    fields: Tuple[FieldDefinition, ...]
    primary_key: str = "id"
    _by_name: Dict[str, FieldDefinition] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # @@ STEP 1: Freeze the field sequence
        object.__setattr__(self, "fields", tuple(self.fields))

        # @@ STEP 2: Index fields by name, rejecting duplicates and reserved names
        by_name: Dict[str, FieldDefinition] = {}
        for definition in self.fields:
            if definition.name in RESERVED_FIELD_NAMES or definition.name == self.primary_key:
                raise ValueError(
                    ErrorMessages.RESERVED_FIELD.format(field_name=definition.name, schema_name=self.name)
                )
            if definition.name in by_name:
                raise ValueError(
                    ErrorMessages.DUPLICATE_FIELD.format(field_name=definition.name, schema_name=self.name)
                )
            by_name[definition.name] = definition
        object.__setattr__(self, "_by_name", by_name)

    def __hash__(self) -> int:
        return hash((self.name, self.fields, self.primary_key))

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields)

    @property
    def field_names(self) -> List[str]:
        return [definition.name for definition in self.fields]

    @property
    def foreign_keys(self) -> Dict[str, str]:
        """Field name -> referenced schema name."""
        return {d.name: d.references for d in self.fields if d.references is not None}

    @property
    def unique_fields(self) -> List[FieldDefinition]:
        return [d for d in self.fields if d.unique]

    def has_field(self, name: str) -> bool:
        """True for declared fields and the primary key."""
        return name == self.primary_key or name in self._by_name

    def field(self, name: str) -> FieldDefinition:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownField(
                ErrorMessages.UNKNOWN_FIELD.format(field_name=name, schema_name=self.name),
                field_name=name,
                schema_name=self.name,
            ) from None

    def make_value(self, name: str, native: Any) -> Value:
        """Convert ``native`` for field ``name`` (or the primary key)."""
        if name == self.primary_key:
            return identity_value(native)
        return self.field(name).make_value(native)

    def ref(self, name: str) -> "FieldRef":
        """Field reference for building clauses with Python operators."""
        from .db_clause import FieldRef
        return FieldRef(self, name)

    def clause(self) -> "ClauseBuilder":
        """Start an empty clause tree for this schema."""
        from .db_clause import ClauseBuilder
        return ClauseBuilder(self)


# -----------------------------------------------------------------------------
# Global registry
# -----------------------------------------------------------------------------

class SchemaRegistry:
    """
    Registry of schemas and the entity classes bound to them.

    Foreign keys name their target schema; the registry resolves that name to
    the schema and, once an entity class is declared for it, to the class.
    """

    def __init__(self) -> None:
        self._schemas: Dict[str, ObjectSchema] = {}
        self._entities: Dict[str, Type[Any]] = {}

    def register(self, schema: ObjectSchema, entity_class: Optional[Type[Any]] = None) -> None:
        if schema.name in self._schemas and self._schemas[schema.name] != schema:
            logger.warning("Replacing registered schema %s", schema.name)
        self._schemas[schema.name] = schema
        if entity_class is not None:
            self._entities[schema.name] = entity_class

    def get_schema(self, name: str) -> ObjectSchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise KeyError(ErrorMessages.UNKNOWN_SCHEMA.format(schema_name=name)) from None

    def get_entity_class(self, name: str) -> Type[Any]:
        try:
            return self._entities[name]
        except KeyError:
            raise KeyError(ErrorMessages.UNKNOWN_SCHEMA.format(schema_name=name)) from None

    def schemas(self) -> List[ObjectSchema]:
        return list(self._schemas.values())

    def creation_order(self) -> List[ObjectSchema]:
        """Schemas ordered so that referenced schemas come before referencing ones."""
        ordered: List[ObjectSchema] = []
        visiting: set = set()
        done: set = set()

        def visit(schema: ObjectSchema) -> None:
            if schema.name in done:
                return
            if schema.name in visiting:
                logger.warning("Circular foreign key involving %s", schema.name)
                return
            visiting.add(schema.name)
            for target in schema.foreign_keys.values():
                if target in self._schemas:
                    visit(self._schemas[target])
            visiting.discard(schema.name)
            done.add(schema.name)
            ordered.append(schema)

        for schema in self._schemas.values():
            visit(schema)
        return ordered


_schema_registry = SchemaRegistry()


def get_schema_registry() -> SchemaRegistry:
    return _schema_registry
