# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Declarative entity layer.

Entities declare their fields with :func:`entity_field`, :func:`enum_field`
and :func:`foreign_key_field` and are bound to a schema by :func:`db_entity`::

    @db_entity("policy")
    class Policy(Entity):
        name = entity_field(ValueKind.TEXT, not_null=True, unique=True)
        description = entity_field(ValueKind.TEXT)

Attribute access returns Python natives (``None`` for unset or null, enum
members for enum fields); assignment validates the kind immediately. All
storage goes through :class:`~enforcerdb.db_object.ObjectEngine`.
"""

from __future__ import annotations

from enum import Enum, IntEnum
import logging
from typing import (
    Any,
    ClassVar,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
)

from .constants import ErrorMessages
from .db_clause import ClauseBuilder, ClauseTree, FieldRef
from .db_connection import Connection
from .db_enum import EnumMapping
from .db_object import ObjectEngine
from .db_result import HydratedRow, ResultCursor, ResultRow
from .db_schema import FieldDefinition, ObjectSchema, get_schema_registry
from .db_value import Value, ValueKind, compare, native_of
from .errors import AlreadyDeleted, CursorError, EntityStateError, NotFound

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Entity")


class EntityState(Enum):
    """Lifecycle of one entity handle."""

    UNPERSISTED = "unpersisted"
    PERSISTED = "persisted"
    DELETED = "deleted"


# -----------------------------------------------------------------------------
# Field declarations
# -----------------------------------------------------------------------------

class EntityField:
    """
    Descriptor declaring one persisted field on an :class:`Entity` subclass.

    :class: EntityField
    :synopsis: Typed attribute backed by a :class:`Value`
    """

    def __init__(
        self,
        kind: Optional[ValueKind],
        *,
        not_null: bool = False,
        unique: bool = False,
        enum: Optional[EnumMapping] = None,
        references: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.not_null = not_null
        self.unique = unique
        self.enum = enum
        self.references = references
        self.name: str = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def definition(self) -> FieldDefinition:
        return FieldDefinition(
            name=self.name,
            kind=self.kind,
            nullable=not self.not_null,
            unique=self.unique,
            enum=self.enum,
            references=self.references,
        )

    def __get__(self, instance: Optional[Entity], owner: type) -> Any:
        if instance is None:
            return self
        value = instance._values[self.name]
        if value.kind in (ValueKind.UNSET, ValueKind.NULL):
            return None
        if value.kind == ValueKind.ENUM:
            return self.enum.member_of(value.payload[0])
        return value.payload

    def __set__(self, instance: Entity, native: Any) -> None:
        instance.set_value(self.name, native)


def entity_field(kind: ValueKind, *, not_null: bool = False, unique: bool = False) -> Any:
    """
    Declare a scalar field.

    Args:
        kind: One of the integer kinds, ``TEXT`` or ``BINARY``
        not_null: Reject unset/null values on create and null on update
        unique: Enforce uniqueness in the store
    """
    if kind in (ValueKind.UNSET, ValueKind.NULL, ValueKind.ENUM):
        raise ValueError(ErrorMessages.INVALID_PAYLOAD.format(kind="field", payload=kind))
    return EntityField(kind, not_null=not_null, unique=unique)


def enum_field(
    enum_type: Type[IntEnum],
    texts: Optional[Mapping[IntEnum, str]] = None,
    *,
    not_null: bool = False,
) -> Any:
    """
    Declare an enum field.

    The mapping between codes and ``texts`` (member names by default) is
    built once, here. The decorated class also gains ``<field>_text`` and
    ``set_<field>_text(text)``.
    """
    return EntityField(ValueKind.ENUM, not_null=not_null, enum=EnumMapping(enum_type, texts))


def foreign_key_field(references: str, *, not_null: bool = False) -> Any:
    """Declare a reference to the primary key of the ``references`` schema."""
    return EntityField(None, not_null=not_null, references=references)


def _enum_text_accessors(field_name: str) -> tuple:
    def get_text(self: Entity) -> Optional[str]:
        return self.text_of(field_name)

    def set_text(self: Entity, text: str) -> None:
        self.set_text(field_name, text)

    get_text.__doc__ = f"Backend text of ``{field_name}``; ``None`` when unset or null."
    set_text.__doc__ = f"Set ``{field_name}`` from its text. Raises :class:`InvalidEnumText`."
    return property(get_text), set_text


def db_entity(name: Optional[str] = None) -> Any:
    """Decorator binding an :class:`Entity` subclass to a freshly built schema."""

    def decorator(cls: Type[E]) -> Type[E]:
        entity_name = name if name is not None else cls.__name__.lower()

        # @@ STEP 1: Collect field declarations, base classes first
        declared: Dict[str, EntityField] = {}
        for klass in reversed(cls.__mro__):
            for attr, obj in vars(klass).items():
                if isinstance(obj, EntityField):
                    declared[attr] = obj

        # @@ STEP 2: Build and register the schema
        schema = ObjectSchema(entity_name, tuple(f.definition() for f in declared.values()))
        cls.__db_schema__ = schema  # type: ignore[attr-defined]
        cls.__db_entity_name__ = entity_name  # type: ignore[attr-defined]

        # @@ STEP 3: Text accessors for enum fields
        for field_name, declaration in declared.items():
            if declaration.kind != ValueKind.ENUM:
                continue
            getter, setter = _enum_text_accessors(field_name)
            if f"{field_name}_text" not in vars(cls):
                setattr(cls, f"{field_name}_text", getter)
            if f"set_{field_name}_text" not in vars(cls):
                setattr(cls, f"set_{field_name}_text", setter)

        get_schema_registry().register(schema, cls)
        logger.debug("Registered entity %s with fields %s", entity_name, schema.field_names)
        return cls

    return decorator


# -----------------------------------------------------------------------------
# Entity base
# -----------------------------------------------------------------------------

class Entity:
    """
    Base class of all persisted entities.

    :class: Entity
    :synopsis: Field values, identity, revision and lifecycle of one record
    """

    __db_schema__: ClassVar[ObjectSchema]
    __db_entity_name__: ClassVar[str]

    def __init__(self, connection: Connection) -> None:
        schema = type(self).schema()
        self._engine = ObjectEngine(schema, connection)
        self._identity = Value()
        self._revision = Value()
        self._values: Dict[str, Value] = {definition.name: Value() for definition in schema}
        self._state = EntityState.UNPERSISTED

    @classmethod
    def schema(cls) -> ObjectSchema:
        try:
            return cls.__db_schema__
        except AttributeError:
            raise TypeError(f"{cls.__name__} is not decorated with @db_entity") from None

    @classmethod
    def clause(cls) -> ClauseBuilder:
        """Start a clause tree for this entity's schema."""
        return cls.schema().clause()

    @classmethod
    def ref(cls, field_name: str) -> FieldRef:
        return cls.schema().ref(field_name)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def connection(self) -> Connection:
        return self._engine.connection

    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def identity(self) -> Value:
        return self._identity.copy()

    @property
    def revision(self) -> Value:
        return self._revision.copy()

    @property
    def id(self) -> Any:
        """Primary key as a Python native; ``None`` until persisted."""
        return native_of(self._identity)

    @property
    def rev(self) -> Optional[str]:
        return native_of(self._revision)

    def value_of(self, field_name: str) -> Value:
        """Copy of the raw :class:`Value` held for ``field_name``."""
        self.schema().field(field_name)
        return self._values[field_name].copy()

    def set_value(self, field_name: str, native: Any) -> None:
        """
        Assign ``field_name`` from a native, enum member, :class:`Value` or entity.

        Switching between NULL and the declared kind is allowed; any other
        kind raises.
        """
        definition = self.schema().field(field_name)
        if isinstance(native, Entity):
            native = native._identity
        new_value = definition.make_value(native)
        current = self._values[field_name]
        current.reset()
        current.assign(new_value)

    def text_of(self, field_name: str) -> Optional[str]:
        if self.schema().field(field_name).enum is None:
            raise TypeError(f"{field_name} is not an enum field")
        value = self._values[field_name]
        if value.kind != ValueKind.ENUM:
            return None
        return value.payload[1]

    def set_text(self, field_name: str, text: str) -> None:
        mapping = self.schema().field(field_name).enum
        if mapping is None:
            raise TypeError(f"{field_name} is not an enum field")
        mapping.code_of(text)  # raises InvalidEnumText
        self.set_value(field_name, text)

    def reset(self) -> None:
        """Return to the just-constructed state without touching storage."""
        self._identity.reset()
        self._revision.reset()
        for value in self._values.values():
            value.reset()
        self._state = EntityState.UNPERSISTED

    def copy(self, other: Entity) -> None:
        """Copy every field of ``other`` into this entity; identity and revision are kept."""
        if type(other) is not type(self):
            raise TypeError(
                ErrorMessages.WRONG_ENTITY_TYPE.format(other=type(other).__name__, schema_name=self.schema().name)
            )
        for name, value in other._values.items():
            self._values[name] = value.copy()

    def compare(self, other: Entity) -> int:
        """Field-by-field comparison in schema order: -1, 0 or 1."""
        if type(other) is not type(self):
            raise TypeError(
                ErrorMessages.WRONG_COMPARE_TYPE.format(other=type(other).__name__, schema_name=self.schema().name)
            )
        for name in self.schema().field_names:
            result = compare(self._values[name], other._values[name])
            if result != 0:
                return result
        return 0

    def from_row(self, row: Union[ResultRow, HydratedRow]) -> None:
        """Load a stored row; the entity becomes persisted."""
        hydrated = row.hydrate() if isinstance(row, ResultRow) else row
        self._identity = hydrated.identity.copy()
        self._revision = hydrated.revision.copy()
        for name in self._values:
            value = hydrated.values.get(name)
            self._values[name] = value.copy() if value is not None else Value()
        self._state = EntityState.PERSISTED

    # -------------------------------------------------------------------------
    # Lifecycle guards
    # -------------------------------------------------------------------------

    def _require_not_deleted(self) -> None:
        if self._state == EntityState.DELETED:
            raise AlreadyDeleted(
                ErrorMessages.ALREADY_DELETED.format(schema_name=self.schema().name, identity=self.id)
            )

    def _require_persisted(self) -> None:
        self._require_not_deleted()
        if self._state != EntityState.PERSISTED:
            raise EntityStateError(ErrorMessages.NOT_PERSISTED.format(schema_name=self.schema().name))

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def create(self) -> None:
        """
        Store this entity as a new record.

        Raises:
            EntityStateError: If the entity is already persisted
            AlreadyDeleted: If the entity was deleted through this handle
            ConstraintViolation: If a not-null or unique constraint fails
        """
        self._require_not_deleted()
        if self._state == EntityState.PERSISTED:
            raise EntityStateError(
                ErrorMessages.ALREADY_PERSISTED.format(schema_name=self.schema().name, identity=self.id)
            )
        identity, revision = self._engine.create(self._values)
        self._identity = identity
        self._revision = revision
        # Unassigned fields were stored as NULL
        for name, value in self._values.items():
            if value.is_unset:
                self._values[name] = Value.null()
        self._state = EntityState.PERSISTED

    def get_by_id(self, identity: Any) -> None:
        """
        Load the record ``identity`` into this entity.

        :raises NotFound: If no such record exists
        """
        self._require_not_deleted()
        with self._engine.get_by_id(identity) as cursor:
            row = cursor.begin()
            if row is None:
                raise NotFound(
                    ErrorMessages.RECORD_NOT_FOUND.format(schema_name=self.schema().name, identity=identity)
                )
            self.from_row(row)

    def get_by_field(self, field_name: str, value: Any) -> None:
        """
        Load the first record whose ``field_name`` equals ``value``.

        Meant for unique fields; :raises NotFound: If nothing matches
        """
        self._require_not_deleted()
        tree = self.clause().add_equals(field_name, value).build()
        with self._engine.get_by_clause(tree) as cursor:
            row = cursor.begin()
            if row is None:
                raise NotFound(
                    ErrorMessages.RECORD_NOT_FOUND.format(schema_name=self.schema().name, identity=f"{field_name}={value!r}")
                )
            self.from_row(row)

    @classmethod
    def fetch(cls: Type[E], connection: Connection, identity: Any) -> E:
        """New entity loaded from the record ``identity``."""
        entity = cls(connection)
        entity.get_by_id(identity)
        return entity

    def update(self) -> None:
        """
        Write every assigned field back to the stored record.

        Raises:
            EntityStateError: If the entity has not been persisted
            RevisionConflict: If the record changed since it was read
        """
        self._require_persisted()
        new_revision = self._engine.update(self._identity, self._values, self._revision)
        if self.connection.supports_revisions:
            self._revision = new_revision

    def delete(self) -> None:
        """Delete the stored record; the handle becomes terminal."""
        self._require_persisted()
        self._engine.delete(self._identity, self._revision)
        self._state = EntityState.DELETED

    def resolve(self, field_name: str) -> Optional[Entity]:
        """
        Follow the foreign key ``field_name``.

        Returns ``None`` when the key is unset, null or points at nothing.
        """
        definition = self.schema().field(field_name)
        if not definition.is_foreign_key:
            raise TypeError(f"{field_name} is not a foreign key")
        key = self._values[field_name]
        if key.kind in (ValueKind.UNSET, ValueKind.NULL):
            return None
        target_class = get_schema_registry().get_entity_class(definition.references)
        target = target_class(self.connection)
        try:
            target.get_by_id(key)
        except NotFound:
            return None
        return target

    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.schema().field_names)
        return f"<{type(self).__name__} id={self.id!r} {self._state.value}: {fields}>"


# -----------------------------------------------------------------------------
# Entity lists
# -----------------------------------------------------------------------------

class EntityList(Generic[E]):
    """
    Streaming list of entities of one type.

    ``next()`` reuses one shared entity instance that is overwritten on each
    call; ``get_next()`` and iteration hand out independent instances.
    """

    entity_class: ClassVar[Type[Entity]]

    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        self._engine = ObjectEngine(self.entity_class.schema(), connection)
        self._cursor: Optional[ResultCursor] = None
        self._shared: Optional[E] = None

    def _replace_cursor(self, cursor: ResultCursor) -> EntityList[E]:
        self.close()
        self._cursor = cursor
        return self

    def _require_cursor(self) -> ResultCursor:
        if self._cursor is None:
            raise CursorError(ErrorMessages.CURSOR_CLOSED)
        return self._cursor

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, abort_on_error: bool = False) -> EntityList[E]:
        """Select every entity."""
        return self._replace_cursor(self._engine.list(abort_on_error=abort_on_error))

    def get_by_clause(self, tree: ClauseTree, abort_on_error: bool = False) -> EntityList[E]:
        return self._replace_cursor(self._engine.get_by_clause(tree, abort_on_error=abort_on_error))

    def get_by_field(self, field_name: str, value: Any) -> EntityList[E]:
        tree = self.entity_class.clause().add_equals(field_name, value).build()
        return self.get_by_clause(tree)

    def count(self, tree: Optional[ClauseTree] = None) -> int:
        return self._engine.count(tree)

    # -------------------------------------------------------------------------
    # Traversal
    # -------------------------------------------------------------------------

    def _hydrate(self, row: Optional[HydratedRow], entity: Optional[E] = None) -> Optional[E]:
        if row is None:
            return None
        if entity is None:
            entity = self.entity_class(self.connection)  # type: ignore[assignment]
        else:
            entity.reset()
        entity.from_row(row)
        return entity

    def begin(self) -> Optional[E]:
        """First entity of the current query, in the shared instance."""
        row = self._require_cursor().begin_hydrated()
        if row is None:
            return None
        if self._shared is None:
            self._shared = self.entity_class(self.connection)  # type: ignore[assignment]
        return self._hydrate(row, self._shared)

    def next(self) -> Optional[E]:
        """Next entity, overwriting the shared instance; ``None`` at the end."""
        row = self._require_cursor().next_hydrated()
        if row is None:
            return None
        if self._shared is None:
            self._shared = self.entity_class(self.connection)  # type: ignore[assignment]
        return self._hydrate(row, self._shared)

    def get_next(self) -> Optional[E]:
        """Next entity as a new, independent instance."""
        return self._hydrate(self._require_cursor().next_hydrated())

    def __iter__(self) -> Iterator[E]:
        for row in self._require_cursor().hydrated():
            yield self._hydrate(row)  # type: ignore[misc]

    def all(self) -> List[E]:
        return list(self)

    # -------------------------------------------------------------------------
    # Resource handling
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def __enter__(self) -> EntityList[E]:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb  # Mark as intentionally unused
        self.close()
