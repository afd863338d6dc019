# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for object schemas, field definitions and the schema registry.
"""

from __future__ import annotations

import pytest

from enforcerdb import FieldDefinition, ObjectSchema, UnknownField, Value, ValueKind, get_schema_registry
from enforcerdb.db_schema import SchemaRegistry, identity_value
from enforcerdb.models import HsmKey, HsmKeyRole, Policy


class TestFieldDefinition:
    """Test field-level validation and conversion."""

    def test_kind_required_unless_foreign_key(self):
        with pytest.raises(ValueError):
            FieldDefinition("bits", None)
        assert FieldDefinition("policy_id", None, references="policy").is_foreign_key

    def test_enum_field_needs_mapping(self):
        with pytest.raises(ValueError):
            FieldDefinition("role", ValueKind.ENUM)

    def test_make_value_converts_natives(self):
        definition = FieldDefinition("bits", ValueKind.UINT32)
        assert definition.make_value(2048) == Value.of(ValueKind.UINT32, 2048)
        assert definition.make_value(None).is_null
        with pytest.raises(ValueError):
            definition.make_value(-1)

    def test_make_value_rejects_value_of_other_kind(self):
        definition = FieldDefinition("locator", ValueKind.TEXT)
        assert definition.make_value(Value.text("x")) == Value.text("x")
        with pytest.raises(ValueError):
            definition.make_value(Value.integer(1))

    def test_foreign_key_accepts_either_identity_kind(self):
        definition = FieldDefinition("policy_id", None, references="policy")
        assert definition.make_value(7).kind == ValueKind.INT64
        assert definition.make_value("abc").kind == ValueKind.TEXT

    def test_identity_value(self):
        assert identity_value(3) == Value.integer(3)
        assert identity_value("doc").kind == ValueKind.TEXT
        assert identity_value(None).is_null
        with pytest.raises(ValueError):
            identity_value(Value.of(ValueKind.UINT32, 1))


class TestObjectSchema:
    """Test schema construction and lookups."""

    def test_field_lookup_and_order(self):
        schema = HsmKey.schema()
        assert schema.name == "hsm_key"
        assert schema.field_names[:2] == ["policy_id", "locator"]
        assert schema.field("role").enum.member_of("KSK") is HsmKeyRole.KSK
        assert schema.has_field("id")
        assert not schema.has_field("missing")

    def test_unknown_field_raises(self):
        with pytest.raises(UnknownField) as exc_info:
            Policy.schema().field("locator")
        assert exc_info.value.field_name == "locator"
        assert exc_info.value.schema_name == "policy"

    def test_duplicate_and_reserved_names_rejected(self):
        with pytest.raises(ValueError):
            ObjectSchema("dup", (FieldDefinition("a", ValueKind.TEXT), FieldDefinition("a", ValueKind.TEXT)))
        with pytest.raises(ValueError):
            ObjectSchema("reserved", (FieldDefinition("rev", ValueKind.TEXT),))

    def test_foreign_keys_and_unique_fields(self):
        schema = HsmKey.schema()
        assert schema.foreign_keys == {"policy_id": "policy"}
        assert [d.name for d in schema.unique_fields] == ["locator"]

    def test_schema_is_immutable(self):
        schema = Policy.schema()
        with pytest.raises(AttributeError):
            schema.name = "other"

    def test_make_value_for_primary_key(self):
        assert Policy.schema().make_value("id", 5) == Value.integer(5)


class TestSchemaRegistry:
    """Test registration and dependency ordering."""

    def test_models_are_registered(self):
        registry = get_schema_registry()
        assert registry.get_schema("policy") is Policy.schema()
        assert registry.get_entity_class("hsm_key") is HsmKey

    def test_unknown_schema_raises_key_error(self):
        with pytest.raises(KeyError):
            SchemaRegistry().get_schema("nothing")

    def test_creation_order_puts_referenced_first(self):
        registry = SchemaRegistry()
        registry.register(HsmKey.schema())
        registry.register(Policy.schema())
        names = [schema.name for schema in registry.creation_order()]
        assert names.index("policy") < names.index("hsm_key")
