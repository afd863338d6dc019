# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the HSM key and policy entities.

Tests cover:
- Enum fields and their text accessors
- Lookups by locator and policy
- Following the policy reference
"""

from __future__ import annotations

import pytest

from enforcerdb import (
    ConstraintViolation,
    HsmKey,
    HsmKeyBackup,
    HsmKeyList,
    HsmKeyRole,
    InvalidEnumText,
    NotFound,
    Policy,
    PolicyList,
)


class TestEnumFields:
    """Test role and backup fields."""

    def test_enum_members_round_trip(self, connection, make_key):
        key = make_key("k1", role=HsmKeyRole.KSK, backup=HsmKeyBackup.BACKUP_REQUIRED)
        loaded = HsmKey.fetch(connection, key.id)
        assert loaded.role is HsmKeyRole.KSK
        assert loaded.backup is HsmKeyBackup.BACKUP_REQUIRED
        assert loaded.role_text == "KSK"
        assert loaded.backup_text == "backup_required"

    def test_set_from_text(self, connection):
        key = HsmKey(connection)
        key.set_role_text("CSK")
        key.set_backup_text("backup_done")
        assert key.role is HsmKeyRole.CSK
        assert key.backup is HsmKeyBackup.BACKUP_DONE

    def test_invalid_text_rejected(self, connection):
        key = HsmKey(connection)
        key.role = HsmKeyRole.ZSK
        with pytest.raises(InvalidEnumText):
            key.set_role_text("zsk")
        with pytest.raises(InvalidEnumText):
            key.set_backup_text("BACKUP_DONE")
        assert key.role is HsmKeyRole.ZSK

    def test_unset_and_null_text(self, connection):
        key = HsmKey(connection)
        assert key.role_text is None
        key.role = None
        assert key.role_text is None
        assert key.role is None

    def test_assign_by_code(self, connection):
        key = HsmKey(connection)
        key.backup = 0
        assert key.backup is HsmKeyBackup.NO_BACKUP
        with pytest.raises(ValueError):
            key.backup = 9

    def test_text_of_non_enum_field(self, connection):
        with pytest.raises(TypeError):
            HsmKey(connection).text_of("locator")


class TestKeyLookups:
    """Test finding keys."""

    def test_get_by_locator(self, connection, make_key):
        make_key("locator-a", bits=1024)
        make_key("locator-b", bits=4096)
        key = HsmKey(connection)
        key.get_by_locator("locator-b")
        assert key.bits == 4096
        with pytest.raises(NotFound):
            HsmKey(connection).get_by_locator("locator-c")

    def test_locator_is_unique(self, make_key):
        make_key("same")
        with pytest.raises(ConstraintViolation):
            make_key("same")

    def test_policy_id_required(self, connection):
        key = HsmKey(connection)
        key.locator = "no-policy"
        with pytest.raises(ConstraintViolation):
            key.create()

    def test_list_by_policy(self, connection, policy, make_key):
        other = Policy(connection)
        other.name = "other"
        other.create()
        make_key("p1")
        make_key("p2")
        make_key("o1", policy_id=other)

        with HsmKeyList(connection).get_by_policy_id(policy) as keys:
            assert sorted(key.locator for key in keys) == ["p1", "p2"]
        with HsmKeyList(connection).get_by_policy_id(other.id) as keys:
            assert [key.locator for key in keys] == ["o1"]

    def test_policy_and_bits_clause(self, connection, policy, make_key):
        make_key("small", bits=1024)
        make_key("large", bits=4096)
        tree = (
            HsmKey.clause()
            .add_equals("policy_id", policy.id)
            .add_comparison("bits", ">", 2048)
            .build()
        )
        with HsmKeyList(connection).get_by_clause(tree) as keys:
            assert [key.locator for key in keys] == ["large"]

    def test_clause_on_role(self, connection, make_key):
        make_key("ksk", role=HsmKeyRole.KSK)
        make_key("zsk", role=HsmKeyRole.ZSK)
        tree = HsmKey.clause().add(HsmKey.ref("role") != HsmKeyRole.ZSK).build()
        assert HsmKeyList(connection).count(tree) == 1


class TestPolicyReference:
    """Test resolving the owning policy."""

    def test_get_policy(self, connection, policy, make_key):
        key = make_key("owned")
        owner = HsmKey.fetch(connection, key.id).get_policy()
        assert isinstance(owner, Policy)
        assert owner.id == policy.id
        assert owner.name == "default"

    def test_get_policy_of_unset_reference(self, connection):
        assert HsmKey(connection).get_policy() is None

    def test_get_policy_of_removed_policy(self, connection):
        if connection.backend_name == "sqlite":
            pytest.skip("foreign keys prevent dangling references")
        owner = Policy(connection)
        owner.name = "short-lived"
        owner.create()
        key = HsmKey(connection)
        key.policy_id = owner
        key.locator = "dangling"
        key.create()
        owner.delete()
        assert key.get_policy() is None
        assert PolicyList(connection).count() == 0

    def test_resolve_non_reference(self, connection):
        with pytest.raises(TypeError):
            HsmKey(connection).resolve("locator")
