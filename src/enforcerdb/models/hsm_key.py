# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
HSM key entity.

One record per key pair held in a hardware security module, addressed by its
locator and owned by a policy.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional

from ..db_entity import Entity, EntityList, db_entity, entity_field, enum_field, foreign_key_field
from ..db_value import ValueKind
from .policy import Policy


class HsmKeyRole(IntEnum):
    """Signing role of a key."""

    KSK = 1
    ZSK = 2
    CSK = 3


class HsmKeyBackup(IntEnum):
    """Backup progress of a key."""

    NO_BACKUP = 0
    BACKUP_REQUIRED = 1
    BACKUP_REQUESTED = 2
    BACKUP_DONE = 3


HSM_KEY_ROLE_TEXTS = {
    HsmKeyRole.KSK: "KSK",
    HsmKeyRole.ZSK: "ZSK",
    HsmKeyRole.CSK: "CSK",
}

HSM_KEY_BACKUP_TEXTS = {
    HsmKeyBackup.NO_BACKUP: "no_backup",
    HsmKeyBackup.BACKUP_REQUIRED: "backup_required",
    HsmKeyBackup.BACKUP_REQUESTED: "backup_requested",
    HsmKeyBackup.BACKUP_DONE: "backup_done",
}


@db_entity("hsm_key")
class HsmKey(Entity):
    """
    A key stored in an HSM.

    :class: HsmKey
    :synopsis: Locator, algorithm parameters, role and backup state of one key
    """

    policy_id = foreign_key_field("policy", not_null=True)
    locator = entity_field(ValueKind.TEXT, not_null=True, unique=True)
    candidate_for_sharing = entity_field(ValueKind.UINT32)
    bits = entity_field(ValueKind.UINT32)
    policy = entity_field(ValueKind.TEXT)
    algorithm = entity_field(ValueKind.UINT32)
    role = enum_field(HsmKeyRole, HSM_KEY_ROLE_TEXTS)
    inception = entity_field(ValueKind.UINT32)
    is_revoked = entity_field(ValueKind.UINT32)
    key_type = entity_field(ValueKind.TEXT)
    repository = entity_field(ValueKind.TEXT)
    backup = enum_field(HsmKeyBackup, HSM_KEY_BACKUP_TEXTS)

    def get_by_locator(self, locator: str) -> None:
        """Load the key with ``locator``; raises :class:`NotFound` when absent."""
        self.get_by_field("locator", locator)

    def get_policy(self) -> Optional[Policy]:
        """The owning policy, or ``None`` if it no longer exists."""
        return self.resolve("policy_id")


class HsmKeyList(EntityList[HsmKey]):
    entity_class = HsmKey

    def get_by_policy_id(self, policy_id: Any) -> HsmKeyList:
        """Select the keys of one policy (an identity or a :class:`Policy`)."""
        if isinstance(policy_id, Policy):
            policy_id = policy_id.identity
        return self.get_by_field("policy_id", policy_id)  # type: ignore[return-value]
