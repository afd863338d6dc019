# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""Key and signing policy entity."""

from __future__ import annotations

from ..db_entity import Entity, EntityList, db_entity, entity_field
from ..db_value import ValueKind


@db_entity("policy")
class Policy(Entity):
    """
    Named policy that HSM keys belong to.

    :class: Policy
    :synopsis: Unique policy name plus free-form description
    """

    name = entity_field(ValueKind.TEXT, not_null=True, unique=True)
    description = entity_field(ValueKind.TEXT)

    def get_by_name(self, name: str) -> None:
        """Load the policy called ``name``; raises :class:`NotFound` when absent."""
        self.get_by_field("name", name)


class PolicyList(EntityList[Policy]):
    entity_class = Policy
