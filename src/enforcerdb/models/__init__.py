# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""Enforcer domain entities."""

from .policy import Policy, PolicyList
from .hsm_key import HsmKey, HsmKeyBackup, HsmKeyList, HsmKeyRole
from .database_version import (
    DatabaseVersion,
    DatabaseVersionList,
    read_database_version,
    verify_database_version,
)

__all__ = [
    "Policy",
    "PolicyList",
    "HsmKey",
    "HsmKeyBackup",
    "HsmKeyList",
    "HsmKeyRole",
    "DatabaseVersion",
    "DatabaseVersionList",
    "read_database_version",
    "verify_database_version",
]
