# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Identity providers: the capability interface and the two concrete providers."""

from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.config import settings
from brigade_server.identity.base import AccountHandle, IdentityProvider, describe_provider_error
from brigade_server.identity.database import DatabaseIdentityProvider
from brigade_server.models.enums import MigrationPhase

CURRENT = "current"
LEGACY = "legacy"


def build_providers(db: AsyncSession) -> tuple[IdentityProvider, IdentityProvider]:
    """Return (current, legacy) providers bound to a session."""
    current = DatabaseIdentityProvider(db, CURRENT, settings.current_provider_schemes)
    legacy = DatabaseIdentityProvider(db, LEGACY, settings.legacy_provider_schemes)
    return current, legacy


def primary_provider(
    phase: MigrationPhase, current: IdentityProvider, legacy: IdentityProvider
) -> IdentityProvider:
    """Provider that owns new accounts and password resets in a migration phase."""
    return legacy if phase == MigrationPhase.LEGACY else current


__all__ = [
    "AccountHandle",
    "CURRENT",
    "DatabaseIdentityProvider",
    "IdentityProvider",
    "LEGACY",
    "build_providers",
    "describe_provider_error",
    "primary_provider",
]
