# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Login across the current and legacy identity providers, migrating accounts lazily.

During the "dual" phase an account lives in one of two states: unmigrated (legacy
only) or migrated (present on both, current is canonical). The first successful
legacy login creates the account on the current provider with the same password;
every later login succeeds on the current provider and never touches legacy.
"""

import logging
from dataclasses import dataclass
from typing import Literal

from brigade_server.config import settings
from brigade_server.errors import IdentityProviderError, MigrationConflictError, RoleAssignmentError
from brigade_server.identity import LEGACY, AccountHandle, IdentityProvider
from brigade_server.identity.base import CREDENTIAL_ERRORS, EMAIL_ALREADY_IN_USE
from brigade_server.models.enums import AuditActionType, MigrationPhase
from brigade_server.services.audit import AuditLog
from brigade_server.services.roles import RoleAssigner

logger = logging.getLogger(__name__)

LoginSource = Literal["current", "migration", "legacy"]


@dataclass(frozen=True)
class LoginResult:
    account_id: str
    email: str
    source: LoginSource


class AuthMigrationCoordinator:
    def __init__(
        self,
        current: IdentityProvider,
        legacy: IdentityProvider,
        audit: AuditLog,
        roles: RoleAssigner | None = None,
        phase: MigrationPhase | None = None,
    ):
        self.current = current
        self.legacy = legacy
        self.audit = audit
        self.roles = roles
        self.phase = phase or settings.auth_migration_phase

    async def login(self, email: str, password: str) -> LoginResult:
        """Sign in, falling back to the legacy provider for unmigrated accounts.

        Raises:
            IdentityProviderError: The current provider's error when neither provider
                accepts the credentials. Legacy errors are never surfaced.
            MigrationConflictError: Legacy accepted the password but the current
                provider already has the email under a different password.
        """
        email = email.strip()
        if self.phase == MigrationPhase.LEGACY:
            handle = await self.legacy.sign_in(email, password)
            return LoginResult(handle.id, handle.email, "legacy")

        try:
            handle = await self.current.sign_in(email, password)
            return LoginResult(handle.id, handle.email, "current")
        except IdentityProviderError as e:
            if self.phase != MigrationPhase.DUAL or e.code not in CREDENTIAL_ERRORS:
                raise
            current_error = e

        try:
            legacy_handle = await self.legacy.sign_in(email, password)
        except IdentityProviderError as legacy_error:
            logger.info("Legacy sign-in for %s failed too (%s)", email, legacy_error.code)
            raise current_error from None

        logger.info("Legacy account %s found for %s; migrating", legacy_handle.id, email)
        return await self._migrate(legacy_handle, password)

    async def _migrate(self, legacy_handle: AccountHandle, password: str) -> LoginResult:
        try:
            handle = await self.current.sign_up(
                legacy_handle.email,
                password,
                metadata={"migrated_from": LEGACY, "legacy_id": legacy_handle.id},
            )
        except IdentityProviderError as e:
            logger.error("Migration of %s failed at the current provider: %s", legacy_handle.email, e.code)
            if e.code == EMAIL_ALREADY_IN_USE:
                raise MigrationConflictError(legacy_handle.email) from e
            raise

        role_linked = False
        if self.roles is not None:
            try:
                role_linked = await self.roles.transfer(legacy_handle.id, handle.id)
            except RoleAssignmentError:
                logger.exception("Failed to link role of %s to migrated account", legacy_handle.email)
        if not role_linked:
            logger.warning("Migrated account %s has no role linked", handle.email)

        await self.audit.append(
            handle.email,
            AuditActionType.MIGRATE_ACCOUNT,
            f"Migrated account '{handle.email}' from the legacy identity provider.",
            {"accountId": handle.id, "legacyAccountId": legacy_handle.id, "roleLinked": role_linked},
        )
        await self.legacy.sign_out()
        logger.info("Migrated %s: legacy %s -> current %s", handle.email, legacy_handle.id, handle.id)
        return LoginResult(handle.id, handle.email, "migration")

    async def logout(self) -> None:
        await self.legacy.sign_out()
        await self.current.sign_out()
