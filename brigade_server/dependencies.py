# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""FastAPI dependencies wiring services to the request's database session."""

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.auth import get_current_account_id
from brigade_server.config import settings
from brigade_server.database import get_db
from brigade_server.identity import IdentityProvider, build_providers, primary_provider
from brigade_server.models import UserRole
from brigade_server.models.enums import ApprovalStatus
from brigade_server.services.audit import AuditLog
from brigade_server.services.auth_migration import AuthMigrationCoordinator
from brigade_server.services.invite_codes import InviteCodeStore
from brigade_server.services.members import MemberService
from brigade_server.services.roles import RoleAssigner
from brigade_server.services.signup import SignupOrchestrator


def get_audit_log(db: AsyncSession = Depends(get_db)) -> AuditLog:
    return AuditLog(db)


def get_providers(db: AsyncSession = Depends(get_db)) -> tuple[IdentityProvider, IdentityProvider]:
    return build_providers(db)


def get_primary_provider(
    providers: tuple[IdentityProvider, IdentityProvider] = Depends(get_providers),
) -> IdentityProvider:
    current, legacy = providers
    return primary_provider(settings.auth_migration_phase, current, legacy)


def get_role_assigner(
    db: AsyncSession = Depends(get_db), audit: AuditLog = Depends(get_audit_log)
) -> RoleAssigner:
    return RoleAssigner(db, audit)


def get_invite_codes(
    db: AsyncSession = Depends(get_db), audit: AuditLog = Depends(get_audit_log)
) -> InviteCodeStore:
    return InviteCodeStore(db, audit)


def get_member_service(
    db: AsyncSession = Depends(get_db), audit: AuditLog = Depends(get_audit_log)
) -> MemberService:
    return MemberService(db, audit)


def get_signup_orchestrator(
    provider: IdentityProvider = Depends(get_primary_provider),
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
    roles: RoleAssigner = Depends(get_role_assigner),
    audit: AuditLog = Depends(get_audit_log),
) -> SignupOrchestrator:
    return SignupOrchestrator(provider, invite_codes, roles, audit)


def get_auth_coordinator(
    providers: tuple[IdentityProvider, IdentityProvider] = Depends(get_providers),
    audit: AuditLog = Depends(get_audit_log),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> AuthMigrationCoordinator:
    current, legacy = providers
    return AuthMigrationCoordinator(current, legacy, audit, roles, settings.auth_migration_phase)


async def get_current_actor(
    account_id: str = Depends(get_current_account_id),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> UserRole:
    """Role record of the signed-in account. Pending accounts are refused."""
    actor = await roles.get(account_id)
    if not actor or actor.approval_status != ApprovalStatus.APPROVED.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account awaiting approval")
    return actor
