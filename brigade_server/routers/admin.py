# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Admin API - user approval and role management. Requires an admin or captain."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.api.schemas import AccountResponse, ApproveUserRequest, RoleUpdateRequest
from brigade_server.database import get_db
from brigade_server.dependencies import get_current_actor, get_role_assigner
from brigade_server.models import InviteCode, UserRole
from brigade_server.models.enums import ApprovalStatus
from brigade_server.services.roles import RoleAssigner, require_manager

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats")
async def get_admin_stats(
    actor: UserRole = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Account and invite code counts."""
    require_manager(actor)
    users_total = await db.scalar(select(func.count()).select_from(UserRole)) or 0
    users_pending = await db.scalar(
        select(func.count()).select_from(UserRole).where(
            UserRole.approval_status == ApprovalStatus.PENDING.value
        )
    ) or 0
    invites_open = await db.scalar(
        select(func.count()).select_from(InviteCode).where(
            InviteCode.is_used == False, InviteCode.revoked == False  # noqa: E712
        )
    ) or 0
    return {
        "users_total": users_total,
        "users_pending_approval": users_pending,
        "invite_codes_unused": invites_open,
    }


@router.get("/users", response_model=list[AccountResponse])
async def list_users(
    actor: UserRole = Depends(get_current_actor),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> list[AccountResponse]:
    """List all accounts with their role and approval status."""
    return [AccountResponse.model_validate(u) for u in await roles.list_all(actor)]


@router.post("/users/{account_id}/approve", response_model=AccountResponse)
async def approve_user(
    account_id: str,
    body: ApproveUserRequest,
    actor: UserRole = Depends(get_current_actor),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> AccountResponse:
    """Approve a pending self-service signup with a role and section."""
    return AccountResponse.model_validate(await roles.approve(actor, account_id, body.role, body.section))


@router.post("/users/{account_id}/role", response_model=AccountResponse)
async def update_user_role(
    account_id: str,
    body: RoleUpdateRequest,
    actor: UserRole = Depends(get_current_actor),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> AccountResponse:
    """Change a user's role."""
    return AccountResponse.model_validate(await roles.update_role(actor, account_id, body.role))
