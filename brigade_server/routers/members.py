# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Member and audit log API routes. Require an approved account."""

from fastapi import APIRouter, Depends, Query

from brigade_server.api.schemas import AuditLogResponse, MemberCreate, MemberResponse, MemberUpdate
from brigade_server.dependencies import get_audit_log, get_current_actor, get_member_service
from brigade_server.models import UserRole
from brigade_server.models.enums import Section
from brigade_server.services.audit import AuditLog
from brigade_server.services.members import MemberService

router = APIRouter(tags=["members"])


@router.get("/members", response_model=list[MemberResponse])
async def list_members(
    section: Section = Query(...),
    _actor: UserRole = Depends(get_current_actor),
    members: MemberService = Depends(get_member_service),
) -> list[MemberResponse]:
    return [MemberResponse.model_validate(m) for m in await members.list_section(section)]


@router.post("/members", response_model=MemberResponse)
async def create_member(
    body: MemberCreate,
    actor: UserRole = Depends(get_current_actor),
    members: MemberService = Depends(get_member_service),
) -> MemberResponse:
    member = await members.create_member(
        actor.email, body.section, body.name, body.squad, body.year, body.is_squad_leader
    )
    return MemberResponse.model_validate(member)


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: str,
    body: MemberUpdate,
    actor: UserRole = Depends(get_current_actor),
    members: MemberService = Depends(get_member_service),
) -> MemberResponse:
    """Update fields; unchanged values produce no audit entry."""
    changes = body.model_dump(exclude_none=True)
    return MemberResponse.model_validate(await members.update_member(actor.email, member_id, changes))


@router.delete("/members/{member_id}")
async def delete_member(
    member_id: str,
    actor: UserRole = Depends(get_current_actor),
    members: MemberService = Depends(get_member_service),
) -> dict:
    await members.delete_member(actor.email, member_id)
    return {"deleted": member_id}


@router.get("/audit-logs", response_model=list[AuditLogResponse])
async def list_audit_logs(
    section: Section | None = Query(None, description="Section logs plus global ones; omit for global only"),
    limit: int = Query(50, ge=1, le=500),
    _actor: UserRole = Depends(get_current_actor),
    audit: AuditLog = Depends(get_audit_log),
) -> list[AuditLogResponse]:
    return [AuditLogResponse.model_validate(e) for e in await audit.list_entries(section, limit)]
