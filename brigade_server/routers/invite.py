# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite code API - public status check, and generation/revocation for admins and captains."""

from fastapi import APIRouter, Depends

from brigade_server.api.schemas import InviteCodeCreate, InviteCodeResponse, InviteStatusResponse
from brigade_server.clock import now_ms
from brigade_server.dependencies import get_current_actor, get_invite_codes
from brigade_server.errors import InvalidInviteError
from brigade_server.models import UserRole
from brigade_server.services.invite_codes import InviteCodeStore, invite_rejection_reason, invite_section

router = APIRouter(prefix="/invite-codes", tags=["invite"])


@router.get("/{code}/status", response_model=InviteStatusResponse)
async def invite_status(
    code: str,
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
) -> InviteStatusResponse:
    """Whether a code can be used to sign up. The rejection reason is not disclosed."""
    invite = await invite_codes.fetch(code)
    if invite_rejection_reason(invite, now_ms()):
        return InviteStatusResponse(valid=False, message=InvalidInviteError.public_message)
    return InviteStatusResponse(valid=True, section=invite_section(invite))


@router.post("", response_model=InviteCodeResponse)
async def generate_invite_code(
    body: InviteCodeCreate,
    actor: UserRole = Depends(get_current_actor),
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
) -> InviteCodeResponse:
    """Generate a new invite code. Admins and captains only."""
    code = await invite_codes.generate(actor, body.section, body.ttl_hours, body.default_user_role)
    return InviteCodeResponse.model_validate(code)


@router.get("", response_model=list[InviteCodeResponse])
async def list_invite_codes(
    actor: UserRole = Depends(get_current_actor),
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
) -> list[InviteCodeResponse]:
    """All invite codes, newest first. Admins and captains only."""
    return [InviteCodeResponse.model_validate(c) for c in await invite_codes.list_all(actor)]


@router.post("/{code}/revoke", response_model=InviteCodeResponse)
async def revoke_invite_code(
    code: str,
    actor: UserRole = Depends(get_current_actor),
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
) -> InviteCodeResponse:
    """Revoke an unused invite code."""
    return InviteCodeResponse.model_validate(await invite_codes.revoke(actor, code))


@router.delete("/spent")
async def clear_spent_invite_codes(
    actor: UserRole = Depends(get_current_actor),
    invite_codes: InviteCodeStore = Depends(get_invite_codes),
) -> dict:
    """Delete all used and revoked invite codes."""
    return {"deleted": await invite_codes.clear_used_and_revoked(actor)}
