# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite code store: lookup, conditional consumption, and admin management."""

import logging
import secrets
import string

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.clock import MS_PER_HOUR, now_ms
from brigade_server.config import settings
from brigade_server.errors import (
    BrigadeError,
    InviteCodeConflictError,
    InviteRejection,
    NotFoundError,
    PermissionDeniedError,
)
from brigade_server.models import InviteCode, UserRole
from brigade_server.models.enums import AuditActionType, Role, Section
from brigade_server.services.audit import AuditLog
from brigade_server.services.roles import require_manager

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


def invite_rejection_reason(code: InviteCode | None, now: int) -> InviteRejection | None:
    """Why a code cannot be consumed at `now` (epoch ms), or None if it can."""
    if code is None:
        return "not_found"
    if code.revoked:
        return "revoked"
    if code.is_used:
        return "used"
    if code.expires_at <= now:
        return "expired"
    return None


def is_consumable(code: InviteCode | None, now: int) -> bool:
    return invite_rejection_reason(code, now) is None


def invite_section(code: InviteCode) -> Section | None:
    return Section(code.section) if code.section else None


class InviteCodeStore:
    """Invite codes table. `fetch` does not judge consumability; callers do."""

    def __init__(self, db: AsyncSession, audit: AuditLog | None = None):
        self.db = db
        self.audit = audit or AuditLog(db)

    async def fetch(self, code: str) -> InviteCode | None:
        result = await self.db.execute(
            select(InviteCode).where(InviteCode.id == code.strip()).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def mark_consumed(self, code_id: str, used_by: str, used_at: int) -> None:
        """Mark a code used, only if it is still unused and not revoked.

        The check and the write are one UPDATE, so two signups racing on the same
        code cannot both succeed.

        Raises:
            InviteCodeConflictError: The code was already used or revoked at write time.
        """
        result = await self.db.execute(
            update(InviteCode)
            .where(
                InviteCode.id == code_id,
                InviteCode.is_used.is_(False),
                InviteCode.revoked.is_(False),
            )
            .values(is_used=True, used_by=used_by, used_at=used_at)
            .execution_options(synchronize_session=False)
        )
        matched = result.rowcount
        await self.db.commit()
        if matched != 1:
            logger.warning("Invite code %s already consumed; %s lost the race", code_id, used_by)
            raise InviteCodeConflictError(code_id)
        logger.info("Invite code %s consumed by %s", code_id, used_by)

    async def _new_code_id(self) -> str:
        for _ in range(10):
            code_id = "".join(secrets.choice(CODE_ALPHABET) for _ in range(settings.invite_code_length))
            if await self.db.get(InviteCode, code_id) is None:
                return code_id
        raise BrigadeError("Could not generate a unique invite code")

    async def generate(
        self,
        actor: UserRole | None,
        section: Section,
        ttl_hours: float | None = None,
        default_role: Role = Role.OFFICER,
    ) -> InviteCode:
        """Create a fresh code for `section`. Admins and captains only."""
        require_manager(actor)
        if actor.role == Role.CAPTAIN.value and default_role == Role.ADMIN:
            raise PermissionDeniedError("Captains cannot issue Admin invite codes.")
        now = now_ms()
        code = InviteCode(
            id=await self._new_code_id(),
            default_user_role=default_role.value,
            section=section.value,
            generated_by=actor.email,
            generated_at=now,
            expires_at=now + int((ttl_hours or settings.invite_code_ttl_hours) * MS_PER_HOUR),
            is_used=False,
            revoked=False,
        )
        self.db.add(code)
        await self.db.commit()
        await self.audit.append(
            actor.email,
            AuditActionType.GENERATE_INVITE_CODE,
            f"Generated invite code {code.id} for {section.value} ({default_role.value}).",
            {"inviteCodeId": code.id},
            section,
        )
        return code

    async def revoke(self, actor: UserRole | None, code_id: str) -> InviteCode:
        """Revoke an unused code. It is also marked used so it can never be consumed."""
        require_manager(actor)
        result = await self.db.execute(
            update(InviteCode)
            .where(
                InviteCode.id == code_id,
                InviteCode.is_used.is_(False),
                InviteCode.revoked.is_(False),
            )
            .values(
                is_used=True,
                revoked=True,
                used_by=f"System (Revoked by {actor.email})",
                used_at=now_ms(),
            )
            .execution_options(synchronize_session=False)
        )
        matched = result.rowcount
        await self.db.commit()
        if matched != 1:
            if await self.fetch(code_id) is None:
                raise NotFoundError(f"Invite code '{code_id}' not found")
            raise InviteCodeConflictError(code_id)
        code = await self.fetch(code_id)
        await self.audit.append(
            actor.email,
            AuditActionType.REVOKE_INVITE_CODE,
            f"Revoked invite code: {code_id}",
            {"inviteCodeId": code_id},
            invite_section(code),
        )
        return code

    async def list_all(self, actor: UserRole | None) -> list[InviteCode]:
        require_manager(actor)
        result = await self.db.execute(select(InviteCode).order_by(InviteCode.generated_at.desc()))
        return list(result.scalars().all())

    async def clear_used_and_revoked(self, actor: UserRole | None) -> int:
        """Delete spent codes. Returns how many were removed."""
        require_manager(actor)
        result = await self.db.execute(
            select(InviteCode.id).where(or_(InviteCode.is_used.is_(True), InviteCode.revoked.is_(True)))
        )
        ids = sorted(result.scalars().all())
        if not ids:
            return 0
        await self.db.execute(
            delete(InviteCode).where(InviteCode.id.in_(ids)).execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.audit.append(
            actor.email,
            AuditActionType.CLEAR_INVITE_CODES,
            f"Cleared {len(ids)} used or revoked invite codes.",
            {"inviteCodeIds": ids},
        )
        return len(ids)
