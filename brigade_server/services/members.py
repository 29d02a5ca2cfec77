# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Member records. Every change is audited with the prior record so it can be reverted."""

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.errors import InputValidationError, NotFoundError
from brigade_server.models import Member
from brigade_server.models.enums import AuditActionType, Section
from brigade_server.services.audit import AuditLog

logger = logging.getLogger(__name__)

# Editable fields and how they are named in audit descriptions
EDITABLE_FIELDS = {
    "name": "name",
    "squad": "squad",
    "year": "year",
    "is_squad_leader": "squad leader status",
}


def member_diff(member: Member, changes: dict[str, Any]) -> dict[str, Any]:
    """Fields in `changes` whose value differs from the stored record."""
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise InputValidationError({f: "Field cannot be changed." for f in sorted(unknown)})
    diff = {}
    for field, value in changes.items():
        if field == "name":
            value = value.strip()
        elif field == "is_squad_leader":
            value = bool(value)
        else:
            value = str(value)
        if getattr(member, field) != value:
            diff[field] = value
    return diff


def describe_changes(diff: dict[str, Any]) -> str:
    parts = []
    for field, value in diff.items():
        shown = f'"{value}"' if field == "name" else value
        parts.append(f"{EDITABLE_FIELDS[field]} to {shown}")
    return ", ".join(parts)


class MemberService:
    def __init__(self, db: AsyncSession, audit: AuditLog | None = None):
        self.db = db
        self.audit = audit or AuditLog(db)

    async def get(self, member_id: str) -> Member:
        result = await self.db.execute(select(Member).where(Member.id == member_id))
        member = result.scalar_one_or_none()
        if not member:
            raise NotFoundError(f"Member {member_id} not found")
        return member

    async def list_section(self, section: Section) -> list[Member]:
        result = await self.db.execute(
            select(Member).where(Member.section == section.value).order_by(Member.name)
        )
        return list(result.scalars().all())

    async def create_member(
        self,
        actor_email: str,
        section: Section,
        name: str,
        squad: str | int,
        year: str | int,
        is_squad_leader: bool = False,
    ) -> Member:
        if not name or not name.strip():
            raise InputValidationError({"name": "Name cannot be empty."})
        member = Member(
            id=str(uuid.uuid4()),
            section=section.value,
            name=name.strip(),
            squad=str(squad),
            year=str(year),
            is_squad_leader=is_squad_leader,
        )
        self.db.add(member)
        await self.db.commit()
        await self.audit.append(
            actor_email,
            AuditActionType.CREATE_BOY,
            f"Added new boy: {member.name}",
            {"boyId": member.id},
            section,
        )
        return member

    async def update_member(self, actor_email: str, member_id: str, changes: dict[str, Any]) -> Member:
        """Apply changes. With nothing actually different, nothing is written or audited."""
        if "name" in changes and not str(changes["name"] or "").strip():
            raise InputValidationError({"name": "Name cannot be empty."})
        member = await self.get(member_id)
        diff = member_diff(member, changes)
        if not diff:
            return member
        before = member.to_dict()
        for field, value in diff.items():
            setattr(member, field, value)
        await self.db.commit()
        await self.audit.append(
            actor_email,
            AuditActionType.UPDATE_BOY,
            f"Updated {before['name']}: changed {describe_changes(diff)}.",
            {"boyData": before},
            Section(member.section),
        )
        return member

    async def delete_member(self, actor_email: str, member_id: str) -> None:
        member = await self.get(member_id)
        before = member.to_dict()
        await self.db.delete(member)
        await self.db.commit()
        await self.audit.append(
            actor_email,
            AuditActionType.DELETE_BOY,
            f"Deleted boy: {before['name']}",
            {"boyData": before},
            Section(before["section"]),
        )
