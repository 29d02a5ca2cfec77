# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Append-only audit log.

Each entry carries `revert_data`, the payload an external revert step needs to
issue the inverse mutation. The payload shape is fixed per action type by the
models below and is validated before writing.
"""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.clock import now_ms
from brigade_server.errors import AuditWriteError
from brigade_server.models import AuditLogEntry
from brigade_server.models.enums import AuditActionType, Role, Section

logger = logging.getLogger(__name__)


class _RevertData(BaseModel):
    model_config = ConfigDict(extra="forbid")


class CreateBoyRevert(_RevertData):
    boyId: str


class BoySnapshotRevert(_RevertData):
    boyData: dict[str, Any]


class UseInviteCodeRevert(_RevertData):
    accountId: str
    inviteCodeId: str
    assignedRole: Role


class InviteCodeRevert(_RevertData):
    inviteCodeId: str


class ClearInviteCodesRevert(_RevertData):
    inviteCodeIds: list[str]


class MigrateAccountRevert(_RevertData):
    accountId: str
    legacyAccountId: str
    roleLinked: bool


class UpdateUserRoleRevert(_RevertData):
    uid: str
    oldRole: Role | None
    newRole: Role


class ApproveUserRevert(_RevertData):
    uid: str


class EmptyRevert(_RevertData):
    pass


REVERT_DATA_MODELS: dict[AuditActionType, type[_RevertData]] = {
    AuditActionType.CREATE_BOY: CreateBoyRevert,
    AuditActionType.UPDATE_BOY: BoySnapshotRevert,
    AuditActionType.DELETE_BOY: BoySnapshotRevert,
    AuditActionType.USE_INVITE_CODE: UseInviteCodeRevert,
    AuditActionType.GENERATE_INVITE_CODE: InviteCodeRevert,
    AuditActionType.REVOKE_INVITE_CODE: InviteCodeRevert,
    AuditActionType.CLEAR_INVITE_CODES: ClearInviteCodesRevert,
    AuditActionType.MIGRATE_ACCOUNT: MigrateAccountRevert,
    AuditActionType.UPDATE_USER_ROLE: UpdateUserRoleRevert,
    AuditActionType.APPROVE_USER: ApproveUserRevert,
    AuditActionType.PASSWORD_RESET: EmptyRevert,
}


class AuditLog:
    """Writes and reads audit entries. Entries are never updated or deleted."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        actor_email: str,
        action_type: AuditActionType,
        description: str,
        revert_data: dict[str, Any],
        section: Section | None = None,
    ) -> AuditLogEntry:
        """Write one entry. Call only after the mutation it describes has been committed.

        Raises:
            AuditWriteError: The entry could not be stored. Never swallowed by callers.
        """
        payload = REVERT_DATA_MODELS[action_type].model_validate(revert_data).model_dump(mode="json")
        entry = AuditLogEntry(
            actor_email=actor_email,
            action_type=action_type.value,
            description=description,
            revert_data=payload,
            timestamp=now_ms(),
            section=section.value if section else None,
        )
        self.db.add(entry)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception("Audit append failed: %s %s", action_type.value, description)
            raise AuditWriteError(f"Could not record {action_type.value}") from e
        logger.info("Audit %s by %s: %s", action_type.value, actor_email, description)
        return entry

    async def list_entries(self, section: Section | None = None, limit: int = 50) -> list[AuditLogEntry]:
        """Entries for a section plus global entries (no section), newest first."""
        query = select(AuditLogEntry)
        if section is None:
            query = query.where(AuditLogEntry.section.is_(None))
        else:
            query = query.where(
                or_(AuditLogEntry.section == section.value, AuditLogEntry.section.is_(None))
            )
        result = await self.db.execute(
            query.order_by(AuditLogEntry.timestamp.desc(), AuditLogEntry.id.desc()).limit(limit)
        )
        return list(result.scalars().all())
