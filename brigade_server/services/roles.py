# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Role and section assignment for accounts, plus the admin role-management rules."""

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.errors import NotFoundError, PermissionDeniedError, RoleAssignmentError
from brigade_server.models import UserRole
from brigade_server.models.enums import MANAGER_ROLES, ApprovalStatus, AuditActionType, Role, Section
from brigade_server.services.audit import AuditLog

logger = logging.getLogger(__name__)


def require_manager(actor: UserRole | None) -> UserRole:
    """Raise unless the actor is an approved admin or captain."""
    if (
        actor is None
        or actor.approval_status != ApprovalStatus.APPROVED.value
        or actor.role not in {r.value for r in MANAGER_ROLES}
    ):
        raise PermissionDeniedError("Permission denied: only Admins and Captains can do this.")
    return actor


class RoleAssigner:
    """Binds accounts to a role and section in the user_roles table."""

    def __init__(self, db: AsyncSession, audit: AuditLog | None = None):
        self.db = db
        self.audit = audit or AuditLog(db)

    async def get(self, account_id: str) -> UserRole | None:
        result = await self.db.execute(
            select(UserRole).where(UserRole.account_id == account_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _insert(self, row: UserRole) -> UserRole:
        if await self.get(row.account_id):
            raise RoleAssignmentError(f"Account {row.account_id} already has a role record")
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise RoleAssignmentError(f"Account {row.account_id} already has a role record") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RoleAssignmentError(f"Failed to set role for account {row.account_id}") from e
        return row

    async def set_role(self, account_id: str, email: str, role: Role, section: Section) -> UserRole:
        """Grant role and section to a new account. A role is assigned once; a second call fails."""
        row = await self._insert(
            UserRole(
                account_id=account_id,
                email=email,
                role=role.value,
                section=section.value,
                approval_status=ApprovalStatus.APPROVED.value,
            )
        )
        logger.info("Assigned role %s (%s) to %s", role.value, section.value, email)
        return row

    async def register_pending(self, account_id: str, email: str) -> UserRole:
        """Record a self-service signup awaiting administrator approval."""
        row = await self._insert(
            UserRole(account_id=account_id, email=email, approval_status=ApprovalStatus.PENDING.value)
        )
        logger.info("Registered %s as pending approval", email)
        return row

    async def transfer(self, old_account_id: str, new_account_id: str) -> bool:
        """Move a role record to another account id. Returns False when there was nothing to move."""
        try:
            result = await self.db.execute(
                update(UserRole)
                .where(UserRole.account_id == old_account_id)
                .values(account_id=new_account_id)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise RoleAssignmentError(
                f"Failed to move role from {old_account_id} to {new_account_id}"
            ) from e
        return result.rowcount == 1

    async def list_all(self, actor: UserRole | None) -> list[UserRole]:
        require_manager(actor)
        result = await self.db.execute(select(UserRole).order_by(UserRole.created_at.desc()))
        return list(result.scalars().all())

    async def update_role(self, actor: UserRole | None, target_id: str, new_role: Role) -> UserRole:
        """Change an approved user's role, enforcing who may change whom."""
        require_manager(actor)
        target = await self.get(target_id)
        if not target:
            raise NotFoundError("User not found")
        is_self = actor.account_id == target.account_id
        old_role = target.role

        if actor.role == Role.ADMIN.value:
            if is_self and new_role != Role.ADMIN:
                raise PermissionDeniedError("Admins cannot demote themselves.")
            if old_role == Role.ADMIN.value and new_role != Role.ADMIN:
                raise PermissionDeniedError("Admins cannot demote other Admins.")
        if actor.role == Role.CAPTAIN.value:
            if old_role == Role.ADMIN.value:
                raise PermissionDeniedError("Captains cannot change an Admin's role.")
            if is_self and new_role == Role.ADMIN:
                raise PermissionDeniedError("Captains cannot promote themselves to Admin.")
            if is_self and new_role == Role.OFFICER:
                raise PermissionDeniedError("Captains cannot demote themselves to Officer.")

        if old_role == new_role.value:
            return target
        target.role = new_role.value
        await self.db.commit()
        await self.audit.append(
            actor.email,
            AuditActionType.UPDATE_USER_ROLE,
            f"Updated role for user {target.email} from {old_role} to {new_role.value}.",
            {"uid": target.account_id, "oldRole": old_role, "newRole": new_role},
        )
        return target

    async def approve(
        self, actor: UserRole | None, target_id: str, role: Role, section: Section
    ) -> UserRole:
        """Approve a pending self-service signup and grant its role and section."""
        require_manager(actor)
        target = await self.get(target_id)
        if not target:
            raise NotFoundError("User not found")
        if target.approval_status != ApprovalStatus.PENDING.value:
            raise RoleAssignmentError(f"User {target.email} is not pending approval")
        if actor.role == Role.CAPTAIN.value and role == Role.ADMIN:
            raise PermissionDeniedError("Captains cannot grant the Admin role.")
        target.role = role.value
        target.section = section.value
        target.approval_status = ApprovalStatus.APPROVED.value
        await self.db.commit()
        await self.audit.append(
            actor.email,
            AuditActionType.APPROVE_USER,
            f"Approved user {target.email} as {role.value} ({section.value}).",
            {"uid": target.account_id},
        )
        return target
