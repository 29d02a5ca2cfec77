# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""User role model - role, section and approval status per account."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from brigade_server.models.base import Base
from brigade_server.models.enums import ApprovalStatus
from brigade_server.models.timestamp import TimestampMixin


class UserRole(Base, TimestampMixin):
    """Application-side record for an account. Role and section stay empty while pending."""

    __tablename__ = "user_roles"

    account_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[str | None] = mapped_column(String(16), nullable=True)
    section: Mapped[str | None] = mapped_column(String(16), nullable=True)
    approval_status: Mapped[str] = mapped_column(
        String(16), default=ApprovalStatus.PENDING.value, nullable=False, index=True
    )
