# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite code model - single-use signup token that pre-binds a role and section."""

from sqlalchemy import BigInteger, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from brigade_server.models.base import Base


class InviteCode(Base):
    """Invitation token entered at signup. Times are epoch milliseconds."""

    __tablename__ = "invite_codes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    default_user_role: Mapped[str] = mapped_column(String(16), nullable=False)
    section: Mapped[str | None] = mapped_column(String(16), nullable=True)
    generated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    generated_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    used_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
