# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Password reset token model."""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from brigade_server.models.base import Base


class PasswordResetToken(Base):
    """One-time code for password reset, scoped to one provider namespace. Expiry in epoch ms."""

    __tablename__ = "password_reset_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    provider: Mapped[str] = mapped_column(String(16), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    token: Mapped[str] = mapped_column(String(32), nullable=False)
    expires_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
