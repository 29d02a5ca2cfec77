# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Credential store of the database-backed identity providers."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from brigade_server.models.base import Base
from brigade_server.models.timestamp import TimestampMixin


class ProviderAccount(Base, TimestampMixin):
    """Account as seen by one identity provider. Email is unique per provider namespace."""

    __tablename__ = "provider_accounts"
    __table_args__ = (UniqueConstraint("provider", "email", name="uq_provider_accounts_provider_email"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    provider: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)
