# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Member ("boy") model."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from brigade_server.models.base import Base
from brigade_server.models.timestamp import TimestampMixin


class Member(Base, TimestampMixin):
    """Member of a section. Squad and year are stored as text since each section has its own vocabulary."""

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    section: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    squad: Mapped[str] = mapped_column(String(16), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    is_squad_leader: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "section": self.section,
            "name": self.name,
            "squad": self.squad,
            "year": self.year,
            "is_squad_leader": self.is_squad_leader,
        }
