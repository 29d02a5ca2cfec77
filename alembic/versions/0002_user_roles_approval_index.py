# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later
"""Add index on user_roles.approval_status for the pending-approval list.

Revision ID: 0002_approval_idx
Revises: 0001_initial
Create Date: 2026-10-08

"""
from typing import Sequence, Union

from alembic import op

revision: str = "0002_approval_idx"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        "ix_user_roles_approval_status",
        "user_roles",
        ["approval_status"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_user_roles_approval_status", table_name="user_roles")
