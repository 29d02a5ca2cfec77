# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later
"""Initial schema: provider accounts, roles, invite codes, members and audit log.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-01

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "provider_accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("provider", sa.String(16), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("metadata_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("provider", "email", name="uq_provider_accounts_provider_email"),
    )
    op.create_index("ix_provider_accounts_provider", "provider_accounts", ["provider"])
    op.create_index("ix_provider_accounts_email", "provider_accounts", ["email"])

    op.create_table(
        "user_roles",
        sa.Column("account_id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(16), nullable=True),
        sa.Column("section", sa.String(16), nullable=True),
        sa.Column("approval_status", sa.String(16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_user_roles_email", "user_roles", ["email"])

    op.create_table(
        "invite_codes",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("default_user_role", sa.String(16), nullable=False),
        sa.Column("section", sa.String(16), nullable=True),
        sa.Column("generated_by", sa.String(255), nullable=True),
        sa.Column("generated_at", sa.BigInteger(), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=False),
        sa.Column("used_by", sa.String(255), nullable=True),
        sa.Column("used_at", sa.BigInteger(), nullable=True),
        sa.Column("revoked", sa.Boolean(), nullable=False),
    )

    op.create_table(
        "members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("section", sa.String(16), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("squad", sa.String(16), nullable=False),
        sa.Column("year", sa.String(16), nullable=False),
        sa.Column("is_squad_leader", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_members_section", "members", ["section"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("actor_email", sa.String(255), nullable=False),
        sa.Column("action_type", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("revert_data", sa.JSON(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("section", sa.String(16), nullable=True),
    )
    op.create_index("ix_audit_logs_action_type", "audit_logs", ["action_type"])
    op.create_index("ix_audit_logs_timestamp", "audit_logs", ["timestamp"])
    op.create_index("ix_audit_logs_section", "audit_logs", ["section"])

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("provider", sa.String(16), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("token", sa.String(32), nullable=False),
        sa.Column("expires_at", sa.BigInteger(), nullable=False),
    )
    op.create_index("ix_password_reset_tokens_email", "password_reset_tokens", ["email"])


def downgrade() -> None:
    op.drop_table("password_reset_tokens")
    op.drop_table("audit_logs")
    op.drop_table("members")
    op.drop_table("invite_codes")
    op.drop_table("user_roles")
    op.drop_table("provider_accounts")
