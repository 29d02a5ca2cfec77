# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from brigade_server.models.base import Base
from brigade_server.models.invite_code import InviteCode
from brigade_server.models.provider_account import ProviderAccount
from brigade_server.models.user_role import UserRole
from brigade_server.models.audit_log import AuditLogEntry
from brigade_server.models.member import Member
from brigade_server.models.password_reset import PasswordResetToken

__all__ = [
    "Base",
    "InviteCode",
    "ProviderAccount",
    "UserRole",
    "AuditLogEntry",
    "Member",
    "PasswordResetToken",
]
