# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Enumerations shared by models, services and API schemas."""

import enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    CAPTAIN = "captain"
    OFFICER = "officer"
    LEADER = "leader"


# Roles allowed to manage invite codes and other users.
MANAGER_ROLES = frozenset({Role.ADMIN, Role.CAPTAIN})


class Section(str, enum.Enum):
    """Organizational subdivision; decides the squad/year vocabulary."""

    COMPANY = "company"
    JUNIOR = "junior"


DEFAULT_SECTION = Section.COMPANY


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


class AuditActionType(str, enum.Enum):
    CREATE_BOY = "CREATE_BOY"
    UPDATE_BOY = "UPDATE_BOY"
    DELETE_BOY = "DELETE_BOY"
    USE_INVITE_CODE = "USE_INVITE_CODE"
    GENERATE_INVITE_CODE = "GENERATE_INVITE_CODE"
    REVOKE_INVITE_CODE = "REVOKE_INVITE_CODE"
    CLEAR_INVITE_CODES = "CLEAR_INVITE_CODES"
    MIGRATE_ACCOUNT = "MIGRATE_ACCOUNT"
    UPDATE_USER_ROLE = "UPDATE_USER_ROLE"
    APPROVE_USER = "APPROVE_USER"
    PASSWORD_RESET = "PASSWORD_RESET"


class MigrationPhase(str, enum.Enum):
    """Which identity provider is authoritative during the provider cutover."""

    LEGACY = "legacy"
    DUAL = "dual"
    CURRENT = "current"
