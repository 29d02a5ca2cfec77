# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from brigade_server.models.enums import ApprovalStatus, Role, Section


# Auth
class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    account_id: str
    source: str


class SignupRequest(BaseModel):
    email: str
    password: str
    confirm_password: str | None = None
    invite_code: str


class RegisterRequest(BaseModel):
    email: str
    password: str
    confirm_password: str | None = None


class SignupResponse(BaseModel):
    access_token: str | None = None
    token_type: str = "bearer"
    account_id: str
    email: str
    role: Role | None = None
    section: Section | None = None
    approval_status: ApprovalStatus


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    email: str
    code: str
    new_password: str
    confirm_password: str


class AccountResponse(BaseModel):
    account_id: str
    email: str
    role: Role | None = None
    section: Section | None = None
    approval_status: ApprovalStatus

    model_config = ConfigDict(from_attributes=True)


# Invite codes
class InviteCodeCreate(BaseModel):
    section: Section
    default_user_role: Role = Role.OFFICER
    ttl_hours: float | None = None


class InviteCodeResponse(BaseModel):
    id: str
    default_user_role: Role
    section: Section | None = None
    generated_by: str | None = None
    generated_at: int
    expires_at: int
    is_used: bool
    used_by: str | None = None
    used_at: int | None = None
    revoked: bool

    model_config = ConfigDict(from_attributes=True)


class InviteStatusResponse(BaseModel):
    valid: bool
    message: str | None = None
    section: Section | None = None


# Admin
class ApproveUserRequest(BaseModel):
    role: Role = Role.OFFICER
    section: Section


class RoleUpdateRequest(BaseModel):
    role: Role


# Audit log
class AuditLogResponse(BaseModel):
    id: int
    actor_email: str
    action_type: str
    description: str
    revert_data: dict[str, Any]
    timestamp: int
    section: Section | None = None

    model_config = ConfigDict(from_attributes=True)


# Members
class MemberCreate(BaseModel):
    section: Section
    name: str
    squad: str | int
    year: str | int
    is_squad_leader: bool = False


class MemberUpdate(BaseModel):
    name: str | None = None
    squad: str | int | None = None
    year: str | int | None = None
    is_squad_leader: bool | None = None


class MemberResponse(BaseModel):
    id: str
    section: Section
    name: str
    squad: str
    year: str
    is_squad_leader: bool

    model_config = ConfigDict(from_attributes=True)
