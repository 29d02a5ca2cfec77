# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Authentication API routes."""

from fastapi import APIRouter, Depends, HTTPException, status

from brigade_server.api.schemas import (
    AccountResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
)
from brigade_server.auth import get_current_account_id, token_for_account
from brigade_server.dependencies import (
    get_audit_log,
    get_auth_coordinator,
    get_primary_provider,
    get_role_assigner,
    get_signup_orchestrator,
)
from brigade_server.identity import IdentityProvider
from brigade_server.rate_limit import rate_limit_auth_dep
from brigade_server.services.audit import AuditLog
from brigade_server.services.auth_migration import AuthMigrationCoordinator
from brigade_server.services.passwords import request_password_reset, reset_password
from brigade_server.services.roles import RoleAssigner
from brigade_server.services.signup import SignupOrchestrator

router = APIRouter(prefix="/auth", tags=["auth"], dependencies=[Depends(rate_limit_auth_dep)])


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    coordinator: AuthMigrationCoordinator = Depends(get_auth_coordinator),
) -> LoginResponse:
    """Sign in. Unmigrated legacy accounts are moved to the current provider on the way."""
    result = await coordinator.login(data.email, data.password)
    return LoginResponse(
        access_token=token_for_account(result.account_id, result.email),
        account_id=result.account_id,
        source=result.source,
    )


@router.post("/signup", response_model=SignupResponse)
async def signup(
    data: SignupRequest,
    orchestrator: SignupOrchestrator = Depends(get_signup_orchestrator),
) -> SignupResponse:
    """Create an approved account from an invite code. Returns JWT."""
    result = await orchestrator.sign_up(
        data.email, data.password, data.invite_code, confirm_password=data.confirm_password
    )
    return SignupResponse(
        access_token=token_for_account(result.account_id, result.email),
        account_id=result.account_id,
        email=result.email,
        role=result.role,
        section=result.section,
        approval_status=result.approval_status,
    )


@router.post("/register", response_model=SignupResponse)
async def register(
    data: RegisterRequest,
    orchestrator: SignupOrchestrator = Depends(get_signup_orchestrator),
) -> SignupResponse:
    """Create an account without an invite. It stays pending until an administrator approves it."""
    result = await orchestrator.sign_up_self_service(
        data.email, data.password, confirm_password=data.confirm_password
    )
    return SignupResponse(
        account_id=result.account_id,
        email=result.email,
        approval_status=result.approval_status,
    )


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    provider: IdentityProvider = Depends(get_primary_provider),
) -> dict:
    """Request password reset. Sends a code to the email."""
    await request_password_reset(provider, data.email)
    return {"message": "If an account exists, you will receive a password reset code."}


@router.post("/reset-password")
async def reset_password_route(
    data: ResetPasswordRequest,
    provider: IdentityProvider = Depends(get_primary_provider),
    audit: AuditLog = Depends(get_audit_log),
) -> dict:
    """Reset password with code from email."""
    await reset_password(provider, audit, data.email, data.code, data.new_password, data.confirm_password)
    return {"message": "Password updated successfully! You can now log in."}


@router.get("/me", response_model=AccountResponse)
async def get_me(
    account_id: str = Depends(get_current_account_id),
    roles: RoleAssigner = Depends(get_role_assigner),
) -> AccountResponse:
    """Get current account's role, section and approval status."""
    row = await roles.get(account_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No role record for this account")
    return AccountResponse.model_validate(row)
