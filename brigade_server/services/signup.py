# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite-gated signup and self-service signup.

Invite signup runs five steps, each only after the previous one succeeded:
fetch and check the code, create the account, assign role and section, mark the
code consumed, append the audit entry. The account is created before the code
is consumed so a failed account creation leaves the code usable. A failure
after account creation is reported as PartialSignupError and is not rolled back.
"""

import logging
from dataclasses import dataclass

from brigade_server.clock import now_ms
from brigade_server.config import settings
from brigade_server.errors import (
    AuditWriteError,
    EmailInUseError,
    IdentityProviderError,
    InputValidationError,
    InvalidEmailError,
    InvalidInviteError,
    InviteAlreadyUsedError,
    InviteCodeConflictError,
    PartialSignupError,
    ProviderError,
    RoleAssignmentError,
    WeakPasswordError,
)
from brigade_server.identity import IdentityProvider, describe_provider_error
from brigade_server.identity.base import EMAIL_ALREADY_IN_USE, INVALID_EMAIL, WEAK_PASSWORD
from brigade_server.models.enums import DEFAULT_SECTION, ApprovalStatus, AuditActionType, Role, Section
from brigade_server.services.audit import AuditLog
from brigade_server.services.invite_codes import InviteCodeStore, invite_rejection_reason
from brigade_server.services.roles import RoleAssigner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupResult:
    account_id: str
    email: str
    role: Role | None
    section: Section | None
    approval_status: ApprovalStatus


def validate_signup_input(
    email: str,
    password: str,
    confirm_password: str | None = None,
    invite_code: str | None = None,
    require_invite: bool = True,
) -> None:
    """Check the form fields before anything remote is touched.

    Raises:
        InputValidationError: With one message per offending field.
    """
    errors: dict[str, str] = {}
    if not email or not email.strip():
        errors["email"] = "Email is required."
    if not password:
        errors["password"] = "Password is required."
    elif len(password) < settings.min_password_length:
        errors["password"] = f"Password must be at least {settings.min_password_length} characters long."
    if confirm_password is not None:
        if not confirm_password:
            errors["confirm_password"] = "Confirm password is required."
        elif password != confirm_password:
            errors["confirm_password"] = "Passwords do not match."
    if require_invite and (not invite_code or not invite_code.strip()):
        errors["invite_code"] = "Invite code is required."
    if errors:
        raise InputValidationError(errors)


def signup_error(err: IdentityProviderError) -> ProviderError:
    """Map a provider failure during account creation to its signup category."""
    message = describe_provider_error(err.code)
    if err.code == EMAIL_ALREADY_IN_USE:
        return EmailInUseError(err.code, message)
    if err.code == WEAK_PASSWORD:
        return WeakPasswordError(err.code, message)
    if err.code == INVALID_EMAIL:
        return InvalidEmailError(err.code, message)
    return ProviderError(err.code, "Failed to create account. Please try again.")


class SignupOrchestrator:
    """Creates accounts on `provider`, the provider that owns new accounts in the current phase."""

    def __init__(
        self,
        provider: IdentityProvider,
        invite_codes: InviteCodeStore,
        roles: RoleAssigner,
        audit: AuditLog,
    ):
        self.provider = provider
        self.invite_codes = invite_codes
        self.roles = roles
        self.audit = audit

    async def _create_account(self, email: str, password: str):
        try:
            return await self.provider.sign_up(email.strip(), password)
        except IdentityProviderError as e:
            logger.warning("Signup for %s rejected by provider: %s", email, e.code)
            raise signup_error(e) from e

    async def sign_up(
        self,
        email: str,
        password: str,
        invite_code: str,
        confirm_password: str | None = None,
    ) -> SignupResult:
        validate_signup_input(email, password, confirm_password, invite_code)

        code = await self.invite_codes.fetch(invite_code)
        reason = invite_rejection_reason(code, now_ms())
        if reason:
            logger.warning("Signup for %s with invite code %s rejected: %s", email, invite_code, reason)
            raise InvalidInviteError(invite_code.strip(), reason)
        code_id = code.id
        role = Role(code.default_user_role)
        section = Section(code.section) if code.section else DEFAULT_SECTION

        account = await self._create_account(email, password)

        try:
            await self.roles.set_role(account.id, account.email, role, section)
        except RoleAssignmentError as e:
            logger.exception("Account %s created but role assignment failed", account.id)
            raise PartialSignupError(account.id, "role", e) from e

        try:
            await self.invite_codes.mark_consumed(code_id, used_by=account.email, used_at=now_ms())
        except InviteCodeConflictError as e:
            logger.error(
                "Account %s created but invite code %s was consumed concurrently", account.id, code_id
            )
            raise InviteAlreadyUsedError(code_id, account.id) from e
        except Exception as e:
            logger.exception("Account %s created but invite code %s not marked used", account.id, code_id)
            raise PartialSignupError(account.id, "consume", e) from e

        try:
            await self.audit.append(
                account.email,
                AuditActionType.USE_INVITE_CODE,
                f"New user '{account.email}' signed up using invite code '{code_id}' "
                f"and assigned role '{role.value}'.",
                {"accountId": account.id, "inviteCodeId": code_id, "assignedRole": role},
                section,
            )
        except AuditWriteError as e:
            raise PartialSignupError(account.id, "audit", e) from e

        logger.info("Signed up %s with invite code %s as %s (%s)", account.email, code_id, role.value, section.value)
        return SignupResult(account.id, account.email, role, section, ApprovalStatus.APPROVED)

    async def sign_up_self_service(
        self, email: str, password: str, confirm_password: str | None = None
    ) -> SignupResult:
        """Create an account with no role; an administrator approves it later."""
        validate_signup_input(email, password, confirm_password, require_invite=False)
        account = await self._create_account(email, password)
        try:
            await self.roles.register_pending(account.id, account.email)
        except RoleAssignmentError as e:
            logger.exception("Account %s created but pending registration failed", account.id)
            raise PartialSignupError(account.id, "role", e) from e
        logger.info("Self-service signup for %s awaiting approval", account.email)
        return SignupResult(account.id, account.email, None, None, ApprovalStatus.PENDING)
