# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Password reset: request a code by email, then set a new password with it."""

import logging

from brigade_server.config import settings
from brigade_server.errors import InputValidationError
from brigade_server.identity import AccountHandle, IdentityProvider
from brigade_server.models.enums import AuditActionType
from brigade_server.services.audit import AuditLog

logger = logging.getLogger(__name__)


async def request_password_reset(provider: IdentityProvider, email: str) -> None:
    """Send a reset code if the account exists. Callers answer the same way either way."""
    if not email or not email.strip():
        raise InputValidationError({"email": "Email is required."})
    await provider.send_password_reset(email.strip())
    logger.info("Password reset requested for %s", email)


def validate_new_password(new_password: str, confirm_password: str) -> None:
    errors: dict[str, str] = {}
    if not new_password:
        errors["new_password"] = "New password is required."
    elif len(new_password) < settings.min_password_length:
        errors["new_password"] = (
            f"New password must be at least {settings.min_password_length} characters long."
        )
    if not confirm_password:
        errors["confirm_password"] = "Confirm new password is required."
    elif new_password != confirm_password:
        errors["confirm_password"] = "New password and confirmation do not match."
    if errors:
        raise InputValidationError(errors)


async def reset_password(
    provider: IdentityProvider,
    audit: AuditLog,
    email: str,
    code: str,
    new_password: str,
    confirm_password: str,
) -> AccountHandle:
    """Set a new password using an emailed code. Audited without a section."""
    validate_new_password(new_password, confirm_password)
    handle = await provider.confirm_password_reset(email.strip(), code.strip(), new_password)
    await audit.append(
        handle.email,
        AuditActionType.PASSWORD_RESET,
        f"User {handle.email} successfully reset their password.",
        {},
        None,
    )
    return handle
