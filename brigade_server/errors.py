# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Exceptions raised by the signup, login and audit services.

Routers translate these into HTTP responses; services never raise HTTPException.
"""

from typing import Literal


class BrigadeError(Exception):
    """Base class for all service errors."""


class InputValidationError(BrigadeError):
    """Form input rejected before any remote call. Carries one message per field."""

    def __init__(self, field_errors: dict[str, str]):
        self.field_errors = field_errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in field_errors.items()))


InviteRejection = Literal["not_found", "used", "revoked", "expired"]


class InvalidInviteError(BrigadeError):
    """Invite code missing or not consumable. `reason` says which check failed."""

    # Single message shown to users regardless of the reason
    public_message = "Invalid, used, revoked, or expired invite code."

    def __init__(self, code: str, reason: InviteRejection):
        self.code = code
        self.reason = reason
        super().__init__(f"Invite code '{code}' rejected: {reason}")


class InviteAlreadyUsedError(InvalidInviteError):
    """Lost the race on a single-use code after the account had been created.

    The account exists but holds no consumed invite; the caller decides what to do with it.
    """

    def __init__(self, code: str, account_id: str):
        self.account_id = account_id
        super().__init__(code, "used")


class InviteCodeConflictError(BrigadeError):
    """Conditional write on an invite code found it already used or revoked."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Invite code '{code}' is already used or revoked")


class IdentityProviderError(BrigadeError):
    """Error reported by an identity provider, keyed by a provider error code."""

    def __init__(self, code: str, message: str | None = None):
        self.code = code
        super().__init__(message or code)


class ProviderError(BrigadeError):
    """Account creation failed at the provider for a reason with no dedicated category."""

    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(message)


class EmailInUseError(ProviderError):
    pass


class WeakPasswordError(ProviderError):
    pass


class InvalidEmailError(ProviderError):
    pass


class MigrationConflictError(BrigadeError):
    """Legacy login succeeded but the current provider already holds the email with another password."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            "Account exists in new system but passwords do not match. Please reset your password."
        )


class RoleAssignmentError(BrigadeError):
    pass


class PermissionDeniedError(BrigadeError):
    pass


class NotFoundError(BrigadeError):
    pass


class AuditWriteError(BrigadeError):
    """Audit entry could not be written after its mutation succeeded."""


class PartialSignupError(BrigadeError):
    """Account was created but a later signup step failed. No rollback is attempted.

    Args:
        account_id: The account that now exists at the provider.
        stage: The step that failed, "role", "consume" or "audit".
    """

    def __init__(self, account_id: str, stage: str, cause: Exception):
        self.account_id = account_id
        self.stage = stage
        super().__init__(f"Signup for account {account_id} failed at stage '{stage}': {cause}")
