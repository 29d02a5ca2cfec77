# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Identity provider capability. Services depend only on this interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Provider error codes
INVALID_CREDENTIAL = "invalid-credential"
USER_NOT_FOUND = "user-not-found"
WRONG_PASSWORD = "wrong-password"
EMAIL_ALREADY_IN_USE = "email-already-in-use"
WEAK_PASSWORD = "weak-password"
INVALID_EMAIL = "invalid-email"
REQUIRES_RECENT_LOGIN = "requires-recent-login"
NETWORK_FAILURE = "network-failure"
INVALID_RESET_CODE = "invalid-reset-code"

# Codes meaning "these credentials are not known here", as opposed to the provider failing.
CREDENTIAL_ERRORS = frozenset({INVALID_CREDENTIAL, USER_NOT_FOUND, WRONG_PASSWORD})

_MESSAGES = {
    INVALID_CREDENTIAL: "Invalid email or password.",
    USER_NOT_FOUND: "Invalid email or password.",
    WRONG_PASSWORD: "Invalid email or password.",
    EMAIL_ALREADY_IN_USE: "The email address is already in use by another account.",
    WEAK_PASSWORD: "The password is too weak.",
    INVALID_EMAIL: "The email address is not valid.",
    REQUIRES_RECENT_LOGIN: "Please sign in again before changing your password.",
    NETWORK_FAILURE: "Network error. Check your connection.",
    INVALID_RESET_CODE: "Invalid or expired code.",
}
_DEFAULT_MESSAGE = "An unexpected error occurred. Please try again."


def describe_provider_error(code: str) -> str:
    """User-facing message for a provider error code."""
    return _MESSAGES.get(code, _DEFAULT_MESSAGE)


@dataclass(frozen=True)
class AccountHandle:
    """Account as returned by a provider. `id` is opaque and only unique within that provider."""

    id: str
    email: str
    metadata: dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """Sign-in/sign-up capability. Failures raise IdentityProviderError with one of the codes above."""

    name: str

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AccountHandle: ...

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AccountHandle: ...

    @abstractmethod
    async def send_password_reset(self, email: str) -> None: ...

    @abstractmethod
    async def confirm_password_reset(self, email: str, code: str, new_password: str) -> AccountHandle: ...

    @abstractmethod
    async def sign_out(self) -> None: ...

    @abstractmethod
    async def get_current_user(self) -> AccountHandle | None: ...
