# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Identity provider backed by the provider_accounts table, one namespace per provider."""

import json
import logging
import secrets
import uuid
from typing import Any

from email_validator import EmailNotValidError, validate_email
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from brigade_server.clock import now_ms
from brigade_server.config import settings
from brigade_server.errors import IdentityProviderError
from brigade_server.identity.base import (
    EMAIL_ALREADY_IN_USE,
    INVALID_CREDENTIAL,
    INVALID_EMAIL,
    INVALID_RESET_CODE,
    NETWORK_FAILURE,
    WEAK_PASSWORD,
    AccountHandle,
    IdentityProvider,
)
from brigade_server.models import PasswordResetToken, ProviderAccount
from brigade_server.services.email import send_password_reset_code

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _handle(account: ProviderAccount) -> AccountHandle:
    metadata = json.loads(account.metadata_json) if account.metadata_json else {}
    return AccountHandle(id=account.id, email=account.email, metadata=metadata)


class DatabaseIdentityProvider(IdentityProvider):
    """Credential store for one provider namespace ("current" or "legacy").

    Each namespace hashes with its own passlib schemes, so accounts are not
    interchangeable between providers; moving one requires a fresh sign-up.
    """

    def __init__(
        self,
        db: AsyncSession,
        name: str,
        schemes: list[str],
        min_password_length: int | None = None,
    ):
        self.db = db
        self.name = name
        self.pwd_context = CryptContext(schemes=schemes, deprecated="auto")
        self.min_password_length = min_password_length or settings.min_password_length
        self._current: AccountHandle | None = None

    async def _find(self, email: str) -> ProviderAccount | None:
        try:
            result = await self.db.execute(
                select(ProviderAccount).where(
                    ProviderAccount.provider == self.name,
                    ProviderAccount.email == normalize_email(email),
                )
            )
        except DBAPIError as e:
            raise IdentityProviderError(NETWORK_FAILURE, f"{self.name} provider unavailable") from e
        return result.scalar_one_or_none()

    async def sign_in(self, email: str, password: str) -> AccountHandle:
        account = await self._find(email)
        # Unknown email and wrong password look the same to the caller
        if not account or not self.pwd_context.verify(password, account.password_hash):
            raise IdentityProviderError(INVALID_CREDENTIAL, "Invalid login credentials")
        self._current = _handle(account)
        return self._current

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AccountHandle:
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            raise IdentityProviderError(INVALID_EMAIL, str(e)) from e
        if len(password) < self.min_password_length:
            raise IdentityProviderError(
                WEAK_PASSWORD, f"Password should be at least {self.min_password_length} characters"
            )
        if await self._find(email):
            raise IdentityProviderError(EMAIL_ALREADY_IN_USE, "User already registered")

        account = ProviderAccount(
            id=uuid.uuid4().hex,
            provider=self.name,
            email=normalize_email(email),
            password_hash=self.pwd_context.hash(password),
            metadata_json=json.dumps(metadata) if metadata else None,
        )
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise IdentityProviderError(EMAIL_ALREADY_IN_USE, "User already registered") from e
        except DBAPIError as e:
            await self.db.rollback()
            raise IdentityProviderError(NETWORK_FAILURE, f"{self.name} provider unavailable") from e
        logger.info("Created %s account %s for %s", self.name, account.id, account.email)
        self._current = _handle(account)
        return self._current

    async def send_password_reset(self, email: str) -> None:
        """Mail a 6-digit reset code. Unknown emails are ignored so callers cannot probe for accounts."""
        account = await self._find(email)
        if not account:
            return
        code = "".join(secrets.choice("0123456789") for _ in range(6))
        await self.db.execute(
            delete(PasswordResetToken).where(
                PasswordResetToken.provider == self.name,
                PasswordResetToken.email == account.email,
            )
        )
        self.db.add(
            PasswordResetToken(
                provider=self.name,
                email=account.email,
                token=code,
                expires_at=now_ms() + settings.password_reset_ttl_minutes * 60_000,
            )
        )
        await self.db.commit()
        await send_password_reset_code(account.email, code)

    async def confirm_password_reset(self, email: str, code: str, new_password: str) -> AccountHandle:
        result = await self.db.execute(
            select(PasswordResetToken).where(
                PasswordResetToken.provider == self.name,
                PasswordResetToken.email == normalize_email(email),
                PasswordResetToken.token == code,
                PasswordResetToken.expires_at > now_ms(),
            )
        )
        prt = result.scalar_one_or_none()
        account = await self._find(email) if prt else None
        if not prt or not account:
            raise IdentityProviderError(INVALID_RESET_CODE, "Invalid or expired code")
        if len(new_password) < self.min_password_length:
            raise IdentityProviderError(
                WEAK_PASSWORD, f"Password should be at least {self.min_password_length} characters"
            )
        account.password_hash = self.pwd_context.hash(new_password)
        await self.db.execute(delete(PasswordResetToken).where(PasswordResetToken.id == prt.id))
        await self.db.commit()
        return _handle(account)

    async def sign_out(self) -> None:
        self._current = None

    async def get_current_user(self) -> AccountHandle | None:
        return self._current
