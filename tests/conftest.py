# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. Each test gets its own SQLite database file."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections import Counter  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from brigade_server.clock import MS_PER_HOUR, now_ms  # noqa: E402
from brigade_server.database import get_db, init_db, make_engine, make_session_maker  # noqa: E402
from brigade_server.errors import IdentityProviderError  # noqa: E402
from brigade_server.identity import CURRENT, LEGACY, AccountHandle, DatabaseIdentityProvider, IdentityProvider  # noqa: E402
from brigade_server.identity.base import EMAIL_ALREADY_IN_USE, USER_NOT_FOUND, WRONG_PASSWORD  # noqa: E402
from brigade_server.main import app  # noqa: E402
from brigade_server.models import InviteCode  # noqa: E402
from brigade_server.models.enums import Role, Section  # noqa: E402
from brigade_server.rate_limit import reset_limits  # noqa: E402
from brigade_server.services.audit import AuditLog  # noqa: E402
from brigade_server.services.invite_codes import InviteCodeStore  # noqa: E402
from brigade_server.services.roles import RoleAssigner  # noqa: E402
from brigade_server.services.signup import SignupOrchestrator  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    eng = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'brigade.db'}")
    await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return make_session_maker(engine)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def audit(db):
    return AuditLog(db)


@pytest.fixture
def roles(db, audit):
    return RoleAssigner(db, audit)


@pytest.fixture
def invite_codes(db, audit):
    return InviteCodeStore(db, audit)


@pytest.fixture
def current_provider(db):
    return DatabaseIdentityProvider(db, CURRENT, ["bcrypt"])


@pytest.fixture
def legacy_provider(db):
    return DatabaseIdentityProvider(db, LEGACY, ["pbkdf2_sha256"])


def build_orchestrator(session) -> SignupOrchestrator:
    audit = AuditLog(session)
    return SignupOrchestrator(
        DatabaseIdentityProvider(session, CURRENT, ["bcrypt"]),
        InviteCodeStore(session, audit),
        RoleAssigner(session, audit),
        audit,
    )


@pytest.fixture
def orchestrator(db):
    return build_orchestrator(db)


async def add_invite(
    session,
    code: str,
    *,
    role: Role = Role.OFFICER,
    section: Section | None = Section.COMPANY,
    expires_in_hours: float = 24,
    is_used: bool = False,
    revoked: bool = False,
) -> InviteCode:
    now = now_ms()
    invite = InviteCode(
        id=code,
        default_user_role=role.value,
        section=section.value if section else None,
        generated_by="admin@example.com",
        generated_at=now,
        expires_at=now + int(expires_in_hours * MS_PER_HOUR),
        is_used=is_used,
        revoked=revoked,
    )
    session.add(invite)
    await session.commit()
    return invite


async def add_manager(session, email: str = "admin@example.com", role: Role = Role.ADMIN, password: str = "adminpass"):
    """Account on the current provider with an approved manager role."""
    handle = await DatabaseIdentityProvider(session, CURRENT, ["bcrypt"]).sign_up(email, password)
    return await RoleAssigner(session).set_role(handle.id, handle.email, role, Section.COMPANY)


class FakeProvider(IdentityProvider):
    """In-memory provider that counts calls. `accounts` maps email to password."""

    def __init__(self, name: str, accounts: dict[str, str] | None = None, fail_code: str | None = None):
        self.name = name
        self.accounts: dict[str, tuple[str, str, dict[str, Any]]] = {}
        for email, password in (accounts or {}).items():
            self._add(email, password, {})
        self.fail_code = fail_code
        self.calls: Counter = Counter()
        self._current: AccountHandle | None = None

    def _add(self, email: str, password: str, metadata: dict[str, Any]) -> AccountHandle:
        account_id = f"{self.name}-{len(self.accounts) + 1}"
        self.accounts[email] = (account_id, password, metadata)
        return AccountHandle(account_id, email, metadata)

    def account_id(self, email: str) -> str:
        return self.accounts[email][0]

    async def sign_in(self, email, password):
        self.calls["sign_in"] += 1
        if self.fail_code:
            raise IdentityProviderError(self.fail_code)
        if email not in self.accounts:
            raise IdentityProviderError(USER_NOT_FOUND)
        account_id, stored, metadata = self.accounts[email]
        if stored != password:
            raise IdentityProviderError(WRONG_PASSWORD)
        self._current = AccountHandle(account_id, email, metadata)
        return self._current

    async def sign_up(self, email, password, metadata=None):
        self.calls["sign_up"] += 1
        if email in self.accounts:
            raise IdentityProviderError(EMAIL_ALREADY_IN_USE)
        self._current = self._add(email, password, metadata or {})
        return self._current

    async def send_password_reset(self, email):
        self.calls["send_password_reset"] += 1

    async def confirm_password_reset(self, email, code, new_password):
        self.calls["confirm_password_reset"] += 1
        account_id, _, metadata = self.accounts[email]
        self.accounts[email] = (account_id, new_password, metadata)
        return AccountHandle(account_id, email, metadata)

    async def sign_out(self):
        self.calls["sign_out"] += 1
        self._current = None

    async def get_current_user(self):
        return self._current


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    reset_limits()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
