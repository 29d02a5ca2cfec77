# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite code store: consumability, conditional consumption, admin management."""

import pytest
from sqlalchemy import select

from brigade_server.clock import now_ms
from brigade_server.errors import InviteCodeConflictError, NotFoundError, PermissionDeniedError
from brigade_server.models import AuditLogEntry
from brigade_server.models.enums import AuditActionType, Role, Section
from brigade_server.services.invite_codes import InviteCodeStore, invite_rejection_reason, is_consumable
from conftest import add_invite, add_manager

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize(
    "kwargs,reason",
    [
        ({}, None),
        ({"is_used": True}, "used"),
        ({"revoked": True}, "revoked"),
        ({"expires_in_hours": -1}, "expired"),
        # revoked takes precedence over used and expired
        ({"is_used": True, "revoked": True, "expires_in_hours": -1}, "revoked"),
        ({"is_used": True, "expires_in_hours": -1}, "used"),
    ],
)
async def test_rejection_reason(db, invite_codes, kwargs, reason):
    await add_invite(db, "CODE01", **kwargs)
    code = await invite_codes.fetch("CODE01")
    assert invite_rejection_reason(code, now_ms()) == reason
    assert is_consumable(code, now_ms()) is (reason is None)


async def test_missing_code_is_not_found(invite_codes):
    assert await invite_codes.fetch("NOPE00") is None
    assert invite_rejection_reason(None, now_ms()) == "not_found"


async def test_expiry_boundary_is_exclusive(db, invite_codes):
    invite = await add_invite(db, "EDGE01")
    assert invite_rejection_reason(invite, invite.expires_at - 1) is None
    assert invite_rejection_reason(invite, invite.expires_at) == "expired"


async def test_fetch_strips_whitespace(db, invite_codes):
    await add_invite(db, "TRIM01")
    code = await invite_codes.fetch("  TRIM01 ")
    assert code is not None and code.id == "TRIM01"


async def test_mark_consumed_once(db, invite_codes):
    await add_invite(db, "ONCE01")
    await invite_codes.mark_consumed("ONCE01", used_by="a@b.com", used_at=now_ms())
    code = await invite_codes.fetch("ONCE01")
    assert code.is_used is True
    assert code.used_by == "a@b.com"

    with pytest.raises(InviteCodeConflictError):
        await invite_codes.mark_consumed("ONCE01", used_by="c@d.com", used_at=now_ms())
    code = await invite_codes.fetch("ONCE01")
    assert code.used_by == "a@b.com"


async def test_mark_consumed_from_two_sessions(db, session_maker):
    """Both sessions saw the code unused; only the first write wins."""
    await add_invite(db, "RACE01")
    async with session_maker() as s1, session_maker() as s2:
        store1, store2 = InviteCodeStore(s1), InviteCodeStore(s2)
        assert is_consumable(await store1.fetch("RACE01"), now_ms())
        assert is_consumable(await store2.fetch("RACE01"), now_ms())
        await store1.mark_consumed("RACE01", used_by="first@example.com", used_at=now_ms())
        with pytest.raises(InviteCodeConflictError):
            await store2.mark_consumed("RACE01", used_by="second@example.com", used_at=now_ms())
    code = await InviteCodeStore(db).fetch("RACE01")
    assert code.used_by == "first@example.com"


async def test_mark_consumed_refuses_revoked(db, invite_codes):
    await add_invite(db, "REVK01", revoked=True)
    with pytest.raises(InviteCodeConflictError):
        await invite_codes.mark_consumed("REVK01", used_by="a@b.com", used_at=now_ms())


async def test_generate(db, invite_codes):
    admin = await add_manager(db)
    code = await invite_codes.generate(admin, Section.JUNIOR, ttl_hours=2, default_role=Role.LEADER)
    assert len(code.id) == 6
    assert code.id.isalnum() and code.id.upper() == code.id
    assert code.section == "junior"
    assert code.default_user_role == "leader"
    assert code.generated_by == "admin@example.com"
    assert code.expires_at - code.generated_at == 2 * 3_600_000
    assert is_consumable(await invite_codes.fetch(code.id), now_ms())

    entries = (await db.execute(select(AuditLogEntry))).scalars().all()
    assert [e.action_type for e in entries] == [AuditActionType.GENERATE_INVITE_CODE.value]
    assert entries[0].revert_data == {"inviteCodeId": code.id}
    assert entries[0].section == "junior"


async def test_generate_requires_manager(db, invite_codes, roles):
    officer = await roles.set_role("acc-officer", "officer@example.com", Role.OFFICER, Section.COMPANY)
    with pytest.raises(PermissionDeniedError):
        await invite_codes.generate(officer, Section.COMPANY)
    with pytest.raises(PermissionDeniedError):
        await invite_codes.generate(None, Section.COMPANY)


async def test_captain_cannot_issue_admin_codes(db, invite_codes):
    captain = await add_manager(db, "captain@example.com", Role.CAPTAIN)
    with pytest.raises(PermissionDeniedError):
        await invite_codes.generate(captain, Section.COMPANY, default_role=Role.ADMIN)
    code = await invite_codes.generate(captain, Section.COMPANY, default_role=Role.CAPTAIN)
    assert code.default_user_role == "captain"


async def test_revoke(db, invite_codes):
    admin = await add_manager(db)
    await add_invite(db, "KILL01", section=Section.JUNIOR)
    code = await invite_codes.revoke(admin, "KILL01")
    assert code.revoked is True
    assert code.is_used is True
    assert code.used_by == "System (Revoked by admin@example.com)"
    assert invite_rejection_reason(code, now_ms()) == "revoked"

    with pytest.raises(InviteCodeConflictError):
        await invite_codes.revoke(admin, "KILL01")
    with pytest.raises(NotFoundError):
        await invite_codes.revoke(admin, "GONE01")

    entries = (await db.execute(select(AuditLogEntry))).scalars().all()
    assert [e.action_type for e in entries] == [AuditActionType.REVOKE_INVITE_CODE.value]
    assert entries[0].section == "junior"


async def test_clear_used_and_revoked(db, invite_codes):
    admin = await add_manager(db)
    await add_invite(db, "USED01", is_used=True)
    await add_invite(db, "REVK01", is_used=True, revoked=True)
    await add_invite(db, "OPEN01")

    assert await invite_codes.clear_used_and_revoked(admin) == 2
    assert [c.id for c in await invite_codes.list_all(admin)] == ["OPEN01"]

    entries = (await db.execute(select(AuditLogEntry))).scalars().all()
    assert len(entries) == 1
    assert entries[0].revert_data == {"inviteCodeIds": ["REVK01", "USED01"]}

    # Nothing to clear: no audit entry
    assert await invite_codes.clear_used_and_revoked(admin) == 0
    assert len((await db.execute(select(AuditLogEntry))).scalars().all()) == 1


async def test_loaded_objects_survive_conflicts(db, invite_codes):
    """A refused conditional write leaves the session's loaded rows usable."""
    admin = await add_manager(db)
    await add_invite(db, "SPENT1", is_used=True)
    other = await add_invite(db, "OPEN02")

    with pytest.raises(InviteCodeConflictError):
        await invite_codes.mark_consumed("SPENT1", used_by="a@b.com", used_at=now_ms())
    with pytest.raises(InviteCodeConflictError):
        await invite_codes.revoke(admin, "SPENT1")

    assert admin.email == "admin@example.com"
    assert other.is_used is False
    code = await invite_codes.generate(admin, Section.COMPANY)
    assert code.generated_by == "admin@example.com"
