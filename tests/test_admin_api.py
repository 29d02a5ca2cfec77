# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Invite code, member, audit log and admin endpoint tests."""

import pytest
from httpx import AsyncClient

from brigade_server.models.enums import Role
from conftest import add_manager

pytestmark = pytest.mark.anyio


async def _token(client: AsyncClient, email: str, password: str) -> dict:
    r = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
async def admin_headers(client, session_maker):
    async with session_maker() as session:
        await add_manager(session, "admin@example.com", Role.ADMIN, "adminpass")
    return await _token(client, "admin@example.com", "adminpass")


async def test_invite_code_lifecycle(client: AsyncClient, admin_headers):
    r = await client.post(
        "/api/v1/invite-codes",
        json={"section": "junior", "default_user_role": "leader"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    code = r.json()["id"]

    status = await client.get(f"/api/v1/invite-codes/{code}/status")
    assert status.json() == {"valid": True, "message": None, "section": "junior"}

    signup = await client.post(
        "/api/v1/auth/signup", json={"email": "leader@b.com", "password": "secret1", "invite_code": code}
    )
    assert signup.status_code == 200
    assert signup.json()["role"] == "leader"

    status = await client.get(f"/api/v1/invite-codes/{code}/status")
    assert status.json()["valid"] is False
    assert status.json()["message"] == "Invalid, used, revoked, or expired invite code."

    codes = (await client.get("/api/v1/invite-codes", headers=admin_headers)).json()
    assert codes[0]["used_by"] == "leader@b.com"

    cleared = await client.delete("/api/v1/invite-codes/spent", headers=admin_headers)
    assert cleared.json() == {"deleted": 1}

    logs = (await client.get("/api/v1/audit-logs?section=junior", headers=admin_headers)).json()
    assert [e["action_type"] for e in logs] == ["CLEAR_INVITE_CODES", "USE_INVITE_CODE", "GENERATE_INVITE_CODE"]


async def test_revoke_invite_code(client: AsyncClient, admin_headers):
    code = (await client.post("/api/v1/invite-codes", json={"section": "company"}, headers=admin_headers)).json()["id"]

    r = await client.post(f"/api/v1/invite-codes/{code}/revoke", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["revoked"] is True

    again = await client.post(f"/api/v1/invite-codes/{code}/revoke", headers=admin_headers)
    assert again.status_code == 409
    missing = await client.post("/api/v1/invite-codes/NOPE00/revoke", headers=admin_headers)
    assert missing.status_code == 404


async def test_officer_cannot_generate_codes(client: AsyncClient, session_maker):
    async with session_maker() as session:
        await add_manager(session, "officer@example.com", Role.OFFICER, "officerpass")
    headers = await _token(client, "officer@example.com", "officerpass")
    r = await client.post("/api/v1/invite-codes", json={"section": "company"}, headers=headers)
    assert r.status_code == 403


async def test_members(client: AsyncClient, admin_headers):
    r = await client.post(
        "/api/v1/members",
        json={"section": "company", "name": "Tom Smith", "squad": 1, "year": 10},
        headers=admin_headers,
    )
    assert r.status_code == 200
    member_id = r.json()["id"]

    same = await client.patch(f"/api/v1/members/{member_id}", json={"squad": 1}, headers=admin_headers)
    assert same.status_code == 200
    changed = await client.patch(f"/api/v1/members/{member_id}", json={"year": 11}, headers=admin_headers)
    assert changed.json()["year"] == "11"

    listed = (await client.get("/api/v1/members?section=company", headers=admin_headers)).json()
    assert [m["name"] for m in listed] == ["Tom Smith"]

    assert (await client.delete(f"/api/v1/members/{member_id}", headers=admin_headers)).status_code == 200
    assert (await client.delete(f"/api/v1/members/{member_id}", headers=admin_headers)).status_code == 404

    logs = (await client.get("/api/v1/audit-logs?section=company", headers=admin_headers)).json()
    assert [e["action_type"] for e in logs] == ["DELETE_BOY", "UPDATE_BOY", "CREATE_BOY"]
    assert logs[1]["description"] == "Updated Tom Smith: changed year to 11."


async def test_approve_and_change_role(client: AsyncClient, admin_headers):
    reg = await client.post("/api/v1/auth/register", json={"email": "new@b.com", "password": "secret1"})
    account_id = reg.json()["account_id"]

    users = (await client.get("/api/v1/admin/users", headers=admin_headers)).json()
    assert {u["email"]: u["approval_status"] for u in users} == {
        "admin@example.com": "approved",
        "new@b.com": "pending",
    }
    stats = (await client.get("/api/v1/admin/stats", headers=admin_headers)).json()
    assert stats["users_pending_approval"] == 1

    r = await client.post(
        f"/api/v1/admin/users/{account_id}/approve",
        json={"role": "officer", "section": "junior"},
        headers=admin_headers,
    )
    assert r.json()["approval_status"] == "approved"

    r = await client.post(f"/api/v1/admin/users/{account_id}/role", json={"role": "captain"}, headers=admin_headers)
    assert r.json()["role"] == "captain"

    me = (await client.get("/api/v1/admin/users", headers=admin_headers)).json()
    admin_id = next(u["account_id"] for u in me if u["email"] == "admin@example.com")
    demote = await client.post(f"/api/v1/admin/users/{admin_id}/role", json={"role": "officer"}, headers=admin_headers)
    assert demote.status_code == 403


async def test_health(client: AsyncClient):
    assert (await client.get("/api/v1/health")).json() == {"status": "ok"}
