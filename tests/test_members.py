# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Member records and their audit entries."""

import pytest
from sqlalchemy import select

from brigade_server.errors import InputValidationError, NotFoundError
from brigade_server.models import AuditLogEntry
from brigade_server.models.enums import AuditActionType, Section
from brigade_server.services.members import MemberService, describe_changes

pytestmark = pytest.mark.anyio


@pytest.fixture
def members(db, audit):
    return MemberService(db, audit)


async def _entries(db):
    return (await db.execute(select(AuditLogEntry).order_by(AuditLogEntry.id))).scalars().all()


async def test_create_member(db, members):
    member = await members.create_member("cap@b.com", Section.COMPANY, " Tom Smith ", 1, 10)
    assert member.name == "Tom Smith"
    assert (member.squad, member.year) == ("1", "10")

    entries = await _entries(db)
    assert len(entries) == 1
    assert entries[0].action_type == AuditActionType.CREATE_BOY.value
    assert entries[0].description == "Added new boy: Tom Smith"
    assert entries[0].revert_data == {"boyId": member.id}
    assert entries[0].section == "company"


async def test_update_without_changes_is_not_audited(db, members):
    member = await members.create_member("cap@b.com", Section.COMPANY, "Tom Smith", 1, 10)

    await members.update_member("cap@b.com", member.id, {"name": "Tom Smith", "squad": 1, "year": "10"})

    assert len(await _entries(db)) == 1


async def test_update_one_field(db, members):
    member = await members.create_member("cap@b.com", Section.JUNIOR, "Tom Smith", 1, "P4")

    updated = await members.update_member("cap@b.com", member.id, {"name": "Tom Smith", "squad": 2})

    assert updated.squad == "2"
    entries = await _entries(db)
    assert len(entries) == 2
    entry = entries[1]
    assert entry.action_type == AuditActionType.UPDATE_BOY.value
    assert entry.description == "Updated Tom Smith: changed squad to 2."
    assert entry.section == "junior"
    assert entry.revert_data["boyData"]["squad"] == "1"


async def test_update_describes_each_changed_field(db, members):
    member = await members.create_member("cap@b.com", Section.COMPANY, "Tom", 1, 10)
    await members.update_member("cap@b.com", member.id, {"name": "Thomas", "is_squad_leader": True})
    entry = (await _entries(db))[-1]
    assert entry.description == 'Updated Tom: changed name to "Thomas", squad leader status to True.'
    assert entry.revert_data["boyData"]["name"] == "Tom"


async def test_update_rejects_unknown_fields(members):
    member = await members.create_member("cap@b.com", Section.COMPANY, "Tom", 1, 10)
    with pytest.raises(InputValidationError):
        await members.update_member("cap@b.com", member.id, {"section": "junior"})
    with pytest.raises(InputValidationError):
        await members.update_member("cap@b.com", member.id, {"name": "  "})


async def test_delete_member(db, members):
    member = await members.create_member("cap@b.com", Section.COMPANY, "Tom", 1, 10)
    await members.delete_member("cap@b.com", member.id)

    with pytest.raises(NotFoundError):
        await members.get(member.id)
    entry = (await _entries(db))[-1]
    assert entry.action_type == AuditActionType.DELETE_BOY.value
    assert entry.revert_data["boyData"]["name"] == "Tom"


def test_describe_changes():
    assert describe_changes({"year": "11"}) == "year to 11"
