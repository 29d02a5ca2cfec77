#!/usr/bin/env python3
# Copyright (C) 2024 Brigade Server Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create the first admin account. Run: python -m brigade_server.scripts.create_admin"""

import asyncio
import getpass
import sys

from brigade_server.config import settings
from brigade_server.database import async_session_maker, init_db
from brigade_server.errors import IdentityProviderError, RoleAssignmentError
from brigade_server.identity import build_providers, describe_provider_error, primary_provider
from brigade_server.models.enums import Role, Section
from brigade_server.services.roles import RoleAssigner


async def main():
    await init_db()
    email = input("Admin email: ").strip()
    password = getpass.getpass("Password: ")
    if not email or not password:
        print("All fields required")
        sys.exit(1)
    section = input("Section [company/junior] (company): ").strip() or Section.COMPANY.value

    async with async_session_maker() as session:
        current, legacy = build_providers(session)
        provider = primary_provider(settings.auth_migration_phase, current, legacy)
        try:
            account = await provider.sign_up(email, password)
        except IdentityProviderError as e:
            print(describe_provider_error(e.code))
            sys.exit(1)
        try:
            await RoleAssigner(session).set_role(account.id, account.email, Role.ADMIN, Section(section))
        except (RoleAssignmentError, ValueError) as e:
            print(f"Account {account.id} created but admin role not assigned: {e}")
            sys.exit(1)
        print(f"Admin account created on the {provider.name} provider.")


if __name__ == "__main__":
    asyncio.run(main())
