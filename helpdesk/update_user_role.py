# helpdesk/update_user_role.py
"""
Change a user's role.

Usage: python -m helpdesk.update_user_role <email> <role>
"""
import asyncio
import sys

from helpdesk.config import ROLES
from helpdesk.db import database
from helpdesk.services.users import get_user_by_email, update_user


class RoleUpdateError(Exception):
    pass


async def update_user_role(db, email: str, role: str) -> dict:
    if role not in ROLES:
        raise RoleUpdateError(f"Invalid role. Must be one of: {', '.join(ROLES)}")

    user = await get_user_by_email(db, email)
    if not user:
        raise RoleUpdateError(f"User with email {email} not found")

    return await update_user(db, user["_id"], {"role": role})


async def main(argv) -> int:
    if len(argv) != 2:
        print("Usage: python -m helpdesk.update_user_role <email> <role>")
        print(f"Roles: {', '.join(ROLES)}")
        return 1

    email, role = argv
    db = await database.connect()
    try:
        user = await update_user_role(db, email, role)
    except RoleUpdateError as e:
        print(f"❌ {e}")
        return 1
    finally:
        database.close()

    print(f"✅ User role updated successfully: {user['email']} is now {user['role']}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
