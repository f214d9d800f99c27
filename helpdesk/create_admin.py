# helpdesk/create_admin.py
"""
Create an admin user, or promote an existing one.

Usage: python -m helpdesk.create_admin [email] [password] [name]
"""
import asyncio
import sys

from helpdesk.db import database
from helpdesk.models import Role
from helpdesk.services.users import create_user, get_user_by_email, update_user

DEFAULT_EMAIL = "admin@example.com"
DEFAULT_PASSWORD = "admin123"
DEFAULT_NAME = "Admin User"


async def create_admin(db, email: str, password: str, name: str) -> dict:
    existing = await get_user_by_email(db, email)
    if existing:
        user = await update_user(
            db, existing["_id"], {"role": Role.ADMIN.value, "password": password, "name": name}
        )
        print(f"✅ Updated existing user to admin: {user['email']}")
    else:
        user = await create_user(
            db, {"email": email, "password": password, "name": name, "role": Role.ADMIN.value}
        )
        print(f"✅ Admin user created successfully: {user['email']}")
    return user


async def main(argv):
    email = argv[0] if len(argv) > 0 else DEFAULT_EMAIL
    password = argv[1] if len(argv) > 1 else DEFAULT_PASSWORD
    name = argv[2] if len(argv) > 2 else DEFAULT_NAME

    db = await database.connect()
    print("Connected to MongoDB")
    try:
        await create_admin(db, email, password, name)
    finally:
        database.close()
        print("Disconnected from MongoDB")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
