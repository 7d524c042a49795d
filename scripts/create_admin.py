"""
Create an administrator account.
Run: python -m scripts.create_admin USERNAME PASSWORD [--email EMAIL]
"""
import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import AsyncSessionLocal, init_db
from schemas.user import UserCreate
from services.auth import hash_password
from storage import SqlStorage


async def create_admin(username: str, password: str, email: str | None = None) -> int:
    await init_db()
    async with AsyncSessionLocal() as session:
        storage = SqlStorage(session)
        if await storage.get_user_by_username(username):
            print(f"User {username} already exists")
            return 1
        user = await storage.create_user(
            UserCreate(
                username=username,
                password_hash=hash_password(password),
                email=email,
                first_name="System",
                last_name="Administrator",
                user_type="admin",
                is_verified=True,
            )
        )
        await session.commit()
    print(f"Administrator created: id={user.id} username={user.username}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("password")
    parser.add_argument("--email")
    args = parser.parse_args()
    if len(args.password) < 6:
        parser.error("password must be at least 6 characters")
    return asyncio.run(create_admin(args.username, args.password, args.email))


if __name__ == "__main__":
    sys.exit(main())
