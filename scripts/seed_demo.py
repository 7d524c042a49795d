"""
Seed demo leasing companies, users, cars and applications into the configured database.
Run: python -m scripts.seed_demo (from the project root).
"""
import asyncio
import os
import sys

# Add parent so we can import the app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import AsyncSessionLocal, init_db
from storage import SqlStorage
from storage.seed import DEMO_PASSWORD, seed_demo_data
from utils.logging_config import configure_logging


async def seed():
    configure_logging()
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await seed_demo_data(SqlStorage(session))
        await session.commit()
    if created:
        print(f"Seed complete. Demo users share the password '{DEMO_PASSWORD}'.")
    else:
        print("Demo data already present, nothing to do.")


if __name__ == "__main__":
    asyncio.run(seed())
