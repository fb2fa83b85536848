import asyncio
import os
import random
import sys

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from face_attendance.database import get_session_factory
from face_attendance.exceptions import DuplicateEmail
from face_attendance.models.user import User
from face_attendance.services.store import AttendanceStore


async def seed():
    async with get_session_factory()() as session:
        # Check if DB is already seeded
        result = await session.execute(select(User).limit(1))
        if result.scalars().first():
            print("Database already contains data. Skipping seed.")
            return

        print("Seeding database with a demo user...")

        # Random descriptor: it will never match a real face.
        fake_descriptor = [random.uniform(-0.25, 0.25) for _ in range(128)]

        store = AttendanceStore(session)
        try:
            user = await store.insert_user(
                "Demo User", "demo@example.com", fake_descriptor
            )
        except DuplicateEmail:
            print("Demo user already exists.")
            return
        print(f"Added user: {user.name} <{user.email}> with ID: {user.id}")


if __name__ == "__main__":
    asyncio.run(seed())
