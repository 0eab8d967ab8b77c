#!/usr/bin/env python3
"""
Script to set up a development database with demo technicians and services.
Creates missing tables on DATABASE_URL and seeds them unless data exists.
"""

import asyncio
import sys

from sqlalchemy import func, select

from app.core.config import settings
from app.core.database import AsyncSessionLocal, engine, init_db
from app.models.service import Service
from app.models.user import User, UserRole

TECHNICIANS = [
    ("Ravi Kumar", "ravi@autoservice.local"),
    ("Anita Desai", "anita@autoservice.local"),
    ("Joseph Mathew", "joseph@autoservice.local"),
]

# (name, category, minutes per vehicle)
SERVICES = [
    ("Oil Change", "maintenance", 60),
    ("Brake Inspection", "safety", 90),
    ("Tire Rotation", "maintenance", 30),
    ("Wheel Alignment", "maintenance", 60),
    ("AC Service", "comfort", 120),
    ("Full Service", "maintenance", 240),
]


async def seed_database():
    """Create tables and insert demo data."""
    print(f"Seeding database: {settings.DATABASE_URL}")

    try:
        await init_db(create_tables=True)

        async with AsyncSessionLocal() as session:
            existing = await session.execute(select(func.count(User.id)))
            if existing.scalar_one():
                print("Database already has users, skipping seed")
                return True

            session.add_all(
                User(name=name, email=email, role=UserRole.EMPLOYEE.value)
                for name, email in TECHNICIANS
            )
            session.add_all(
                Service(
                    name=name,
                    category=category,
                    estimated_duration_minutes=minutes,
                    sort_order=position,
                )
                for position, (name, category, minutes) in enumerate(SERVICES)
            )
            await session.commit()

        print(f"✅ Seeded {len(TECHNICIANS)} technicians and {len(SERVICES)} services")

    except Exception as e:
        print(f"❌ Error seeding database: {e}")
        return False
    finally:
        await engine.dispose()

    return True


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(seed_database()) else 1)
