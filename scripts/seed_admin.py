#!/usr/bin/env python
"""Seed the first staff user for the admin console.

Usage:
    ADMIN_EMAIL=owner@clinic.es ADMIN_PASSWORD=... python scripts/seed_admin.py
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from smileforward.core.password import hash_password
from smileforward.persistence.database import AsyncSessionLocal
from smileforward.persistence.repositories.user_repository import UserRepository


async def seed_admin() -> int:
    """Create the staff user unless it already exists."""
    admin_email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD", "")

    if not admin_email or not admin_password:
        print("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return 1

    async with AsyncSessionLocal() as session:
        repo = UserRepository(session)
        existing = await repo.get_by_email(admin_email)
        if existing:
            print(f"Admin user already exists: {admin_email}")
            return 0

        await repo.create(
            email=admin_email,
            hashed_password=hash_password(admin_password),
            is_active=True,
        )
        print(f"Created admin user: {admin_email}")
        return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(seed_admin()))
