#!/usr/bin/env python3
"""
Operator Account Script
Creates or updates a user allowed to run roster imports.
"""
import asyncio
import sys
import os
import argparse

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from roster_import.database import engine, Base, async_session_maker
from roster_import.models import User
from roster_import.services.auth_service import get_password_hash


async def create_admin(username: str, password: str, full_name: str | None = None):
    """Create or update an admin operator."""
    print("=" * 50)
    print("Roster Import Operator Management")
    print("=" * 50)

    print("\n[1/2] Ensuring database tables exist...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print(f"\n[2/2] Creating/updating user '{username}'...")
    async with async_session_maker() as session:
        result = await session.execute(
            select(User).where(User.username == username)
        )
        user = result.scalar_one_or_none()

        if user:
            user.hashed_password = get_password_hash(password)
            user.is_admin = True
            user.is_active = True
            if full_name:
                user.full_name = full_name
            print(f"      Updated existing user '{username}'")
        else:
            session.add(User(
                username=username,
                hashed_password=get_password_hash(password),
                full_name=full_name or "Administrator",
                is_active=True,
                is_admin=True
            ))
            print(f"      Created user '{username}'")
        await session.commit()

    print("\nLog in with POST /auth/login")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or update an import operator")
    parser.add_argument("--username", "-u", default="admin", help="Username (default: admin)")
    parser.add_argument("--password", "-p", required=True, help="Password")
    parser.add_argument("--name", "-n", default=None, help="Full name (default: Administrator)")

    args = parser.parse_args()

    if len(args.password) < 6:
        print("Error: Password must be at least 6 characters long")
        sys.exit(1)

    asyncio.run(create_admin(args.username, args.password, args.name))
