#!/usr/bin/env python3
"""
Database Initialization Script
Creates tables and seeds a starting semester.
"""
import asyncio
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select
from roster_import.database import engine, Base, async_session_maker
from roster_import.models import Semester, SchoolAccount, User


async def init_database(semester_label: str):
    """Initialize the database with tables and a default semester."""
    print("=" * 50)
    print("Roster Import Database Initialization")
    print("=" * 50)

    # Create all tables
    print("\n[1/3] Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("      Tables created successfully!")

    # Seed a semester so imports can be bound
    print("\n[2/3] Seeding semesters...")
    async with async_session_maker() as session:
        count = await session.scalar(select(func.count()).select_from(Semester))

        if count == 0:
            session.add(Semester(label=semester_label, is_active=True))
            await session.commit()
            print(f"      Created semester '{semester_label}'!")
        else:
            print("      Semesters already exist, skipping seed.")

    # Verify tables
    print("\n[3/3] Verifying database contents...")
    async with async_session_maker() as session:
        for model in (Semester, SchoolAccount, User):
            row_count = await session.scalar(select(func.count()).select_from(model))
            print(f"        - {model.__tablename__}: {row_count} rows")

    print("\n" + "=" * 50)
    print("Database initialization complete!")
    print("=" * 50)


async def reset_database(semester_label: str):
    """Drop all tables and recreate them (USE WITH CAUTION!)."""
    print("WARNING: This will delete all data!")
    confirm = input("Type 'RESET' to confirm: ")

    if confirm != "RESET":
        print("Aborted.")
        return

    print("\nDropping all tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    print("Recreating tables...")
    await init_database(semester_label)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Database initialization script")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate all tables (destructive!)"
    )
    parser.add_argument(
        "--semester",
        type=str,
        default="First Semester",
        help="Label of the semester to seed when none exist"
    )
    args = parser.parse_args()

    if args.reset:
        asyncio.run(reset_database(args.semester))
    else:
        asyncio.run(init_database(args.semester))
