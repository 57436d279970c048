"""Create the schema for local development.

In production the managed store owns the schema; this mirrors it from the
ORM metadata so the API can run against a local database.
"""

import asyncio
import sys

from studentos.config import get_settings
from studentos.db import build_engine
from studentos.models import Base


async def init_database(drop: bool = False):
    """Create all database tables, optionally dropping them first."""
    settings = get_settings()
    engine = build_engine(settings.db)
    print(f"Initializing database: {settings.db.url.split('@')[-1]}")

    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("✓ Dropped existing tables")

        await conn.run_sync(Base.metadata.create_all)
        print("✓ Created all tables")

    await engine.dispose()
    print(f"Tables: {', '.join(Base.metadata.tables.keys())}")


async def main():
    """Main entry point."""
    try:
        await init_database(drop="--drop" in sys.argv[1:])
    except Exception as e:
        print(f"\n❌ Error initializing database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
