"""
Database schema initialisation
------------------------------
Creates missing tables and lists what exists afterwards.
"""

import asyncio
import sys
from pathlib import Path

# Load environment variables
from dotenv import load_dotenv

# Load the .env file next to the package
PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

# Make the package importable when run from a checkout
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy import inspect

from canteen_registry.db.init_db import init_db
from canteen_registry.db.session import engine


async def init_db_schema() -> None:
    """Create tables and print the resulting table list."""
    print("Initialising database schema...")
    await init_db(engine)
    print("Tables created")

    print("\nTables:")
    async with engine.connect() as conn:
        names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    for name in sorted(names):
        print(f"  - {name}")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_db_schema())
