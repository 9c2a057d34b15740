"""
Legacy canteen backfill
-----------------------
Sets base_address_key on canteens created before several canteens could
share an address. Run once after upgrading; running it again is a no-op.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

sys.path.insert(0, str(PROJECT_ROOT))

from canteen_registry.core.config import LOG_FORMAT, settings
from canteen_registry.db.session import SessionLocal, engine
from canteen_registry.services.migrations import backfill_base_address_keys


async def run() -> int:
    async with SessionLocal() as db:
        updated = await backfill_base_address_keys(db)
    await engine.dispose()
    return updated


def run_cli() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level, format=LOG_FORMAT)
    updated = asyncio.run(run())
    print(f"Updated {updated} canteen(s)")


if __name__ == "__main__":
    run_cli()
