#!/usr/bin/env python3
"""
Recompute cached Fan Power Index values in the database.

Run after changing FPI weights, or to fix rows edited by hand:
    python scripts/recompute_fan_power.py            # rewrite drifted rows
    python scripts/recompute_fan_power.py --dry-run  # only report drift
"""

import argparse
import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select

from gojipedia.db.database import async_session_maker
from gojipedia.db.models import Monster
from gojipedia.services.fpi_audit import audit_fan_power, recompute_fan_power_indexes


async def main(dry_run: bool):
    async with async_session_maker() as session:
        if dry_run:
            rows = (await session.execute(select(Monster))).scalars().all()
            result = audit_fan_power(rows)
        else:
            result = await recompute_fan_power_indexes(session)

    print(f"Checked {result.checked} monsters")
    for drift in result.drifted:
        print(f"  {drift.slug}: {drift.cached} -> {drift.computed}")
    for gap in result.incomplete:
        print(f"  {gap.slug}: missing sub-scores, cached value {gap.cached} kept")

    verb = "would update" if dry_run else "updated"
    print(f"Done: {verb} {len(result.drifted)}, incomplete {len(result.incomplete)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    args = parser.parse_args()
    asyncio.run(main(args.dry_run))
