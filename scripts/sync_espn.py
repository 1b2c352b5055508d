#!/usr/bin/env python3
"""
Sync events, fights and fighters from ESPN.

Usage:
    # Rolling window around today (default):
    python scripts/sync_espn.py

    # Historical backfill (slow, hours):
    python scripts/sync_espn.py --mode full

    # Backfill a shorter history:
    python scripts/sync_espn.py --mode full --years 5
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fightwatch.config import settings
from fightwatch.db import get_session
from fightwatch.espn.client import ESPNClient
from fightwatch.services.espn_sync import MODE_FULL, MODE_INCREMENTAL, ESPNSyncService
from fightwatch.services.jobs import record_sync_log


async def main() -> int:
    parser = argparse.ArgumentParser(description="Sync MMA data from ESPN")
    parser.add_argument(
        "--mode", choices=["full", "recent"], default="recent",
        help="full = historical backfill, recent = rolling window (default)",
    )
    parser.add_argument(
        "--years", type=int, default=None,
        help=f"Years of history for a full sync (default {settings.full_sync_years})",
    )
    parser.add_argument(
        "--days-back", type=int, default=None,
        help=f"Window start for a recent sync (default {settings.incremental_days_back})",
    )
    parser.add_argument(
        "--days-forward", type=int, default=None,
        help=f"Window end for a recent sync (default {settings.incremental_days_forward})",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    started = time.monotonic()
    async with ESPNClient() as client:
        with get_session() as session:
            service = ESPNSyncService(session, client)
            if args.mode == "full":
                result = await service.run_full_sync(years=args.years)
            else:
                result = await service.run_incremental_sync(
                    days_back=args.days_back, days_forward=args.days_forward,
                )

    sync_type = MODE_FULL if args.mode == "full" else MODE_INCREMENTAL
    record_sync_log(sync_type, result.success, result.to_log_details(), result.error, started)

    print(result.stats.summary())
    if not result.success:
        print(f"\nSync failed: {result.error}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
