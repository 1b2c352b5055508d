#!/usr/bin/env python3
"""
Delete all synced fights, events, fighters and rankings.

Organizations and the sync log are kept. Use this before re-running a
full backfill from scratch.

Usage:
    # Show what would be deleted:
    python scripts/clear_espn_data.py

    # Actually delete:
    python scripts/clear_espn_data.py --yes
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fightwatch.config import settings
from fightwatch.db import get_session
from fightwatch.services.maintenance import clear_synced_data, database_report


def main() -> int:
    parser = argparse.ArgumentParser(description="Clear synced ESPN data")
    parser.add_argument(
        "--yes", action="store_true",
        help="Actually delete (default only prints the current counts)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with get_session() as session:
        if not args.yes:
            report = database_report(session, top_n=0)
            print("=== DRY RUN (pass --yes to delete) ===\n")
            print(f"Would delete {report.fights} fights, {report.events} events, "
                  f"{report.fighters} fighters, {report.active_rankings} active rankings")
            return 0

        stats = clear_synced_data(session)
        print(stats.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
