#!/usr/bin/env python3
"""
Replace the active rankings from the rankings page.

Fighters must already exist (run scripts/sync_espn.py first); listed
names that match no stored fighter are reported with their closest
candidates.

Usage:
    python scripts/sync_rankings.py
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fightwatch.config import settings
from fightwatch.services.jobs import run_rankings_sync


async def main() -> int:
    parser = argparse.ArgumentParser(description="Sync rankings")
    parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    result = await run_rankings_sync()
    print(result.summary())
    if not result.success:
        print(f"\nRankings sync failed: {result.error}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
