#!/usr/bin/env python3
"""
Print counts of what the syncs have stored.

Usage:
    python scripts/database_report.py
    python scripts/database_report.py --top 25
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fightwatch.db import get_session
from fightwatch.services.maintenance import database_report


def main() -> int:
    parser = argparse.ArgumentParser(description="Database report")
    parser.add_argument(
        "--top", type=int, default=10,
        help="How many of the most active fighters to list",
    )
    args = parser.parse_args()

    with get_session() as session:
        report = database_report(session, top_n=args.top)
        print(report.summary())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
