#!/usr/bin/env python3
"""
Create the organizations syncs anchor to (UFC, Bellator).

Safe to run repeatedly; existing organizations are left as they are.

Usage:
    python scripts/seed_organizations.py
"""

import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fightwatch.config import settings
from fightwatch.db import get_session
from fightwatch.services.organizations import ensure_organizations


def main() -> int:
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with get_session() as session:
        organizations = ensure_organizations(session)
        for organization in organizations:
            print(f"  {organization.short_name}: {organization.name} (id={organization.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
