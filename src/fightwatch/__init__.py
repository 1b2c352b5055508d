"""
FightWatch - MMA data sync backend

Ingests fighters, events, fights and rankings from ESPN's public MMA API
and the UFC rankings page, reconciles them against the database, and
serves the results to the dashboard.

Main components:
- espn: HTTP client with retry/backoff and payload parsers
- classify: Weight class, gender, stance and status classification
- fighters: Name normalization and fighter identity resolution
- services: Full/incremental/rankings sync, scheduler, maintenance
- web: FastAPI routes that trigger syncs
"""

__version__ = "1.0.0"
