"""
Database module for FightWatch.

Provides SQLAlchemy ORM models and session management.

Usage:
    from fightwatch.db import get_session, Fighter, Fight

    with get_session() as session:
        fighters = session.query(Fighter).all()
"""

from fightwatch.db.models import (
    Base,
    Organization,
    Fighter,
    Event,
    Fight,
    Ranking,
    SyncLog,
)
from fightwatch.db.session import get_session, get_engine, get_db, SessionLocal

__all__ = [
    # Base
    "Base",
    # Models
    "Organization",
    "Fighter",
    "Event",
    "Fight",
    "Ranking",
    "SyncLog",
    # Session
    "get_session",
    "get_engine",
    "get_db",
    "SessionLocal",
]
