"""
SQLAlchemy ORM models for FightWatch.

This module defines all database tables and their relationships.
The schema is designed around stable fighter identity: each fighter has
one record per organization regardless of how the upstream sources spell
their name or whether an ESPN id was known when the row was created.

Key design decisions:
- ESPN ids are optional and unique per organization when present
- Fighters carry stored normalized name keys, so identity lookups are
  indexed equality checks instead of roster scans
- Fights link to fighters via foreign keys (never raw names)
- A single fights table handles the full lifecycle (scheduled -> completed)
- Rankings are replaced wholesale per organization on every rankings sync

Tables:
- organizations: Promotions (UFC, Bellator)
- fighters: Canonical fighter records
- events: Fight cards
- fights: Bouts within an event
- rankings: Per-division rankings snapshot
- sync_log: Audit trail of sync runs
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from fightwatch.fighters.names import normalize_name
from fightwatch.statuses import DEFAULT_GENDER, SCHEDULED, STANCE_UNKNOWN


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


# =============================================================================
# Organization
# =============================================================================

class Organization(Base):
    """
    A promotion that owns fighters, events and rankings.

    Created once at setup by the seed script. Every sync run anchors to one
    organization by short name and aborts if it is missing.
    """
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    short_name: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Organization(short_name='{self.short_name}')>"


# =============================================================================
# Fighter
# =============================================================================

class Fighter(Base):
    """
    Canonical fighter record.

    Created on first sighting during a sync and refreshed on every later
    sighting (record tallies, physical stats, image). Sync never deletes
    fighters; only the maintenance clear operation does.

    name_key and last_name_key hold normalize_name() of the full and last
    name. They are maintained by mapper events below, so any code that
    changes first_name/last_name keeps them in step on flush.
    """
    __tablename__ = "fighters"

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)

    # ESPN identifiers (may be missing for fighters first seen in rankings)
    espn_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    espn_uid: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(150), nullable=False)
    nickname: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    # Normalized search keys (see class docstring)
    name_key: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name_key: Mapped[str] = mapped_column(String(150), nullable=False, default="")

    # Profile
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    nationality: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[Optional[datetime]] = mapped_column(Date, nullable=True)
    height_cm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reach_cm: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weight_lbs: Mapped[Optional[float]] = mapped_column(Numeric(6, 1, asdecimal=False), nullable=True)
    stance: Mapped[str] = mapped_column(String(20), default=STANCE_UNKNOWN, nullable=False)  # 'ORTHODOX', 'SOUTHPAW', 'SWITCH', 'UNKNOWN'
    gender: Mapped[str] = mapped_column(String(10), default=DEFAULT_GENDER, nullable=False)  # 'MALE', 'FEMALE'

    # Career record
    wins: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    losses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    draws: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    no_contests: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wins_by_ko: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wins_by_sub: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    wins_by_dec: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    weight_class: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    organization: Mapped["Organization"] = relationship()

    __table_args__ = (
        UniqueConstraint("organization_id", "espn_id", name="uq_fighter_org_espn_id"),
        Index("idx_fighters_name_key", "organization_id", "name_key"),
        Index("idx_fighters_last_name_key", "organization_id", "last_name_key"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def record(self) -> str:
        """Display record, e.g. '27-1-0' or '20-3-0 (1 NC)'."""
        base = f"{self.wins}-{self.losses}-{self.draws}"
        if self.no_contests:
            return f"{base} ({self.no_contests} NC)"
        return base

    def refresh_name_keys(self) -> None:
        self.name_key = normalize_name(f"{self.first_name or ''} {self.last_name or ''}")
        self.last_name_key = normalize_name(self.last_name)

    def __repr__(self) -> str:
        return f"<Fighter(id={self.id}, name='{self.full_name}')>"


@event.listens_for(Fighter, "before_insert")
@event.listens_for(Fighter, "before_update")
def _sync_fighter_name_keys(mapper, connection, target: Fighter) -> None:
    target.refresh_name_keys()


# =============================================================================
# Event and Fight
# =============================================================================

class Event(Base):
    """
    A fight card.

    Identity is the ESPN event id within the organization; the event name
    within the organization is the fallback identity when no id matches.
    """
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)

    espn_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    espn_uid: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)  # 'PPV', 'FIGHT_NIGHT'
    date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Location
    venue: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    organization: Mapped["Organization"] = relationship()
    fights: Mapped[list["Fight"]] = relationship(back_populates="event")

    __table_args__ = (
        UniqueConstraint("organization_id", "espn_id", name="uq_event_org_espn_id"),
        UniqueConstraint("organization_id", "name", name="uq_event_org_name"),
        Index("idx_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name='{self.name}')>"


class Fight(Base):
    """
    One bout within an event - handles the full lifecycle.

    A fight is created as SCHEDULED when the card is announced and later
    updated to COMPLETED (with a winner) or CANCELLED. Identity is the ESPN
    competition id; the fallback identity is the event plus the unordered
    fighter pair.

    Status lifecycle:
    - 'SCHEDULED': Bout on an upcoming card
    - 'COMPLETED': Bout finished (winner may be null for draws/no contests)
    - 'CANCELLED': Bout called off
    """
    __tablename__ = "fights"

    id: Mapped[int] = mapped_column(primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False)

    espn_id: Mapped[Optional[str]] = mapped_column(String(50), unique=True, nullable=True)
    espn_uid: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Fighters (always use foreign keys, never store names directly)
    fighter1_id: Mapped[int] = mapped_column(ForeignKey("fighters.id"), nullable=False)
    fighter2_id: Mapped[int] = mapped_column(ForeignKey("fighters.id"), nullable=False)

    weight_class: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    rounds: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    card_position: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default=SCHEDULED, nullable=False)
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("fighters.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    event: Mapped["Event"] = relationship(back_populates="fights")
    fighter1: Mapped["Fighter"] = relationship(foreign_keys=[fighter1_id])
    fighter2: Mapped["Fighter"] = relationship(foreign_keys=[fighter2_id])
    winner: Mapped[Optional["Fighter"]] = relationship(foreign_keys=[winner_id])

    __table_args__ = (
        UniqueConstraint("event_id", "fighter1_id", "fighter2_id", name="uq_fight_event_pair"),
        CheckConstraint("fighter1_id <> fighter2_id", name="ck_fight_distinct_fighters"),
        CheckConstraint(
            "winner_id IS NULL OR winner_id = fighter1_id OR winner_id = fighter2_id",
            name="ck_fight_winner_is_participant",
        ),
        Index("idx_fights_event", "event_id"),
        Index("idx_fights_fighter1", "fighter1_id"),
        Index("idx_fights_fighter2", "fighter2_id"),
        Index("idx_fights_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Fight(id={self.id}, event_id={self.event_id}, status='{self.status}')>"


# =============================================================================
# Rankings
# =============================================================================

class Ranking(Base):
    """
    A fighter's position in an organization's division.

    rank 0 is the champion, 1..15 the contenders. The organization's active
    set is deleted and recreated on each rankings sync, so rows are never
    patched in place.
    """
    __tablename__ = "rankings"

    id: Mapped[int] = mapped_column(primary_key=True)
    fighter_id: Mapped[int] = mapped_column(ForeignKey("fighters.id"), nullable=False)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False)

    weight_class: Mapped[str] = mapped_column(String(30), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    effective_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    fighter: Mapped["Fighter"] = relationship()

    __table_args__ = (
        UniqueConstraint(
            "fighter_id", "organization_id", "weight_class", "active",
            name="uq_ranking_fighter_org_class_active",
        ),
        Index("idx_rankings_org_class", "organization_id", "weight_class", "rank"),
    )

    def __repr__(self) -> str:
        return f"<Ranking(weight_class='{self.weight_class}', rank={self.rank}, fighter_id={self.fighter_id})>"


# =============================================================================
# System Models
# =============================================================================

class SyncLog(Base):
    """
    Audit log for sync runs.

    One row per full, incremental or rankings sync. The scheduler seeds its
    last-sync timestamps from the latest successful row of each type.
    """
    __tablename__ = "sync_log"

    id: Mapped[int] = mapped_column(primary_key=True)

    # 'full', 'incremental', 'rankings'
    sync_type: Mapped[str] = mapped_column(String(30), nullable=False)

    # Counts reported by the run (varies by type)
    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    # Outcome
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_sync_log_type_date", "sync_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<SyncLog(type='{self.sync_type}', success={self.success})>"
