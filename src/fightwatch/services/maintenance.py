"""
Maintenance operations: clearing synced data and the database report.

These are run from scripts by hand, never by the sync itself.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from fightwatch.db.models import Event, Fight, Fighter, Ranking
from fightwatch.weight_classes import display_name, sort_key

logger = logging.getLogger(__name__)


@dataclass
class ClearStats:
    fights_deleted: int = 0
    events_deleted: int = 0
    fighters_deleted: int = 0
    rankings_deleted: int = 0

    def summary(self) -> str:
        return "\n".join([
            "Cleared synced data:",
            f"  Fights:   {self.fights_deleted}",
            f"  Events:   {self.events_deleted}",
            f"  Fighters: {self.fighters_deleted}",
            f"  Rankings: {self.rankings_deleted}",
        ])


def clear_synced_data(db: Session) -> ClearStats:
    """
    Delete all fights, events, fighters and rankings.

    Fights go first (they reference events and fighters), rankings last.
    Organizations and the sync log are kept. Doesn't commit - the caller
    owns the transaction.
    """
    stats = ClearStats()
    stats.fights_deleted = db.query(Fight).delete(synchronize_session=False)
    stats.events_deleted = db.query(Event).delete(synchronize_session=False)
    # Rankings reference fighters, so they must be gone before fighters
    stats.rankings_deleted = db.query(Ranking).delete(synchronize_session=False)
    stats.fighters_deleted = db.query(Fighter).delete(synchronize_session=False)
    logger.info(stats.summary())
    return stats


@dataclass
class DatabaseReport:
    """Counts and breakdowns for a quick look at what the syncs stored."""
    fighters: int = 0
    events: int = 0
    fights: int = 0
    active_rankings: int = 0
    events_by_type: dict[str, int] = field(default_factory=dict)
    fights_by_status: dict[str, int] = field(default_factory=dict)
    fights_by_weight_class: dict[str, int] = field(default_factory=dict)
    fighters_by_gender: dict[str, int] = field(default_factory=dict)
    top_fighters: list[tuple[str, str, int]] = field(default_factory=list)  # (name, record, fights)

    def summary(self) -> str:
        lines = [
            "Database report:",
            f"  Fighters: {self.fighters}",
            f"  Events:   {self.events}",
            f"  Fights:   {self.fights}",
            f"  Active rankings: {self.active_rankings}",
            "",
            "Events by type:",
        ]
        lines += [f"  {key}: {count}" for key, count in sorted(self.events_by_type.items())]
        lines.append("Fights by status:")
        lines += [f"  {key}: {count}" for key, count in sorted(self.fights_by_status.items())]
        lines.append("Fights by weight class:")
        for key in sorted(self.fights_by_weight_class, key=sort_key):
            lines.append(f"  {display_name(key)}: {self.fights_by_weight_class[key]}")
        lines.append("Fighters by gender:")
        lines += [f"  {key}: {count}" for key, count in sorted(self.fighters_by_gender.items())]
        if self.top_fighters:
            lines.append("Most active fighters:")
            for name, record, fights in self.top_fighters:
                lines.append(f"  {name} ({record}): {fights} fights")
        return "\n".join(lines)


def _grouped_counts(db: Session, column) -> dict[str, int]:
    rows = db.query(column, func.count()).group_by(column).all()
    return {(key or "UNSET"): count for key, count in rows}


def database_report(db: Session, top_n: int = 10) -> DatabaseReport:
    """Collect counts by event type, fight status, weight class and gender."""
    report = DatabaseReport(
        fighters=db.query(func.count(Fighter.id)).scalar() or 0,
        events=db.query(func.count(Event.id)).scalar() or 0,
        fights=db.query(func.count(Fight.id)).scalar() or 0,
        active_rankings=db.query(func.count(Ranking.id)).filter(Ranking.active.is_(True)).scalar() or 0,
        events_by_type=_grouped_counts(db, Event.event_type),
        fights_by_status=_grouped_counts(db, Fight.status),
        fights_by_weight_class=_grouped_counts(db, Fight.weight_class),
        fighters_by_gender=_grouped_counts(db, Fighter.gender),
    )

    fight_count = func.count(Fight.id).label("fight_count")
    rows = (
        db.query(Fighter, fight_count)
        .join(Fight, or_(Fight.fighter1_id == Fighter.id, Fight.fighter2_id == Fighter.id))
        .group_by(Fighter.id)
        .order_by(fight_count.desc(), Fighter.id)
        .limit(top_n)
        .all()
    )
    report.top_fighters = [(fighter.full_name, fighter.record, count) for fighter, count in rows]
    return report
