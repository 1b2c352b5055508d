"""
Fighter identity service for matching incoming records to stored rows.

This is the core service for fighter identification. It handles:
- Finding existing fighters by ESPN id or name
- Adopting an ESPN id onto a row that was found by name
- Finding existing events by ESPN id or name
- Suggesting near misses for names nothing matched

The matching cascade (stop at the first hit, scoped to one organization):
1. Exact ESPN id - authoritative once recorded
2. Case-insensitive exact first + last name as stored
3. Normalized full name (stored name_key)
4. Normalized full name with spaces removed ("CortesAcosta")
5. Normalized last name + stored first name starting with the incoming one

Step 5 is the weakest; when it finds more than one fighter the result is
"not found" rather than a guess. Fuzzy similarity is only ever used for
suggestions in logs, never to decide a match.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from fightwatch.db.models import Event, Fighter
from fightwatch.fighters.names import (
    compare_names,
    normalize_name,
    split_full_name,
)

logger = logging.getLogger(__name__)


@dataclass
class FighterMatch:
    """
    Result of a fighter matching attempt.

    Returned by find_fighter() to record how the match was made.
    """
    fighter: Fighter
    match_type: str  # 'external_id', 'exact_name', 'normalized', 'compact', 'prefix'

    @property
    def fighter_id(self) -> int:
        return self.fighter.id

    def __repr__(self) -> str:
        return f"<FighterMatch(id={self.fighter.id}, type='{self.match_type}')>"


class FighterIdentityService:
    """
    Service for resolving fighter and event identity within an organization.

    Usage:
        identity = FighterIdentityService(session, organization_id=ufc.id)

        match = identity.find_fighter("Jiří", "Procházka", external_id="4333045")
        if match is None:
            # caller creates the fighter
            ...

    "Not found" is always None. Database errors propagate to the caller.
    """

    def __init__(self, db: Session, organization_id: int):
        """
        Args:
            db: SQLAlchemy session for database operations
            organization_id: Organization every lookup is scoped to
        """
        self.db = db
        self.organization_id = organization_id

    # =========================================================================
    # Fighters
    # =========================================================================

    def find_fighter(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        external_id: Optional[str] = None,
    ) -> Optional[FighterMatch]:
        """
        Find a fighter through the matching cascade.

        If the fighter is found by name and an external_id was given, the
        stored row takes that id so the next lookup hits step 1. Calling
        this twice with the same input returns the same row both times.

        Args:
            first_name: Incoming first name
            last_name: Incoming last name
            external_id: ESPN athlete id, if the source carries one

        Returns:
            FighterMatch, or None when no step matched
        """
        if external_id:
            fighter = self._find_by_external_id(external_id)
            if fighter:
                return FighterMatch(fighter, "external_id")

        match = self._find_by_name(first_name or "", last_name or "")
        if match and external_id:
            self._adopt_external_id(match.fighter, external_id)
        return match

    def find_fighter_by_full_name(self, full_name: str) -> Optional[FighterMatch]:
        """
        Resolve a display name with no external id (rankings page).

        The first token is treated as the first name, the rest as the last
        name, then steps 2-5 of the cascade run.
        """
        first_name, last_name = split_full_name(" ".join(full_name.split()))
        return self._find_by_name(first_name, last_name)

    def suggest(self, full_name: str, limit: int = 3, threshold: float = 0.8) -> list[tuple[Fighter, float]]:
        """
        Fuzzy candidates for a name nothing matched, best first.

        Only for logging and manual review. Scans the organization's roster,
        so keep it off hot paths.
        """
        fighters = self.db.query(Fighter).filter(
            Fighter.organization_id == self.organization_id
        ).all()

        scored = []
        for fighter in fighters:
            score = compare_names(full_name, fighter.full_name)
            if score >= threshold:
                scored.append((fighter, score))

        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]

    # =========================================================================
    # Events
    # =========================================================================

    def find_event(self, external_id: Optional[str], name: Optional[str]) -> Optional[Event]:
        """
        Find an event by ESPN id, else by exact name within the organization.

        An event found by name takes the incoming ESPN id.
        """
        if external_id:
            event = self.db.query(Event).filter(
                Event.organization_id == self.organization_id,
                Event.espn_id == external_id,
            ).first()
            if event:
                return event

        if not name:
            return None

        event = self.db.query(Event).filter(
            Event.organization_id == self.organization_id,
            Event.name == name,
        ).first()

        if event and external_id and event.espn_id != external_id:
            logger.info(
                "Event '%s' matched by name; ESPN id %s -> %s",
                name, event.espn_id, external_id,
            )
            event.espn_id = external_id
        return event

    # =========================================================================
    # Private Helper Methods
    # =========================================================================

    def _roster(self):
        return self.db.query(Fighter).filter(Fighter.organization_id == self.organization_id)

    def _find_by_external_id(self, external_id: str) -> Optional[Fighter]:
        return self._roster().filter(Fighter.espn_id == external_id).first()

    def _find_by_name(self, first_name: str, last_name: str) -> Optional[FighterMatch]:
        first_name = first_name.strip()
        last_name = last_name.strip()
        if not first_name and not last_name:
            return None

        # Step 2: exact, case-insensitive, as literally stored
        fighter = self._roster().filter(
            func.lower(Fighter.first_name) == first_name.lower(),
            func.lower(Fighter.last_name) == last_name.lower(),
        ).order_by(Fighter.id).first()
        if fighter:
            return FighterMatch(fighter, "exact_name")

        # Step 3: normalized full name
        name_key = normalize_name(f"{first_name} {last_name}")
        if not name_key:
            return None
        fighter = self._roster().filter(
            Fighter.name_key == name_key
        ).order_by(Fighter.id).first()
        if fighter:
            return FighterMatch(fighter, "normalized")

        # Step 4: spaces removed. Prefilter on the full key's first letter;
        # sources split compound surnames at different points
        compact = name_key.replace(" ", "")
        candidates = self._roster().filter(
            Fighter.name_key.startswith(compact[0], autoescape=True)
        ).order_by(Fighter.id).all()
        for candidate in candidates:
            if candidate.name_key.replace(" ", "") == compact:
                return FighterMatch(candidate, "compact")

        # Step 5: same last name, stored first name extends the incoming one
        last_key = normalize_name(last_name)
        first_key = normalize_name(first_name)
        if not last_key or not first_key:
            return None
        candidates = self._roster().filter(
            Fighter.last_name_key == last_key
        ).order_by(Fighter.id).all()
        hits = [
            candidate for candidate in candidates
            if normalize_name(candidate.first_name).startswith(first_key)
        ]
        if len(hits) == 1:
            return FighterMatch(hits[0], "prefix")
        if len(hits) > 1:
            logger.debug(
                "Ambiguous prefix match for '%s %s': %s",
                first_name, last_name, [h.id for h in hits],
            )
        return None

    def _adopt_external_id(self, fighter: Fighter, external_id: str) -> None:
        """Move an ESPN id onto a row found by name (no second row is created)."""
        if fighter.espn_id == external_id:
            return
        if fighter.espn_id:
            logger.warning(
                "Fighter %s (%s) matched by name; replacing ESPN id %s with %s",
                fighter.id, fighter.full_name, fighter.espn_id, external_id,
            )
        else:
            logger.info(
                "Fighter %s (%s) matched by name; recording ESPN id %s",
                fighter.id, fighter.full_name, external_id,
            )
        fighter.espn_id = external_id
