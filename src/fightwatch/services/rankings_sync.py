"""
Rankings sync service - replaces an organization's rankings from ufc.com.

Workflow:
1. Fetch and parse the rankings page (one list per division)
2. Resolve each listed name to a stored fighter (name steps of the
   identity cascade; the page carries no ESPN ids)
3. Delete the organization's active rankings and recreate them, in one
   transaction

Names that resolve to nothing are counted and reported, and never stop
the run. A page that parses to nothing is treated as a markup change: the
run fails and the existing rankings are kept.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fightwatch.config import settings
from fightwatch.db.models import Ranking
from fightwatch.espn.client import FETCH_ERRORS, ESPNClient
from fightwatch.fighters.identity import FighterIdentityService
from fightwatch.scrape.ufc_rankings import ParsedRanking, parse_rankings_html
from fightwatch.services.organizations import (
    OrganizationNotFoundError,
    require_organization,
)

logger = logging.getLogger(__name__)


@dataclass
class RankingsSyncResult:
    """Structured result of a rankings sync."""
    success: bool
    rankings_processed: int = 0
    not_found: list[ParsedRanking] = field(default_factory=list)
    duplicates_skipped: int = 0
    error: Optional[str] = None

    @property
    def not_found_count(self) -> int:
        return len(self.not_found)

    def to_dict(self) -> dict:
        payload = {
            "success": self.success,
            "rankingsProcessed": self.rankings_processed,
            "notFoundCount": self.not_found_count,
        }
        if self.not_found:
            payload["notFound"] = [
                {"name": r.fighter_name, "weightClass": r.weight_class, "rank": r.rank}
                for r in self.not_found
            ]
        if self.error:
            payload["error"] = self.error
        return payload

    def to_log_details(self) -> dict:
        return {
            "rankings_processed": self.rankings_processed,
            "not_found": self.not_found_count,
            "duplicates_skipped": self.duplicates_skipped,
        }

    def summary(self) -> str:
        """Return a human-readable summary of the rankings sync."""
        lines = [
            "Rankings sync complete:",
            f"  Processed: {self.rankings_processed}",
            f"  Not found: {self.not_found_count}",
        ]
        for entry in self.not_found:
            lines.append(f"    - {entry.fighter_name} ({entry.weight_class}, rank {entry.rank})")
        return "\n".join(lines)


class RankingsSyncService:
    """
    Replaces the organization's active rankings from the rankings page.

    Usage:
        async with ESPNClient() as client:
            with get_session() as session:
                result = await RankingsSyncService(session, client).run()
    """

    def __init__(
        self,
        db: Session,
        client: ESPNClient,
        organization_short_name: Optional[str] = None,
        rankings_url: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.client = client
        self.organization_short_name = organization_short_name or settings.organization_short_name
        self.rankings_url = rankings_url or settings.rankings_url
        self.clock = clock

    async def run(self) -> RankingsSyncResult:
        try:
            organization = require_organization(self.db, self.organization_short_name)
        except OrganizationNotFoundError as e:
            logger.error("Rankings sync aborted: %s", e)
            return RankingsSyncResult(success=False, error=str(e))

        try:
            html = await self.client.get_rankings_html(self.rankings_url)
        except FETCH_ERRORS as e:
            logger.error("Failed to fetch rankings page: %s", e)
            return RankingsSyncResult(success=False, error=f"Failed to fetch rankings: {e}")

        parsed = parse_rankings_html(html)
        if not parsed:
            logger.warning("No rankings parsed from %s; keeping existing rankings", self.rankings_url)
            return RankingsSyncResult(success=False, error="No rankings found on page")

        logger.info("Parsed %d rankings entries", len(parsed))
        return self.replace_rankings(organization.id, parsed)

    def replace_rankings(self, organization_id: int, parsed: list[ParsedRanking]) -> RankingsSyncResult:
        """
        Resolve parsed entries and swap the active set in one transaction.

        A fighter listed twice in one division keeps the first (better) rank.
        """
        result = RankingsSyncResult(success=True)
        identity = FighterIdentityService(self.db, organization_id)

        resolved: list[tuple[ParsedRanking, int]] = []
        seen: set[tuple[int, str]] = set()
        for entry in parsed:
            match = identity.find_fighter_by_full_name(entry.fighter_name)
            if match is None:
                result.not_found.append(entry)
                suggestions = identity.suggest(entry.fighter_name)
                logger.warning(
                    "Fighter not found: '%s' (%s, rank %d); closest: %s",
                    entry.fighter_name, entry.weight_class, entry.rank,
                    ", ".join(f"{f.full_name} ({score:.2f})" for f, score in suggestions) or "none",
                )
                continue

            key = (match.fighter_id, entry.weight_class)
            if key in seen:
                result.duplicates_skipped += 1
                continue
            seen.add(key)
            resolved.append((entry, match.fighter_id))

        effective_date = self.clock()
        try:
            self.db.query(Ranking).filter(
                Ranking.organization_id == organization_id,
                Ranking.active.is_(True),
            ).delete(synchronize_session="fetch")

            for entry, fighter_id in resolved:
                self.db.add(Ranking(
                    fighter_id=fighter_id,
                    organization_id=organization_id,
                    weight_class=entry.weight_class,
                    rank=entry.rank,
                    active=True,
                    effective_date=effective_date,
                ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to replace rankings: %s", e)
            return RankingsSyncResult(success=False, not_found=result.not_found, error=str(e))

        result.rankings_processed = len(resolved)
        logger.info(result.summary())
        return result
