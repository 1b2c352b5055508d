"""
ESPN sync service - pulls events, fights and fighters into the database.

Two run modes share the same per-event pipeline:

- Full backfill: yearly scoreboard windows from `full_sync_years` ago to
  this year, every event id processed
- Incremental: a rolling window from `incremental_days_back` days ago to
  `incremental_days_forward` days ahead

Per event:
    fetch event → resolve-or-create Event → for each two-competitor bout:
    resolve-or-create both Fighters (run-scoped cache keyed by athlete $ref)
    → classify weight class / status / winner → upsert Fight → commit

Everything runs sequentially in one task. Per-item failures (a fetch that
exhausted its retries, a malformed payload, a uniqueness race) become
ItemOutcome values folded into SyncStats; only a missing organization
aborts the run.

Usage:
    async with ESPNClient() as client:
        with get_session() as session:
            result = await ESPNSyncService(session, client).run_incremental_sync()
    print(result.stats.summary())
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fightwatch.classify import (
    RecordBreakdown,
    classify_bout_weight_class,
    classify_event_type,
    classify_fight_status,
    classify_gender,
    classify_stance,
    classify_weight_class,
    determine_winner,
    explicit_gender,
    inches_to_cm,
    parse_record_breakdown,
)
from fightwatch.config import settings
from fightwatch.db.models import Event, Fight, Fighter, Organization
from fightwatch.espn.client import FETCH_ERRORS, ESPNClient
from fightwatch.espn.parsers import (
    ScrapedAthlete,
    ScrapedCompetition,
    ScrapedCompetitor,
    ScrapedEvent,
    parse_athlete,
    parse_event,
)
from fightwatch.fighters.identity import FighterIdentityService
from fightwatch.services.organizations import (
    OrganizationNotFoundError,
    require_organization,
)
from fightwatch.statuses import COMPLETED, FEMALE, STANCE_UNKNOWN
from fightwatch.weight_classes import CATCHWEIGHT

logger = logging.getLogger(__name__)

MODE_FULL = "full"
MODE_INCREMENTAL = "incremental"


# =============================================================================
# Outcomes, stats, results
# =============================================================================

OK = "ok"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class ItemOutcome:
    """
    Result of processing one item (event, fight or fighter).

    - ok: value holds the stored entity
    - skipped: the item was deliberately not stored (reason says why)
    - failed: an error stopped the item (reason holds the message)
    """
    status: str
    value: Any = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: Any) -> "ItemOutcome":
        return cls(OK, value=value)

    @classmethod
    def skipped(cls, reason: str) -> "ItemOutcome":
        return cls(SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "ItemOutcome":
        return cls(FAILED, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == OK


@dataclass
class SyncStats:
    """Statistics from an ESPN sync run."""
    events_processed: int = 0
    events_skipped: int = 0
    fights_processed: int = 0
    fights_skipped: int = 0
    fighters_processed: int = 0
    errors: int = 0
    error_messages: list[str] = field(default_factory=list)

    def record_error(self, reason: Optional[str]) -> None:
        self.errors += 1
        if reason:
            self.error_messages.append(reason)

    def record_event(self, outcome: ItemOutcome) -> None:
        if outcome.status == OK:
            self.events_processed += 1
        elif outcome.status == SKIPPED:
            self.events_skipped += 1
        else:
            self.record_error(outcome.reason)

    def record_fight(self, outcome: ItemOutcome) -> None:
        if outcome.status == OK:
            self.fights_processed += 1
        elif outcome.status == SKIPPED:
            self.fights_skipped += 1
        else:
            self.record_error(outcome.reason)

    def record_fighter(self, outcome: ItemOutcome) -> None:
        """Only freshly fetched fighters are recorded; cache hits are not."""
        if outcome.status == OK:
            self.fighters_processed += 1
        elif outcome.status == FAILED:
            self.record_error(outcome.reason)

    def summary(self) -> str:
        """Return a human-readable summary of sync results."""
        lines = [
            "ESPN sync complete:",
            f"  Events processed:   {self.events_processed}",
            f"  Events skipped:     {self.events_skipped}",
            f"  Fights processed:   {self.fights_processed}",
            f"  Fights skipped:     {self.fights_skipped}",
            f"  Fighters processed: {self.fighters_processed}",
        ]
        if self.errors:
            lines.append(f"  Errors: {self.errors}")
            for err in self.error_messages[:5]:
                lines.append(f"    - {err}")
            if len(self.error_messages) > 5:
                lines.append(f"    ... and {len(self.error_messages) - 5} more")
        return "\n".join(lines)


@dataclass
class SyncResult:
    """Structured result of a sync run, as returned to routes and jobs."""
    success: bool
    mode: str
    stats: SyncStats = field(default_factory=SyncStats)
    error: Optional[str] = None

    def to_full_dict(self) -> dict:
        payload = {
            "success": self.success,
            "eventsProcessed": self.stats.events_processed,
            "fightsProcessed": self.stats.fights_processed,
            "fightersProcessed": self.stats.fighters_processed,
            "fightsSkipped": self.stats.fights_skipped,
            "errorCount": self.stats.errors,
        }
        if self.error:
            payload["error"] = self.error
        return payload

    def to_recent_dict(self) -> dict:
        payload = {
            "success": self.success,
            "events": self.stats.events_processed,
            "fights": self.stats.fights_processed,
            "fighters": self.stats.fighters_processed,
        }
        if self.error:
            payload["error"] = self.error
        return payload

    def to_log_details(self) -> dict:
        return {
            "events_processed": self.stats.events_processed,
            "events_skipped": self.stats.events_skipped,
            "fights_processed": self.stats.fights_processed,
            "fights_skipped": self.stats.fights_skipped,
            "fighters_processed": self.stats.fighters_processed,
            "errors": self.stats.errors,
        }


# =============================================================================
# Fighter cache
# =============================================================================

class FighterCache:
    """
    Run-scoped map of athlete $ref -> Fighter.

    A fighter on several cards in one run is fetched and classified once.
    Entries added while processing an event stay pending until the event
    commits; if the event is rolled back, its pending entries are dropped
    so later events never reuse a row that no longer exists.
    """

    def __init__(self):
        self._entries: dict[str, Fighter] = {}
        self._pending: set[str] = set()

    def get(self, athlete_ref: str) -> Optional[Fighter]:
        return self._entries.get(athlete_ref)

    def put(self, athlete_ref: str, fighter: Fighter) -> None:
        self._entries[athlete_ref] = fighter
        self._pending.add(athlete_ref)

    def confirm(self) -> None:
        self._pending.clear()

    def discard_pending(self) -> None:
        for athlete_ref in self._pending:
            self._entries.pop(athlete_ref, None)
        self._pending.clear()

    def __contains__(self, athlete_ref: str) -> bool:
        return athlete_ref in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# Service
# =============================================================================

class ESPNSyncService:
    """
    Orchestrates one ESPN sync run against a session and an open client.

    A new service (and so a new FighterCache) should be created per run.
    """

    def __init__(
        self,
        db: Session,
        client: ESPNClient,
        organization_short_name: Optional[str] = None,
        request_delay: Optional[float] = None,
        scoreboard_delay: Optional[float] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.db = db
        self.client = client
        self.organization_short_name = organization_short_name or settings.organization_short_name
        self.request_delay = settings.sync_request_delay if request_delay is None else request_delay
        self.scoreboard_delay = settings.sync_scoreboard_delay if scoreboard_delay is None else scoreboard_delay
        self.clock = clock

        self.cache = FighterCache()
        self.stats = SyncStats()
        self.organization: Optional[Organization] = None
        self.identity: Optional[FighterIdentityService] = None
        self._fatal_error: Optional[str] = None

    # =========================================================================
    # Run modes
    # =========================================================================

    async def run_full_sync(self, years: Optional[int] = None) -> SyncResult:
        """
        Historical backfill over yearly scoreboard windows.

        A failed yearly scoreboard is logged and counted; the other years
        still run.
        """
        if not self._load_organization():
            return self._fatal(MODE_FULL)

        years = settings.full_sync_years if years is None else years
        current_year = self.clock().year
        start_year = current_year - years
        logger.info("Full sync: fetching events from %d to %d", start_year, current_year)

        event_ids: list[str] = []
        for year in range(start_year, current_year + 1):
            await self.client.pause(self.scoreboard_delay)
            try:
                year_ids = await self.client.get_event_ids(date(year, 1, 1), date(year, 12, 31))
            except FETCH_ERRORS as e:
                logger.warning("Failed to fetch scoreboard for %d: %s", year, e)
                self.stats.record_error(f"scoreboard {year}: {e}")
                continue
            logger.info("Year %d: %d events", year, len(year_ids))
            event_ids.extend(year_ids)

        return await self._process_event_ids(MODE_FULL, event_ids)

    async def run_incremental_sync(
        self,
        days_back: Optional[int] = None,
        days_forward: Optional[int] = None,
    ) -> SyncResult:
        """
        Sync the rolling window around today.

        If the window's scoreboard can't be fetched the run fails, since
        there is nothing else to process.
        """
        if not self._load_organization():
            return self._fatal(MODE_INCREMENTAL)

        days_back = settings.incremental_days_back if days_back is None else days_back
        days_forward = settings.incremental_days_forward if days_forward is None else days_forward
        today = self.clock().date()
        start = today - timedelta(days=days_back)
        end = today + timedelta(days=days_forward)
        logger.info("Incremental sync: %s to %s", start, end)

        try:
            event_ids = await self.client.get_event_ids(start, end)
        except FETCH_ERRORS as e:
            logger.error("Failed to fetch scoreboard %s to %s: %s", start, end, e)
            return SyncResult(
                success=False,
                mode=MODE_INCREMENTAL,
                stats=self.stats,
                error=f"Failed to fetch events: {e}",
            )

        return await self._process_event_ids(MODE_INCREMENTAL, event_ids)

    # =========================================================================
    # Run plumbing
    # =========================================================================

    def _load_organization(self) -> bool:
        try:
            self.organization = require_organization(self.db, self.organization_short_name)
        except OrganizationNotFoundError as e:
            logger.error("Sync aborted: %s", e)
            self._fatal_error = str(e)
            return False
        self.identity = FighterIdentityService(self.db, self.organization.id)
        return True

    def _fatal(self, mode: str) -> SyncResult:
        return SyncResult(success=False, mode=mode, stats=self.stats, error=self._fatal_error)

    async def _process_event_ids(self, mode: str, event_ids: list[str]) -> SyncResult:
        unique_ids = list(dict.fromkeys(event_ids))
        logger.info("Processing %d events", len(unique_ids))

        for index, event_id in enumerate(unique_ids, start=1):
            await self._process_event(event_id)
            if index % 10 == 0:
                logger.info("Progress: %d/%d events", index, len(unique_ids))

        logger.info(self.stats.summary())
        return SyncResult(success=True, mode=mode, stats=self.stats)

    async def _process_event(self, event_id: str) -> None:
        """Process one event and commit it; failures roll back just this event."""
        await self.client.pause(self.request_delay)
        try:
            doc = await self.client.get_event(event_id)
        except FETCH_ERRORS as e:
            logger.warning("Failed to fetch event %s: %s", event_id, e)
            self.stats.record_event(ItemOutcome.failed(f"event {event_id}: {e}"))
            return

        scraped = parse_event(doc)
        if scraped is None:
            logger.warning("Skipping event %s: missing name or competitions", event_id)
            self.stats.record_event(ItemOutcome.skipped("missing name or competitions"))
            return

        try:
            outcome = self._upsert_event(scraped)
            if not outcome.is_ok:
                self.db.rollback()
                self.stats.record_event(outcome)
                return

            event = outcome.value
            for competition in scraped.competitions:
                await self._process_competition(event, scraped, competition)

            self.db.commit()
            self.cache.confirm()
            self.stats.record_event(outcome)
        except Exception as e:
            self.db.rollback()
            self.cache.discard_pending()
            logger.error("Error processing event %s (%s): %s", event_id, scraped.name, e)
            self.stats.record_event(ItemOutcome.failed(f"{scraped.name}: {e}"))

    # =========================================================================
    # Events
    # =========================================================================

    def _upsert_event(self, scraped: ScrapedEvent) -> ItemOutcome:
        event = self.identity.find_event(scraped.espn_id, scraped.name)

        if event is None:
            event = Event(
                organization_id=self.organization.id,
                espn_id=scraped.espn_id,
                espn_uid=scraped.espn_uid,
                name=scraped.name,
                event_type=classify_event_type(scraped.name),
            )
            self._apply_event_fields(event, scraped)
            try:
                with self.db.begin_nested():
                    self.db.add(event)
            except IntegrityError:
                # Another run created it between our lookup and insert
                event = self.identity.find_event(scraped.espn_id, scraped.name)
                if event is None:
                    logger.warning("Skipping duplicate event: %s", scraped.name)
                    return ItemOutcome.skipped("duplicate event")
                logger.info("Using existing event: %s", scraped.name)
            return ItemOutcome.ok(event)

        event.name = scraped.name
        event.espn_uid = scraped.espn_uid or event.espn_uid
        event.event_type = classify_event_type(scraped.name)
        self._apply_event_fields(event, scraped)
        self.db.flush()
        return ItemOutcome.ok(event)

    @staticmethod
    def _apply_event_fields(event: Event, scraped: ScrapedEvent) -> None:
        if scraped.date is not None:
            event.date = scraped.date
        event.venue = scraped.venue
        event.city = scraped.city
        if scraped.country:
            event.country = scraped.country

    # =========================================================================
    # Fights
    # =========================================================================

    async def _process_competition(
        self,
        event: Event,
        scraped: ScrapedEvent,
        competition: ScrapedCompetition,
    ) -> None:
        if len(competition.competitors) != 2:
            self.stats.record_fight(ItemOutcome.skipped("competition without two competitors"))
            return

        fighters: list[Fighter] = []
        for competitor in competition.competitors:
            fighter = self.cache.get(competitor.athlete_ref)
            if fighter is None:
                outcome = await self._resolve_competitor(competitor, scraped, competition)
                self.stats.record_fighter(outcome)
                if not outcome.is_ok:
                    continue
                fighter = outcome.value
            fighters.append(fighter)

        if len(fighters) != 2:
            self.stats.record_fight(ItemOutcome.skipped("unresolved competitor"))
            return
        if fighters[0].id == fighters[1].id:
            logger.warning(
                "Skipping fight %s: both competitors resolved to fighter %s",
                competition.espn_id, fighters[0].id,
            )
            self.stats.record_fight(ItemOutcome.skipped("same fighter on both sides"))
            return

        weight_class = classify_bout_weight_class(
            [fighter.weight_class for fighter in fighters],
            competition.notes,
            scraped.name,
        )
        status = classify_fight_status(
            competition.state,
            competition.completed,
            event_date=scraped.date,
            now=self.clock(),
            detail=competition.status_detail,
        )
        winner_id = None
        if status == COMPLETED:
            winner_id = determine_winner(
                [competitor.winner for competitor in competition.competitors],
                [fighter.id for fighter in fighters],
            )

        outcome = self._upsert_fight(event, competition, fighters, weight_class, status, winner_id)
        self.stats.record_fight(outcome)

        if weight_class != CATCHWEIGHT:
            for fighter in fighters:
                if not fighter.weight_class:
                    fighter.weight_class = weight_class
            self.db.flush()

    def _find_fight(self, event: Event, competition: ScrapedCompetition, fighter_ids: list[int]) -> tuple[Optional[Fight], bool]:
        """Find by ESPN id, else by event + unordered pair. Returns (fight, found_by_id)."""
        if competition.espn_id:
            fight = self.db.query(Fight).filter(Fight.espn_id == competition.espn_id).first()
            if fight:
                return fight, True

        a, b = fighter_ids
        fight = self.db.query(Fight).filter(
            Fight.event_id == event.id,
            or_(
                and_(Fight.fighter1_id == a, Fight.fighter2_id == b),
                and_(Fight.fighter1_id == b, Fight.fighter2_id == a),
            ),
        ).first()
        return fight, False

    def _upsert_fight(
        self,
        event: Event,
        competition: ScrapedCompetition,
        fighters: list[Fighter],
        weight_class: str,
        status: str,
        winner_id: Optional[int],
    ) -> ItemOutcome:
        fighter_ids = [fighter.id for fighter in fighters]
        fight, found_by_id = self._find_fight(event, competition, fighter_ids)

        try:
            with self.db.begin_nested():
                if fight is None:
                    fight = Fight(
                        event_id=event.id,
                        espn_id=competition.espn_id,
                        espn_uid=competition.espn_uid,
                        fighter1_id=fighter_ids[0],
                        fighter2_id=fighter_ids[1],
                    )
                    self.db.add(fight)
                elif found_by_id:
                    # The ESPN id is authoritative; follow it if identity
                    # resolution now maps the competitors to other rows.
                    fight.event_id = event.id
                    fight.fighter1_id, fight.fighter2_id = fighter_ids
                elif competition.espn_id and fight.espn_id != competition.espn_id:
                    fight.espn_id = competition.espn_id

                fight.espn_uid = competition.espn_uid or fight.espn_uid
                fight.weight_class = weight_class
                fight.rounds = competition.rounds
                fight.card_position = competition.card_position
                fight.status = status
                fight.winner_id = winner_id
        except IntegrityError as e:
            logger.info(
                "Skipping duplicate fight: %s vs %s (%s)",
                fighters[0].last_name, fighters[1].last_name, e.orig,
            )
            return ItemOutcome.skipped("duplicate fight")

        return ItemOutcome.ok(fight)

    # =========================================================================
    # Fighters
    # =========================================================================

    async def _resolve_competitor(
        self,
        competitor: ScrapedCompetitor,
        scraped: ScrapedEvent,
        competition: ScrapedCompetition,
    ) -> ItemOutcome:
        """Fetch, classify and upsert one competitor, then cache it."""
        await self.client.pause(self.request_delay)
        try:
            doc = await self.client.get_athlete(competitor.athlete_ref)
        except FETCH_ERRORS as e:
            logger.warning("Failed to fetch athlete %s: %s", competitor.athlete_ref, e)
            return ItemOutcome.failed(f"athlete {competitor.athlete_ref}: {e}")

        athlete = parse_athlete(doc)
        if athlete is None:
            return ItemOutcome.failed(f"athlete {competitor.athlete_ref}: malformed profile")
        if athlete.espn_id is None:
            athlete.espn_id = competitor.athlete_id

        records = await self._fetch_records(athlete.espn_id)

        fighter = self._upsert_fighter(athlete, records, scraped, competition)
        self.cache.put(competitor.athlete_ref, fighter)
        return ItemOutcome.ok(fighter)

    async def _fetch_records(self, athlete_id: Optional[str]) -> RecordBreakdown:
        """Record tallies; any failure degrades to zeros."""
        if not athlete_id:
            return RecordBreakdown()
        await self.client.pause(self.request_delay)
        try:
            doc = await self.client.get_athlete_records(athlete_id)
        except FETCH_ERRORS as e:
            logger.debug("No records for athlete %s: %s", athlete_id, e)
            return RecordBreakdown()
        return parse_record_breakdown(doc)

    def _upsert_fighter(
        self,
        athlete: ScrapedAthlete,
        records: RecordBreakdown,
        scraped: ScrapedEvent,
        competition: ScrapedCompetition,
    ) -> Fighter:
        match = self.identity.find_fighter(
            athlete.first_name, athlete.last_name, external_id=athlete.espn_id
        )

        if match is not None:
            fighter = match.fighter
            self._apply_fighter_fields(fighter, athlete, records, scraped, competition)
            self.db.flush()
            return fighter

        fighter = Fighter(organization_id=self.organization.id, espn_id=athlete.espn_id)
        self._apply_fighter_fields(fighter, athlete, records, scraped, competition)
        try:
            with self.db.begin_nested():
                self.db.add(fighter)
        except IntegrityError:
            # Created by a concurrent run since our lookup
            match = self.identity.find_fighter(
                athlete.first_name, athlete.last_name, external_id=athlete.espn_id
            )
            if match is None:
                raise
            fighter = match.fighter
            self._apply_fighter_fields(fighter, athlete, records, scraped, competition)
            self.db.flush()
        return fighter

    @staticmethod
    def _apply_fighter_fields(
        fighter: Fighter,
        athlete: ScrapedAthlete,
        records: RecordBreakdown,
        scraped: ScrapedEvent,
        competition: ScrapedCompetition,
    ) -> None:
        fighter.first_name = athlete.first_name
        fighter.last_name = athlete.last_name
        fighter.espn_uid = athlete.espn_uid or fighter.espn_uid
        fighter.nickname = athlete.nickname
        fighter.image_url = athlete.image_url
        fighter.nationality = athlete.nationality
        fighter.date_of_birth = athlete.date_of_birth.date() if athlete.date_of_birth else None
        fighter.height_cm = inches_to_cm(athlete.height_in)
        fighter.reach_cm = inches_to_cm(athlete.reach_in)
        fighter.weight_lbs = athlete.weight_lbs

        stance = classify_stance(athlete.stance)
        if stance != STANCE_UNKNOWN or not fighter.stance:
            fighter.stance = stance

        # An explicit profile value always applies; an inferred FEMALE
        # applies; the MALE default never overwrites a stored value.
        gender = classify_gender(
            athlete.gender,
            competition_name=competition.name,
            event_name=scraped.name,
            notes=competition.notes,
            profile_weight_class=athlete.weight_class,
        )
        if explicit_gender(athlete.gender) or gender == FEMALE or not fighter.gender:
            fighter.gender = gender

        weight_class = classify_weight_class(athlete.weight_class, competition.notes, scraped.name)
        if weight_class:
            fighter.weight_class = weight_class

        fighter.wins = records.wins
        fighter.losses = records.losses
        fighter.draws = records.draws
        fighter.no_contests = records.no_contests
        fighter.wins_by_ko = records.wins_by_ko
        fighter.wins_by_sub = records.wins_by_sub
        fighter.wins_by_dec = records.wins_by_dec
        fighter.active = True
