"""
Parsers for ESPN core API payloads.

ESPN documents are deeply nested and fields come and go between eras of
data, so every accessor here tolerates missing keys. The parsed dataclasses
keep raw-ish values (strings, flags); classification into stored value sets
happens in fightwatch.classify.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 3
PLACEHOLDER_LOCATION = "TBA"

_ATHLETE_ID_RE = re.compile(r"/athletes/(\d+)")


@dataclass
class ScrapedCompetitor:
    """One side of a competition."""
    athlete_ref: str
    athlete_id: Optional[str] = None
    winner: bool = False


@dataclass
class ScrapedCompetition:
    """A bout as listed on an ESPN event."""
    espn_id: Optional[str]
    espn_uid: Optional[str] = None
    name: Optional[str] = None
    card_position: int = 1
    notes: list[str] = field(default_factory=list)
    state: Optional[str] = None  # status.type.state: 'pre', 'in', 'post'
    status_detail: Optional[str] = None  # status.type.name: 'STATUS_FINAL'...
    completed: bool = False
    rounds: int = DEFAULT_ROUNDS
    competitors: list[ScrapedCompetitor] = field(default_factory=list)


@dataclass
class ScrapedEvent:
    """An ESPN event (fight card) with its competitions."""
    espn_id: str
    name: str
    espn_uid: Optional[str] = None
    date: Optional[datetime] = None
    venue: str = PLACEHOLDER_LOCATION
    city: str = PLACEHOLDER_LOCATION
    country: Optional[str] = None
    competitions: list[ScrapedCompetition] = field(default_factory=list)


@dataclass
class ScrapedAthlete:
    """An ESPN athlete profile, before classification."""
    espn_id: Optional[str]
    first_name: str
    last_name: str
    espn_uid: Optional[str] = None
    nickname: Optional[str] = None
    image_url: Optional[str] = None
    nationality: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    height_in: Optional[float] = None
    reach_in: Optional[float] = None
    weight_lbs: Optional[float] = None
    stance: Optional[str] = None
    gender: Optional[str] = None
    weight_class: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# =============================================================================
# Helpers
# =============================================================================

def _dig(doc: Any, *keys: str) -> Any:
    """Nested dict lookup that returns None at the first missing level."""
    current = doc
    for key in keys:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _label(value: Any, *keys: str) -> Optional[str]:
    """A field that is either a plain string or a dict carrying the label."""
    if isinstance(value, str):
        return _str_or_none(value)
    if isinstance(value, dict):
        for key in keys:
            text = _str_or_none(value.get(key))
            if text:
                return text
    return None


def parse_espn_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ESPN timestamp into a naive UTC datetime.

    Handles "2024-04-13T22:00Z", full ISO offsets and bare dates.
    Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable ESPN date: %r", value)
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def athlete_id_from_ref(ref: Optional[str]) -> Optional[str]:
    if not ref:
        return None
    match = _ATHLETE_ID_RE.search(ref)
    return match.group(1) if match else None


# =============================================================================
# Payload parsers
# =============================================================================

def parse_competition(doc: Any, position: int) -> Optional[ScrapedCompetition]:
    """
    Parse one competition. Competitors without an athlete $ref are dropped,
    so callers can rely on len(competitors) to reject malformed bouts.
    """
    if not isinstance(doc, dict):
        return None

    competitors = []
    for competitor in doc.get("competitors") or []:
        ref = _str_or_none(_dig(competitor, "athlete", "$ref"))
        if not ref:
            continue
        competitors.append(ScrapedCompetitor(
            athlete_ref=ref,
            athlete_id=_str_or_none(competitor.get("id")) or athlete_id_from_ref(ref),
            winner=competitor.get("winner") is True,
        ))

    notes = []
    for note in doc.get("notes") or []:
        text = _label(note, "headline", "text")
        if text:
            notes.append(text)

    periods = _dig(doc, "format", "regulation", "periods")
    rounds = periods if isinstance(periods, int) and periods > 0 else DEFAULT_ROUNDS

    status_type = _dig(doc, "status", "type")

    return ScrapedCompetition(
        espn_id=_str_or_none(doc.get("id")),
        espn_uid=_str_or_none(doc.get("uid")),
        name=_label(doc.get("type"), "text", "abbreviation") or _str_or_none(doc.get("name")),
        card_position=position,
        notes=notes,
        state=_str_or_none(_dig(status_type, "state")),
        status_detail=_str_or_none(_dig(status_type, "name")),
        completed=_dig(status_type, "completed") is True,
        rounds=rounds,
        competitors=competitors,
    )


def parse_event(doc: Any) -> Optional[ScrapedEvent]:
    """
    Parse an ESPN core event document.

    Returns None when the document lacks an id, a name or a competitions
    list; the orchestrator skips such events.
    """
    if not isinstance(doc, dict):
        return None

    espn_id = _str_or_none(doc.get("id"))
    name = _str_or_none(doc.get("name"))
    raw_competitions = doc.get("competitions")
    if not espn_id or not name or not isinstance(raw_competitions, list):
        return None

    competitions = []
    for index, raw in enumerate(raw_competitions):
        competition = parse_competition(raw, position=index + 1)
        if competition is not None:
            competitions.append(competition)

    venue = doc.get("venue")
    if not isinstance(venue, dict):
        venues = doc.get("venues")
        venue = venues[0] if isinstance(venues, list) and venues else None

    return ScrapedEvent(
        espn_id=espn_id,
        espn_uid=_str_or_none(doc.get("uid")),
        name=name,
        date=parse_espn_datetime(doc.get("date")),
        venue=_str_or_none(_dig(venue, "fullName")) or PLACEHOLDER_LOCATION,
        city=_str_or_none(_dig(venue, "address", "city")) or PLACEHOLDER_LOCATION,
        country=_str_or_none(_dig(venue, "address", "country")),
        competitions=competitions,
    )


def parse_athlete(doc: Any) -> Optional[ScrapedAthlete]:
    """
    Parse an ESPN athlete profile.

    Missing names fall back to "Unknown" / "Fighter" so the row can still
    be stored and later corrected by a richer profile.
    """
    if not isinstance(doc, dict):
        return None

    weight_class = doc.get("weightClass")
    date_of_birth = parse_espn_datetime(doc.get("dateOfBirth"))

    return ScrapedAthlete(
        espn_id=_str_or_none(doc.get("id")),
        espn_uid=_str_or_none(doc.get("uid")),
        first_name=_str_or_none(doc.get("firstName")) or "Unknown",
        last_name=_str_or_none(doc.get("lastName")) or "Fighter",
        nickname=_str_or_none(doc.get("nickname")),
        image_url=_str_or_none(_dig(doc, "headshot", "href")),
        nationality=_str_or_none(doc.get("citizenship")),
        date_of_birth=date_of_birth,
        height_in=_number_or_none(doc.get("height")),
        reach_in=_number_or_none(doc.get("reach")),
        weight_lbs=_number_or_none(doc.get("weight")),
        stance=_label(doc.get("stance"), "name", "displayName", "text"),
        gender=_label(doc.get("gender"), "name", "type"),
        weight_class=_label(weight_class, "text", "shortName"),
    )
