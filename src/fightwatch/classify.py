"""
Field classification for ESPN payloads.

Turns ambiguous, multi-sourced raw fields into the fixed value sets stored on
fighters, events and fights. Every function here is pure: no I/O, no session,
no clock unless one is passed in.

Priority rules:
- Weight class: fighter profile → competition notes → event name
- Gender: explicit profile value → "women" marker in names/notes →
  feminine or women-only weight class → MALE
- Fight status: any cancel token → CANCELLED; finished token, completed
  flag or past date → COMPLETED; otherwise SCHEDULED
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from fightwatch.fighters.names import normalize_label
from fightwatch.statuses import (
    CANCELLED,
    CANCELLED_TOKEN_FRAGMENT,
    COMPLETED,
    COMPLETED_STATE_TOKENS,
    DEFAULT_GENDER,
    EVENT_FIGHT_NIGHT,
    EVENT_PPV,
    FEMALE,
    KNOWN_STANCES,
    MALE,
    SCHEDULED,
    STANCE_UNKNOWN,
)
from fightwatch.weight_classes import (
    CATCHWEIGHT,
    is_women_only,
    lookup_weight_class,
    scan_for_division,
)

FEMININE_MARKER = "women"

_EXPLICIT_GENDERS: dict[str, str] = {
    "FEMALE": FEMALE,
    "F": FEMALE,
    "WOMEN": FEMALE,
    "WOMAN": FEMALE,
    "MALE": MALE,
    "M": MALE,
    "MEN": MALE,
    "MAN": MALE,
}

_NUMBERED_CARD_RE = re.compile(r"UFC \d+")
_LEADING_INT_RE = re.compile(r"\s*(\d+)")


# =============================================================================
# Weight class
# =============================================================================

def classify_weight_class(
    profile_text: Optional[str],
    notes: Iterable[str] = (),
    event_name: Optional[str] = None,
) -> Optional[str]:
    """
    Classify a fighter's weight class.

    Tries the profile-declared label first, then scans competition notes,
    then the event name. Returns None when nothing matches; the catch-weight
    sentinel is never produced here.

    Examples:
        >>> classify_weight_class("Lightweight")
        'LIGHTWEIGHT'
        >>> classify_weight_class(None, ["Women's Flyweight Bout"])
        'FLYWEIGHT'
        >>> classify_weight_class(None, [], "UFC Fight Night") is None
        True
    """
    declared = lookup_weight_class(profile_text)
    if declared:
        return declared

    for note in notes:
        found = scan_for_division(note)
        if found:
            return found

    return scan_for_division(event_name)


def classify_bout_weight_class(
    fighter_classes: Sequence[Optional[str]],
    notes: Iterable[str] = (),
    event_name: Optional[str] = None,
) -> str:
    """
    Weight class to persist on a fight.

    Uses the first fighter that has a classification, then the notes and
    event name scan. Only when all of those are empty does the bout get the
    CATCHWEIGHT sentinel.
    """
    for weight_class in fighter_classes:
        if weight_class:
            return weight_class

    return classify_weight_class(None, notes, event_name) or CATCHWEIGHT


# =============================================================================
# Gender, stance
# =============================================================================

def explicit_gender(value: Optional[str]) -> Optional[str]:
    """Map a declared profile gender to MALE/FEMALE, or None if unrecognized."""
    return _EXPLICIT_GENDERS.get(normalize_label(value))


def _has_feminine_marker(text: Optional[str]) -> bool:
    return bool(text) and FEMININE_MARKER in text.lower()


def classify_gender(
    profile_gender: Optional[str] = None,
    competition_name: Optional[str] = None,
    event_name: Optional[str] = None,
    notes: Iterable[str] = (),
    profile_weight_class: Optional[str] = None,
) -> str:
    """
    Classify a fighter's gender.

    Checks run in fixed priority and stop at the first signal:
    1. An explicit profile value (either sex) wins outright
    2. "women" in the competition name, event name or any note
    3. A feminine weight class label or a women-only division
    4. Otherwise the default (MALE)
    """
    declared = explicit_gender(profile_gender)
    if declared:
        return declared

    if _has_feminine_marker(competition_name) or _has_feminine_marker(event_name):
        return FEMALE
    if any(_has_feminine_marker(note) for note in notes):
        return FEMALE

    if _has_feminine_marker(profile_weight_class):
        return FEMALE
    if is_women_only(lookup_weight_class(profile_weight_class)):
        return FEMALE

    return DEFAULT_GENDER


def classify_stance(value: Optional[str]) -> str:
    """
    Accept ORTHODOX / SOUTHPAW / SWITCH in any casing; anything else is UNKNOWN.
    """
    label = normalize_label(value)
    return label if label in KNOWN_STANCES else STANCE_UNKNOWN


# =============================================================================
# Fight status and winner
# =============================================================================

def classify_fight_status(
    state: Optional[str],
    completed: bool = False,
    event_date: Optional[datetime] = None,
    now: Optional[datetime] = None,
    detail: Optional[str] = None,
) -> str:
    """
    Map ESPN competition status fields to SCHEDULED / COMPLETED / CANCELLED.

    Args:
        state: status.type.state ('pre', 'in', 'post')
        completed: status.type.completed flag
        event_date: Event start (naive UTC); a past date implies COMPLETED
        now: Reference time (naive UTC), defaults to utcnow()
        detail: status.type.name (e.g. 'STATUS_FINAL', 'STATUS_CANCELED')

    A cancel token in either field wins over every other signal,
    including a past event date.
    """
    tokens = [t.strip().lower() for t in (state, detail) if t and t.strip()]

    if any(CANCELLED_TOKEN_FRAGMENT in token for token in tokens):
        return CANCELLED

    if completed or any(token in COMPLETED_STATE_TOKENS for token in tokens):
        return COMPLETED

    if event_date is not None:
        reference = now or datetime.utcnow()
        if event_date < reference:
            return COMPLETED

    return SCHEDULED


def determine_winner(
    winner_flags: Sequence[Any],
    fighter_ids: Sequence[int],
) -> Optional[int]:
    """
    Pick the winner id from the competitors' winner flags.

    Returns the id of the first flagged competitor, or None. The result is
    always None or one of fighter_ids.
    """
    for flag, fighter_id in zip(winner_flags, fighter_ids):
        if flag is True:
            return fighter_id
    return None


# =============================================================================
# Event and physical attributes
# =============================================================================

def classify_event_type(event_name: Optional[str]) -> str:
    """Numbered cards ("UFC 300: ...") are PPV, everything else FIGHT_NIGHT."""
    if event_name and _NUMBERED_CARD_RE.search(event_name):
        return EVENT_PPV
    return EVENT_FIGHT_NIGHT


def inches_to_cm(value: Any) -> Optional[int]:
    """Convert inches to whole centimetres (half rounds up); falsy or bad input gives None."""
    try:
        inches = float(value)
    except (TypeError, ValueError):
        return None
    if not inches or math.isnan(inches):
        return None
    return math.floor(inches * 2.54 + 0.5)


# =============================================================================
# Record breakdown
# =============================================================================

@dataclass
class RecordBreakdown:
    """Career tallies parsed from an athlete records document."""
    wins: int = 0
    losses: int = 0
    draws: int = 0
    no_contests: int = 0
    wins_by_ko: int = 0
    wins_by_sub: int = 0
    wins_by_dec: int = 0


# (field, lowercase fragments matched against item name / displayName)
_WIN_METHOD_SYNONYMS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("wins_by_ko", ("ko", "knockout")),
    ("wins_by_sub", ("sub",)),
    ("wins_by_dec", ("dec",)),
)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value) if value == value and value >= 0 else 0
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        return int(match.group(1)) if match else 0
    return 0


def _item_wins(item: dict) -> int:
    if "wins" in item:
        return _to_int(item.get("wins"))
    # Core API records nest tallies in a stats list
    for stat in item.get("stats") or []:
        if isinstance(stat, dict) and stat.get("name") == "wins":
            return _to_int(stat.get("value"))
    return 0


def _is_overall(item: dict) -> bool:
    return item.get("name") == "overall" or item.get("type") == "total"


def parse_record_breakdown(doc: Any) -> RecordBreakdown:
    """
    Parse an athlete records document into a RecordBreakdown.

    The overall item's summary is "W-L-D" with an optional fourth "NC"
    part. Win-method items are matched case-insensitively on their name or
    display name (KO/TKO, Submissions, Decisions and variants). Any
    malformed input yields zero tallies for the affected fields; this
    never raises.
    """
    breakdown = RecordBreakdown()
    if not isinstance(doc, dict):
        return breakdown

    items = doc.get("items")
    if not isinstance(items, list):
        return breakdown
    items = [item for item in items if isinstance(item, dict)]

    overall = next((item for item in items if _is_overall(item)), None)
    if overall and isinstance(overall.get("summary"), str):
        parts = overall["summary"].split("-")
        totals = [_to_int(part) for part in parts[:4]]
        totals += [0] * (4 - len(totals))
        breakdown.wins, breakdown.losses, breakdown.draws, breakdown.no_contests = totals

    for field_name, fragments in _WIN_METHOD_SYNONYMS:
        for item in items:
            if _is_overall(item):
                continue
            labels = " ".join(
                str(item.get(key) or "") for key in ("name", "displayName", "type")
            ).lower()
            if any(fragment in labels for fragment in fragments):
                setattr(breakdown, field_name, _item_wins(item))
                break

    return breakdown
