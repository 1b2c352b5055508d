"""Shared fight-status, stance, gender and event-type definitions.

This module is the single source of truth for the closed value sets that are
stored on fights, fighters and events, and reused by the classifier, the web
routes and the maintenance report.
"""

from __future__ import annotations

# Fight lifecycle.
SCHEDULED = "SCHEDULED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"

ALL_FIGHT_STATUSES: tuple[str, ...] = (SCHEDULED, COMPLETED, CANCELLED)

# Upstream status tokens (lowercased) that mean the bout is over.
COMPLETED_STATE_TOKENS: frozenset[str] = frozenset({"post", "final", "status_final"})

# Any upstream token containing this fragment means the bout is off.
# Covers both "canceled" and "cancelled" spellings.
CANCELLED_TOKEN_FRAGMENT = "cancel"

# Stances. Anything outside KNOWN_STANCES is stored as STANCE_UNKNOWN.
ORTHODOX = "ORTHODOX"
SOUTHPAW = "SOUTHPAW"
SWITCH = "SWITCH"
STANCE_UNKNOWN = "UNKNOWN"

KNOWN_STANCES: tuple[str, ...] = (ORTHODOX, SOUTHPAW, SWITCH)

# Gender. MALE is the default when no signal says otherwise.
MALE = "MALE"
FEMALE = "FEMALE"
DEFAULT_GENDER = MALE

# Event category: numbered cards vs. everything else.
EVENT_PPV = "PPV"
EVENT_FIGHT_NIGHT = "FIGHT_NIGHT"

