"""
ESPN data access.

- client: ESPNClient (async, retry/backoff) and fetch_with_retry
- parsers: Event, competition and athlete payload parsers
"""

from fightwatch.espn.client import (
    ESPNClient,
    FETCH_ERRORS,
    FetchError,
    RateLimitExceeded,
    RetryPolicy,
    fetch_with_retry,
)
from fightwatch.espn.parsers import (
    ScrapedAthlete,
    ScrapedCompetition,
    ScrapedCompetitor,
    ScrapedEvent,
    parse_athlete,
    parse_event,
)

__all__ = [
    "ESPNClient",
    "FETCH_ERRORS",
    "FetchError",
    "RateLimitExceeded",
    "RetryPolicy",
    "fetch_with_retry",
    "ScrapedAthlete",
    "ScrapedCompetition",
    "ScrapedCompetitor",
    "ScrapedEvent",
    "parse_athlete",
    "parse_event",
]
