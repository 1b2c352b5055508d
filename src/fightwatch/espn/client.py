"""
HTTP client for ESPN's public MMA API and the UFC rankings page.

All upstream requests go through fetch_with_retry(), which owns the retry
policy:

- HTTP 429: exponential backoff (2s, 4s, 8s, capped at 10s) that does not
  consume a failure attempt, bounded separately by max_rate_limit_waits
- Other non-2xx: linear backoff (1s, 2s, ...) up to max_attempts - 1
  retries, then FetchError
- Network failure: linear backoff (2s, 4s, ...), the original exception is
  re-raised after the final attempt

Callers add their own courtesy pause between requests with
ESPNClient.pause(); that throttle is separate from the retry backoff.

Usage:
    async with ESPNClient() as client:
        event_ids = await client.get_event_ids(date(2024, 1, 1), date(2024, 12, 31))
        event = await client.get_event(event_ids[0])
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Optional

import httpx

from fightwatch.config import settings

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]

LOCALE_QUERY = "lang=en&region=us"


class FetchError(Exception):
    """An upstream request failed after exhausting its retries."""

    def __init__(self, url: str, status_code: Optional[int] = None, message: Optional[str] = None):
        self.url = url
        self.status_code = status_code
        detail = message or f"HTTP {status_code}"
        super().__init__(f"{detail} for {url}")


class RateLimitExceeded(FetchError):
    """The upstream kept answering 429 beyond the allowed number of waits."""

    def __init__(self, url: str, waits: int):
        self.waits = waits
        super().__init__(url, 429, f"Rate limited {waits} times")


# Everything a single fetch can raise once retries are exhausted.
FETCH_ERRORS = (FetchError, httpx.HTTPError)


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters for fetch_with_retry()."""
    max_attempts: int = 3
    retry_base_delay: float = 1.0
    network_retry_delay: float = 2.0
    rate_limit_base_delay: float = 2.0
    rate_limit_max_delay: float = 10.0
    max_rate_limit_waits: int = 5

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.http_max_attempts,
            retry_base_delay=settings.http_retry_base_delay,
            network_retry_delay=settings.http_network_retry_delay,
            rate_limit_base_delay=settings.http_rate_limit_base_delay,
            rate_limit_max_delay=settings.http_rate_limit_max_delay,
            max_rate_limit_waits=settings.http_max_rate_limit_waits,
        )

    def rate_limit_delay(self, waits_so_far: int) -> float:
        return min(self.rate_limit_base_delay * (2 ** waits_so_far), self.rate_limit_max_delay)


async def fetch_with_retry(
    http: httpx.AsyncClient,
    url: str,
    max_attempts: Optional[int] = None,
    policy: Optional[RetryPolicy] = None,
    sleep: SleepFunc = asyncio.sleep,
) -> httpx.Response:
    """
    GET a URL, retrying per the policy described in the module docstring.

    Args:
        http: Client used for the request
        url: Absolute URL
        max_attempts: Overrides policy.max_attempts for non-429 failures
        policy: Backoff parameters (default from settings)
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The first 2xx response

    Raises:
        RateLimitExceeded: 429 received more than max_rate_limit_waits times
        FetchError: Non-2xx status on the final attempt
        httpx.TransportError: Network failure on the final attempt
    """
    policy = policy or RetryPolicy.from_settings()
    attempts = max_attempts if max_attempts is not None else policy.max_attempts
    attempts = max(1, attempts)

    attempt = 0
    rate_limit_waits = 0

    while True:
        try:
            response = await http.get(url)
        except httpx.TransportError as e:
            if attempt >= attempts - 1:
                logger.error("Network error for %s after %d attempts: %s", url, attempt + 1, e)
                raise
            delay = policy.network_retry_delay * (attempt + 1)
            logger.warning(
                "[Retry %d/%d] Network error for %s: %s. Retrying in %.1fs...",
                attempt + 1, attempts, url, e, delay,
            )
            await sleep(delay)
            attempt += 1
            continue

        if response.status_code == 429:
            if rate_limit_waits >= policy.max_rate_limit_waits:
                raise RateLimitExceeded(url, rate_limit_waits)
            delay = policy.rate_limit_delay(rate_limit_waits)
            rate_limit_waits += 1
            logger.warning("Rate limited by %s, waiting %.1fs", url, delay)
            await sleep(delay)
            continue

        if response.is_success:
            return response

        if attempt >= attempts - 1:
            raise FetchError(url, response.status_code)

        delay = policy.retry_base_delay * (attempt + 1)
        logger.warning(
            "[Retry %d/%d] HTTP %d for %s. Retrying in %.1fs...",
            attempt + 1, attempts, response.status_code, url, delay,
        )
        await sleep(delay)
        attempt += 1


def with_locale(url: str) -> str:
    """Append ESPN's lang/region query unless the URL already carries it."""
    if "lang=" in url:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{LOCALE_QUERY}"


class ESPNClient:
    """
    Async client for the ESPN endpoints the sync uses.

    Async context manager: the underlying httpx.AsyncClient is opened on
    entry and always closed on exit. An already-open client can be passed in
    (tests use one backed by httpx.MockTransport); it is not closed by us.
    """

    def __init__(
        self,
        http: Optional[httpx.AsyncClient] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
        site_api_url: Optional[str] = None,
        core_api_url: Optional[str] = None,
        league: Optional[str] = None,
    ):
        self._http = http
        self._owns_http = http is None
        self.policy = policy or RetryPolicy.from_settings()
        self._sleep = sleep
        self.site_api_url = (site_api_url or settings.espn_site_api_url).rstrip("/")
        self.core_api_url = (core_api_url or settings.espn_core_api_url).rstrip("/")
        self.league = league or settings.espn_league

    async def __aenter__(self) -> "ESPNClient":
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=settings.http_timeout_seconds,
                headers={"User-Agent": settings.http_user_agent},
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._owns_http and self._http is not None:
            await self._http.aclose()
            self._http = None

    # =========================================================================
    # Requests
    # =========================================================================

    async def fetch(self, url: str) -> httpx.Response:
        if self._http is None:
            raise RuntimeError("ESPNClient must be used as an async context manager")
        return await fetch_with_retry(self._http, url, policy=self.policy, sleep=self._sleep)

    async def fetch_json(self, url: str) -> Any:
        response = await self.fetch(url)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(url, response.status_code, "Invalid JSON") from e

    async def get_event_ids(self, start: date, end: date) -> list[str]:
        """
        Event ids on the scoreboard between two dates (inclusive).

        Ids are returned in upstream order with duplicates removed.
        """
        url = f"{self.site_api_url}/scoreboard?dates={start:%Y%m%d}-{end:%Y%m%d}"
        data = await self.fetch_json(url)

        event_ids: list[str] = []
        seen: set[str] = set()
        for event in (data or {}).get("events") or []:
            event_id = event.get("id") if isinstance(event, dict) else None
            if event_id is None:
                continue
            event_id = str(event_id)
            if event_id not in seen:
                seen.add(event_id)
                event_ids.append(event_id)
        return event_ids

    async def get_event(self, event_id: str) -> dict:
        url = f"{self.core_api_url}/leagues/{self.league}/events/{event_id}?{LOCALE_QUERY}"
        return await self.fetch_json(url)

    async def get_athlete(self, athlete_ref: str) -> dict:
        """Athlete profile, addressed by the competitor's athlete $ref URL."""
        return await self.fetch_json(with_locale(athlete_ref))

    async def get_athlete_records(self, athlete_id: str) -> dict:
        url = f"{self.core_api_url}/athletes/{athlete_id}/records?{LOCALE_QUERY}"
        return await self.fetch_json(url)

    async def get_rankings_html(self, url: Optional[str] = None) -> str:
        response = await self.fetch(url or settings.rankings_url)
        return response.text

    async def pause(self, seconds: float) -> None:
        """Courtesy throttle between upstream requests."""
        if seconds > 0:
            await self._sleep(seconds)
