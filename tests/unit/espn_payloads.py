"""
ESPN-shaped payload builders and a fake client for sync tests.

The builders produce the subset of the core API documents the parsers
read; FakeESPNClient serves them from dicts and records what was asked for.
"""

from collections import Counter
from datetime import date
from typing import Optional

from fightwatch.espn.client import FetchError

CORE = "http://sports.core.api.espn.com/v2/sports/mma"


def athlete_ref(athlete_id: str) -> str:
    return f"{CORE}/athletes/{athlete_id}"


def competitor_doc(athlete_id: str, winner: bool = False) -> dict:
    return {
        "id": athlete_id,
        "winner": winner,
        "athlete": {"$ref": athlete_ref(athlete_id)},
    }


def competition_doc(
    competition_id: str,
    fighter_a: str,
    fighter_b: str,
    state: str = "pre",
    completed: bool = False,
    winner: Optional[str] = None,
    notes: tuple = (),
    name: Optional[str] = None,
    detail: Optional[str] = None,
    rounds: int = 3,
) -> dict:
    return {
        "id": competition_id,
        "uid": f"s:3301~l:3321~e:{competition_id}",
        "type": {"text": name} if name else {},
        "notes": [{"headline": note} for note in notes],
        "status": {"type": {"state": state, "completed": completed, "name": detail}},
        "format": {"regulation": {"periods": rounds}},
        "competitors": [
            competitor_doc(fighter_a, winner == fighter_a),
            competitor_doc(fighter_b, winner == fighter_b),
        ],
    }


def event_doc(event_id: str, name: str, when: str, competitions: list) -> dict:
    return {
        "id": event_id,
        "uid": f"s:3301~l:3321~e:{event_id}",
        "name": name,
        "date": when,
        "venue": {
            "fullName": "T-Mobile Arena",
            "address": {"city": "Las Vegas", "country": "USA"},
        },
        "competitions": competitions,
    }


def athlete_doc(
    athlete_id: str,
    first_name: str,
    last_name: str,
    weight_class: Optional[str] = None,
    gender: Optional[str] = None,
    stance: Optional[str] = "Orthodox",
    height: float = 76,
    reach: float = 79,
) -> dict:
    doc = {
        "id": athlete_id,
        "uid": f"s:3301~a:{athlete_id}",
        "firstName": first_name,
        "lastName": last_name,
        "citizenship": "Brazil",
        "dateOfBirth": "1987-07-07T07:00Z",
        "height": height,
        "reach": reach,
        "weight": 205,
        "headshot": {"href": f"https://a.espncdn.com/i/headshots/mma/players/full/{athlete_id}.png"},
    }
    if weight_class:
        doc["weightClass"] = {"text": weight_class}
    if gender:
        doc["gender"] = gender
    if stance:
        doc["stance"] = {"text": stance}
    return doc


def records_doc(summary: str, ko: int = 0, sub: int = 0, dec: int = 0) -> dict:
    return {
        "items": [
            {"name": "overall", "type": "total", "summary": summary},
            {"name": "ko", "displayName": "KO/TKO", "stats": [{"name": "wins", "value": ko}]},
            {"name": "submission", "displayName": "Submissions", "stats": [{"name": "wins", "value": sub}]},
            {"name": "decision", "displayName": "Decisions", "stats": [{"name": "wins", "value": dec}]},
        ]
    }


class FakeESPNClient:
    """
    Serves canned documents in place of ESPNClient.

    Missing entries behave like an upstream 404 after retries (FetchError).
    `scoreboard` is either a list of ids or a callable(start, end).
    """

    def __init__(self, scoreboard=None, events=None, athletes=None, records=None, rankings_html=None):
        self.scoreboard = scoreboard if scoreboard is not None else []
        self.events = events or {}
        self.athletes = athletes or {}
        self.records = records or {}
        self.rankings_html = rankings_html
        self.calls: Counter = Counter()
        self.scoreboard_windows: list[tuple[date, date]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def get_event_ids(self, start: date, end: date) -> list[str]:
        self.calls["scoreboard"] += 1
        self.scoreboard_windows.append((start, end))
        if callable(self.scoreboard):
            return self.scoreboard(start, end)
        return list(self.scoreboard)

    async def get_event(self, event_id: str) -> dict:
        self.calls[f"event:{event_id}"] += 1
        if event_id not in self.events:
            raise FetchError(f"{CORE}/leagues/ufc/events/{event_id}", 404)
        return self.events[event_id]

    async def get_athlete(self, ref: str) -> dict:
        self.calls[ref] += 1
        if ref not in self.athletes:
            raise FetchError(ref, 404)
        return self.athletes[ref]

    async def get_athlete_records(self, athlete_id: str) -> dict:
        self.calls[f"records:{athlete_id}"] += 1
        if athlete_id not in self.records:
            raise FetchError(f"{CORE}/athletes/{athlete_id}/records", 404)
        return self.records[athlete_id]

    async def get_rankings_html(self, url=None) -> str:
        self.calls["rankings"] += 1
        if self.rankings_html is None:
            raise FetchError(url or "https://www.ufc.com/rankings", 503)
        return self.rankings_html

    async def pause(self, seconds: float) -> None:
        return None
