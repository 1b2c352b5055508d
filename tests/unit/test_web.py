"""
Unit tests for the FastAPI routes.

Sync jobs are replaced with stubs; the upcoming-events route reads the test
database through a dependency override. The client is used without its
context manager so the lifespan (and the scheduler) never starts.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from fightwatch.config import settings
from fightwatch.db.models import Event, Fight, Fighter, Organization, Ranking
from fightwatch.db.session import get_db
from fightwatch.services import jobs
from fightwatch.services.espn_sync import MODE_FULL, MODE_INCREMENTAL, SyncResult, SyncStats
from fightwatch.services.rankings_sync import RankingsSyncResult
from fightwatch.web.main import app


@pytest.fixture
def client():
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def stub(result):
    async def job():
        return result
    return job


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["scheduler"] is False


def test_full_sync_route(client, monkeypatch):
    stats = SyncStats(events_processed=3, fights_processed=30, fighters_processed=55, fights_skipped=1, errors=2)
    monkeypatch.setattr(jobs, "run_full_sync", stub(SyncResult(True, MODE_FULL, stats)))

    response = client.post("/api/espn/sync")

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "eventsProcessed": 3,
        "fightsProcessed": 30,
        "fightersProcessed": 55,
        "fightsSkipped": 1,
        "errorCount": 2,
    }


def test_recent_sync_route(client, monkeypatch):
    stats = SyncStats(events_processed=2, fights_processed=24, fighters_processed=40)
    monkeypatch.setattr(jobs, "run_incremental_sync", stub(SyncResult(True, MODE_INCREMENTAL, stats)))

    response = client.post("/api/espn/sync/recent")

    assert response.status_code == 200
    assert response.json() == {"success": True, "events": 2, "fights": 24, "fighters": 40}


def test_failed_sync_reports_error(client, monkeypatch):
    failed = SyncResult(False, MODE_INCREMENTAL, error="UFC organization not found")
    monkeypatch.setattr(jobs, "run_incremental_sync", stub(failed))

    response = client.post("/api/espn/sync/recent")

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert response.json()["error"] == "UFC organization not found"


def test_rankings_route(client, monkeypatch):
    monkeypatch.setattr(jobs, "run_rankings_sync", stub(RankingsSyncResult(True, rankings_processed=150)))

    response = client.post("/api/espn/sync-rankings")

    assert response.status_code == 200
    assert response.json() == {"success": True, "rankingsProcessed": 150, "notFoundCount": 0}


def test_unexpected_error_is_structured_500(client, monkeypatch):
    async def explode():
        raise RuntimeError("database is down")

    monkeypatch.setattr(jobs, "run_rankings_sync", explode)

    response = client.post("/api/espn/sync-rankings")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}


class TestCronRoute:
    def test_requires_bearer_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "cron_secret", "s3cret")
        monkeypatch.setattr(jobs, "run_incremental_sync", stub(SyncResult(True, MODE_INCREMENTAL)))

        assert client.get("/api/cron/sync").status_code == 401
        assert client.get("/api/cron/sync", headers={"Authorization": "Bearer wrong"}).status_code == 401

        response = client.get("/api/cron/sync", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "timestamp" in response.json()

    def test_open_without_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "cron_secret", None)
        monkeypatch.setattr(jobs, "run_incremental_sync", stub(SyncResult(True, MODE_INCREMENTAL)))

        response = client.get("/api/cron/sync")

        assert response.status_code == 200
        datetime.fromisoformat(response.json()["timestamp"])


def test_upcoming_events(client, db_session, organization):
    now = datetime.utcnow()
    a = Fighter(organization_id=organization.id, first_name="Alex", last_name="Pereira")
    b = Fighter(organization_id=organization.id, first_name="Jamahal", last_name="Hill")
    db_session.add_all([a, b])
    db_session.add(Event(organization_id=organization.id, name="Past Card", event_type="PPV", date=now - timedelta(days=3)))
    upcoming = [
        Event(organization_id=organization.id, name=f"Card {i}", event_type="FIGHT_NIGHT", date=now + timedelta(days=i))
        for i in range(1, 7)
    ]
    db_session.add_all(upcoming)
    db_session.flush()
    db_session.add(Fight(event_id=upcoming[0].id, fighter1_id=a.id, fighter2_id=b.id, status="SCHEDULED"))
    db_session.commit()

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    response = client.get("/api/events/upcoming")

    assert response.status_code == 200
    events = response.json()["events"]
    assert [e["name"] for e in events] == ["Card 1", "Card 2", "Card 3", "Card 4", "Card 5"]
    assert events[0]["fightCount"] == 1
    assert events[1]["fightCount"] == 0


@pytest.fixture
def db_client(client, db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    return client


@pytest.fixture
def fighter_roster(db_session, organization):
    bellator = Organization(name="Bellator MMA", short_name="BELLATOR")
    db_session.add(bellator)
    db_session.flush()

    def add(org, first, last, **fields):
        fighter = Fighter(organization_id=org.id, first_name=first, last_name=last, **fields)
        db_session.add(fighter)
        return fighter

    roster = {
        "pereira": add(organization, "Alex", "Pereira", nickname="Poatan", weight_class="LIGHT_HEAVYWEIGHT", weight_lbs=205, wins=11, losses=2),
        "ankalaev": add(organization, "Magomed", "Ankalaev", weight_class="LIGHT_HEAVYWEIGHT", weight_lbs=205),
        "prochazka": add(organization, "Jiri", "Prochazka", weight_class="LIGHT_HEAVYWEIGHT", weight_lbs=205),
        "zhang": add(organization, "Weili", "Zhang", weight_class="STRAWWEIGHT", weight_lbs=115, gender="FEMALE"),
        "retired": add(organization, "Alexander", "Gustafsson", weight_lbs=205, active=False),
        "polizzi": add(bellator, "Alex", "Polizzi", weight_class="LIGHT_HEAVYWEIGHT", weight_lbs=205),
    }
    db_session.flush()
    db_session.add_all([
        Ranking(fighter_id=roster["pereira"].id, organization_id=organization.id,
                weight_class="LIGHT_HEAVYWEIGHT", rank=0, active=True),
        Ranking(fighter_id=roster["ankalaev"].id, organization_id=organization.id,
                weight_class="LIGHT_HEAVYWEIGHT", rank=1, active=True),
        Ranking(fighter_id=roster["polizzi"].id, organization_id=bellator.id,
                weight_class="LIGHT_HEAVYWEIGHT", rank=2, active=True),
    ])
    db_session.commit()
    return roster


class TestFighterSearch:
    def test_search_by_nickname(self, db_client, fighter_roster):
        response = db_client.get("/api/fighters", params={"search": "poatan"})

        assert response.status_code == 200
        fighters = response.json()["fighters"]
        assert [f["lastName"] for f in fighters] == ["Pereira"]
        assert fighters[0]["record"] == "11-2-0"
        assert fighters[0]["totalFights"] == 13
        assert fighters[0]["isChampion"] is True

    def test_search_spans_organizations_and_skips_inactive(self, db_client, fighter_roster):
        response = db_client.get("/api/fighters", params={"search": "ALEX"})

        # Ranked first, then by name; the retired Alexander is inactive
        assert [f["lastName"] for f in response.json()["fighters"]] == ["Pereira", "Polizzi"]

    def test_weight_class_returns_ranked_fighters_of_default_organization(self, db_client, fighter_roster):
        response = db_client.get("/api/fighters", params={"weightClass": "LIGHT_HEAVYWEIGHT"})

        fighters = response.json()["fighters"]
        assert [(f["lastName"], f["currentRank"]) for f in fighters] == [("Pereira", 0), ("Ankalaev", 1)]
        assert [f["isChampion"] for f in fighters] == [True, False]
        assert response.json()["pagination"]["total"] == 2

    def test_weight_range_adds_unranked_fighters(self, db_client, fighter_roster):
        response = db_client.get("/api/fighters", params={
            "weightClass": "LIGHT_HEAVYWEIGHT", "minWeight": 200, "maxWeight": 210,
        })

        fighters = response.json()["fighters"]
        assert [(f["lastName"], f["currentRank"]) for f in fighters] == [
            ("Pereira", 0), ("Ankalaev", 1), ("Prochazka", None),
        ]

    def test_gender_filter(self, db_client, fighter_roster):
        response = db_client.get("/api/fighters", params={"gender": "female"})

        assert [f["lastName"] for f in response.json()["fighters"]] == ["Zhang"]

    def test_pagination(self, db_client, organization, fighter_roster):
        response = db_client.get("/api/fighters", params={
            "organizationId": organization.id, "limit": 2, "offset": 1,
        })

        body = response.json()
        assert [f["lastName"] for f in body["fighters"]] == ["Ankalaev", "Prochazka"]
        assert body["pagination"] == {"limit": 2, "offset": 1, "total": 4}

    def test_rejects_oversized_page(self, db_client):
        assert db_client.get("/api/fighters", params={"limit": 500}).status_code == 422


def test_ticker_fights(db_client, db_session, organization, fighter_roster):
    now = datetime.utcnow()
    bellator = db_session.query(Organization).filter_by(short_name="BELLATOR").one()
    soon = Event(organization_id=organization.id, name="UFC 313", event_type="PPV", date=now + timedelta(days=3))
    later = Event(organization_id=bellator.id, name="Bellator Paris", event_type="FIGHT_NIGHT", date=now + timedelta(days=10))
    too_far = Event(organization_id=organization.id, name="UFC 320", event_type="PPV", date=now + timedelta(days=90))
    past = Event(organization_id=organization.id, name="UFC 310", event_type="PPV", date=now - timedelta(days=2))
    db_session.add_all([soon, later, too_far, past])
    db_session.flush()

    r = {name: fighter.id for name, fighter in fighter_roster.items()}
    db_session.add_all([
        Fight(event_id=soon.id, fighter1_id=r["ankalaev"], fighter2_id=r["prochazka"], card_position=2, status="SCHEDULED"),
        Fight(event_id=soon.id, fighter1_id=r["pereira"], fighter2_id=r["ankalaev"], card_position=1, status="SCHEDULED"),
        Fight(event_id=soon.id, fighter1_id=r["pereira"], fighter2_id=r["prochazka"], card_position=3, status="CANCELLED"),
        Fight(event_id=later.id, fighter1_id=r["polizzi"], fighter2_id=r["retired"], status="SCHEDULED"),
        Fight(event_id=too_far.id, fighter1_id=r["pereira"], fighter2_id=r["prochazka"], status="SCHEDULED"),
        Fight(event_id=past.id, fighter1_id=r["pereira"], fighter2_id=r["prochazka"], status="SCHEDULED"),
    ])
    db_session.commit()

    response = db_client.get("/api/ticker/fights")

    assert response.status_code == 200
    items = response.json()["items"]
    assert [(i["org"], i["fighter1"], i["fighter2"]) for i in items] == [
        ("UFC", "Pereira", "Ankalaev"),
        ("UFC", "Ankalaev", "Prochazka"),
        ("BELLATOR", "Polizzi", "Gustafsson"),
    ]
    assert [i["daysUntil"] for i in items] == [3, 3, 10]
    assert items[0]["status"] == "3 DAYS"
    assert items[0]["event"] == "UFC 313"
    assert items[0]["isCompleted"] is False
