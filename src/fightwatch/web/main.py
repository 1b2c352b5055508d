import hmac
import logging
import math
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from fightwatch import __version__
from fightwatch.config import settings
from fightwatch.db.models import Event, Fight, Fighter, Organization, Ranking
from fightwatch.db.session import get_db
from fightwatch.services import jobs
from fightwatch.services.scheduler import SchedulerHandle, scheduler_allowed
from fightwatch.statuses import SCHEDULED

logger = logging.getLogger(__name__)

UPCOMING_EVENTS_LIMIT = 5
TICKER_WINDOW_DAYS = 60
TICKER_LIMIT = 30


def _seed_timestamp(sync_types: list[str]) -> Optional[datetime]:
    try:
        return jobs.last_successful_sync(sync_types)
    except SQLAlchemyError as e:
        logger.warning("Could not read last sync time for %s: %s", sync_types, e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the interval scheduler for this process when allowed."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    handle: Optional[SchedulerHandle] = None
    if scheduler_allowed(settings):
        handle = SchedulerHandle.from_settings(
            jobs.run_incremental_sync,
            jobs.run_rankings_sync,
            last_sync_at=_seed_timestamp([jobs.SYNC_TYPE_INCREMENTAL, jobs.SYNC_TYPE_FULL]),
            last_rankings_at=_seed_timestamp([jobs.SYNC_TYPE_RANKINGS]),
        )
        handle.start()
    else:
        logger.info("Scheduler disabled (environment=%s)", settings.environment)
    app.state.scheduler = handle

    try:
        yield
    finally:
        if handle is not None:
            await handle.stop()


app = FastAPI(title="FightWatch", version=__version__, lifespan=lifespan)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Any uncaught error becomes a structured 500 instead of a traceback."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        {"success": False, "error": "Internal server error"},
        status_code=500,
    )


def _cron_authorized(request: Request) -> bool:
    """With a cron secret configured, require `Authorization: Bearer <secret>`."""
    if not settings.cron_secret:
        return True
    expected = f"Bearer {settings.cron_secret}"
    provided = request.headers.get("authorization", "")
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


# =============================================================================
# Sync routes
# =============================================================================

@app.post("/api/espn/sync")
async def api_full_sync():
    """
    Full historical backfill.

    This runs for a long time. Prefer scripts/sync_espn.py --mode full for
    an initial load.
    """
    result = await jobs.run_full_sync()
    return JSONResponse(result.to_full_dict(), status_code=200 if result.success else 500)


@app.post("/api/espn/sync/recent")
async def api_recent_sync():
    """Incremental sync of the rolling window around today."""
    result = await jobs.run_incremental_sync()
    return JSONResponse(result.to_recent_dict(), status_code=200 if result.success else 500)


@app.post("/api/espn/sync-rankings")
async def api_rankings_sync():
    """Replace the active rankings from the rankings page."""
    result = await jobs.run_rankings_sync()
    return JSONResponse(result.to_dict(), status_code=200 if result.success else 500)


@app.get("/api/cron/sync")
async def api_cron_sync(request: Request):
    """
    Incremental sync for an external cron trigger.

    Production runs no in-process scheduler; the platform's cron calls this.
    """
    if not _cron_authorized(request):
        return JSONResponse({"success": False, "error": "Unauthorized"}, status_code=401)

    result = await jobs.run_incremental_sync()
    payload = result.to_recent_dict()
    payload["timestamp"] = datetime.utcnow().isoformat()
    return JSONResponse(payload, status_code=200 if result.success else 500)


# =============================================================================
# Read routes
# =============================================================================

@app.get("/api/events/upcoming")
async def api_upcoming_events(db: Session = Depends(get_db)):
    """Next few events from now, soonest first, with their fight counts."""
    fight_counts = (
        db.query(Fight.event_id.label("event_id"), func.count(Fight.id).label("fight_count"))
        .group_by(Fight.event_id)
        .subquery()
    )
    rows = (
        db.query(Event, func.coalesce(fight_counts.c.fight_count, 0))
        .outerjoin(fight_counts, fight_counts.c.event_id == Event.id)
        .filter(Event.date >= datetime.utcnow())
        .order_by(Event.date.asc(), Event.id.asc())
        .limit(UPCOMING_EVENTS_LIMIT)
        .all()
    )

    events = [
        {
            "id": event.id,
            "name": event.name,
            "date": event.date.isoformat() if event.date else None,
            "eventType": event.event_type,
            "venue": event.venue,
            "city": event.city,
            "country": event.country,
            "fightCount": count,
        }
        for event, count in rows
    ]
    return JSONResponse({"events": events})


def _serialize_fighter(fighter: Fighter, rank: Optional[int]) -> dict:
    return {
        "id": fighter.id,
        "organizationId": fighter.organization_id,
        "firstName": fighter.first_name,
        "lastName": fighter.last_name,
        "nickname": fighter.nickname,
        "weightClass": fighter.weight_class,
        "gender": fighter.gender,
        "stance": fighter.stance,
        "imageUrl": fighter.image_url,
        "heightCm": fighter.height_cm,
        "reachCm": fighter.reach_cm,
        "weightLbs": fighter.weight_lbs,
        "wins": fighter.wins,
        "losses": fighter.losses,
        "draws": fighter.draws,
        "noContests": fighter.no_contests,
        "record": fighter.record,
        "totalFights": fighter.wins + fighter.losses + fighter.draws + fighter.no_contests,
        "currentRank": rank,
        "isChampion": rank == 0,
    }


@app.get("/api/fighters")
async def api_fighters(
    db: Session = Depends(get_db),
    search: Optional[str] = Query(None, description="Part of a first name, last name or nickname"),
    organization_id: Optional[int] = Query(None, alias="organizationId"),
    weight_class: Optional[str] = Query(None, alias="weightClass", description="Division code, e.g. LIGHTWEIGHT"),
    gender: Optional[str] = Query(None, description="MALE or FEMALE"),
    min_weight: Optional[float] = Query(None, alias="minWeight"),
    max_weight: Optional[float] = Query(None, alias="maxWeight"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """
    Search active fighters.

    With a weight class, only fighters holding an active ranking in that
    division are returned, plus unranked fighters whose weight falls in
    minWeight..maxWeight when both bounds are given. Filtering by weight
    class without an organization uses the configured one.

    Ranked fighters come first (by rank), then the rest by name.
    """
    if organization_id is None and weight_class:
        organization = db.query(Organization).filter(
            Organization.short_name == settings.organization_short_name
        ).first()
        if organization:
            organization_id = organization.id

    # Best active rank per fighter, within the requested scope
    ranks = db.query(
        Ranking.fighter_id.label("fighter_id"),
        func.min(Ranking.rank).label("rank"),
    ).filter(Ranking.active.is_(True))
    if organization_id is not None:
        ranks = ranks.filter(Ranking.organization_id == organization_id)
    if weight_class:
        ranks = ranks.filter(Ranking.weight_class == weight_class.upper())
    ranks = ranks.group_by(Ranking.fighter_id).subquery()

    query = (
        db.query(Fighter, ranks.c.rank)
        .outerjoin(ranks, ranks.c.fighter_id == Fighter.id)
        .filter(Fighter.active.is_(True))
    )
    if organization_id is not None:
        query = query.filter(Fighter.organization_id == organization_id)
    if gender:
        query = query.filter(Fighter.gender == gender.upper())
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Fighter.first_name.ilike(pattern),
                Fighter.last_name.ilike(pattern),
                Fighter.nickname.ilike(pattern),
            )
        )
    if weight_class:
        ranked = ranks.c.rank.isnot(None)
        if min_weight is not None and max_weight is not None:
            query = query.filter(or_(ranked, Fighter.weight_lbs.between(min_weight, max_weight)))
        else:
            query = query.filter(ranked)

    total = query.count()

    rows = (
        query.order_by(
            ranks.c.rank.asc().nullslast(),
            Fighter.last_name,
            Fighter.first_name,
            Fighter.id,
        )
        .offset(offset)
        .limit(limit)
        .all()
    )

    return JSONResponse({
        "fighters": [_serialize_fighter(fighter, rank) for fighter, rank in rows],
        "pagination": {"limit": limit, "offset": offset, "total": total},
    })


@app.get("/api/ticker/fights")
async def api_ticker_fights(db: Session = Depends(get_db)):
    """Scheduled fights on cards within the next 60 days, soonest first."""
    now = datetime.utcnow()
    red_corner = aliased(Fighter)
    blue_corner = aliased(Fighter)
    rows = (
        db.query(
            Organization.short_name,
            Event.name,
            Event.date,
            red_corner.last_name,
            blue_corner.last_name,
        )
        .select_from(Fight)
        .join(Event, Fight.event_id == Event.id)
        .join(Organization, Event.organization_id == Organization.id)
        .join(red_corner, Fight.fighter1_id == red_corner.id)
        .join(blue_corner, Fight.fighter2_id == blue_corner.id)
        .filter(
            Fight.status == SCHEDULED,
            Event.date >= now,
            Event.date <= now + timedelta(days=TICKER_WINDOW_DAYS),
        )
        .order_by(Event.date.asc(), Fight.card_position.asc().nullslast(), Fight.id.asc())
        .limit(TICKER_LIMIT)
        .all()
    )

    items = []
    for org, event_name, event_date, fighter1, fighter2 in rows:
        days_until = math.ceil((event_date - now).total_seconds() / 86400)
        items.append({
            "org": org,
            "event": event_name,
            "fighter1": fighter1,
            "fighter2": fighter2,
            "daysUntil": days_until,
            "status": f"{days_until} DAYS",
            "isCompleted": False,
        })
    return JSONResponse({"items": items})


@app.get("/health")
async def health():
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "ok",
        "version": __version__,
        "scheduler": bool(scheduler and scheduler.is_running),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fightwatch.web.main:app", host=settings.api_host, port=settings.api_port)
