"""
Sync job entry points used by the web routes, the scheduler and scripts.

Each job opens its own HTTP client and database session, runs one sync,
writes a SyncLog row, and returns a structured result. Jobs never raise:
an unexpected failure becomes a result with success=False and the error
message.
"""

import logging
import time
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from fightwatch.db.models import SyncLog
from fightwatch.db.session import get_session
from fightwatch.espn.client import ESPNClient
from fightwatch.services.espn_sync import (
    MODE_FULL,
    MODE_INCREMENTAL,
    ESPNSyncService,
    SyncResult,
)
from fightwatch.services.rankings_sync import RankingsSyncResult, RankingsSyncService

logger = logging.getLogger(__name__)

SYNC_TYPE_FULL = MODE_FULL
SYNC_TYPE_INCREMENTAL = MODE_INCREMENTAL
SYNC_TYPE_RANKINGS = "rankings"


async def run_full_sync() -> SyncResult:
    """Historical backfill. Can take hours."""
    started = time.monotonic()
    try:
        async with ESPNClient() as client:
            with get_session() as session:
                result = await ESPNSyncService(session, client).run_full_sync()
    except Exception as e:
        logger.exception("Full sync failed")
        result = SyncResult(success=False, mode=MODE_FULL, error=str(e))

    record_sync_log(SYNC_TYPE_FULL, result.success, result.to_log_details(), result.error, started)
    return result


async def run_incremental_sync() -> SyncResult:
    """Sync the rolling window around today."""
    started = time.monotonic()
    try:
        async with ESPNClient() as client:
            with get_session() as session:
                result = await ESPNSyncService(session, client).run_incremental_sync()
    except Exception as e:
        logger.exception("Incremental sync failed")
        result = SyncResult(success=False, mode=MODE_INCREMENTAL, error=str(e))

    record_sync_log(SYNC_TYPE_INCREMENTAL, result.success, result.to_log_details(), result.error, started)
    return result


async def run_rankings_sync() -> RankingsSyncResult:
    """Replace the active rankings from the rankings page."""
    started = time.monotonic()
    try:
        async with ESPNClient() as client:
            with get_session() as session:
                result = await RankingsSyncService(session, client).run()
    except Exception as e:
        logger.exception("Rankings sync failed")
        result = RankingsSyncResult(success=False, error=str(e))

    record_sync_log(SYNC_TYPE_RANKINGS, result.success, result.to_log_details(), result.error, started)
    return result


def record_sync_log(
    sync_type: str,
    success: bool,
    details: dict,
    error_message: Optional[str],
    started: float,
) -> None:
    """Write a SyncLog row. A failure here is logged, not raised."""
    duration = round(time.monotonic() - started, 2)
    try:
        with get_session() as session:
            session.add(SyncLog(
                sync_type=sync_type,
                success=success,
                details=details,
                error_message=error_message,
                duration_seconds=duration,
            ))
    except SQLAlchemyError as e:
        logger.warning("Could not write sync log for %s sync: %s", sync_type, e)


def last_successful_sync(sync_types: Sequence[str]) -> Optional[datetime]:
    """Time of the latest successful sync of any of the given types, if any."""
    with get_session() as session:
        row = session.query(SyncLog).filter(
            SyncLog.sync_type.in_(list(sync_types)),
            SyncLog.success.is_(True),
        ).order_by(SyncLog.created_at.desc()).first()
        return row.created_at if row else None
