"""
FightWatch services - business logic for the sync pipeline.

Pipeline pieces:
1. ESPN sync: events, fights and fighters from the ESPN APIs
2. Rankings sync: replaces active rankings from the rankings page
3. Jobs: entry points that wrap a sync with a client, a session and a SyncLog
4. Scheduler: runs the incremental and rankings jobs on an interval

Usage:
    from fightwatch.services import run_incremental_sync

    result = await run_incremental_sync()
"""

from fightwatch.services.organizations import (
    DEFAULT_ORGANIZATIONS,
    OrganizationNotFoundError,
    ensure_organizations,
    require_organization,
)
from fightwatch.services.espn_sync import (
    ESPNSyncService,
    FighterCache,
    ItemOutcome,
    SyncResult,
    SyncStats,
)
from fightwatch.services.rankings_sync import (
    RankingsSyncResult,
    RankingsSyncService,
)
from fightwatch.services.jobs import (
    last_successful_sync,
    run_full_sync,
    run_incremental_sync,
    run_rankings_sync,
)
from fightwatch.services.scheduler import SchedulerHandle, scheduler_allowed
from fightwatch.services.maintenance import clear_synced_data, database_report

__all__ = [
    # Organizations
    "DEFAULT_ORGANIZATIONS",
    "OrganizationNotFoundError",
    "ensure_organizations",
    "require_organization",
    # ESPN sync
    "ESPNSyncService",
    "FighterCache",
    "ItemOutcome",
    "SyncResult",
    "SyncStats",
    # Rankings
    "RankingsSyncResult",
    "RankingsSyncService",
    # Jobs
    "last_successful_sync",
    "run_full_sync",
    "run_incremental_sync",
    "run_rankings_sync",
    # Scheduler
    "SchedulerHandle",
    "scheduler_allowed",
    # Maintenance
    "clear_synced_data",
    "database_report",
]
