"""
Read-only data access for the live views.

Each function fetches the rows for one request and maps them to the plain
dataclasses the reconciliation core works on. No reconciliation happens in
SQL: grouping, status and ranking rules live in matchstate.live and
matchstate.ranking only.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from matchstate.live.fixtures import START_FLAG_IN_PROGRESS, START_FLAG_SCHEDULED, Fixture
from matchstate.live.snapshots import Snapshot
from matchstate.models import FutureMaster, LiveData, correlation_ranking
from matchstate.ranking.correlations import SCORE_BUCKETS

logger = logging.getLogger(__name__)

SNAPSHOT_METRIC_FIELDS = (
    "home_score",
    "away_score",
    "home_exp",
    "away_exp",
    "home_shoot_in",
    "away_shoot_in",
    "goal_time",
)


def category_prefix(country: Optional[str], league: Optional[str]) -> Optional[str]:
    """Competition scope as a category prefix ("日本: J1 リーグ"), or None."""
    if not country or not league:
        return None
    return f"{country}: {league}"


def _like_prefix(prefix: str) -> str:
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%"


def _to_snapshot(row: LiveData) -> Snapshot:
    return Snapshot(
        seq=int(row.seq),
        home_team_name=row.home_team_name or "",
        away_team_name=row.away_team_name or "",
        times=row.times,
        recorded_at=row.record_time or row.update_time,
        data_category=(row.data_category or "").strip() or None,
        metrics={name: getattr(row, name) for name in SNAPSHOT_METRIC_FIELDS},
    )


def _to_fixture(row: FutureMaster) -> Fixture:
    return Fixture(
        seq=int(row.seq),
        category_label=row.game_team_category or "",
        scheduled_at=row.future_time,
        home_team_name=row.home_team_name,
        away_team_name=row.away_team_name,
        link=(row.game_link or "").strip() or None,
        start_flag=row.start_flg,
    )


async def fetch_snapshots(
    session: AsyncSession,
    day_start: datetime,
    day_end: datetime,
    prefix: Optional[str] = None,
) -> list[Snapshot]:
    """
    Snapshots recorded in [day_start, day_end), optionally for one competition.

    Bounds are aware UTC datetimes. A row without record_time falls back to
    its update_time.
    """
    recorded_at = func.coalesce(LiveData.record_time, LiveData.update_time)
    stmt = (
        select(LiveData)
        .where(LiveData.home_team_name.is_not(None))
        .where(LiveData.away_team_name.is_not(None))
        .where(recorded_at >= day_start)
        .where(recorded_at < day_end)
    )
    if prefix:
        stmt = stmt.where(LiveData.data_category.like(_like_prefix(prefix), escape="\\"))

    result = await session.execute(stmt.order_by(LiveData.seq))
    snapshots = [_to_snapshot(row) for row in result.scalars().all()]
    logger.debug(f"Fetched {len(snapshots)} snapshots for [{day_start}, {day_end}) prefix={prefix!r}")
    return snapshots


async def fetch_fixtures(
    session: AsyncSession,
    prefix: Optional[str] = None,
    start_flags: Sequence[str] = (START_FLAG_IN_PROGRESS, START_FLAG_SCHEDULED),
) -> list[Fixture]:
    """Fixtures with the given start flags, optionally for one competition."""
    stmt = select(FutureMaster).where(FutureMaster.start_flg.in_(list(start_flags)))
    if prefix:
        stmt = stmt.where(FutureMaster.game_team_category.like(_like_prefix(prefix), escape="\\"))

    result = await session.execute(stmt.order_by(FutureMaster.seq))
    fixtures = [_to_fixture(row) for row in result.scalars().all()]
    logger.debug(f"Fetched {len(fixtures)} fixtures prefix={prefix!r}")
    return fixtures


async def fetch_correlation_rows(session: AsyncSession, country: str, league: str) -> list[dict]:
    """Ranking rows of one competition for the 1st / 2nd / ALL buckets."""
    stmt = (
        select(correlation_ranking)
        .where(correlation_ranking.c.country == country)
        .where(correlation_ranking.c.league == league)
        .where(correlation_ranking.c.score.in_(list(SCORE_BUCKETS)))
        .order_by(correlation_ranking.c.id)
    )
    result = await session.execute(stmt)
    return [dict(row._mapping) for row in result.all()]
