"""Public live-status endpoints.

4 endpoints under /api: live-matches, games, future, correlations.
Each request fetches its rows once and runs one independent reconciliation;
nothing is cached between requests.
"""

import logging
from typing import Awaitable, Optional, TypeVar
from urllib.parse import unquote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from matchstate import repository
from matchstate.config import get_settings
from matchstate.database import get_async_session
from matchstate.live.board import (
    build_fixture_schedule,
    build_live_board,
    build_team_games,
    current_reporting_day,
    reporting_day_bounds,
)
from matchstate.live.fixtures import START_FLAG_IN_PROGRESS
from matchstate.ranking.correlations import build_correlation_view, row_side
from matchstate.security import READ_RATE_LIMIT, limiter

router = APIRouter(prefix="/api", tags=["live"])

logger = logging.getLogger(__name__)
settings = get_settings()

T = TypeVar("T")


def safe_unquote(value: Optional[str]) -> str:
    """Percent-decode a path/query value once more; keep it as-is if invalid."""
    if value is None:
        return ""
    try:
        return unquote(value, errors="strict").strip()
    except UnicodeDecodeError:
        return value.strip()


def _require(value: str, name: str) -> str:
    if not value:
        raise HTTPException(status_code=400, detail=f"{name} is required")
    return value


async def _fetch(awaitable: Awaitable[T], context: str) -> T:
    """Await a repository call; storage failures become a 500."""
    try:
        return await awaitable
    except SQLAlchemyError:
        logger.exception(f"{context} failed")
        raise HTTPException(status_code=500, detail="server error")


def _today_window():
    tz_name = settings.REPORTING_TIMEZONE
    day = current_reporting_day(tz_name=tz_name)
    start, end = reporting_day_bounds(day, tz_name)
    return day, start, end


@router.get("/live-matches")
@limiter.limit(READ_RATE_LIMIT)
async def get_live_matches(
    request: Request,
    country: Optional[str] = Query(None),
    league: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
):
    """
    Matches in play today.

    Scope with both ?country= and ?league= (category prefix
    "<country>: <league>"), or neither for every competition.
    """
    country = safe_unquote(country)
    league = safe_unquote(league)
    if bool(country) != bool(league):
        raise HTTPException(status_code=400, detail="country and league must be given together")

    prefix = repository.category_prefix(country, league)
    day, start, end = _today_window()
    logger.info(f"[LIVE] day={day} prefix={prefix!r}")

    snapshots = await _fetch(
        repository.fetch_snapshots(session, start, end, prefix),
        "GET /api/live-matches",
    )
    return build_live_board(snapshots, reporting_day=day, tz_name=settings.REPORTING_TIMEZONE)


@router.get("/games/{country}/{league}/{team}")
@limiter.limit(READ_RATE_LIMIT)
async def get_team_games(
    request: Request,
    country: str,
    league: str,
    team: str,
    session: AsyncSession = Depends(get_async_session),
):
    """A team's games with telemetry today: {"live": [...], "finished": [...]}."""
    country = _require(safe_unquote(country), "country")
    league = _require(safe_unquote(league), "league")
    team = _require(safe_unquote(team), "team")

    prefix = repository.category_prefix(country, league)
    day, start, end = _today_window()
    logger.info(f"[GAMES] day={day} prefix={prefix!r} team={team!r}")

    fixtures = await _fetch(
        repository.fetch_fixtures(session, prefix, start_flags=(START_FLAG_IN_PROGRESS,)),
        "GET /api/games (fixtures)",
    )
    # Telemetry category labels may carry extra suffixes; the pair key is the join
    snapshots = await _fetch(
        repository.fetch_snapshots(session, start, end),
        "GET /api/games (snapshots)",
    )
    return build_team_games(
        fixtures,
        snapshots,
        team,
        reporting_day=day,
        tz_name=settings.REPORTING_TIMEZONE,
    )


@router.get("/future")
@limiter.limit(READ_RATE_LIMIT)
async def get_future_matches(
    request: Request,
    team: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_async_session),
):
    """Fixture schedule joined with today's status (SCHEDULED / LIVE / FINISHED)."""
    team = safe_unquote(team) or None
    day, start, end = _today_window()

    fixtures = await _fetch(repository.fetch_fixtures(session), "GET /api/future (fixtures)")
    snapshots = await _fetch(
        repository.fetch_snapshots(session, start, end),
        "GET /api/future (snapshots)",
    )
    joined = build_fixture_schedule(
        fixtures,
        snapshots,
        team_name=team,
        reporting_day=day,
        tz_name=settings.REPORTING_TIMEZONE,
    )
    return {"matches": [j.to_dict() for j in joined]}


@router.get("/correlations/{country}/{league}/{team}")
@limiter.limit(READ_RATE_LIMIT)
async def get_team_correlations(
    request: Request,
    country: str,
    league: str,
    team: str,
    strict: Optional[bool] = Query(None, description="Hard side filter, no backfill"),
    n: Optional[int] = Query(None, ge=1, le=74),
    session: AsyncSession = Depends(get_async_session),
):
    """Top correlated metrics per side (HOME/AWAY) and bucket (1st/2nd/ALL)."""
    country = _require(safe_unquote(country), "country")
    league = _require(safe_unquote(league), "league")
    team = _require(safe_unquote(team), "team")

    rows = await _fetch(
        repository.fetch_correlation_rows(session, country, league),
        "GET /api/correlations",
    )
    if not any(row_side(row, team) for row in rows):
        raise HTTPException(status_code=404, detail="team not found")

    backfill = settings.CORRELATION_BACKFILL if strict is None else not strict
    top_n = n or settings.CORRELATION_TOP_N
    return {
        "team": team,
        "country": country,
        "league": league,
        "correlations": build_correlation_view(rows, team, n=top_n, backfill=backfill),
    }
