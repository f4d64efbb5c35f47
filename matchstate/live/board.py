"""
Live board pipelines.

Composes normalization, reconciliation and the fixture join into the three
views the dashboard reads: today's live matches, a team's games of the day,
and the fixture schedule. All functions are pure: the caller fetches the
rows for one request and passes them in.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from matchstate.live.fixtures import (
    START_FLAG_IN_PROGRESS,
    Fixture,
    JoinedFixture,
    join_fixture,
    sort_joined_fixtures,
)
from matchstate.live.name_normalization import same_team
from matchstate.live.snapshots import (
    ReconciledStatus,
    Snapshot,
    coerce_float,
    coerce_int,
    local_day,
    reconcile_snapshots,
)
from matchstate.live.status import MatchPhase

logger = logging.getLogger(__name__)


def current_reporting_day(now: Optional[datetime] = None, tz_name: str = "Asia/Tokyo") -> date:
    """Today's calendar day in `tz_name` (naive `now` is taken as UTC)."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def reporting_day_bounds(day: date, tz_name: str = "Asia/Tokyo") -> tuple[datetime, datetime]:
    """UTC [start, end) of a local calendar day, as aware datetimes."""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def _kickoff(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def fixture_on_reporting_day(fixture: Fixture, reporting_day: date, tz_name: str = "Asia/Tokyo") -> bool:
    """
    True if the fixture can own today's telemetry.

    The pair key does not tell a match from its return fixture, so only an
    in-progress fixture or one kicking off on the reporting day is joined.
    """
    if fixture.start_flag == START_FLAG_IN_PROGRESS:
        return True
    kickoff = _kickoff(fixture.scheduled_at)
    return kickoff is not None and local_day(kickoff, tz_name) == reporting_day


def _join_for_day(
    fixtures: Iterable[Fixture],
    statuses: Mapping[str, ReconciledStatus],
    reporting_day: Optional[date],
    tz_name: str,
) -> list[JoinedFixture]:
    joined = []
    for fixture in fixtures:
        if reporting_day is None or fixture_on_reporting_day(fixture, reporting_day, tz_name):
            joined.append(join_fixture(fixture, statuses))
        else:
            joined.append(join_fixture(fixture, {}))
    return sort_joined_fixtures(joined)


def _live_entry(status: ReconciledStatus) -> dict:
    snap = status.snapshot
    metrics = snap.metrics
    recorded_at = snap.recorded_at.isoformat() if snap.recorded_at else None
    return {
        "seq": snap.seq,
        "category": snap.data_category or "",
        "times": (snap.times or "").strip(),
        "display": status.display,
        "minute": status.minute,
        "homeTeam": snap.home_team_name,
        "awayTeam": snap.away_team_name,
        "homeScore": coerce_int(metrics.get("home_score")),
        "awayScore": coerce_int(metrics.get("away_score")),
        "homeXg": coerce_float(metrics.get("home_exp")),
        "awayXg": coerce_float(metrics.get("away_exp")),
        "homeShotsOnTarget": coerce_int(metrics.get("home_shoot_in")),
        "awayShotsOnTarget": coerce_int(metrics.get("away_shoot_in")),
        "recordedAt": recorded_at,
    }


def build_live_board(
    snapshots: Iterable[Snapshot],
    reporting_day: Optional[date] = None,
    tz_name: str = "Asia/Tokyo",
) -> list[dict]:
    """
    Matches currently in play.

    A pair is on the board when its reconciled phase is LIVE and its chosen
    row has a non-empty `times`. Ordered by category, then the furthest
    along first, then newest row first.
    """
    statuses = reconcile_snapshots(snapshots, reporting_day=reporting_day, tz_name=tz_name)
    live = [
        s for s in statuses.values()
        if s.phase == MatchPhase.LIVE and (s.snapshot.times or "").strip()
    ]
    live.sort(key=lambda s: (s.snapshot.data_category or "", -s.minute, -s.chosen_snapshot_seq))
    return [_live_entry(s) for s in live]


def build_team_games(
    fixtures: Iterable[Fixture],
    snapshots: Iterable[Snapshot],
    team_name: str,
    reporting_day: Optional[date] = None,
    tz_name: str = "Asia/Tokyo",
) -> dict[str, list[dict]]:
    """
    A team's games that have telemetry today, split into live and finished.

    Fixtures without telemetry (SCHEDULED) are left out. With a reporting
    day, fixtures on other days never pick up today's telemetry.
    """
    team_fixtures = [
        f for f in fixtures
        if same_team(f.home_team_name, team_name) or same_team(f.away_team_name, team_name)
    ]
    statuses = reconcile_snapshots(snapshots, reporting_day=reporting_day, tz_name=tz_name)
    joined = _join_for_day(team_fixtures, statuses, reporting_day, tz_name)

    board: dict[str, list[dict]] = {"live": [], "finished": []}
    for game in joined:
        if game.phase == MatchPhase.LIVE:
            board["live"].append(game.to_dict())
        elif game.phase == MatchPhase.FINISHED:
            board["finished"].append(game.to_dict())

    logger.debug(
        f"Team games for {team_name!r}: {len(team_fixtures)} fixtures, "
        f"{len(board['live'])} live, {len(board['finished'])} finished"
    )
    return board


def build_fixture_schedule(
    fixtures: Iterable[Fixture],
    snapshots: Iterable[Snapshot],
    team_name: Optional[str] = None,
    reporting_day: Optional[date] = None,
    tz_name: str = "Asia/Tokyo",
) -> list[JoinedFixture]:
    """Every fixture (optionally one team's) joined, SCHEDULED included.

    Fixtures outside the reporting day stay SCHEDULED even when their pair
    played today.
    """
    if team_name:
        fixtures = [
            f for f in fixtures
            if same_team(f.home_team_name, team_name) or same_team(f.away_team_name, team_name)
        ]
    statuses = reconcile_snapshots(snapshots, reporting_day=reporting_day, tz_name=tz_name)
    return _join_for_day(fixtures, statuses, reporting_day, tz_name)
