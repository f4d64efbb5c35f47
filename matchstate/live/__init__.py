"""Live match reconciliation: name keys, status parsing, snapshot and fixture joins."""

from matchstate.live.board import (
    build_fixture_schedule,
    build_live_board,
    build_team_games,
    current_reporting_day,
    fixture_on_reporting_day,
    reporting_day_bounds,
)
from matchstate.live.fixtures import Fixture, JoinedFixture, extract_round_no, join_fixtures
from matchstate.live.name_normalization import build_pair_key, normalize_team_name
from matchstate.live.snapshots import ReconciledStatus, Snapshot, reconcile_snapshots
from matchstate.live.status import MatchPhase, TimesStatus, classify_times, minute_value

__all__ = [
    "Fixture",
    "JoinedFixture",
    "MatchPhase",
    "ReconciledStatus",
    "Snapshot",
    "TimesStatus",
    "build_fixture_schedule",
    "build_live_board",
    "build_pair_key",
    "build_team_games",
    "classify_times",
    "current_reporting_day",
    "extract_round_no",
    "fixture_on_reporting_day",
    "join_fixtures",
    "minute_value",
    "normalize_team_name",
    "reconcile_snapshots",
    "reporting_day_bounds",
]
