"""
Fixture join: scheduled matches enriched with today's reconciled status.

A fixture is matched to telemetry only through its pair key. A fixture with
no reconciled status is simply SCHEDULED (no telemetry yet), not an error.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Union

from matchstate.live.name_normalization import build_pair_key
from matchstate.live.snapshots import ReconciledStatus
from matchstate.live.status import MatchPhase

# "日本: J1 リーグ - ラウンド 12" / "Japan: J1 League - Round 12"
ROUND_RE = re.compile(r"(ラウンド|Round)\s*(\d+)", re.IGNORECASE)

# start_flg in future_master
START_FLAG_IN_PROGRESS = "0"
START_FLAG_SCHEDULED = "1"


@dataclass(frozen=True)
class Fixture:
    """Scheduled or in-progress match from the fixture catalog."""

    seq: int
    category_label: str
    scheduled_at: Optional[Union[datetime, str]]
    home_team_name: str
    away_team_name: str
    link: Optional[str] = None
    start_flag: Optional[str] = None

    @property
    def pair_key(self) -> str:
        return build_pair_key(self.home_team_name, self.away_team_name)


@dataclass(frozen=True)
class JoinedFixture:
    """Fixture plus its phase for the reporting day."""

    seq: int
    round_no: Optional[int]
    scheduled_at: Optional[Union[datetime, str]]
    home_team: str
    away_team: str
    phase: MatchPhase
    display: Optional[str]
    link: Optional[str]
    category_label: str = ""
    chosen_snapshot_seq: Optional[int] = None

    @property
    def is_active_today(self) -> bool:
        return self.phase in (MatchPhase.LIVE, MatchPhase.FINISHED)

    def to_dict(self) -> dict:
        scheduled = self.scheduled_at
        if isinstance(scheduled, datetime):
            scheduled = scheduled.isoformat()
        return {
            "seq": self.seq,
            "roundNo": self.round_no,
            "scheduledAt": scheduled,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "phase": self.phase.value,
            "display": self.display,
            "link": self.link,
        }


def extract_round_no(label: Optional[str]) -> Optional[int]:
    """Round number from a category label; first match wins, None if absent."""
    if not label:
        return None
    m = ROUND_RE.search(label)
    return int(m.group(2)) if m else None


def join_fixture(fixture: Fixture, statuses: Mapping[str, ReconciledStatus]) -> JoinedFixture:
    """Attach the reconciled status for the fixture's pair key, if any."""
    status = statuses.get(fixture.pair_key)
    if status is None:
        phase, display, chosen_seq = MatchPhase.SCHEDULED, None, None
    else:
        phase, display, chosen_seq = status.phase, status.display, status.chosen_snapshot_seq

    return JoinedFixture(
        seq=fixture.seq,
        round_no=extract_round_no(fixture.category_label),
        scheduled_at=fixture.scheduled_at,
        home_team=fixture.home_team_name,
        away_team=fixture.away_team_name,
        phase=phase,
        display=display,
        link=fixture.link or None,
        category_label=fixture.category_label,
        chosen_snapshot_seq=chosen_seq,
    )


def _scheduled_sort_value(value) -> tuple:
    # datetimes and ISO strings are not mutually comparable; keep them apart
    if value is None:
        return (2, "")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return (0, value.isoformat())
    return (1, str(value))


def fixture_sort_key(joined: JoinedFixture) -> tuple:
    """Round ascending (None last), then scheduled time ascending, then seq."""
    return (
        joined.round_no is None,
        joined.round_no if joined.round_no is not None else 0,
        _scheduled_sort_value(joined.scheduled_at),
        joined.seq,
    )


def sort_joined_fixtures(joined: Iterable[JoinedFixture]) -> list[JoinedFixture]:
    return sorted(joined, key=fixture_sort_key)


def join_fixtures(
    fixtures: Iterable[Fixture],
    statuses: Mapping[str, ReconciledStatus],
) -> list[JoinedFixture]:
    """Join every fixture with its status and return them in display order."""
    return sort_joined_fixtures(join_fixture(f, statuses) for f in fixtures)
