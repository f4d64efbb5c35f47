"""
Snapshot reconciliation: one current status per match.

Telemetry arrives as many rows per match (one per poll). Rows are grouped
by pair key and the authoritative row is picked per group:

- latest_any:      max seq
- latest_finished: max seq among rows whose `times` is finished

If any finished row exists for the pair, it wins and the pair is reported
FINISHED for the whole reporting day, even when a later non-finished row
exists ("finished wins"). Otherwise latest_any is chosen and the pair is LIVE.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from matchstate.live.name_normalization import build_pair_key, normalize_team_name
from matchstate.live.status import MatchPhase, classify_times, is_finished_times, minute_value

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class Snapshot:
    """One telemetry observation of a match."""

    seq: int
    home_team_name: str
    away_team_name: str
    times: Optional[str] = None
    recorded_at: Optional[datetime] = None
    data_category: Optional[str] = None
    # Raw packed metric fields (home_score, away_exp, home_shoot_in, ...)
    metrics: dict = field(default_factory=dict)

    @property
    def pair_key(self) -> str:
        return build_pair_key(self.home_team_name, self.away_team_name)


@dataclass(frozen=True)
class ReconciledStatus:
    """Current state of one match, derived fresh per request."""

    pair_key: str
    phase: MatchPhase
    display: Optional[str]
    chosen_snapshot_seq: int
    finished_snapshot_seq: Optional[int]
    latest_snapshot_seq: int
    minute: int
    snapshot: Snapshot

    def to_dict(self) -> dict:
        return {
            "pairKey": self.pair_key,
            "phase": self.phase.value,
            "display": self.display,
            "chosenSnapshotSeq": self.chosen_snapshot_seq,
            "finishedSnapshotSeq": self.finished_snapshot_seq,
        }


def coerce_float(raw) -> Optional[float]:
    """Parse a packed numeric field ("1.25", " 0.8 xG") into a finite float."""
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        cleaned = _NON_NUMERIC.sub("", str(raw).strip())
        if not cleaned:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def coerce_int(raw) -> Optional[int]:
    """Parse a packed numeric field and floor it to int ("2.0" -> 2)."""
    value = coerce_float(raw)
    if value is None:
        return None
    return math.floor(value)


def local_day(ts: datetime, tz_name: str) -> date:
    """Calendar day of `ts` in `tz_name`. Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(ZoneInfo(tz_name)).date()


def group_by_pair_key(snapshots: Iterable[Snapshot]) -> dict[str, list[Snapshot]]:
    """
    Group snapshots by pair key.

    Rows with a blank home or away name cannot be correlated and are dropped.
    """
    groups: dict[str, list[Snapshot]] = {}
    for snap in snapshots:
        if not normalize_team_name(snap.home_team_name) or not normalize_team_name(snap.away_team_name):
            logger.debug(f"Dropping snapshot seq={snap.seq}: blank team name")
            continue
        groups.setdefault(snap.pair_key, []).append(snap)
    return groups


def _reconcile_group(pair_key: str, group: list[Snapshot]) -> ReconciledStatus:
    latest_any = max(group, key=lambda s: s.seq)
    finished = [s for s in group if is_finished_times(s.times)]
    latest_finished = max(finished, key=lambda s: s.seq) if finished else None

    if latest_finished is not None:
        chosen, phase = latest_finished, MatchPhase.FINISHED
    else:
        chosen, phase = latest_any, MatchPhase.LIVE

    return ReconciledStatus(
        pair_key=pair_key,
        phase=phase,
        display=classify_times(chosen.times).display,
        chosen_snapshot_seq=chosen.seq,
        finished_snapshot_seq=latest_finished.seq if latest_finished else None,
        latest_snapshot_seq=latest_any.seq,
        minute=minute_value(chosen.times),
        snapshot=chosen,
    )


def reconcile_snapshots(
    snapshots: Iterable[Snapshot],
    reporting_day: Optional[date] = None,
    tz_name: str = "UTC",
) -> dict[str, ReconciledStatus]:
    """
    Reconcile telemetry rows into one status per pair key.

    Args:
        snapshots: Rows already scoped by the caller (competition, day)
        reporting_day: If given, rows recorded on another local day are
            ignored (rows without recorded_at are kept)
        tz_name: Timezone that defines the reporting day

    Returns:
        Dict pair_key -> ReconciledStatus, in sorted pair-key order.
        Pairs without rows are absent; empty input gives {}.
    """
    if reporting_day is not None:
        snapshots = [
            s for s in snapshots
            if s.recorded_at is None or local_day(s.recorded_at, tz_name) == reporting_day
        ]

    groups = group_by_pair_key(snapshots)
    statuses = {
        pair_key: _reconcile_group(pair_key, groups[pair_key])
        for pair_key in sorted(groups)
    }

    finished_count = sum(1 for s in statuses.values() if s.phase == MatchPhase.FINISHED)
    logger.debug(
        f"Reconciled {len(statuses)} pairs ({finished_count} finished) "
        f"from {sum(len(g) for g in groups.values())} snapshots"
    )
    return statuses
