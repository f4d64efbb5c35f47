"""
Correlation ranking extraction.

Each calc_correlation_ranking row packs up to 74 ranked entries in columns
rank_1th .. rank_74th, each "<metric>,<value>" (e.g. "home_shoot_in,0.62").
Column order IS the rank, precomputed upstream: slots are scanned in index
order and never re-sorted.

Two selection variants, chosen explicitly by the caller:

- top_n_with_backfill: entries with the preferred side prefix first, then
  the remaining entries, until n. Always populated when any entry parses.
- top_n_strict: hard prefix filter, no backfill.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from matchstate.live.name_normalization import same_team

logger = logging.getLogger(__name__)

RANKING_SLOT_COUNT = 74
DEFAULT_TOP_N = 5

SIDE_PREFIXES = ("home", "away")
SCORE_BUCKETS = ("1st", "2nd", "ALL")

# Plain decimal or exponent form; no underscores, hex or inf/nan words
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


@dataclass(frozen=True)
class RankedEntry:
    """One decoded (metric, value) slot."""

    metric: str
    value: float

    def to_dict(self) -> dict:
        return {"metric": self.metric, "value": self.value}


def slot_column(index: int) -> str:
    """Column name of 1-based slot `index` (rank_1th, rank_2th, ...)."""
    return f"rank_{index}th"


def slots_from_row(row: Mapping) -> list[Optional[str]]:
    """Read rank_1th .. rank_74th into a fixed-size list, in rank order."""
    return [row.get(slot_column(i)) for i in range(1, RANKING_SLOT_COUNT + 1)]


def parse_slot(raw: Optional[str]) -> Optional[RankedEntry]:
    """Decode "<metric>,<value>"; None for empty, nameless or non-finite slots."""
    if not raw:
        return None
    parts = str(raw).split(",")
    if len(parts) < 2:
        return None
    metric = parts[0].strip()
    if not metric:
        return None
    value_text = parts[1].strip()
    if not _NUMBER_RE.match(value_text):
        return None
    value = float(value_text)
    if not math.isfinite(value):
        return None
    return RankedEntry(metric=metric, value=value)


def _parsed_entries(slots: Sequence[Optional[str]]) -> list[RankedEntry]:
    entries = []
    for index in range(min(len(slots), RANKING_SLOT_COUNT)):
        entry = parse_slot(slots[index])
        if entry is not None:
            entries.append(entry)
    return entries


def top_n_with_backfill(
    slots: Sequence[Optional[str]],
    preferred_prefix: str,
    n: int = DEFAULT_TOP_N,
) -> list[RankedEntry]:
    """
    Up to n entries: preferred-prefix ones first, then backfill from the rest.

    Both partitions keep scan order. With 3 home and 10 away entries,
    ("home", 5) returns the 3 home entries followed by the first 2 away ones.
    """
    if n <= 0:
        return []

    preferred: list[RankedEntry] = []
    others: list[RankedEntry] = []
    for entry in _parsed_entries(slots):
        if entry.metric.startswith(preferred_prefix):
            preferred.append(entry)
        else:
            others.append(entry)

    result = preferred[:n]
    if len(result) < n:
        result.extend(others[: n - len(result)])
    return result


def top_n_strict(
    slots: Sequence[Optional[str]],
    prefix: str,
    n: int = DEFAULT_TOP_N,
) -> list[RankedEntry]:
    """Up to n entries whose metric starts with `prefix`; no backfill."""
    if n <= 0:
        return []

    result: list[RankedEntry] = []
    for entry in _parsed_entries(slots):
        if entry.metric.startswith(prefix):
            result.append(entry)
            if len(result) >= n:
                break
    return result


def row_side(row: Mapping, team_name: str) -> Optional[str]:
    """'home' / 'away' depending on where the team sits in the row."""
    if same_team(row.get("home"), team_name):
        return "home"
    if same_team(row.get("away"), team_name):
        return "away"
    return None


def build_correlation_view(
    rows: Iterable[Mapping],
    team_name: str,
    n: int = DEFAULT_TOP_N,
    backfill: bool = True,
) -> dict[str, dict[str, list[dict]]]:
    """
    Top-n correlations per side and score bucket for one team.

    Returns:
        {"HOME": {"1st": [...], "2nd": [...], "ALL": [...]},
         "AWAY": {"1st": [...], "2nd": [...], "ALL": [...]}}
        with entries as {"metric", "value"}. Missing rows give [].
    """
    picked: dict[tuple[str, str], Mapping] = {}
    for row in rows:
        bucket = str(row.get("score") or "")
        if bucket not in SCORE_BUCKETS:
            continue
        side = row_side(row, team_name)
        if side is None:
            continue
        # First row per (side, bucket) wins
        picked.setdefault((side, bucket), row)

    extract = top_n_with_backfill if backfill else top_n_strict
    view: dict[str, dict[str, list[dict]]] = {}
    for side in SIDE_PREFIXES:
        per_bucket = {}
        for bucket in SCORE_BUCKETS:
            row = picked.get((side, bucket))
            if row is None:
                per_bucket[bucket] = []
                continue
            entries = extract(slots_from_row(row), side, n)
            per_bucket[bucket] = [e.to_dict() for e in entries]
        view[side.upper()] = per_bucket

    logger.debug(f"Correlation view for {team_name!r}: {len(picked)} rows used (backfill={backfill})")
    return view
