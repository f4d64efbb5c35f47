"""Correlation ranking extraction from packed rank slots."""

from matchstate.ranking.correlations import (
    RANKING_SLOT_COUNT,
    RankedEntry,
    build_correlation_view,
    parse_slot,
    slots_from_row,
    top_n_strict,
    top_n_with_backfill,
)

__all__ = [
    "RANKING_SLOT_COUNT",
    "RankedEntry",
    "build_correlation_view",
    "parse_slot",
    "slots_from_row",
    "top_n_strict",
    "top_n_with_backfill",
]
