"""
Live match status from the free-text elapsed-time field.

The telemetry feed carries no status code: the only signal is the `times`
text, e.g. "68:09", "45+2'", "68'", "ハーフタイム" or "終了済". This module
turns it into a MatchPhase plus a display string, and into a sortable
minute value for ordering.

Rules are checked in priority order and never raise: anything unrecognised
is treated as LIVE with the text shown as-is.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Canonical minute marker appended to display minutes ("68'")
MINUTE_MARKER = "'"

# Backtick, prime, right single quote, full-width apostrophe
_MARKER_VARIANTS = "`′’＇"
_MARKER_CLASS = f"['{_MARKER_VARIANTS}]"

# Substrings meaning the match is over (case-insensitive)
FINISHED_MARKERS = ("終了", "finished", "full time", "full-time")
# Whole-string finished codes
FINISHED_CODES = {"ft"}

_HALFTIME_RE = re.compile(r"ハーフタイム|half[\s-]?time|^ht$", re.IGNORECASE)
_FIRST_HALF_RE = re.compile(r"第一ハーフ|前半|first half|1st half", re.IGNORECASE)
_SECOND_HALF_RE = re.compile(r"第二ハーフ|後半|second half|2nd half", re.IGNORECASE)

_CLOCK_RE = re.compile(r"^(\d{1,3}):(\d{2})$")
_STOPPAGE_RE = re.compile(rf"^(\d{{1,3}})\s*\+\s*(\d{{1,2}})\s*{_MARKER_CLASS}?$")
_MINUTE_RE = re.compile(rf"^(\d{{1,3}}){_MARKER_CLASS}$")
_CANONICAL_MINUTE_RE = re.compile(r"^(\d{1,3})'$")
_BARE_MINUTE_RE = re.compile(r"^(\d{1,3})$")

# Approximate progress for label-only states
HALFTIME_MINUTE = 45
FIRST_HALF_MINUTE = 30
SECOND_HALF_MINUTE = 75
UNPARSABLE_MINUTE = -1


class MatchPhase(str, Enum):
    """Classified state of a match."""

    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    FINISHED = "FINISHED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class TimesStatus:
    """Result of classifying one `times` value."""

    phase: MatchPhase
    display: Optional[str]


def _clean(times: Optional[str]) -> str:
    if times is None:
        return ""
    return str(times).strip()


def _canonical_markers(text: str) -> str:
    for variant in _MARKER_VARIANTS:
        text = text.replace(variant, MINUTE_MARKER)
    return text


def _is_half_label(text: str) -> bool:
    return bool(
        _HALFTIME_RE.search(text)
        or _FIRST_HALF_RE.search(text)
        or _SECOND_HALF_RE.search(text)
    )


def is_finished_times(times: Optional[str]) -> bool:
    """True if the `times` text carries a finished marker."""
    text = _clean(times)
    if not text:
        return False
    folded = text.lower()
    if folded in FINISHED_CODES:
        return True
    return any(marker in folded for marker in FINISHED_MARKERS)


def classify_times(times: Optional[str]) -> TimesStatus:
    """
    Classify a `times` value into (phase, display).

    Priority:
        1. empty/None          -> UNKNOWN, None
        2. finished marker     -> FINISHED, None
        3. half/break label    -> LIVE, text unchanged
        4. "MM:SS"             -> LIVE, "MM'"
        5. "MM+K" ("MM+K'")    -> LIVE, "<MM+K>'"
        6. "MM'"               -> LIVE, text unchanged
        7. anything else       -> LIVE, text with canonical minute marker
    """
    text = _clean(times)
    if not text:
        return TimesStatus(MatchPhase.UNKNOWN, None)

    if is_finished_times(text):
        return TimesStatus(MatchPhase.FINISHED, None)

    if _is_half_label(text):
        return TimesStatus(MatchPhase.LIVE, text)

    m = _CLOCK_RE.match(text)
    if m:
        return TimesStatus(MatchPhase.LIVE, f"{int(m.group(1))}{MINUTE_MARKER}")

    m = _STOPPAGE_RE.match(text)
    if m:
        minute = int(m.group(1)) + int(m.group(2))
        return TimesStatus(MatchPhase.LIVE, f"{minute}{MINUTE_MARKER}")

    if _CANONICAL_MINUTE_RE.match(text):
        return TimesStatus(MatchPhase.LIVE, text)

    return TimesStatus(MatchPhase.LIVE, _canonical_markers(text))


def minute_value(times: Optional[str]) -> int:
    """
    Approximate elapsed minute for ordering (higher = further along).

    Never used to decide the phase. Unparsable or empty input -> -1.
    """
    text = _clean(times)
    if not text:
        return UNPARSABLE_MINUTE

    if _HALFTIME_RE.search(text):
        return HALFTIME_MINUTE
    if _FIRST_HALF_RE.search(text):
        return FIRST_HALF_MINUTE
    if _SECOND_HALF_RE.search(text):
        return SECOND_HALF_MINUTE

    m = _CLOCK_RE.match(text)
    if m:
        return int(m.group(1))

    m = _STOPPAGE_RE.match(text)
    if m:
        return int(m.group(1)) + int(m.group(2))

    m = _MINUTE_RE.match(text) or _BARE_MINUTE_RE.match(text)
    if m:
        return int(m.group(1))

    return UNPARSABLE_MINUTE
