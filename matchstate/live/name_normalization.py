"""
Team name identity keys for live matching.

Single source of truth: fixtures and telemetry snapshots share no foreign
key, so two rows describe the same match exactly when their pair keys are
equal. Every matcher MUST build keys through this module.
"""

import re

PAIR_KEY_SEPARATOR = "|"

# Full-width space (U+3000) and no-break space (U+00A0) -> regular space
_SPACE_TRANSLATION = str.maketrans({"\u3000": " ", "\u00a0": " "})
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_team_name(name) -> str:
    """
    Normalize a team name for identity comparison.

    Steps:
    1. Trim
    2. Full-width / no-break spaces -> regular space
    3. Collapse whitespace runs to a single space
    4. Lowercase (ordinal, no locale)

    Unlike cross-provider fuzzy matching, nothing else is stripped: the
    fixture catalog and the telemetry feed spell names the same way apart
    from spacing and case.

    Examples:
        "FC 東京"            -> "fc 東京"
        "Team　A"        -> "team a"
        "  Team   A  "       -> "team a"
    """
    if not name:
        return ""

    name = name.strip()
    name = name.translate(_SPACE_TRANSLATION)
    name = _WHITESPACE_RUN.sub(" ", name).strip()

    return name.lower()


def build_pair_key(home: str, away: str) -> str:
    """
    Order-independent identity of a match: both names normalized, sorted
    by codepoint and joined with "|".

    build_pair_key(a, b) == build_pair_key(b, a) for all inputs.
    """
    home_key = normalize_team_name(home)
    away_key = normalize_team_name(away)
    if home_key <= away_key:
        return f"{home_key}{PAIR_KEY_SEPARATOR}{away_key}"
    return f"{away_key}{PAIR_KEY_SEPARATOR}{home_key}"


def same_team(a: str, b: str) -> bool:
    """True if two raw names normalize to the same non-empty key."""
    key = normalize_team_name(a)
    return bool(key) and key == normalize_team_name(b)
