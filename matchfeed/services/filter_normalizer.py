"""
MatchFeed: Discovery filter normalization.

Turns the loosely-typed bag of optional strings a client sends into a
:class:`DiscoveryFilters` value with one typed, optional field per
predicate.  Pure and total: nothing here touches I/O and nothing raises.
Unparseable numbers, "don't care" sentinels and empty lists all collapse to
``None`` (no constraint).

Unit conventions:
  * heights arrive in feet and are stored as whole inches
    (``round_half_up(feet * 12)``);
  * distance arrives and is kept in miles (the distance evaluator converts);
  * enumerated tokens are lowercase snake_case, matching the profile columns.

Ages outside ``[MIN_AGE, MAX_AGE]`` and heights outside
``[MIN_HEIGHT_INCHES, MAX_HEIGHT_INCHES]`` are unset.  Ranges are ordered
after every step that can change them, including the saved/override merge.

Unrecognised enum tokens are passed through unless ``strict`` is set, in
which case they are dropped.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Optional

import structlog

from matchfeed.schemas.filters import RawFilterParams

logger = structlog.get_logger("matchfeed.filter_normalizer")

# ──────────────────────────────────────────────────────────────────────────────
# Canonical vocabularies (mirror the profile CHECK constraints)
# ──────────────────────────────────────────────────────────────────────────────

BODY_TYPES = frozenset({
    "slim", "athletic", "average", "muscular", "curvy", "plus_size",
    "prefer_not_to_say",
})
SMOKING = frozenset({"no", "occasionally", "daily", "trying_to_quit", "prefer_not_to_say"})
DRINKING = frozenset({"never", "social", "moderate", "regular", "prefer_not_to_say"})
MARIJUANA = frozenset({"no", "occasionally", "yes", "prefer_not_to_say"})
HAS_KIDS = frozenset({"no", "yes", "yes_live_at_home", "yes_live_away", "prefer_not_to_say"})
WANTS_KIDS = frozenset({
    "no", "definitely", "someday", "ok_if_partner_has", "prefer_not_to_say",
})
EDUCATION = frozenset({
    "high_school", "some_college", "associate", "bachelor", "graduate", "phd",
    "prefer_not_to_say",
})
ETHNICITIES = frozenset({
    "white", "latino", "black", "asian", "native_american", "east_indian",
    "pacific_islander", "middle_eastern", "armenian", "mixed", "other",
    "prefer_not_to_say",
})
RELIGIONS = frozenset({
    "adventist", "agnostic", "atheist", "buddhist", "catholic", "christian",
    "hindu", "jewish", "muslim", "spiritual", "other", "prefer_not_to_say",
})
POLITICAL_VIEWS = frozenset({
    "no_answer", "undecided", "conservative", "liberal", "libertarian",
    "moderate", "prefer_not_to_say",
})
ZODIAC_SIGNS = frozenset({
    "aries", "taurus", "gemini", "cancer", "leo", "virgo", "libra", "scorpio",
    "sagittarius", "capricorn", "aquarius", "pisces",
})

MIN_AGE = 18
MAX_AGE = 120
MIN_HEIGHT_INCHES = 36
MAX_HEIGHT_INCHES = 108

# Tokens meaning "no constraint".
UNSET_SENTINELS = frozenset({"", "any", "all", "no_preference", "doesnt_matter"})

_BOOLEAN_KIDS = {"true": "yes", "false": "no", "1": "yes", "0": "no"}

_SEPARATORS = re.compile(r"[\s\-]+")


@dataclass(frozen=True)
class DiscoveryFilters:
    """Canonical filter predicates.  ``None`` always means "no constraint"."""

    min_age: Optional[int] = None
    max_age: Optional[int] = None
    min_height_inches: Optional[int] = None
    max_height_inches: Optional[int] = None
    max_distance_miles: Optional[float] = None
    body_types: Optional[frozenset[str]] = None
    ethnicities: Optional[frozenset[str]] = None
    religions: Optional[frozenset[str]] = None
    education_levels: Optional[frozenset[str]] = None
    zodiac_signs: Optional[frozenset[str]] = None
    smoking: Optional[str] = None
    drinking: Optional[str] = None
    marijuana: Optional[str] = None
    has_kids: Optional[str] = None
    wants_kids: Optional[str] = None
    political_views: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def active(self) -> dict[str, Any]:
        """Set fields only, with sets as sorted lists (for logs and responses)."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = sorted(value) if isinstance(value, frozenset) else value
        return out


# ──────────────────────────────────────────────────────────────────────────────
# Token helpers
# ──────────────────────────────────────────────────────────────────────────────

def canonical_token(raw: Any) -> Optional[str]:
    """Lower-case, trim and snake-case a single token; sentinels become None."""
    if raw is None:
        return None
    token = _SEPARATORS.sub("_", str(raw).strip().lower()).strip("_")
    token = token.replace("'", "")
    if token in UNSET_SENTINELS:
        return None
    return token


def _enum(raw: Any, vocabulary: frozenset[str], strict: bool, field: str) -> Optional[str]:
    token = canonical_token(raw)
    if token is None:
        return None
    if token not in vocabulary:
        if strict:
            logger.debug("filter_token_dropped", field=field, token=token)
            return None
        logger.debug("filter_token_passthrough", field=field, token=token)
    return token


def _enum_set(
    raw: Any,
    vocabulary: frozenset[str],
    strict: bool,
    field: str,
) -> Optional[frozenset[str]]:
    if raw is None:
        return None
    parts: Iterable[Any]
    if isinstance(raw, (list, tuple, set, frozenset)):
        parts = raw
    else:
        parts = str(raw).split(",")

    tokens = set()
    for part in parts:
        token = _enum(part, vocabulary, strict, field)
        if token is not None:
            tokens.add(token)
    return frozenset(tokens) or None


def _number(raw: Any) -> Optional[float]:
    """Parse a positive, finite number; anything else is unset."""
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def feet_to_inches(feet: Optional[float]) -> Optional[int]:
    if feet is None:
        return None
    return round_half_up(feet * 12)


def _ordered(low, high):
    if low is not None and high is not None and low > high:
        return high, low
    return low, high


def _bounded(value: Optional[float], low: int, high: int, field: str) -> Optional[int]:
    """Whole number within ``[low, high]``, else unset."""
    if value is None:
        return None
    number = int(value)
    if not low <= number <= high:
        logger.debug("filter_value_out_of_range", field=field, value=value)
        return None
    return number


def _age(value: Optional[float], field: str) -> Optional[int]:
    return _bounded(value, MIN_AGE, MAX_AGE, field)


def _height(inches: Optional[float], field: str) -> Optional[int]:
    return _bounded(inches, MIN_HEIGHT_INCHES, MAX_HEIGHT_INCHES, field)


def _kids_token(raw: Any, strict: bool) -> Optional[str]:
    token = canonical_token(raw)
    if token is None:
        return None
    token = _BOOLEAN_KIDS.get(token, token)
    return _enum(token, HAS_KIDS, strict, "has_kids")


# ──────────────────────────────────────────────────────────────────────────────
# Public API
# ──────────────────────────────────────────────────────────────────────────────

def normalize_filters(raw: RawFilterParams | None, strict: bool = False) -> DiscoveryFilters:
    """Normalize raw client overrides into :class:`DiscoveryFilters`."""
    if raw is None:
        return DiscoveryFilters()

    min_age, max_age = _ordered(
        _age(_number(raw.min_age), "min_age"),
        _age(_number(raw.max_age), "max_age"),
    )
    min_height, max_height = _ordered(
        _height(feet_to_inches(_number(raw.min_height)), "min_height"),
        _height(feet_to_inches(_number(raw.max_height)), "max_height"),
    )

    filters = DiscoveryFilters(
        min_age=min_age,
        max_age=max_age,
        min_height_inches=min_height,
        max_height_inches=max_height,
        max_distance_miles=_number(raw.max_distance),
        body_types=_enum_set(raw.body_type, BODY_TYPES, strict, "body_type"),
        ethnicities=_enum_set(raw.ethnicity, ETHNICITIES, strict, "ethnicity"),
        religions=_enum_set(raw.religion, RELIGIONS, strict, "religion"),
        education_levels=_enum_set(raw.education, EDUCATION, strict, "education"),
        zodiac_signs=_enum_set(raw.hsign, ZODIAC_SIGNS, strict, "zodiac_sign"),
        smoking=_enum(raw.smoke, SMOKING, strict, "smoking"),
        drinking=_enum(raw.drinks, DRINKING, strict, "drinking"),
        marijuana=_enum(raw.marijuana, MARIJUANA, strict, "marijuana"),
        has_kids=_kids_token(raw.have_child, strict),
        wants_kids=_enum(raw.want_child, WANTS_KIDS, strict, "wants_kids"),
        political_views=_enum(raw.political_view, POLITICAL_VIEWS, strict, "political_views"),
    )
    return filters


def merge_filters(saved: DiscoveryFilters, overrides: DiscoveryFilters) -> DiscoveryFilters:
    """Per field, a set override wins over the saved value.

    A bound taken from one source and its partner from the other can cross,
    so both ranges are re-ordered on the merged result.
    """
    changes = {
        f.name: getattr(overrides, f.name)
        for f in fields(overrides)
        if getattr(overrides, f.name) is not None
    }
    merged = replace(saved, **changes)
    min_age, max_age = _ordered(merged.min_age, merged.max_age)
    min_height, max_height = _ordered(merged.min_height_inches, merged.max_height_inches)
    return replace(
        merged,
        min_age=min_age,
        max_age=max_age,
        min_height_inches=min_height,
        max_height_inches=max_height,
    )


def from_saved_settings(row: Any) -> DiscoveryFilters:
    """Build filters from a ``UserFilter`` row (already canonical units).

    Tokens are re-canonicalised so legacy mixed-case rows still match.
    """
    if row is None:
        return DiscoveryFilters()

    def _num(value) -> Optional[float]:
        return _number(value)

    def _tokens(values) -> Optional[frozenset[str]]:
        if not values:
            return None
        tokens = {canonical_token(v) for v in values}
        tokens.discard(None)
        return frozenset(tokens) or None

    min_age, max_age = _ordered(
        _age(_num(row.min_age), "min_age"),
        _age(_num(row.max_age), "max_age"),
    )
    min_height, max_height = _ordered(
        _height(_num(row.min_height), "min_height"),
        _height(_num(row.max_height), "max_height"),
    )

    return DiscoveryFilters(
        min_age=min_age,
        max_age=max_age,
        min_height_inches=min_height,
        max_height_inches=max_height,
        max_distance_miles=_num(row.max_distance_miles),
        body_types=_tokens(row.body_types),
        ethnicities=_tokens(row.ethnicities),
        religions=_tokens(row.religions),
        education_levels=_tokens(row.education_levels),
        zodiac_signs=_tokens(row.zodiac_signs),
        smoking=canonical_token(row.smoking),
        drinking=canonical_token(row.drinking),
        marijuana=canonical_token(row.marijuana),
        has_kids=canonical_token(row.has_kids),
        wants_kids=canonical_token(row.wants_kids),
        political_views=canonical_token(row.political_views),
    )


def to_saved_columns(filters: DiscoveryFilters) -> dict[str, Any]:
    """Map filters onto ``UserFilter`` column names for an upsert."""

    def _list(values: Optional[frozenset[str]]) -> Optional[list[str]]:
        return sorted(values) if values else None

    return {
        "min_age": filters.min_age,
        "max_age": filters.max_age,
        "min_height": filters.min_height_inches,
        "max_height": filters.max_height_inches,
        "max_distance_miles": filters.max_distance_miles,
        "body_types": _list(filters.body_types),
        "ethnicities": _list(filters.ethnicities),
        "religions": _list(filters.religions),
        "education_levels": _list(filters.education_levels),
        "zodiac_signs": _list(filters.zodiac_signs),
        "smoking": filters.smoking,
        "drinking": filters.drinking,
        "marijuana": filters.marijuana,
        "has_kids": filters.has_kids,
        "wants_kids": filters.wants_kids,
        "political_views": filters.political_views,
    }
