"""
MatchFeed: Candidate Query Engine

Builds and runs the eligibility query:

  * bidirectional gender preference: the candidate's gender is in the
    requester's ``looking_for`` *and* the requester's gender is in the
    candidate's ``looking_for``;
  * account ``active``, profile not hidden, ``can_start_matching`` set;
  * candidate id not in the exclusion set;
  * every normalized filter predicate (age is derived from
    ``date_of_birth`` against the request's ``today``).

The result is an unordered list of :class:`CandidateRow`.  Rows come back
capped at ``scan_limit`` in the ``recent`` order (newest of last activity,
profile update and profile creation, then user id), so the cap is
deterministic and keeps exactly the rows the default sort ranks first.
Ranking is still the sorter's job.  Under ``distance`` and ``liked_me`` the
cap is also taken in recency order: once more than ``scan_limit`` profiles
are eligible, a near but long-inactive profile can fall outside the scan.
"""

from __future__ import annotations

import calendar
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from matchfeed.models.profile import Profile
from matchfeed.models.user import USER_STATUS_ACTIVE, User
from matchfeed.services.filter_normalizer import DiscoveryFilters

logger = structlog.get_logger("matchfeed.candidate_query")

HAS_KIDS_YES_VALUES = ("yes", "yes_live_at_home", "yes_live_away")


@dataclass
class CandidateRow:
    """A profile on its way through the pipeline, plus the
    requester-relative fields the later stages fill in."""

    profile: Any
    user: Any
    distance_km: Optional[float] = None
    has_liked_me: bool = False
    liked_me_action: Optional[str] = None
    is_favorite: bool = False

    @property
    def user_id(self) -> uuid.UUID:
        return self.profile.user_id

    @property
    def latitude(self) -> Optional[float]:
        return self.profile.latitude

    @property
    def longitude(self) -> Optional[float]:
        return self.profile.longitude


# ──────────────────────────────────────────────────────────────────────────────
# Age helpers
# ──────────────────────────────────────────────────────────────────────────────

def years_before(today: date, years: int) -> date:
    """``today`` shifted back ``years`` years; Feb 29 falls back to Feb 28.

    The year is clamped to what ``date`` can represent, so this never raises.
    """
    year = min(max(today.year - years, date.min.year), date.max.year)
    if (today.month, today.day) == (2, 29) and not calendar.isleap(year):
        return date(year, 2, 28)
    return today.replace(year=year)


def calculate_age(date_of_birth: Optional[date], today: date) -> Optional[int]:
    if date_of_birth is None:
        return None
    before_birthday = (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - int(before_birthday)


# ──────────────────────────────────────────────────────────────────────────────
# Query construction
# ──────────────────────────────────────────────────────────────────────────────

def _apply_filters(stmt: Select, filters: DiscoveryFilters, today: date) -> Select:
    if filters.min_age is not None:
        # age >= min  <=>  born on or before today - min years
        stmt = stmt.where(Profile.date_of_birth <= years_before(today, filters.min_age))
    if filters.max_age is not None:
        # age <= max  <=>  born after today - (max + 1) years
        stmt = stmt.where(Profile.date_of_birth > years_before(today, filters.max_age + 1))

    if filters.min_height_inches is not None:
        stmt = stmt.where(Profile.height_inches >= filters.min_height_inches)
    if filters.max_height_inches is not None:
        stmt = stmt.where(Profile.height_inches <= filters.max_height_inches)

    if filters.body_types:
        stmt = stmt.where(Profile.body_type.in_(sorted(filters.body_types)))
    if filters.ethnicities:
        stmt = stmt.where(Profile.ethnicity.overlap(sorted(filters.ethnicities)))
    if filters.religions:
        stmt = stmt.where(Profile.religion.in_(sorted(filters.religions)))
    if filters.education_levels:
        stmt = stmt.where(Profile.education.in_(sorted(filters.education_levels)))
    if filters.zodiac_signs:
        stmt = stmt.where(Profile.zodiac_sign.in_(sorted(filters.zodiac_signs)))

    if filters.smoking is not None:
        stmt = stmt.where(Profile.smoking == filters.smoking)
    if filters.drinking is not None:
        stmt = stmt.where(Profile.drinking == filters.drinking)
    if filters.marijuana is not None:
        stmt = stmt.where(Profile.marijuana == filters.marijuana)
    if filters.wants_kids is not None:
        stmt = stmt.where(Profile.wants_kids == filters.wants_kids)
    if filters.political_views is not None:
        stmt = stmt.where(Profile.political_views == filters.political_views)
    if filters.has_kids == "yes":
        stmt = stmt.where(Profile.has_kids.in_(HAS_KIDS_YES_VALUES))
    elif filters.has_kids is not None:
        stmt = stmt.where(Profile.has_kids == filters.has_kids)

    return stmt


def build_candidate_query(
    requester_gender: str,
    looking_for: Iterable[str],
    excluded_ids: Iterable[uuid.UUID],
    filters: DiscoveryFilters,
    today: date,
    scan_limit: int,
) -> Select:
    """Return the eligibility ``SELECT`` of ``(Profile, User)`` rows."""
    stmt = (
        select(Profile, User)
        .join(User, User.id == Profile.user_id)
        .where(User.status == USER_STATUS_ACTIVE)
        .where(Profile.profile_hidden.is_(False))
        .where(Profile.can_start_matching.is_(True))
        .where(Profile.gender.in_(sorted(looking_for)))
        .where(Profile.looking_for.contains([requester_gender]))
    )

    excluded = sorted(excluded_ids, key=str)
    if excluded:
        stmt = stmt.where(Profile.user_id.not_in(excluded))

    stmt = _apply_filters(stmt, filters, today)

    # GREATEST ignores NULLs, matching ranking.activity_timestamp.
    activity = func.greatest(User.last_active_at, Profile.updated_at, Profile.created_at)
    return (
        stmt.order_by(activity.desc().nulls_last(), Profile.user_id.asc())
        .limit(scan_limit)
    )


async def fetch_candidates(
    session: AsyncSession,
    requester_gender: str,
    looking_for: Iterable[str],
    excluded_ids: Iterable[uuid.UUID],
    filters: DiscoveryFilters,
    today: date,
    scan_limit: int,
) -> list[CandidateRow]:
    stmt = build_candidate_query(
        requester_gender, looking_for, excluded_ids, filters, today, scan_limit
    )
    result = await session.execute(stmt)
    rows = [CandidateRow(profile=profile, user=user) for profile, user in result.all()]

    if len(rows) >= scan_limit:
        logger.warning("candidate_scan_limit_reached", scan_limit=scan_limit)
    return rows
