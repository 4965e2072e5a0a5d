"""
MatchFeed: Profile Context Loader

Resolves the requester's own attributes needed to evaluate compatibility:
gender, accepted genders, coordinates, account status and saved filters.
A missing profile row is fatal to the request (``ProfileNotFound``).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from matchfeed.errors import ProfileNotFound
from matchfeed.models.profile import Profile
from matchfeed.models.user import USER_STATUS_ACTIVE, User
from matchfeed.models.user_filter import UserFilter
from matchfeed.services.filter_normalizer import (
    DiscoveryFilters,
    canonical_token,
    from_saved_settings,
)
from matchfeed.utils.reads import gather_reads

logger = structlog.get_logger("matchfeed.profile_context")


@dataclass(frozen=True)
class ProfileContext:
    user_id: uuid.UUID
    gender: Optional[str]
    looking_for: frozenset[str]
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    status: str = USER_STATUS_ACTIVE
    saved_filters: DiscoveryFilters = field(default_factory=DiscoveryFilters)

    @property
    def is_complete(self) -> bool:
        return bool(self.gender) and bool(self.looking_for)

    @property
    def is_active(self) -> bool:
        return self.status == USER_STATUS_ACTIVE

    @property
    def coordinates(self) -> tuple[Optional[float], Optional[float]]:
        return (self.latitude, self.longitude)


def _gender_token(value: Optional[str]) -> Optional[str]:
    # Genders keep their hyphen ("non-binary"), so only trim and lower-case.
    if value is None:
        return None
    token = value.strip().lower()
    return token or None


def build_profile_context(profile, user, saved_row=None) -> ProfileContext:
    looking_for = frozenset(
        g for g in (_gender_token(v) for v in (profile.looking_for or [])) if g
    )
    return ProfileContext(
        user_id=profile.user_id,
        gender=_gender_token(profile.gender),
        looking_for=looking_for,
        latitude=profile.latitude,
        longitude=profile.longitude,
        status=canonical_token(user.status) or USER_STATUS_ACTIVE,
        saved_filters=from_saved_settings(saved_row),
    )


async def _read_profile(session: AsyncSession, user_id: uuid.UUID):
    stmt = (
        select(Profile, User)
        .join(User, User.id == Profile.user_id)
        .where(Profile.user_id == user_id)
    )
    result = await session.execute(stmt)
    return result.one_or_none()


async def _read_saved_filters(session: AsyncSession, user_id: uuid.UUID):
    stmt = select(UserFilter).where(UserFilter.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def load_profile_context(
    session: AsyncSession,
    user_id: uuid.UUID,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> ProfileContext:
    """Load the requester's context.  Raises ``ProfileNotFound``."""
    row, saved_row = await gather_reads(
        session,
        session_factory,
        lambda s: _read_profile(s, user_id),
        lambda s: _read_saved_filters(s, user_id),
    )

    if row is None:
        logger.warning("profile_context_not_found", user_id=str(user_id))
        raise ProfileNotFound(user_id)

    profile, user = row
    context = build_profile_context(profile, user, saved_row)

    logger.debug(
        "profile_context_loaded",
        user_id=str(user_id),
        complete=context.is_complete,
        located=context.latitude is not None and context.longitude is not None,
        saved_filters=len(context.saved_filters.active()),
    )
    return context
