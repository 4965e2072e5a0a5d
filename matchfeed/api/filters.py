"""
MatchFeed: Saved discovery filters

``GET /filters`` returns the requester's saved filters in canonical units.
``PUT /filters`` accepts the same raw fields the feed does, normalizes them
and replaces the saved row.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matchfeed.api.deps import get_current_user_id
from matchfeed.config import get_settings
from matchfeed.database import get_db
from matchfeed.models.user_filter import UserFilter
from matchfeed.schemas.filters import FilterEnvelope, FilterSettingsResponse, RawFilterParams
from matchfeed.services.filter_normalizer import (
    DiscoveryFilters,
    from_saved_settings,
    normalize_filters,
    to_saved_columns,
)

logger = structlog.get_logger("matchfeed.api.filters")

router = APIRouter()


def _to_response(filters: DiscoveryFilters) -> FilterSettingsResponse:
    return FilterSettingsResponse(
        min_age=filters.min_age,
        max_age=filters.max_age,
        min_height_inches=filters.min_height_inches,
        max_height_inches=filters.max_height_inches,
        max_distance_miles=filters.max_distance_miles,
        body_types=sorted(filters.body_types or ()),
        ethnicities=sorted(filters.ethnicities or ()),
        religions=sorted(filters.religions or ()),
        education_levels=sorted(filters.education_levels or ()),
        zodiac_signs=sorted(filters.zodiac_signs or ()),
        smoking=filters.smoking,
        drinking=filters.drinking,
        marijuana=filters.marijuana,
        has_kids=filters.has_kids,
        wants_kids=filters.wants_kids,
        political_views=filters.political_views,
    )


async def _load_row(db: AsyncSession, user_id: uuid.UUID) -> UserFilter | None:
    result = await db.execute(select(UserFilter).where(UserFilter.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("", response_model=FilterEnvelope, summary="Get saved discovery filters")
async def get_filters(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> FilterEnvelope:
    row = await _load_row(db, user_id)
    return FilterEnvelope(
        success=True,
        data=_to_response(from_saved_settings(row)),
        msg="Filters fetched successfully",
    )


@router.put("", response_model=FilterEnvelope, summary="Replace saved discovery filters")
async def put_filters(
    payload: RawFilterParams,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> FilterEnvelope:
    """Normalize and store filters.  Unset fields clear the saved value."""
    filters = normalize_filters(payload, strict=get_settings().STRICT_FILTER_TOKENS)
    columns = to_saved_columns(filters)

    row = await _load_row(db, user_id)
    if row is None:
        row = UserFilter(user_id=user_id, **columns)
        db.add(row)
    else:
        for name, value in columns.items():
            setattr(row, name, value)
    await db.flush()

    logger.info("filters_saved", user_id=str(user_id), active=sorted(filters.active()))
    return FilterEnvelope(
        success=True,
        data=_to_response(filters),
        msg="Filters saved successfully",
    )
