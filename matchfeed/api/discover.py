"""
MatchFeed: Discovery API

``GET /discover/top-matches`` returns one page of the requester's discovery
feed.  ``GET``/``POST /discover/nearby`` returns the same feed ordered by
distance within a radius (kilometres) around a point.  Parameters are raw
strings; malformed values are ignored rather than rejected.
"""

from __future__ import annotations

import math
import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from matchfeed.api.deps import get_current_user_id, get_discovery_service
from matchfeed.database import get_db, get_session_factory
from matchfeed.schemas.discovery import DiscoverResponse, NearbyParams
from matchfeed.schemas.filters import RawFilterParams
from matchfeed.services.discovery_service import EMPTY_NO_LOCATION, DiscoveryService

logger = structlog.get_logger("matchfeed.api.discover")

router = APIRouter()

NO_LOCATION_MSG = "No location available. Please enable location services."


def _joined(values: Optional[list[str]]) -> Optional[str]:
    # Repeated params and comma lists both reach the normalizer as one list.
    if not values:
        return None
    return ",".join(values)


def raw_filter_params(
    min_age: Optional[str] = Query(None),
    max_age: Optional[str] = Query(None),
    min_height: Optional[str] = Query(None, description="Minimum height in feet"),
    max_height: Optional[str] = Query(None, description="Maximum height in feet"),
    body_type: Optional[list[str]] = Query(None, alias="BodyType"),
    ethnicity: Optional[list[str]] = Query(None, alias="Ethnicity"),
    drinks: Optional[str] = Query(None, alias="Drinks"),
    religion: Optional[list[str]] = Query(None, alias="Religion"),
    education: Optional[list[str]] = Query(None, alias="Education"),
    have_child: Optional[str] = Query(None, alias="HaveChild"),
    want_child: Optional[str] = Query(None, alias="WantChild"),
    hsign: Optional[list[str]] = Query(None, alias="Hsign"),
    marijuana: Optional[str] = Query(None, alias="Marijuana"),
    smoke: Optional[str] = Query(None, alias="Smoke"),
    political_view: Optional[str] = Query(None, alias="PoliticalView"),
    max_distance: Optional[str] = Query(None, description="Maximum distance in miles"),
) -> RawFilterParams:
    return RawFilterParams(
        min_age=min_age,
        max_age=max_age,
        min_height=min_height,
        max_height=max_height,
        body_type=_joined(body_type),
        ethnicity=_joined(ethnicity),
        drinks=drinks,
        religion=_joined(religion),
        education=_joined(education),
        have_child=have_child,
        want_child=want_child,
        hsign=_joined(hsign),
        marijuana=marijuana,
        smoke=smoke,
        political_view=political_view,
        max_distance=max_distance,
    )


def _page_param(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _float_param(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


# ──────────────────────────────────────────────────────────────────────────────
# GET /top-matches: discovery feed page
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/top-matches",
    response_model=DiscoverResponse,
    summary="Discovery feed for the authenticated user",
)
async def top_matches(
    filters: RawFilterParams = Depends(raw_filter_params),
    sort: Optional[str] = Query(None, description="recent | distance | liked_me"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoverResponse:
    log = logger.bind(user_id=str(user_id))
    log.info("top_matches_requested", sort=sort, limit=limit, offset=offset)

    result = await service.discover(
        db,
        user_id,
        raw_filters=filters,
        sort=sort,
        limit=_page_param(limit),
        offset=_page_param(offset),
        session_factory=session_factory,
    )

    return DiscoverResponse(
        success=True,
        data=result.candidates,
        msg="Profiles fetched successfully",
        total=result.total,
        has_more=result.has_more,
        empty_reason=result.empty_reason,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET|POST /nearby: distance-ordered feed around a point
# ──────────────────────────────────────────────────────────────────────────────

async def _nearby(
    params: NearbyParams,
    user_id: uuid.UUID,
    db: AsyncSession,
    session_factory: Optional[async_sessionmaker[AsyncSession]],
    service: DiscoveryService,
) -> DiscoverResponse:
    logger.info(
        "nearby_requested",
        user_id=str(user_id),
        has_point=params.latitude is not None and params.longitude is not None,
        max_distance=params.max_distance,
    )

    result = await service.nearby(
        db,
        user_id,
        latitude=_float_param(params.latitude),
        longitude=_float_param(params.longitude),
        radius_km=_float_param(params.max_distance),
        limit=_page_param(params.limit),
        offset=_page_param(params.offset),
        session_factory=session_factory,
    )

    msg = (
        NO_LOCATION_MSG
        if result.empty_reason == EMPTY_NO_LOCATION
        else "Nearby profiles fetched successfully"
    )
    return DiscoverResponse(
        success=True,
        data=result.candidates,
        msg=msg,
        total=result.total,
        has_more=result.has_more,
        empty_reason=result.empty_reason,
    )


@router.get(
    "/nearby",
    response_model=DiscoverResponse,
    summary="Profiles near a point, nearest first",
)
async def nearby_get(
    latitude: Optional[str] = Query(None, alias="Latitude"),
    longitude: Optional[str] = Query(None, alias="Longitude"),
    max_distance: Optional[str] = Query(None, description="Radius in kilometres"),
    limit: Optional[str] = Query(None),
    offset: Optional[str] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoverResponse:
    params = NearbyParams(
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
        limit=limit,
        offset=offset,
    )
    return await _nearby(params, user_id, db, session_factory, service)


@router.post(
    "/nearby",
    response_model=DiscoverResponse,
    summary="Profiles near a point, nearest first",
)
async def nearby_post(
    params: Optional[NearbyParams] = Body(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoverResponse:
    return await _nearby(params or NearbyParams(), user_id, db, session_factory, service)
