"""
MatchFeed: Discovery Service

Composes the discovery pipeline for one request:

    Profile Context ─┐
    Social graph ────┼─► Normalize + merge filters ─► Exclusions ─► Query
    Favourites ──────┘                                               │
        Formatter ◄─ Sorter / Paginator ◄─ Annotator ◄─ Distance ◄───┘

Everything is derived fresh per request; the service holds configuration
and collaborators only, never per-user state.  It performs no writes.
"""

from __future__ import annotations

import math
import time
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from matchfeed.config import DiscoveryConfig
from matchfeed.errors import DiscoveryQueryError
from matchfeed.schemas.discovery import CandidateOut
from matchfeed.schemas.filters import RawFilterParams
from matchfeed.services.annotator import annotate_interest, load_favorite_ids
from matchfeed.services.candidate_query import fetch_candidates
from matchfeed.services.distance import apply_distance, valid_coordinates
from matchfeed.services.exclusion import (
    ActionIndex,
    SocialGraph,
    build_exclusion_set,
    load_blocks,
    load_interactions,
)
from matchfeed.services.filter_normalizer import merge_filters, normalize_filters
from matchfeed.services.formatter import Resolver, format_candidates
from matchfeed.services.profile_context import load_profile_context
from matchfeed.services.ranking import PageRequest, SortKey, paginate, sort_candidates
from matchfeed.utils.reads import gather_reads
from matchfeed.utils.storage import resolve_url_async

logger = structlog.get_logger("matchfeed.discovery_service")

EMPTY_INCOMPLETE_PROFILE = "incomplete_profile"
EMPTY_USER_INACTIVE = "user_inactive"
EMPTY_NO_MATCHES = "no_matches"
EMPTY_NO_LOCATION = "no_location"


@dataclass
class DiscoveryResult:
    candidates: list[CandidateOut] = field(default_factory=list)
    total: int = 0
    limit: int = 0
    offset: int = 0
    has_more: bool = False
    empty_reason: Optional[str] = None
    stats: dict[str, Any] = field(default_factory=dict)


class DiscoveryService:
    """Candidate selection and ranking for the discovery feed.

    Parameters
    ----------
    config : DiscoveryConfig, optional
        Engine tunables.  Defaults to :class:`DiscoveryConfig` defaults.
    resolver : callable, optional
        Async media-reference resolver.  Defaults to GCS signed URLs.
    clock : callable, optional
        Returns "today" for age computation.  Defaults to ``date.today``.
    """

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        resolver: Optional[Resolver] = None,
        clock: Optional[Callable[[], date]] = None,
    ) -> None:
        self.config = config or DiscoveryConfig()
        self.resolver = resolver or resolve_url_async
        self.clock = clock or date.today

    async def discover(
        self,
        session: AsyncSession,
        requester_id: uuid.UUID,
        raw_filters: Optional[RawFilterParams] = None,
        sort: SortKey | str | None = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        origin: Optional[tuple[Optional[float], Optional[float]]] = None,
        radius_km: Optional[float] = None,
    ) -> DiscoveryResult:
        """Return one page of discoverable candidates for ``requester_id``.

        Parameters
        ----------
        session : AsyncSession
            Request-scoped session used for every read when
            ``session_factory`` is not given.
        requester_id : uuid.UUID
            Authenticated user asking for candidates.
        raw_filters : RawFilterParams, optional
            Per-request overrides; set fields win over saved filters.
        sort, limit, offset
            Ordering and page window.  Unknown sorts fall back to ``recent``
            and the window is clamped.
        session_factory : async_sessionmaker, optional
            When given, independent reads run concurrently on their own
            sessions.
        origin : (latitude, longitude), optional
            Point distances are measured from.  Falls back to the
            requester's profile location when missing or invalid.
        radius_km : float, optional
            Hard radius in kilometres.  Replaces any mile-based distance
            filter, always drops unlocated candidates, and turns a missing
            origin into the ``no_location`` empty reason.

        Returns
        -------
        DiscoveryResult
            The page, the total eligible count and, for empty feeds, why.

        Raises
        ------
        ProfileNotFound
            The requester has no profile row.
        DiscoveryQueryError
            A persistence read failed.
        """
        started = time.perf_counter()
        log = logger.bind(requester_id=str(requester_id))
        sort_key = sort if isinstance(sort, SortKey) else SortKey.parse(sort)
        page_request = PageRequest.clamp(limit, offset, self.config)
        today = self.clock()

        try:
            context, interactions, blocks, favorite_ids = await gather_reads(
                session,
                session_factory,
                lambda s: load_profile_context(s, requester_id),
                lambda s: load_interactions(s, requester_id),
                lambda s: load_blocks(s, requester_id),
                lambda s: load_favorite_ids(s, requester_id),
            )

            if not context.is_active:
                log.info("discovery_empty", reason=EMPTY_USER_INACTIVE)
                return self._empty(page_request, EMPTY_USER_INACTIVE)
            if not context.is_complete:
                log.info("discovery_empty", reason=EMPTY_INCOMPLETE_PROFILE)
                return self._empty(page_request, EMPTY_INCOMPLETE_PROFILE)

            if origin is None or not valid_coordinates(*origin):
                origin = context.coordinates
            if radius_km is not None and not valid_coordinates(*origin):
                log.info("discovery_empty", reason=EMPTY_NO_LOCATION)
                return self._empty(page_request, EMPTY_NO_LOCATION)

            overrides = normalize_filters(raw_filters, strict=self.config.strict_filter_tokens)
            filters = merge_filters(context.saved_filters, overrides)

            index = ActionIndex(interactions)
            exclusions = build_exclusion_set(
                requester_id,
                SocialGraph(interactions=tuple(interactions), blocks=tuple(blocks)),
                self.config,
                index=index,
            )

            rows = await fetch_candidates(
                session,
                context.gender,
                context.looking_for,
                exclusions.ids,
                filters,
                today,
                self.config.candidate_scan_limit,
            )
        except SQLAlchemyError as exc:
            log.exception("discovery_query_failed")
            raise DiscoveryQueryError(str(exc)) from exc

        # The exclusion set is authoritative over the query result.
        eligible = [row for row in rows if row.user_id not in exclusions]

        located = apply_distance(
            eligible,
            origin,
            filters.max_distance_miles,
            self.config,
            max_distance_km=radius_km,
            drop_unlocated=True if radius_km is not None else None,
        )
        annotated = annotate_interest(located, requester_id, index, favorite_ids)
        ordered = sort_candidates(annotated, sort_key)
        page = paginate(ordered, page_request)
        candidates = await format_candidates(page.items, self.resolver, today)

        stats = {
            "excluded": exclusions.stats,
            "query_rows": len(rows),
            "after_distance": len(located),
            "filters": filters.active(),
            "sort": sort_key.value,
            "radius_km": radius_km,
        }
        empty_reason = EMPTY_NO_MATCHES if page.total == 0 else None

        log.info(
            "discovery_complete",
            total=page.total,
            returned=len(candidates),
            offset=page.offset,
            limit=page.limit,
            empty_reason=empty_reason,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
            **stats,
        )

        return DiscoveryResult(
            candidates=candidates,
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            has_more=page.has_more,
            empty_reason=empty_reason,
            stats=stats,
        )

    async def nearby(
        self,
        session: AsyncSession,
        requester_id: uuid.UUID,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        radius_km: Optional[float] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    ) -> DiscoveryResult:
        """Distance-ordered feed within ``radius_km`` of a point.

        The point defaults to the requester's profile location and the
        radius to ``config.nearby_radius_km``.  Eligibility, exclusions and
        saved filters are those of :meth:`discover`.
        """
        if radius_km is None or not math.isfinite(radius_km) or radius_km <= 0:
            radius_km = self.config.nearby_radius_km
        return await self.discover(
            session,
            requester_id,
            sort=SortKey.DISTANCE,
            limit=limit,
            offset=offset,
            session_factory=session_factory,
            origin=(latitude, longitude),
            radius_km=radius_km,
        )

    @staticmethod
    def _empty(page_request: PageRequest, reason: str) -> DiscoveryResult:
        return DiscoveryResult(
            limit=page_request.limit,
            offset=page_request.offset,
            empty_reason=reason,
        )
