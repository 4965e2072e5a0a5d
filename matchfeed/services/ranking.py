"""
MatchFeed: Sorter / Paginator

Orders the filtered, annotated candidates and cuts one page.

Sort keys (all total orders, so a fixed snapshot always sorts the same way):
  * ``recent``: most recent of last activity / profile update / profile
    creation first, ties broken by user id ascending;
  * ``distance``: nearest first, unlocated last, then ``recent``;
  * ``liked_me``: super-likers, then likers, then everyone else, each
    group by ``recent``.

Pages are offset/limit; the limit is clamped to ``[1, max_page_size]``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from matchfeed.config import DiscoveryConfig
from matchfeed.models.interaction import ACTION_LIKE, ACTION_SUPER_LIKE


class SortKey(str, enum.Enum):
    RECENT = "recent"
    DISTANCE = "distance"
    LIKED_ME = "liked_me"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SortKey":
        """Unknown or missing values fall back to ``recent``."""
        if not raw:
            return cls.RECENT
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.RECENT


_LIKED_ME_RANK = {ACTION_SUPER_LIKE: 0, ACTION_LIKE: 1}


def activity_timestamp(candidate: Any) -> Optional[datetime]:
    stamps = [
        getattr(candidate.user, "last_active_at", None),
        getattr(candidate.profile, "updated_at", None),
        getattr(candidate.profile, "created_at", None),
    ]
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else None


def _recent_key(candidate: Any) -> tuple:
    stamp = activity_timestamp(candidate)
    newest_first = -stamp.timestamp() if stamp is not None else float("inf")
    return (newest_first, str(candidate.user_id))


def _distance_key(candidate: Any) -> tuple:
    distance = candidate.distance_km
    return (distance is None, distance if distance is not None else 0.0, *_recent_key(candidate))


def _liked_me_key(candidate: Any) -> tuple:
    rank = _LIKED_ME_RANK.get(candidate.liked_me_action, 2) if candidate.has_liked_me else 2
    return (rank, *_recent_key(candidate))


_SORT_KEYS: dict[SortKey, Callable[[Any], tuple]] = {
    SortKey.RECENT: _recent_key,
    SortKey.DISTANCE: _distance_key,
    SortKey.LIKED_ME: _liked_me_key,
}


def sort_candidates(candidates: Sequence[Any], sort: SortKey = SortKey.RECENT) -> list:
    return sorted(candidates, key=_SORT_KEYS[sort])


@dataclass(frozen=True)
class PageRequest:
    limit: int
    offset: int = 0

    @classmethod
    def clamp(
        cls,
        limit: Optional[int],
        offset: Optional[int],
        config: DiscoveryConfig,
    ) -> "PageRequest":
        if limit is None:
            limit = config.default_page_size
        limit = max(1, min(int(limit), config.max_page_size))
        offset = max(0, int(offset or 0))
        return cls(limit=limit, offset=offset)


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


def paginate(ordered: Sequence[Any], page: PageRequest) -> Page:
    items = list(ordered[page.offset:page.offset + page.limit])
    return Page(items=items, total=len(ordered), limit=page.limit, offset=page.offset)
