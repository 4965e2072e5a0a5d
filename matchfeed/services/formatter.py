"""
MatchFeed: Result Formatter

Projects annotated candidates into :class:`CandidateOut`.  Every media
reference (profile image plus each gallery photo) gets its own resolution
call; all calls for the page are issued together and joined.  Order and
membership of the page are never changed here.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Awaitable, Callable, Optional, Sequence

from matchfeed.schemas.discovery import CandidateOut
from matchfeed.services.candidate_query import calculate_age

Resolver = Callable[[Optional[str]], Awaitable[Optional[str]]]


def _media_references(profile: Any) -> list[Optional[str]]:
    photos = profile.photos or []
    if not isinstance(photos, list):
        photos = []
    return [profile.profile_image_url, *[p for p in photos if isinstance(p, str)]]


def _project(candidate: Any, today: date, image_url: Optional[str], photo_urls: list[str]) -> CandidateOut:
    profile = candidate.profile
    user = candidate.user
    display_name = (getattr(user, "display_name", None) or profile.first_name or "")

    return CandidateOut(
        id=profile.user_id,
        display_name=display_name,
        first_name=profile.first_name or "",
        age=calculate_age(profile.date_of_birth, today),
        gender=profile.gender or "",
        city=profile.city or "",
        state=profile.state or "",
        bio=profile.bio or "",
        height_inches=profile.height_inches,
        body_type=profile.body_type or "",
        ethnicity=list(profile.ethnicity or []),
        religion=profile.religion or "",
        education=profile.education or "",
        zodiac_sign=profile.zodiac_sign or "",
        interests=list(profile.interests or []),
        is_verified=bool(profile.is_verified),
        image_url=image_url,
        photo_urls=photo_urls,
        distance_in_km=candidate.distance_km,
        has_liked_me=bool(candidate.has_liked_me),
        is_favorite=bool(candidate.is_favorite),
    )


async def format_candidates(
    candidates: Sequence[Any],
    resolver: Resolver,
    today: date,
) -> list[CandidateOut]:
    references = [_media_references(c.profile) for c in candidates]
    flat = [ref for refs in references for ref in refs]

    resolved = await asyncio.gather(*(resolver(ref) for ref in flat))

    out: list[CandidateOut] = []
    cursor = 0
    for candidate, refs in zip(candidates, references):
        urls = resolved[cursor:cursor + len(refs)]
        cursor += len(refs)
        image_url = urls[0]
        photo_urls = [u for u in urls[1:] if u]
        out.append(_project(candidate, today, image_url, photo_urls))
    return out
