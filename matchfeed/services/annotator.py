"""
MatchFeed: Mutual-Interest Annotator

Flags candidates who already like the requester (``has_liked_me``) and
candidates the requester has favourited.  Reads the same action index as
the exclusion builder, in the opposite direction, and never removes
anything.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matchfeed.models.favorite import Favorite
from matchfeed.services.exclusion import ActionIndex


def annotate_interest(
    candidates: Iterable,
    requester_id: uuid.UUID,
    index: ActionIndex,
    favorite_ids: Iterable[uuid.UUID] = (),
) -> list:
    favorites = set(favorite_ids)
    annotated = []
    for candidate in candidates:
        candidate.has_liked_me = index.is_positive(candidate.user_id, requester_id)
        candidate.liked_me_action = (
            index.action(candidate.user_id, requester_id) if candidate.has_liked_me else None
        )
        candidate.is_favorite = candidate.user_id in favorites
        annotated.append(candidate)
    return annotated


async def load_favorite_ids(session: AsyncSession, requester_id: uuid.UUID) -> frozenset:
    stmt = select(Favorite.favorite_user_id).where(Favorite.user_id == requester_id)
    result = await session.execute(stmt)
    return frozenset(result.scalars().all())
