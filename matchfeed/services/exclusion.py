"""
MatchFeed: Exclusion Set Builder

Computes the ids a requester must never see in discovery:

  1. the requester themself;
  2. anyone blocked by, or blocking, the requester;
  3. every target of the requester's active like / super_like / pass;
  4. every mutual match (those move to the conversation list);
  5. optionally, users who passed on the requester and users with unmatch
     history in either direction.

Blocks are read fresh on every request (read-after-write); nothing here is
cached.  Interaction resolution and the mutual-match rule live in this
module only, and the annotator reuses them.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from matchfeed.config import DiscoveryConfig
from matchfeed.models.block import Block
from matchfeed.models.interaction import ACTION_PASS, POSITIVE_ACTIONS, Interaction

logger = structlog.get_logger("matchfeed.exclusion")

Pair = tuple[Any, Any]


def _recency(record: Any) -> tuple:
    return (record.created_at is not None, record.created_at)


class ActionIndex:
    """Latest *active* (non-unmatched) action per ordered ``(actor, target)``.

    The persistence layer already guarantees one row per ordered pair; if
    duplicates do slip through, the most recent one supersedes the rest.
    """

    def __init__(self, interactions: Iterable[Any]) -> None:
        latest: dict[Pair, Any] = {}
        for record in interactions:
            if record.is_unmatched:
                continue
            key = (record.user_id, record.target_user_id)
            current = latest.get(key)
            if current is None or _recency(record) >= _recency(current):
                latest[key] = record
        self._actions: dict[Pair, str] = {k: r.action for k, r in latest.items()}

    def action(self, actor: Any, target: Any) -> Optional[str]:
        return self._actions.get((actor, target))

    def is_positive(self, actor: Any, target: Any) -> bool:
        return self.action(actor, target) in POSITIVE_ACTIONS

    def targets_of(self, actor: Any) -> set:
        return {t for (a, t) in self._actions if a == actor}

    def actors_towards(self, target: Any) -> set:
        return {a for (a, t) in self._actions if t == target}

    def as_mapping(self) -> Mapping[Pair, str]:
        return dict(self._actions)


def is_mutual(a: Any, b: Any, interactions: "ActionIndex | Iterable[Any]") -> bool:
    """True iff a and b each hold an active like / super_like on the other."""
    index = interactions if isinstance(interactions, ActionIndex) else ActionIndex(interactions)
    return index.is_positive(a, b) and index.is_positive(b, a)


@dataclass(frozen=True)
class SocialGraph:
    """Every block and interaction row touching one requester."""

    interactions: tuple = ()
    blocks: tuple = ()


@dataclass(frozen=True)
class ExclusionSet:
    ids: frozenset
    stats: dict[str, int] = field(default_factory=dict)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


# ──────────────────────────────────────────────────────────────────────────────
# Pure builder
# ──────────────────────────────────────────────────────────────────────────────

def build_exclusion_set(
    requester_id: uuid.UUID,
    graph: SocialGraph,
    config: DiscoveryConfig,
    index: Optional[ActionIndex] = None,
) -> ExclusionSet:
    index = index or ActionIndex(graph.interactions)

    blocked: set = set()
    for block in graph.blocks:
        if block.blocker_id == requester_id:
            blocked.add(block.blocked_id)
        elif block.blocked_id == requester_id:
            blocked.add(block.blocker_id)

    decided = index.targets_of(requester_id)

    mutual = {
        other for other in index.actors_towards(requester_id)
        if is_mutual(requester_id, other, index)
    }

    passed_on_me: set = set()
    if config.exclude_users_who_passed_me:
        passed_on_me = {
            other for other in index.actors_towards(requester_id)
            if index.action(other, requester_id) == ACTION_PASS
        }

    unmatched: set = set()
    if config.exclude_unmatched_history:
        for record in graph.interactions:
            if not record.is_unmatched:
                continue
            if record.user_id == requester_id:
                unmatched.add(record.target_user_id)
            elif record.target_user_id == requester_id:
                unmatched.add(record.user_id)

    ids = frozenset({requester_id} | blocked | decided | mutual | passed_on_me | unmatched)
    ids = frozenset(i for i in ids if i is not None)

    stats = {
        "blocked": len(blocked),
        "decided": len(decided),
        "mutual": len(mutual),
        "passed_on_me": len(passed_on_me),
        "unmatched": len(unmatched),
        "total": len(ids),
    }
    return ExclusionSet(ids=ids, stats=stats)


# ──────────────────────────────────────────────────────────────────────────────
# Persistence reads
# ──────────────────────────────────────────────────────────────────────────────

async def load_interactions(session: AsyncSession, requester_id: uuid.UUID) -> tuple:
    stmt = select(Interaction).where(
        or_(
            Interaction.user_id == requester_id,
            Interaction.target_user_id == requester_id,
        )
    )
    result = await session.execute(stmt)
    return tuple(result.scalars().all())


async def load_blocks(session: AsyncSession, requester_id: uuid.UUID) -> tuple:
    stmt = select(Block).where(
        or_(Block.blocker_id == requester_id, Block.blocked_id == requester_id)
    )
    result = await session.execute(stmt)
    return tuple(result.scalars().all())
