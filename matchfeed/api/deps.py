"""
MatchFeed: Shared API dependencies (authentication, service singletons).
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matchfeed.config import get_settings
from matchfeed.database import get_db
from matchfeed.errors import Unauthenticated
from matchfeed.models.user import USER_STATUS_DELETED, User, UserSession
from matchfeed.services.discovery_service import DiscoveryService

logger = structlog.get_logger("matchfeed.api.auth")


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def get_current_user_id(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> uuid.UUID:
    """Resolve the bearer token to a user id or raise ``Unauthenticated``."""
    token = _bearer_token(authorization)
    if token is None:
        raise Unauthenticated("Missing bearer token")

    stmt = (
        select(UserSession.user_id)
        .join(User, User.id == UserSession.user_id)
        .where(UserSession.token_hash == hash_token(token))
        .where(UserSession.revoked.is_(False))
        .where(UserSession.expires_at > datetime.now(timezone.utc))
        .where(User.status != USER_STATUS_DELETED)
    )
    result = await db.execute(stmt)
    user_id = result.scalar_one_or_none()

    if user_id is None:
        logger.info("auth_rejected", reason="unknown_or_expired_session")
        raise Unauthenticated("Invalid or expired session")
    return user_id


# ── Service singletons ────────────────────────────────────────────────────────

_discovery_service: DiscoveryService | None = None


def get_discovery_service() -> DiscoveryService:
    global _discovery_service
    if _discovery_service is None:
        _discovery_service = DiscoveryService(config=get_settings().discovery_config())
    return _discovery_service
