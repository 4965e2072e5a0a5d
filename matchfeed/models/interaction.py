"""
MatchFeed: Interaction model (directional like / super_like / pass).

Stored in the ``matches`` table.  A mutual match is never stored; it is
derived from two reciprocal positive rows by
``matchfeed.services.exclusion.is_mutual``.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column

from matchfeed.database import Base

ACTION_LIKE = "like"
ACTION_SUPER_LIKE = "super_like"
ACTION_PASS = "pass"

POSITIVE_ACTIONS: frozenset[str] = frozenset({ACTION_LIKE, ACTION_SUPER_LIKE})


class Interaction(Base):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("user_id", "target_user_id", name="uq_interaction_pair"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    target_user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    action: Mapped[str] = mapped_column(
        String, nullable=False, comment="like / super_like / pass"
    )
    is_unmatched: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Interaction {self.user_id} -> {self.target_user_id} "
            f"action={self.action!r} unmatched={self.is_unmatched}>"
        )
