"""
MatchFeed: Profile model (one-to-one with User, read-only to discovery).
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from matchfeed.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)

    # ── Matching attributes ───────────────────────────────────────
    gender: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    looking_for: Mapped[list[str] | None] = mapped_column(
        ARRAY(String), nullable=True, comment="Accepted genders"
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    height_inches: Mapped[int | None] = mapped_column(Integer, nullable=True)
    body_type: Mapped[str | None] = mapped_column(String, nullable=True)
    ethnicity: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    religion: Mapped[str | None] = mapped_column(String, nullable=True)
    education: Mapped[str | None] = mapped_column(String, nullable=True)
    smoking: Mapped[str | None] = mapped_column(String, nullable=True)
    drinking: Mapped[str | None] = mapped_column(String, nullable=True)
    marijuana: Mapped[str | None] = mapped_column(String, nullable=True)
    has_kids: Mapped[str | None] = mapped_column(String, nullable=True)
    wants_kids: Mapped[str | None] = mapped_column(String, nullable=True)
    political_views: Mapped[str | None] = mapped_column(String, nullable=True)
    zodiac_sign: Mapped[str | None] = mapped_column(String, nullable=True)
    interests: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Media (storage references, resolved at read time) ─────────
    profile_image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    photos: Mapped[list | None] = mapped_column(
        JSONB, nullable=True, comment="Array of storage references"
    )

    # ── Visibility ────────────────────────────────────────────────
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    profile_hidden: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    can_start_matching: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), index=True, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="profile")

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} gender={self.gender!r}>"
