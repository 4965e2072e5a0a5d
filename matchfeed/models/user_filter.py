"""
MatchFeed: Persisted discovery filter settings (canonical units).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import ARRAY, UUID as PgUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from matchfeed.database import Base


class UserFilter(Base):
    __tablename__ = "user_filters"

    id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        PgUUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    min_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_height: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="inches"
    )
    max_height: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="inches"
    )
    max_distance_miles: Mapped[float | None] = mapped_column(Float, nullable=True)
    body_types: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    ethnicities: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    religions: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    education_levels: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    zodiac_signs: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    smoking: Mapped[str | None] = mapped_column(String, nullable=True)
    drinking: Mapped[str | None] = mapped_column(String, nullable=True)
    marijuana: Mapped[str | None] = mapped_column(String, nullable=True)
    has_kids: Mapped[str | None] = mapped_column(String, nullable=True)
    wants_kids: Mapped[str | None] = mapped_column(String, nullable=True)
    political_views: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True
    )

    user: Mapped["User"] = relationship("User", back_populates="filters")

    def __repr__(self) -> str:
        return f"<UserFilter user={self.user_id}>"
