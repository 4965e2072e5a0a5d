"""Initial schema: MatchFeed discovery tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_fk(name: str, **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        **kwargs,
    )


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ── 1. users ────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("display_name", sa.String, nullable=True),
        sa.Column(
            "status",
            sa.String,
            server_default="active",
            nullable=False,
            comment="active / suspended / deleted",
        ),
        sa.Column("role", sa.String, server_default="user", nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── 2. sessions (bearer tokens, sha256 only) ────────────────────
    op.create_table(
        "sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id"),
        sa.Column("token_hash", sa.String(64), unique=True, index=True, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked", sa.Boolean, server_default="false", nullable=False),
        _created_at(),
    )

    # ── 3. profiles ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id", unique=True),
        sa.Column("first_name", sa.String, nullable=True),
        sa.Column("last_name", sa.String, nullable=True),
        sa.Column("gender", sa.String, nullable=True),
        sa.Column(
            "looking_for",
            postgresql.ARRAY(sa.String),
            nullable=True,
            comment="Accepted genders",
        ),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("city", sa.String, nullable=True),
        sa.Column("state", sa.String, nullable=True),
        sa.Column("height_inches", sa.Integer, nullable=True),
        sa.Column("body_type", sa.String, nullable=True),
        sa.Column("ethnicity", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("religion", sa.String, nullable=True),
        sa.Column("education", sa.String, nullable=True),
        sa.Column("smoking", sa.String, nullable=True),
        sa.Column("drinking", sa.String, nullable=True),
        sa.Column("marijuana", sa.String, nullable=True),
        sa.Column("has_kids", sa.String, nullable=True),
        sa.Column("wants_kids", sa.String, nullable=True),
        sa.Column("political_views", sa.String, nullable=True),
        sa.Column("zodiac_sign", sa.String, nullable=True),
        sa.Column("interests", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("bio", sa.Text, nullable=True),
        sa.Column("profile_image_url", sa.String, nullable=True),
        sa.Column(
            "photos",
            postgresql.JSONB,
            nullable=True,
            comment="Array of storage references",
        ),
        sa.Column("is_verified", sa.Boolean, server_default="false", nullable=False),
        sa.Column("profile_hidden", sa.Boolean, server_default="false", nullable=False),
        sa.Column("can_start_matching", sa.Boolean, server_default="false", nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_profiles_gender", "profiles", ["gender"])
    op.create_index("ix_profiles_updated_at", "profiles", ["updated_at"])

    # ── 4. matches (one row per ordered actor → target pair) ────────
    op.create_table(
        "matches",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id"),
        _uuid_fk("target_user_id"),
        sa.Column(
            "action",
            sa.String,
            nullable=False,
            comment="like / super_like / pass",
        ),
        sa.Column("is_unmatched", sa.Boolean, server_default="false", nullable=False),
        _created_at(),
        sa.UniqueConstraint("user_id", "target_user_id", name="uq_interaction_pair"),
    )
    op.create_index("ix_matches_target_user_id", "matches", ["target_user_id"])

    # ── 5. blocks ───────────────────────────────────────────────────
    op.create_table(
        "blocks",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("blocker_id"),
        _uuid_fk("blocked_id"),
        _created_at(),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_block_pair"),
    )
    op.create_index("ix_blocks_blocked_id", "blocks", ["blocked_id"])

    # ── 6. favorites ────────────────────────────────────────────────
    op.create_table(
        "favorites",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id"),
        _uuid_fk("favorite_user_id"),
        _created_at(),
        sa.UniqueConstraint("user_id", "favorite_user_id", name="uq_favorite_pair"),
    )

    # ── 7. user_filters (canonical units: inches, miles) ────────────
    op.create_table(
        "user_filters",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _uuid_fk("user_id", unique=True),
        sa.Column("min_age", sa.Integer, nullable=True),
        sa.Column("max_age", sa.Integer, nullable=True),
        sa.Column("min_height", sa.Integer, nullable=True, comment="inches"),
        sa.Column("max_height", sa.Integer, nullable=True, comment="inches"),
        sa.Column("max_distance_miles", sa.Float, nullable=True),
        sa.Column("body_types", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("ethnicities", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("religions", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("education_levels", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("zodiac_signs", postgresql.ARRAY(sa.String), nullable=True),
        sa.Column("smoking", sa.String, nullable=True),
        sa.Column("drinking", sa.String, nullable=True),
        sa.Column("marijuana", sa.String, nullable=True),
        sa.Column("has_kids", sa.String, nullable=True),
        sa.Column("wants_kids", sa.String, nullable=True),
        sa.Column("political_views", sa.String, nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=True,
        ),
    )


def downgrade() -> None:
    # Drop in reverse order (children / dependents first).
    op.drop_table("user_filters")
    op.drop_table("favorites")

    op.drop_index("ix_blocks_blocked_id", table_name="blocks")
    op.drop_table("blocks")

    op.drop_index("ix_matches_target_user_id", table_name="matches")
    op.drop_table("matches")

    op.drop_index("ix_profiles_updated_at", table_name="profiles")
    op.drop_index("ix_profiles_gender", table_name="profiles")
    op.drop_table("profiles")

    op.drop_table("sessions")
    op.drop_table("users")
