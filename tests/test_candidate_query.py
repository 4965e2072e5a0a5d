"""Tests for the eligibility query, verified by compiling it for PostgreSQL."""
import uuid
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from matchfeed.services.candidate_query import (
    HAS_KIDS_YES_VALUES,
    build_candidate_query,
    calculate_age,
    fetch_candidates,
    years_before,
)
from matchfeed.schemas.filters import RawFilterParams
from matchfeed.services.filter_normalizer import DiscoveryFilters, normalize_filters

from conftest import TODAY, make_profile, make_user


def compile_query(filters=None, excluded=(), looking_for=("male",), gender="female", scan_limit=2000):
    stmt = build_candidate_query(
        gender, looking_for, excluded, filters or DiscoveryFilters(), TODAY, scan_limit
    )
    compiled = stmt.compile(dialect=postgresql.dialect())
    return str(compiled), list(compiled.params.values())


class TestAgeHelpers:

    def test_calculate_age_before_and_after_birthday(self):
        assert calculate_age(date(1996, 10, 19), TODAY) == 30
        assert calculate_age(date(1996, 10, 20), TODAY) == 29
        assert calculate_age(None, TODAY) is None

    def test_years_before_leap_day(self):
        assert years_before(date(2024, 2, 29), 1) == date(2023, 2, 28)
        assert years_before(TODAY, 25) == date(2001, 10, 19)

    @pytest.mark.parametrize("years", [2026, 5000, 10**6, -10**6])
    def test_years_before_never_raises(self, years):
        shifted = years_before(TODAY, years)
        assert date.min <= shifted <= date.max
        assert (shifted.month, shifted.day) == (10, 19)

    def test_years_before_leap_day_at_the_floor(self):
        assert years_before(date(2024, 2, 29), 5000) == date(1, 2, 28)


class TestBaseEligibility:

    def test_visibility_and_status(self):
        sql, params = compile_query()
        assert "users.status = " in sql
        assert "active" in params
        assert "profiles.profile_hidden IS false" in sql
        assert "profiles.can_start_matching IS true" in sql

    def test_bidirectional_gender(self):
        sql, params = compile_query(looking_for={"male", "non-binary"}, gender="female")
        assert "profiles.gender IN" in sql
        assert "profiles.looking_for @>" in sql
        assert ["male", "non-binary"] in params
        assert ["female"] in params

    def test_exclusions(self):
        excluded = [uuid.uuid4(), uuid.uuid4()]
        sql, params = compile_query(excluded=excluded)
        assert "NOT IN" in sql
        assert sorted(excluded, key=str) in params

    def test_no_exclusion_clause_when_empty(self):
        sql, _ = compile_query(excluded=())
        assert "NOT IN" not in sql

    def test_deterministic_order_and_cap(self):
        sql, params = compile_query(scan_limit=123)
        assert (
            "ORDER BY greatest(users.last_active_at, profiles.updated_at, profiles.created_at) "
            "DESC NULLS LAST, profiles.user_id ASC"
        ) in sql
        assert "LIMIT" in sql
        assert 123 in params


class TestFilterPredicates:

    def test_unset_filters_add_nothing(self):
        sql, _ = compile_query()
        for column in ("date_of_birth", "height_inches", "body_type", "smoking", "ethnicity"):
            assert f"profiles.{column}" not in sql.split("WHERE", 1)[1].split("ORDER BY")[0]

    def test_age_bounds(self):
        sql, params = compile_query(DiscoveryFilters(min_age=25, max_age=35))
        assert "profiles.date_of_birth <=" in sql
        assert "profiles.date_of_birth >" in sql
        assert date(2001, 10, 19) in params
        assert date(1990, 10, 19) in params

    @pytest.mark.parametrize("field,value", [
        ("min_age", "5000"),
        ("max_age", "2026"),
        ("min_age", "1e6"),
        ("min_height", "1e9"),
    ])
    def test_extreme_request_values_add_no_predicate(self, field, value):
        filters = normalize_filters(RawFilterParams(**{field: value}))
        sql, _ = compile_query(filters)
        where = sql.split("WHERE", 1)[1].split("ORDER BY")[0]
        assert "profiles.date_of_birth" not in where
        assert "profiles.height_inches" not in where

    def test_height_bounds(self):
        sql, params = compile_query(DiscoveryFilters(min_height_inches=60, max_height_inches=72))
        assert "profiles.height_inches >=" in sql
        assert "profiles.height_inches <=" in sql
        assert 60 in params and 72 in params

    def test_set_membership(self):
        filters = DiscoveryFilters(
            body_types=frozenset({"slim", "athletic"}),
            religions=frozenset({"buddhist"}),
            ethnicities=frozenset({"asian", "mixed"}),
        )
        sql, params = compile_query(filters)
        assert "profiles.body_type IN" in sql
        assert "profiles.religion IN" in sql
        assert "profiles.ethnicity &&" in sql
        assert ["athletic", "slim"] in params
        assert ["asian", "mixed"] in params

    def test_scalar_equality(self):
        sql, params = compile_query(DiscoveryFilters(smoking="no", drinking="social"))
        assert "profiles.smoking =" in sql
        assert "profiles.drinking =" in sql
        assert "social" in params

    def test_has_kids_yes_matches_every_yes_variant(self):
        sql, params = compile_query(DiscoveryFilters(has_kids="yes"))
        assert "profiles.has_kids IN" in sql
        assert any(
            list(value) == list(HAS_KIDS_YES_VALUES)
            for value in params
            if isinstance(value, (list, tuple))
        )


class TestFetchCandidates:

    @pytest.mark.asyncio
    async def test_wraps_rows(self):
        profile = make_profile()
        user = make_user(profile.user_id)
        result = MagicMock()
        result.all.return_value = [(profile, user)]
        session = MagicMock()
        session.execute = AsyncMock(return_value=result)

        rows = await fetch_candidates(
            session, "female", {"male"}, set(), DiscoveryFilters(), TODAY, 10
        )

        assert len(rows) == 1
        assert rows[0].user_id == profile.user_id
        assert rows[0].distance_km is None
        assert rows[0].has_liked_me is False
        session.execute.assert_awaited_once()
