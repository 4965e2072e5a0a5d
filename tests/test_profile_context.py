"""Tests for requester context loading and the read fan-out helper."""
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from matchfeed.errors import ProfileNotFound
from matchfeed.services.profile_context import build_profile_context, load_profile_context
from matchfeed.utils.reads import gather_reads

from conftest import NYC, make_profile, make_saved_filters, make_user


def _result(one=None, scalar=None):
    result = MagicMock()
    result.one_or_none.return_value = one
    result.scalar_one_or_none.return_value = scalar
    return result


class TestBuildProfileContext:

    def test_normalises_gender_tokens(self):
        profile = make_profile(gender=" Female ", looking_for=["Male", "Non-Binary", " "])
        context = build_profile_context(profile, make_user(profile.user_id))
        assert context.gender == "female"
        assert context.looking_for == frozenset({"male", "non-binary"})
        assert context.is_complete

    def test_incomplete_and_inactive(self):
        profile = make_profile(gender="female", looking_for=[])
        context = build_profile_context(profile, make_user(profile.user_id, status="Suspended"))
        assert not context.is_complete
        assert not context.is_active

    def test_saved_filters_attached(self):
        profile = make_profile(latitude=NYC[0], longitude=NYC[1])
        saved = make_saved_filters(profile.user_id, max_age=40)
        context = build_profile_context(profile, make_user(profile.user_id), saved)
        assert context.coordinates == NYC
        assert context.saved_filters.max_age == 40


class TestLoadProfileContext:

    @pytest.mark.asyncio
    async def test_loads_profile_and_saved_filters(self):
        profile = make_profile(gender="female", looking_for=["male"])
        user = make_user(profile.user_id)
        session = MagicMock()
        session.execute = AsyncMock(side_effect=[
            _result(one=(profile, user)),
            _result(scalar=make_saved_filters(profile.user_id, smoking="no")),
        ])

        context = await load_profile_context(session, profile.user_id)

        assert context.user_id == profile.user_id
        assert context.saved_filters.smoking == "no"
        assert session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_profile_raises(self):
        session = MagicMock()
        session.execute = AsyncMock(side_effect=[_result(one=None), _result(scalar=None)])
        with pytest.raises(ProfileNotFound):
            await load_profile_context(session, uuid.uuid4())


class TestGatherReads:

    @pytest.mark.asyncio
    async def test_sequential_on_shared_session(self):
        session = object()
        seen = []

        async def read(s):
            seen.append(s)
            return len(seen)

        assert await gather_reads(session, None, read, read, read) == [1, 2, 3]
        assert all(s is session for s in seen)
