"""Unit tests for sorting and pagination."""
import uuid
from dataclasses import replace
from datetime import timedelta

import pytest

from matchfeed.services.ranking import (
    PageRequest,
    SortKey,
    activity_timestamp,
    paginate,
    sort_candidates,
)

from conftest import NOW, make_candidate, make_profile, make_user


def candidate(updated_days_ago=1, last_active=None, distance=None, user_id=None, **attrs):
    profile = make_profile(user_id or uuid.uuid4(), updated_at=NOW - timedelta(days=updated_days_ago))
    user = make_user(profile.user_id, last_active_at=last_active)
    return make_candidate(profile, user, distance_km=distance, **attrs)


class TestSortKeyParse:

    @pytest.mark.parametrize("raw,expected", [
        (None, SortKey.RECENT),
        ("", SortKey.RECENT),
        ("distance", SortKey.DISTANCE),
        (" Liked_Me ", SortKey.LIKED_ME),
        ("random", SortKey.RECENT),
    ])
    def test_parse(self, raw, expected):
        assert SortKey.parse(raw) is expected


class TestSorting:

    def test_activity_uses_latest_timestamp(self):
        c = candidate(updated_days_ago=5, last_active=NOW)
        assert activity_timestamp(c) == NOW

    def test_recent_newest_first(self):
        old, new, mid = candidate(10), candidate(1), candidate(5)
        assert sort_candidates([old, new, mid]) == [new, mid, old]

    def test_recent_ties_broken_by_user_id(self):
        a = candidate(1, user_id=uuid.UUID(int=1))
        b = candidate(1, user_id=uuid.UUID(int=2))
        assert sort_candidates([b, a]) == [a, b]

    def test_distance_nearest_first_unlocated_last(self):
        far, near, unknown = candidate(distance=40.0), candidate(distance=3.2), candidate()
        ordered = sort_candidates([unknown, far, near], SortKey.DISTANCE)
        assert ordered == [near, far, unknown]

    def test_liked_me_groups(self):
        plain = candidate(1)
        liker = candidate(3, has_liked_me=True, liked_me_action="like")
        super_liker = candidate(9, has_liked_me=True, liked_me_action="super_like")
        ordered = sort_candidates([plain, liker, super_liker], SortKey.LIKED_ME)
        assert ordered == [super_liker, liker, plain]

    def test_sort_is_deterministic(self):
        pool = [candidate(i % 3) for i in range(20)]
        assert sort_candidates(pool) == sort_candidates(list(reversed(pool)))


class TestPagination:

    def test_clamp_defaults(self, config):
        page = PageRequest.clamp(None, None, config)
        assert page == PageRequest(limit=config.default_page_size, offset=0)

    @pytest.mark.parametrize("limit,expected", [(0, 1), (-5, 1), (10, 10), (10_000, 100)])
    def test_clamp_limit(self, config, limit, expected):
        assert PageRequest.clamp(limit, 0, config).limit == expected

    def test_negative_offset(self, config):
        assert PageRequest.clamp(10, -3, config).offset == 0

    def test_overridden_limits(self, config):
        small = replace(config, default_page_size=2, max_page_size=3)
        assert PageRequest.clamp(None, 0, small).limit == 2
        assert PageRequest.clamp(50, 0, small).limit == 3

    def test_pages_partition_the_list(self):
        items = list(range(7))
        seen = []
        offset = 0
        while True:
            page = paginate(items, PageRequest(limit=3, offset=offset))
            seen.extend(page.items)
            if not page.has_more:
                break
            offset += page.limit
        assert seen == items

    def test_offset_past_end(self):
        page = paginate([1, 2], PageRequest(limit=5, offset=10))
        assert page.items == []
        assert page.total == 2
        assert page.has_more is False
