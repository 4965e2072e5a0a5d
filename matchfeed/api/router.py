"""
MatchFeed: Main API Router

Aggregates all sub-routers under a single prefix so that ``matchfeed.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from matchfeed.api import discover, filters

router = APIRouter()

router.include_router(discover.router, prefix="/discover", tags=["Discovery"])
router.include_router(filters.router, prefix="/filters", tags=["Filters"])
