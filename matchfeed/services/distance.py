"""
MatchFeed: Distance Evaluator

Great-circle distance on a spherical Earth (haversine), used to annotate
each candidate with ``distance_km`` and to enforce the requester's maximum
distance.  The filter compares the *displayed* (rounded) value, so no
returned card ever shows a distance above the limit.

Missing-location policy:
  * no distance filter active   -> unlocated candidates are kept;
  * distance filter active      -> unlocated candidates are dropped
    (``distance_filter_excludes_unlocated``);
  * requester has no location   -> the filter cannot be evaluated and is
    skipped.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

import structlog

from matchfeed.config import DiscoveryConfig

logger = structlog.get_logger("matchfeed.distance")

KM_PER_MILE = 1.609344


def miles_to_km(miles: float) -> float:
    return miles * KM_PER_MILE


def valid_coordinates(latitude: Optional[float], longitude: Optional[float]) -> bool:
    if latitude is None or longitude is None:
        return False
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def haversine_km(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float,
    radius_km: float = 6371.0,
) -> float:
    """Return the great-circle distance in kilometres between two points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    sin_dphi = math.sin(dphi / 2.0)
    sin_dlambda = math.sin(dlambda / 2.0)
    a = sin_dphi * sin_dphi + math.cos(phi1) * math.cos(phi2) * sin_dlambda * sin_dlambda
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return radius_km * c


def apply_distance(
    candidates: Iterable,
    origin: tuple[Optional[float], Optional[float]],
    max_distance_miles: Optional[float],
    config: DiscoveryConfig,
    max_distance_km: Optional[float] = None,
    drop_unlocated: Optional[bool] = None,
) -> list:
    """Annotate ``distance_km`` on each candidate and apply the max-distance
    filter.  Candidates are any objects exposing ``latitude``, ``longitude``
    and a writable ``distance_km``; order is preserved.

    ``max_distance_km`` takes precedence over ``max_distance_miles`` and is
    compared without unit conversion.  ``drop_unlocated`` overrides
    ``config.distance_filter_excludes_unlocated``."""
    origin_lat, origin_lon = origin
    located_origin = valid_coordinates(origin_lat, origin_lon)
    if drop_unlocated is None:
        drop_unlocated = config.distance_filter_excludes_unlocated

    limit_km = max_distance_km
    if limit_km is None and max_distance_miles is not None:
        limit_km = miles_to_km(max_distance_miles)

    max_km: Optional[float] = None
    if limit_km is not None:
        if located_origin:
            max_km = limit_km
        else:
            logger.info("distance_filter_skipped", reason="requester_unlocated")

    kept: list = []
    dropped_far = 0
    dropped_unlocated = 0

    for candidate in candidates:
        distance: Optional[float] = None
        if located_origin and valid_coordinates(candidate.latitude, candidate.longitude):
            distance = round(
                haversine_km(
                    float(origin_lat),
                    float(origin_lon),
                    float(candidate.latitude),
                    float(candidate.longitude),
                    radius_km=config.earth_radius_km,
                ),
                config.distance_decimals,
            )
        candidate.distance_km = distance

        if max_km is not None:
            if distance is None:
                if drop_unlocated:
                    dropped_unlocated += 1
                    continue
            elif distance > max_km:
                dropped_far += 1
                continue

        kept.append(candidate)

    if max_km is not None:
        logger.debug(
            "distance_filter_applied",
            max_km=round(max_km, 3),
            kept=len(kept),
            dropped_far=dropped_far,
            dropped_unlocated=dropped_unlocated,
        )
    return kept
