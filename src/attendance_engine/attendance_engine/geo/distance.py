"""Great-circle distance and geofence checks.

All functions here are pure. GPS accuracy is carried along for the record
but never takes part in the inside/outside decision.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from ..core.constants import EARTH_RADIUS_METERS
from .model import GeofenceConfig, GeoPoint, LocationSnapshot


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance between two coordinates, in meters."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push h a hair outside [0, 1] for antipodal points.
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def is_within_geofence(point: GeoPoint, fence: GeofenceConfig) -> bool:
    return distance_meters(point, fence.center) <= fence.radius_meters


def evaluate_location(location: GeoPoint, fence: Optional[GeofenceConfig]) -> LocationSnapshot:
    """Build the record's location snapshot; without a fence only coordinates are kept."""
    if fence is None:
        return LocationSnapshot(
            latitude=location.latitude,
            longitude=location.longitude,
            accuracy=location.accuracy,
        )

    distance = distance_meters(location, fence.center)
    return LocationSnapshot(
        latitude=location.latitude,
        longitude=location.longitude,
        accuracy=location.accuracy,
        is_within_geofence=distance <= fence.radius_meters,
        distance_from_office_meters=int(round(distance)),
    )


def nearest_geofence(point: GeoPoint, fences: Sequence[GeofenceConfig]) -> Optional[GeofenceConfig]:
    """Pick the fence to judge a point against when several offices apply.

    The nearest fence containing the point wins; when none contains it the
    nearest fence overall is returned so the distance can be reported.
    """
    if not fences:
        return None

    ranked = sorted(fences, key=lambda f: distance_meters(point, f.center))
    for fence in ranked:
        if is_within_geofence(point, fence):
            return fence
    return ranked[0]
