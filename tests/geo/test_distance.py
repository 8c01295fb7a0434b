from __future__ import annotations

import math

import pytest

from src.attendance_engine.attendance_engine.core.constants import EARTH_RADIUS_METERS
from src.attendance_engine.attendance_engine.geo.distance import (
    distance_meters,
    evaluate_location,
    is_within_geofence,
    nearest_geofence,
)
from src.attendance_engine.attendance_engine.geo.model import GeofenceConfig, GeoPoint

OFFICE = GeoPoint(13.7563, 100.5018)


def _fence(radius: float, center: GeoPoint = OFFICE, fence_id: str = "hq") -> GeofenceConfig:
    return GeofenceConfig(geofence_id=fence_id, name=fence_id, center=center, radius_meters=radius)


def test_distance_is_symmetric_and_zero_for_same_point():
    other = GeoPoint(13.8, 100.6)

    assert distance_meters(OFFICE, other) == pytest.approx(distance_meters(other, OFFICE))
    assert distance_meters(OFFICE, OFFICE) == 0


def test_one_degree_of_latitude_is_about_111_km():
    d = distance_meters(GeoPoint(0, 0), GeoPoint(1, 0))

    assert d == pytest.approx(111_195, rel=1e-3)


def test_antipodal_points_are_half_the_circumference_apart():
    d = distance_meters(GeoPoint(0, 0), GeoPoint(0, 180))

    assert d == pytest.approx(math.pi * EARTH_RADIUS_METERS)


def test_zero_radius_only_contains_exact_center():
    fence = _fence(0)

    assert is_within_geofence(OFFICE, fence) is True
    assert is_within_geofence(GeoPoint(13.7564, 100.5018), fence) is False


def test_growing_the_radius_never_excludes_a_point():
    point = GeoPoint(13.76, 100.505)
    results = [is_within_geofence(point, _fence(r)) for r in (10, 100, 500, 1_000, 5_000)]

    # Once inside, always inside.
    first_inside = results.index(True)
    assert all(results[first_inside:])


def test_accuracy_does_not_affect_the_decision():
    near = GeoPoint(13.7563, 100.5028)
    fence = _fence(200)

    assert is_within_geofence(near, fence) == is_within_geofence(GeoPoint(13.7563, 100.5028, accuracy=5_000), fence)


def test_evaluate_location_rounds_distance_and_flags_outside():
    far = GeoPoint(13.8913, 100.5018, accuracy=12.5)

    snapshot = evaluate_location(far, _fence(500))

    assert snapshot.is_within_geofence is False
    assert isinstance(snapshot.distance_from_office_meters, int)
    assert 14_900 < snapshot.distance_from_office_meters < 15_100
    assert snapshot.accuracy == 12.5


def test_evaluate_location_without_fence_keeps_only_coordinates():
    snapshot = evaluate_location(OFFICE, None)

    assert snapshot.is_within_geofence is None
    assert snapshot.distance_from_office_meters is None
    assert snapshot.point == OFFICE


def test_nearest_geofence_prefers_a_containing_fence():
    branch = _fence(10, GeoPoint(13.7575, 100.5018), "branch")
    hq = _fence(1_000, OFFICE, "hq")
    point = GeoPoint(13.7570, 100.5018)

    assert nearest_geofence(point, [branch, hq]).geofence_id == "hq"


def test_nearest_geofence_falls_back_to_closest_when_outside_all():
    a = _fence(10, GeoPoint(13.0, 100.0), "a")
    b = _fence(10, GeoPoint(14.0, 100.0), "b")

    assert nearest_geofence(GeoPoint(13.9, 100.0), [a, b]).geofence_id == "b"
    assert nearest_geofence(OFFICE, []) is None
