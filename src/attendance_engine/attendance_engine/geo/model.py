from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@dataclass(frozen=True)
class GeofenceConfig:
    """Circular office boundary used to validate where a clock event happened.

    Empty ``allowed_departments`` / ``allowed_employment_types`` mean the fence
    applies to everyone.
    """

    geofence_id: str
    name: str
    center: GeoPoint
    radius_meters: float
    is_active: bool = True
    enforce_for_clock_in: bool = True
    enforce_for_clock_out: bool = False
    allowed_departments: tuple[str, ...] = ()
    allowed_employment_types: tuple[str, ...] = ()
    tenant_id: str = "default"
    address: Optional[str] = None


@dataclass(frozen=True)
class LocationSnapshot:
    """Location stored on the attendance record for a clock event."""

    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    is_within_geofence: Optional[bool] = None
    distance_from_office_meters: Optional[int] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude, self.accuracy)
