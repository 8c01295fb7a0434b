from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import PenaltyType
from ..geo.model import GeofenceConfig, GeoPoint
from ..penalties.model import PenaltyPolicy


class GeofenceRepository(Protocol):
    def get_active_geofence(
        self,
        tenant_id: str,
        department_id: Optional[str],
        employment_type: Optional[str],
        near: Optional[GeoPoint] = None,
    ) -> Optional[GeofenceConfig]:
        """None means no geofence is enforced for this employee.

        ``near`` is the clock event location, used to pick between offices.
        """

        raise NotImplementedError


class PenaltyPolicyRepository(Protocol):
    def get_penalty_policies(self, tenant_id: str) -> Sequence[PenaltyPolicy]:
        raise NotImplementedError


class OccurrenceCounter(Protocol):
    def count_prior_occurrences(
        self,
        employee_id: str,
        penalty_type: PenaltyType,
        period_start: date,
        period_end: date,
    ) -> int:
        """Violations of ``penalty_type`` recorded for the employee in the inclusive period."""

        raise NotImplementedError

    def sum_prior_penalties(
        self,
        employee_id: str,
        policy_id: str,
        period_start: date,
        period_end: date,
    ) -> float:
        """Total already charged to the employee under ``policy_id`` in the inclusive period."""

        raise NotImplementedError
