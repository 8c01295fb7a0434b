from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import PolicyLookupError
from ..employees.model import EmployeeProfile
from ..geo.model import GeofenceConfig, GeoPoint
from ..penalties.model import PenaltyPolicy
from ..schedules.model import WorkSchedulePolicy
from ..schedules.repository import ScheduleRepository
from .repository import GeofenceRepository, PenaltyPolicyRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedPolicies:
    schedule: WorkSchedulePolicy
    geofence: Optional[GeofenceConfig]
    penalty_policies: tuple[PenaltyPolicy, ...]


class PolicyStore:
    """Resolves the schedule, geofence and penalty configuration for an employee.

    A missing schedule fails closed with ``PolicyLookupError``; a missing
    geofence simply means no location enforcement.
    """

    def __init__(
        self,
        schedules: ScheduleRepository,
        geofences: GeofenceRepository,
        penalties: PenaltyPolicyRepository,
    ):
        self._schedules = schedules
        self._geofences = geofences
        self._penalties = penalties

    def schedule_for(self, profile: EmployeeProfile) -> WorkSchedulePolicy:
        schedule = self._schedules.get_employee_schedule_snapshot(profile.employee_id)
        if schedule is None:
            logger.warning("no work schedule configured for employee %s", profile.employee_id)
            raise PolicyLookupError(f"No work schedule configured for employee {profile.employee_id}")
        return schedule

    def geofence_for(self, profile: EmployeeProfile, *, near: Optional[GeoPoint] = None) -> Optional[GeofenceConfig]:
        return self._geofences.get_active_geofence(
            profile.tenant_id, profile.department_id, profile.employment_type, near=near
        )

    def penalty_policies_for(self, profile: EmployeeProfile) -> tuple[PenaltyPolicy, ...]:
        policies = self._penalties.get_penalty_policies(profile.tenant_id)
        if policies is None:
            raise PolicyLookupError(f"Penalty policies unavailable for tenant {profile.tenant_id}")
        return tuple(policies)

    def resolve(self, profile: EmployeeProfile, *, near: Optional[GeoPoint] = None) -> ResolvedPolicies:
        return ResolvedPolicies(
            schedule=self.schedule_for(profile),
            geofence=self.geofence_for(profile, near=near),
            penalty_policies=self.penalty_policies_for(profile),
        )
