from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from ..core.enums import PenaltyType
from ..employees.model import EmployeeProfile
from ..geo.distance import nearest_geofence
from ..geo.model import GeofenceConfig, GeoPoint
from ..penalties.model import PenaltyPolicy


def _in_scope(allowed: tuple[str, ...], value: Optional[str]) -> bool:
    # Empty scope list means "everyone".
    if not allowed:
        return True
    return value is not None and value in allowed


def geofence_applies(fence: GeofenceConfig, *, department_id: Optional[str], employment_type: Optional[str]) -> bool:
    return (
        fence.is_active
        and _in_scope(fence.allowed_departments, department_id)
        and _in_scope(fence.allowed_employment_types, employment_type)
    )


def select_geofence(
    fences: Iterable[GeofenceConfig],
    *,
    department_id: Optional[str],
    employment_type: Optional[str],
    near: Optional[GeoPoint] = None,
) -> Optional[GeofenceConfig]:
    """Pick the geofence enforced for an employee.

    A fence scoped to the employee's department beats a tenant-wide one.
    With several candidate offices and a known location the nearest one is
    used; otherwise the first in storage order wins.
    """

    applicable = [
        f for f in fences if geofence_applies(f, department_id=department_id, employment_type=employment_type)
    ]
    if not applicable:
        return None
    candidates = [f for f in applicable if f.allowed_departments] or applicable
    if near is not None and len(candidates) > 1:
        return nearest_geofence(near, candidates)
    return candidates[0]


def penalty_policy_applies(policy: PenaltyPolicy, profile: EmployeeProfile, *, as_of: date) -> bool:
    if not policy.is_active or not policy.auto_apply:
        return False
    if policy.effective_date is not None and as_of < policy.effective_date:
        return False
    if policy.expiry_date is not None and as_of > policy.expiry_date:
        return False
    return (
        _in_scope(policy.applicable_departments, profile.department_id)
        and _in_scope(policy.applicable_positions, profile.position_id)
        and _in_scope(policy.applicable_employment_types, profile.employment_type)
    )


def select_penalty_policy(
    policies: Iterable[PenaltyPolicy],
    penalty_type: PenaltyType,
    profile: EmployeeProfile,
    *,
    as_of: date,
) -> Optional[PenaltyPolicy]:
    """Return the single policy that charges ``penalty_type`` for this employee.

    Ties are broken by ascending ``priority``, then by configuration order.
    """

    candidates = [
        (policy.priority, index, policy)
        for index, policy in enumerate(policies)
        if policy.penalty_type == penalty_type and penalty_policy_applies(policy, profile, as_of=as_of)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda c: (c[0], c[1]))[2]
