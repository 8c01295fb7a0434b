"""Approval decision table.

Rules are checked in order and the first match wins:

1. clock-in outside an enforced geofence (and not remote work) -> pending
2. a lateness / early-leave penalty above the auto-approve threshold -> pending
3. manual entry created by HR -> pre-approved by the creator
4. otherwise -> no approval needed
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..core.enums import ApprovalStatus, PenaltyType
from ..geo.model import GeofenceConfig, LocationSnapshot
from ..penalties.model import Penalty


class ApprovalReason(str, Enum):
    OUTSIDE_GEOFENCE = "outside-geofence"
    PENALTY_APPLIED = "penalty-applied"
    MANUAL_ENTRY = "manual-entry"
    NONE = "none"


@dataclass(frozen=True)
class ApprovalDecision:
    requires_approval: bool
    approval_status: Optional[ApprovalStatus]
    reason: ApprovalReason
    approved_by: Optional[str] = None


def decide_approval(
    *,
    geofence: Optional[GeofenceConfig],
    location: Optional[LocationSnapshot],
    is_remote_work: bool,
    penalties: Sequence[Penalty],
    minutes_late: int = 0,
    minutes_early: int = 0,
    is_manual_entry: bool = False,
    created_by: Optional[str] = None,
    auto_approve_threshold_minutes: int = 0,
) -> ApprovalDecision:
    if (
        geofence is not None
        and geofence.enforce_for_clock_in
        and location is not None
        and location.is_within_geofence is False
        and not is_remote_work
    ):
        return ApprovalDecision(True, ApprovalStatus.PENDING, ApprovalReason.OUTSIDE_GEOFENCE)

    for penalty in penalties:
        if penalty.penalty_type == PenaltyType.LATE and minutes_late > auto_approve_threshold_minutes:
            return ApprovalDecision(True, ApprovalStatus.PENDING, ApprovalReason.PENALTY_APPLIED)
        if penalty.penalty_type == PenaltyType.EARLY_LEAVE and minutes_early > auto_approve_threshold_minutes:
            return ApprovalDecision(True, ApprovalStatus.PENDING, ApprovalReason.PENALTY_APPLIED)

    if is_manual_entry:
        return ApprovalDecision(False, ApprovalStatus.APPROVED, ApprovalReason.MANUAL_ENTRY, approved_by=created_by)

    return ApprovalDecision(False, None, ApprovalReason.NONE)
