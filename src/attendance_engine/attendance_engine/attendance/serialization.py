"""Attendance record <-> JSON document.

The same camelCase document is stored in MySQL's ``document`` column and
returned by the HTTP API, so a record read back is identical to the one
written (derived values such as ``durationHours`` are stored, not recomputed).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from ..core.enums import ApprovalStatus, AttendanceStatus, BreakType, ClockMethod, PenaltyType
from ..geo.model import LocationSnapshot
from ..penalties.model import Penalty
from .model import AttendanceRecord, BreakRecord


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def location_to_dict(loc: Optional[LocationSnapshot]) -> Optional[dict[str, Any]]:
    if loc is None:
        return None
    return {
        "latitude": loc.latitude,
        "longitude": loc.longitude,
        "accuracy": loc.accuracy,
        "isWithinGeofence": loc.is_within_geofence,
        "distanceFromOffice": loc.distance_from_office_meters,
    }


def location_from_dict(data: Optional[dict[str, Any]]) -> Optional[LocationSnapshot]:
    if not data:
        return None
    return LocationSnapshot(
        latitude=float(data["latitude"]),
        longitude=float(data["longitude"]),
        accuracy=data.get("accuracy"),
        is_within_geofence=data.get("isWithinGeofence"),
        distance_from_office_meters=data.get("distanceFromOffice"),
    )


def break_to_dict(b: BreakRecord) -> dict[str, Any]:
    return {
        "id": b.break_id,
        "breakType": b.break_type.value,
        "startTime": _dt(b.start_time),
        "endTime": _dt(b.end_time),
        "durationMinutes": b.duration_minutes,
        "scheduledDuration": b.scheduled_duration_minutes,
        "isPaid": b.is_paid,
    }


def break_from_dict(data: dict[str, Any]) -> BreakRecord:
    return BreakRecord(
        break_id=str(data["id"]),
        break_type=BreakType(data.get("breakType", BreakType.OTHER.value)),
        start_time=datetime.fromisoformat(data["startTime"]),
        end_time=_parse_dt(data.get("endTime")),
        duration_minutes=data.get("durationMinutes"),
        scheduled_duration_minutes=int(data.get("scheduledDuration") or 0),
        is_paid=bool(data.get("isPaid", False)),
    )


def penalty_to_dict(p: Penalty) -> dict[str, Any]:
    return {
        "policyId": p.policy_id,
        "type": p.penalty_type.value,
        "amount": p.amount,
        "description": p.description,
    }


def penalty_from_dict(data: dict[str, Any]) -> Penalty:
    return Penalty(
        policy_id=str(data["policyId"]),
        penalty_type=PenaltyType(data["type"]),
        amount=float(data["amount"]),
        description=data.get("description") or "",
    )


def record_to_document(r: AttendanceRecord) -> dict[str, Any]:
    return {
        "id": r.record_id,
        "tenantId": r.tenant_id,
        "employeeId": r.employee_id,
        "employeeName": r.employee_name,
        "departmentName": r.department_name,
        "userId": r.user_id,
        "date": r.work_date.isoformat(),
        "clockInTime": _dt(r.clock_in_time),
        "clockOutTime": _dt(r.clock_out_time),
        "status": r.status.value,
        "workSchedulePolicyId": r.work_schedule_policy_id,
        "scheduledStartTime": r.scheduled_start_time,
        "scheduledEndTime": r.scheduled_end_time,
        "isLate": r.is_late,
        "minutesLate": r.minutes_late,
        "lateReason": r.late_reason,
        "isExcusedLate": r.is_excused_late,
        "lateApprovedBy": r.late_approved_by,
        "isEarlyLeave": r.is_early_leave,
        "minutesEarly": r.minutes_early,
        "earlyLeaveReason": r.early_leave_reason,
        "isApprovedEarlyLeave": r.is_approved_early_leave,
        "earlyLeaveApprovedBy": r.early_leave_approved_by,
        "breaks": [break_to_dict(b) for b in r.breaks],
        "totalBreakMinutes": r.total_break_minutes,
        "unpaidBreakMinutes": r.unpaid_break_minutes,
        "clockInLocation": location_to_dict(r.clock_in_location),
        "clockOutLocation": location_to_dict(r.clock_out_location),
        "clockInMethod": r.clock_in_method.value,
        "clockOutMethod": r.clock_out_method.value if r.clock_out_method else None,
        "ipAddress": r.ip_address,
        "deviceId": r.device_id,
        "penalties": [penalty_to_dict(p) for p in r.penalties],
        "totalPenaltyAmount": r.total_penalty_amount,
        "requiresApproval": r.requires_approval,
        "approvalStatus": r.approval_status.value if r.approval_status else None,
        "approvedBy": r.approved_by,
        "approvalDate": _dt(r.approval_date),
        "approvalNotes": r.approval_notes,
        "isRemoteWork": r.is_remote_work,
        "isManualEntry": r.is_manual_entry,
        "isMissedClockOut": r.is_missed_clock_out,
        "isCorrected": r.is_corrected,
        "durationHours": r.duration_hours,
        "notes": r.notes,
        "dataQualityFlags": list(r.data_quality_flags),
        "createdBy": r.created_by,
        "updatedBy": r.updated_by,
        "createdAt": _dt(r.created_at),
        "updatedAt": _dt(r.updated_at),
        "version": r.version,
    }


def record_from_document(doc: dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=str(doc["id"]),
        tenant_id=doc.get("tenantId") or "default",
        employee_id=str(doc["employeeId"]),
        employee_name=doc.get("employeeName") or "",
        department_name=doc.get("departmentName"),
        user_id=doc.get("userId"),
        work_date=date.fromisoformat(doc["date"]),
        clock_in_time=datetime.fromisoformat(doc["clockInTime"]),
        clock_out_time=_parse_dt(doc.get("clockOutTime")),
        status=AttendanceStatus(doc["status"]),
        work_schedule_policy_id=doc.get("workSchedulePolicyId"),
        scheduled_start_time=doc["scheduledStartTime"],
        scheduled_end_time=doc["scheduledEndTime"],
        is_late=bool(doc.get("isLate", False)),
        minutes_late=int(doc.get("minutesLate") or 0),
        late_reason=doc.get("lateReason"),
        is_excused_late=bool(doc.get("isExcusedLate", False)),
        late_approved_by=doc.get("lateApprovedBy"),
        is_early_leave=bool(doc.get("isEarlyLeave", False)),
        minutes_early=int(doc.get("minutesEarly") or 0),
        early_leave_reason=doc.get("earlyLeaveReason"),
        is_approved_early_leave=bool(doc.get("isApprovedEarlyLeave", False)),
        early_leave_approved_by=doc.get("earlyLeaveApprovedBy"),
        breaks=tuple(break_from_dict(b) for b in doc.get("breaks") or []),
        total_break_minutes=int(doc.get("totalBreakMinutes") or 0),
        unpaid_break_minutes=int(doc.get("unpaidBreakMinutes") or 0),
        clock_in_location=location_from_dict(doc.get("clockInLocation")),
        clock_out_location=location_from_dict(doc.get("clockOutLocation")),
        clock_in_method=ClockMethod(doc.get("clockInMethod") or ClockMethod.WEB.value),
        clock_out_method=ClockMethod(doc["clockOutMethod"]) if doc.get("clockOutMethod") else None,
        ip_address=doc.get("ipAddress"),
        device_id=doc.get("deviceId"),
        penalties=tuple(penalty_from_dict(p) for p in doc.get("penalties") or []),
        requires_approval=bool(doc.get("requiresApproval", False)),
        approval_status=ApprovalStatus(doc["approvalStatus"]) if doc.get("approvalStatus") else None,
        approved_by=doc.get("approvedBy"),
        approval_date=_parse_dt(doc.get("approvalDate")),
        approval_notes=doc.get("approvalNotes"),
        is_remote_work=bool(doc.get("isRemoteWork", False)),
        is_manual_entry=bool(doc.get("isManualEntry", False)),
        is_missed_clock_out=bool(doc.get("isMissedClockOut", False)),
        is_corrected=bool(doc.get("isCorrected", False)),
        duration_hours=doc.get("durationHours"),
        notes=doc.get("notes"),
        data_quality_flags=tuple(doc.get("dataQualityFlags") or []),
        created_by=doc.get("createdBy"),
        updated_by=doc.get("updatedBy"),
        created_at=_parse_dt(doc.get("createdAt")),
        updated_at=_parse_dt(doc.get("updatedAt")),
        version=int(doc.get("version") or 1),
    )
