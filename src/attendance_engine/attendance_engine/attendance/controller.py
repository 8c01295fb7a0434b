from __future__ import annotations

import logging
from functools import wraps

import mysql.connector
from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.validators import optional_text, require_choice, require_float, require_non_empty, require_non_negative_int
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import BreakType, ClockMethod
from ..core.exceptions import ConcurrentModificationError, ErrorKind, ValidationError
from ..container import Container
from ..geo.model import GeoPoint
from .outcome import AttendanceOutcome
from .serialization import record_to_document

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    ErrorKind.DUPLICATE_CLOCK_IN: 409,
    ErrorKind.NO_ACTIVE_CLOCK_IN: 409,
    ErrorKind.ALREADY_CLOCKED_OUT: 409,
    ErrorKind.INVALID_TIME_WINDOW: 400,
    ErrorKind.UNAUTHORIZED_APPROVAL: 403,
    ErrorKind.UNAUTHORIZED_ACTION: 403,
    ErrorKind.ALREADY_APPROVED: 409,
    ErrorKind.ALREADY_REJECTED: 409,
    ErrorKind.APPROVAL_NOT_REQUIRED: 409,
    ErrorKind.POLICY_LOOKUP_FAILURE: 422,
    ErrorKind.RECORD_NOT_FOUND: 404,
    ErrorKind.BREAK_ALREADY_OPEN: 409,
    ErrorKind.NO_OPEN_BREAK: 409,
    ErrorKind.BREAK_ALREADY_CLOSED: 409,
    ErrorKind.INVALID_BREAK_WINDOW: 400,
    ErrorKind.INVALID_INPUT: 400,
}


def _error(kind: str, message: str, status: int):
    return jsonify({"success": False, "error": {"kind": kind, "message": message}}), status


def _respond(outcome: AttendanceOutcome, *, created: bool = False):
    if not outcome.ok:
        return _error(outcome.error.kind.value, outcome.error.message, HTTP_STATUS.get(outcome.error.kind, 400))
    body = {"success": True, "data": record_to_document(outcome.record), "warnings": list(outcome.warnings)}
    return jsonify(body), 201 if created else 200


def _payload() -> dict:
    return request.get_json(silent=True) or {}


def _parse_location(data) -> GeoPoint | None:
    if not data:
        return None
    if not isinstance(data, dict):
        raise ValidationError("location must be an object")
    accuracy = data.get("accuracy")
    return GeoPoint(
        latitude=require_float(data.get("latitude"), "latitude", minimum=-90, maximum=90),
        longitude=require_float(data.get("longitude"), "longitude", minimum=-180, maximum=180),
        accuracy=require_float(accuracy, "accuracy", minimum=0, maximum=1e6) if accuracy is not None else None,
    )


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return _error("Unauthenticated", "Please sign in to continue", 401)
            return view(*args, **kwargs)

        return wrapper

    def current_employee_id() -> str:
        employee_id = session.get("employee_id")
        if not employee_id:
            raise ValidationError("No employee profile is linked to this account")
        return str(employee_id)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        return _error(ErrorKind.INVALID_INPUT.value, str(e), 400)

    @app.errorhandler(ConcurrentModificationError)
    def handle_concurrent_modification(e: ConcurrentModificationError):
        logger.warning("concurrent modification: %s", e)
        return _error("ConcurrentModification", "The record was changed by another request, please retry", 409)

    @app.errorhandler(mysql.connector.Error)
    def handle_storage_error(e: mysql.connector.Error):
        logger.error("storage failure on %s %s: %s", request.method, request.path, e)
        return _error("StorageUnavailable", "Attendance storage is unavailable, please retry later", 503)

    @app.route("/api/attendance/clock-in", methods=["POST"], endpoint="clock_in")
    @login_required
    def clock_in():
        data = _payload()
        outcome = container.attendance_service.clock_in(
            current_employee_id(),
            location=_parse_location(data.get("location")),
            is_remote_work=bool(data.get("isRemoteWork", False)),
            method=require_choice(data.get("method", ClockMethod.WEB.value), "method", ClockMethod),
            ip_address=request.remote_addr,
            device_id=optional_text(data.get("deviceId")),
            notes=optional_text(data.get("notes")),
            late_reason=optional_text(data.get("lateReason")),
            actor_user_id=str(session["user_id"]),
        )
        return _respond(outcome, created=True)

    @app.route("/api/attendance/clock-out", methods=["POST"], endpoint="clock_out")
    @login_required
    def clock_out():
        data = _payload()
        outcome = container.attendance_service.clock_out(
            current_employee_id(),
            location=_parse_location(data.get("location")),
            method=require_choice(data.get("method", ClockMethod.WEB.value), "method", ClockMethod),
            early_leave_reason=optional_text(data.get("earlyLeaveReason")),
            notes=optional_text(data.get("notes")),
            actor_user_id=str(session["user_id"]),
        )
        return _respond(outcome)

    @app.route("/api/attendance/breaks/start", methods=["POST"], endpoint="start_break")
    @login_required
    def start_break():
        data = _payload()
        outcome = container.break_service.start_break(
            current_employee_id(),
            break_type=require_choice(data.get("breakType", BreakType.REST.value), "breakType", BreakType),
            scheduled_duration_minutes=require_non_negative_int(data.get("scheduledDuration", 0), "scheduledDuration"),
            is_paid=bool(data.get("isPaid", False)),
        )
        return _respond(outcome)

    @app.route("/api/attendance/breaks/end", methods=["POST"], endpoint="end_break")
    @login_required
    def end_break():
        data = _payload()
        outcome = container.break_service.end_break(current_employee_id(), optional_text(data.get("breakId")))
        return _respond(outcome)

    @app.route("/api/attendance/<record_id>/approve", methods=["POST"], endpoint="approve_record")
    @login_required
    def approve_record(record_id: str):
        outcome = container.approval_service.approve(
            record_id,
            actor_user_id=str(session["user_id"]),
            notes=optional_text(_payload().get("notes")),
        )
        return _respond(outcome)

    @app.route("/api/attendance/<record_id>/reject", methods=["POST"], endpoint="reject_record")
    @login_required
    def reject_record(record_id: str):
        outcome = container.approval_service.reject(
            record_id,
            actor_user_id=str(session["user_id"]),
            notes=optional_text(_payload().get("notes")),
        )
        return _respond(outcome)

    @app.route("/api/attendance/<record_id>/correct", methods=["POST"], endpoint="correct_record")
    @login_required
    def correct_record(record_id: str):
        data = _payload()
        clock_out = optional_text(data.get("clockOutTime"))
        tz_name = container.settings.tenant_timezone
        outcome = container.attendance_service.correct_record(
            record_id,
            actor_user_id=str(session["user_id"]),
            clock_in=parse_iso_datetime(require_non_empty(data.get("clockInTime"), "clockInTime"), tz_name),
            clock_out=parse_iso_datetime(clock_out, tz_name) if clock_out else None,
            reason=require_non_empty(data.get("reason"), "reason"),
        )
        return _respond(outcome)

    @app.route("/api/attendance/manual-entry", methods=["POST"], endpoint="manual_entry")
    @login_required
    def manual_entry():
        data = _payload()
        outcome = container.attendance_service.create_manual_entry(
            actor_user_id=str(session["user_id"]),
            employee_id=require_non_empty(data.get("employeeId"), "employeeId"),
            work_date=parse_iso_date(require_non_empty(data.get("date"), "date")),
            clock_in=require_non_empty(data.get("clockInTime"), "clockInTime"),
            clock_out=optional_text(data.get("clockOutTime")),
            reason=require_non_empty(data.get("reason"), "reason"),
            is_remote_work=bool(data.get("isRemoteWork", False)),
            notes=optional_text(data.get("notes")),
        )
        return _respond(outcome, created=True)

    @app.route("/api/attendance/missed-clock-out", methods=["POST"], endpoint="missed_clock_out")
    @login_required
    def missed_clock_out():
        data = _payload()
        if not container.access_policy.can_create_manual_entry(str(session["user_id"])):
            return _error(ErrorKind.UNAUTHORIZED_ACTION.value, "Only HR can flag missed clock-outs", 403)
        outcome = container.attendance_service.mark_missed_clock_out(
            require_non_empty(data.get("employeeId"), "employeeId"),
            parse_iso_date(require_non_empty(data.get("date"), "date")),
        )
        return _respond(outcome)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="today_record")
    @login_required
    def today_record():
        record = container.attendance_service.get_today_record(current_employee_id())
        return jsonify({"success": True, "data": record_to_document(record) if record else None})

    @app.route("/api/attendance/history", methods=["GET"], endpoint="history")
    @login_required
    def history():
        limit = require_non_negative_int(request.args.get("limit", DEFAULT_HISTORY_LIMIT), "limit")
        records = container.attendance_service.get_history(current_employee_id(), limit=limit)
        return jsonify({"success": True, "data": [record_to_document(r) for r in records]})

    @app.route("/api/attendance/pending-approvals", methods=["GET"], endpoint="pending_approvals")
    @login_required
    def pending_approvals():
        limit = require_non_negative_int(request.args.get("limit", 50), "limit")
        records = container.approval_service.list_pending(limit=limit)
        return jsonify({"success": True, "data": [record_to_document(r) for r in records]})

    @app.route("/api/attendance/summary", methods=["GET"], endpoint="summary")
    @login_required
    def summary():
        start = parse_iso_date(require_non_empty(request.args.get("start"), "start"))
        end = parse_iso_date(require_non_empty(request.args.get("end"), "end"))
        report = container.summary_service.summarize(current_employee_id(), start=start, end=end)
        s = report.summary
        return jsonify(
            {
                "success": True,
                "data": {
                    "employeeId": s.employee_id,
                    "start": s.start.isoformat(),
                    "end": s.end.isoformat(),
                    "presentDays": s.present_days,
                    "lateDays": s.late_days,
                    "earlyLeaveDays": s.early_leave_days,
                    "missedClockOuts": s.missed_clock_outs,
                    "pendingApprovals": s.pending_approvals,
                    "totalLateMinutes": s.total_late_minutes,
                    "totalHours": s.total_hours,
                    "averageHours": s.average_hours,
                    "overtimeHours": s.overtime_hours,
                    "penaltyTotals": s.penalty_totals,
                    "totalPenaltyAmount": s.total_penalty_amount,
                    "rows": report.rows,
                },
            }
        )
