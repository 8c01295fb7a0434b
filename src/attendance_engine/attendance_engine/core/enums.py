from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Clock state of a day's record."""

    CLOCKED_IN = "clocked-in"
    CLOCKED_OUT = "clocked-out"


class ApprovalStatus(str, Enum):
    """Approval sub-state, present only when approval was required."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PenaltyType(str, Enum):
    LATE = "late"
    EARLY_LEAVE = "early-leave"
    ABSENCE = "absence"
    NO_CLOCK_IN = "no-clock-in"
    NO_CLOCK_OUT = "no-clock-out"
    VIOLATION = "violation"


class CalculationType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    HOURLY_RATE = "hourly-rate"
    DAILY_RATE = "daily-rate"
    PROGRESSIVE = "progressive"


class BreakType(str, Enum):
    LUNCH = "lunch"
    REST = "rest"
    PRAYER = "prayer"
    OTHER = "other"


class ClockMethod(str, Enum):
    MOBILE = "mobile"
    WEB = "web"
    BIOMETRIC = "biometric"
    MANUAL = "manual"
