from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PolicyLookupError(DomainError):
    """Raised by a policy collaborator that cannot resolve a required value."""


class DuplicateRecordError(DomainError):
    """Raised by storage when a record for (employee, date) already exists."""


class ConcurrentModificationError(DomainError):
    """Raised by storage when an update was based on a stale version."""


class ErrorKind(str, Enum):
    """Expected business outcomes returned to the caller instead of raised."""

    DUPLICATE_CLOCK_IN = "DuplicateClockIn"
    NO_ACTIVE_CLOCK_IN = "NoActiveClockIn"
    ALREADY_CLOCKED_OUT = "AlreadyClockedOut"
    INVALID_TIME_WINDOW = "InvalidTimeWindow"
    UNAUTHORIZED_APPROVAL = "UnauthorizedApproval"
    UNAUTHORIZED_ACTION = "UnauthorizedAction"
    ALREADY_APPROVED = "AlreadyApproved"
    ALREADY_REJECTED = "AlreadyRejected"
    APPROVAL_NOT_REQUIRED = "ApprovalNotRequired"
    POLICY_LOOKUP_FAILURE = "PolicyLookupFailure"
    RECORD_NOT_FOUND = "RecordNotFound"
    BREAK_ALREADY_OPEN = "BreakAlreadyOpen"
    NO_OPEN_BREAK = "NoOpenBreak"
    BREAK_ALREADY_CLOSED = "BreakAlreadyClosed"
    INVALID_BREAK_WINDOW = "InvalidBreakWindow"
    INVALID_INPUT = "InvalidInput"


@dataclass(frozen=True)
class AttendanceError:
    kind: ErrorKind
    message: str
