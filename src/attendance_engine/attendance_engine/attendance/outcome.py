from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.exceptions import AttendanceError, ErrorKind
from .model import AttendanceRecord


@dataclass(frozen=True)
class AttendanceOutcome:
    """Typed result of a lifecycle operation.

    Expected business conditions (duplicate clock-in, missing approval ...)
    come back as ``error``; only storage failures are raised.
    """

    record: Optional[AttendanceRecord] = None
    error: Optional[AttendanceError] = None
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record: AttendanceRecord, warnings: tuple[str, ...] = ()) -> "AttendanceOutcome":
        return cls(record=record, warnings=warnings)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "AttendanceOutcome":
        return cls(error=AttendanceError(kind=kind, message=message))
