from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from .model import AttendanceRecord

logger = logging.getLogger(__name__)

APPROVAL_REQUIRED = "approval-required"
RECORD_FINALIZED = "record-finalized"


@dataclass(frozen=True)
class AttendanceEvent:
    name: str
    record_id: str
    employee_id: str
    work_date: str
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_record(cls, name: str, record: AttendanceRecord, **payload: Any) -> "AttendanceEvent":
        return cls(
            name=name,
            record_id=record.record_id,
            employee_id=record.employee_id,
            work_date=record.work_date.isoformat(),
            payload=dict(payload),
        )


class EventPublisher(Protocol):
    def publish(self, event: AttendanceEvent) -> None:
        raise NotImplementedError


class LoggingEventPublisher(EventPublisher):
    """Default publisher: notification delivery is someone else's job, we just log."""

    def publish(self, event: AttendanceEvent) -> None:
        logger.info(
            "attendance event %s for record %s",
            event.name,
            event.record_id,
            extra={"event": event.name, "employee_id": event.employee_id, "work_date": event.work_date},
        )
