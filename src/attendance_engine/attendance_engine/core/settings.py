from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..schedules.model import ScheduleWindow
from .constants import (
    DEFAULT_AUTO_APPROVE_THRESHOLD_MINUTES,
    DEFAULT_MISSED_CLOCK_OUT_HOURS,
    DEFAULT_SCHEDULE_END,
    DEFAULT_SCHEDULE_START,
    DEFAULT_TENANT_ID,
    DEFAULT_TENANT_TIMEZONE,
)


@dataclass(frozen=True)
class EngineSettings:
    tenant_id: str = DEFAULT_TENANT_ID
    tenant_timezone: Optional[str] = DEFAULT_TENANT_TIMEZONE
    default_window: ScheduleWindow = field(
        default_factory=lambda: ScheduleWindow(DEFAULT_SCHEDULE_START, DEFAULT_SCHEDULE_END)
    )
    auto_approve_threshold_minutes: int = DEFAULT_AUTO_APPROVE_THRESHOLD_MINUTES
    missed_clock_out_hours: float = DEFAULT_MISSED_CLOCK_OUT_HOURS
    excuse_manual_entries: bool = True

    @classmethod
    def from_module(cls, settings: Any) -> "EngineSettings":
        """Build from a settings module (config.development, config.production ...)."""
        return cls(
            tenant_id=str(getattr(settings, "TENANT_ID", DEFAULT_TENANT_ID)),
            tenant_timezone=getattr(settings, "TENANT_TIMEZONE", DEFAULT_TENANT_TIMEZONE) or None,
            default_window=ScheduleWindow(
                str(getattr(settings, "DEFAULT_SCHEDULE_START", DEFAULT_SCHEDULE_START)),
                str(getattr(settings, "DEFAULT_SCHEDULE_END", DEFAULT_SCHEDULE_END)),
            ),
            auto_approve_threshold_minutes=int(
                getattr(settings, "AUTO_APPROVE_THRESHOLD_MINUTES", DEFAULT_AUTO_APPROVE_THRESHOLD_MINUTES)
            ),
            missed_clock_out_hours=float(getattr(settings, "MISSED_CLOCK_OUT_HOURS", DEFAULT_MISSED_CLOCK_OUT_HOURS)),
            excuse_manual_entries=bool(getattr(settings, "EXCUSE_MANUAL_ENTRIES", True)),
        )
