from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class ScheduleWindow:
    """Scheduled start/end of a working day as HH:MM strings."""

    start: str
    end: str


@dataclass(frozen=True)
class WorkSchedulePolicy:
    """Per-weekday working hours for an employee.

    ``day_windows`` is keyed by lower-case weekday name (``"monday"`` ...).
    Days missing from the mapping fall back to the configured default window.
    """

    policy_id: str
    name: str
    day_windows: Mapping[str, ScheduleWindow] = field(default_factory=dict)
    hours_per_day: float = 8
    tenant_id: str = "default"
    description: Optional[str] = None
