from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LatenessResult:
    is_late: bool
    minutes_late: int


@dataclass(frozen=True)
class EarlyLeaveResult:
    is_early_leave: bool
    minutes_early: int


@dataclass(frozen=True)
class BreakSummary:
    """Aggregate of a day's breaks.

    ``open_break_ids`` lists breaks without an end time; they count for zero
    minutes and are surfaced as a data-quality warning.
    """

    total_minutes: int
    unpaid_minutes: int
    open_break_ids: tuple[str, ...] = ()

    @property
    def has_open_breaks(self) -> bool:
        return bool(self.open_break_ids)
