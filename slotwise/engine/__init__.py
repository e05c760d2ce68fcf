"""Scheduling engine for slotwise."""

from slotwise.engine.scheduler import (
    schedule_tasks,
    SchedulingResult,
    WorkingHours,
    commitment_order,
    round_up_to_granularity,
)
from slotwise.engine.views import filter_tasks, sort_tasks

__all__ = [
    "schedule_tasks",
    "SchedulingResult",
    "WorkingHours",
    "commitment_order",
    "round_up_to_granularity",
    "filter_tasks",
    "sort_tasks",
]
