"""Scheduling algorithm for slotwise.

Assigns every incomplete task a start/end slot inside the daily working-hours
window. Placement is a deterministic greedy pass in commitment order (due date
ascending, then priority descending); each task claims the earliest slot that
is not in the past, not before its preferred time of day, and not before the
end of the previously committed task.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from pydantic import BaseModel, Field, model_validator

from slotwise.errors import SchedulingOverflowError
from slotwise.models.task import Task, priority_weight
from slotwise.models.constants import (
    DEFAULT_WORKDAY_START_HOUR,
    DEFAULT_WORKDAY_END_HOUR,
    DEFAULT_MAX_LOOKAHEAD_DAYS,
    MILLISECONDS_PER_HOUR,
    SCHEDULING_GRANULARITY_MINUTES,
)

logger = logging.getLogger(__name__)


class WorkingHours(BaseModel):
    """Daily [open, close) window, applied uniformly to every day."""

    start_hour: int = Field(DEFAULT_WORKDAY_START_HOUR, ge=0, le=23)
    end_hour: int = Field(DEFAULT_WORKDAY_END_HOUR, ge=1, le=24)

    @model_validator(mode="after")
    def _check_order(self):
        if self.start_hour >= self.end_hour:
            raise ValueError("start_hour must be before end_hour")
        return self

    @property
    def span(self) -> timedelta:
        return timedelta(hours=self.end_hour - self.start_hour)

    def opens(self, day: date) -> datetime:
        return datetime.combine(day, time.min) + timedelta(hours=self.start_hour)

    def closes(self, day: date) -> datetime:
        return datetime.combine(day, time.min) + timedelta(hours=self.end_hour)

    def contains_time(self, value: datetime) -> bool:
        """Whether the time-of-day of ``value`` lies in [open, close)."""
        return self.opens(value.date()) <= value < self.closes(value.date())


class SchedulingResult:
    """Result of scheduling operation."""

    def __init__(self):
        self.tasks: List[Task] = []
        self.overflow_tasks: List[Task] = []
        self.now: Optional[datetime] = None

    @property
    def scheduled_tasks(self) -> List[Task]:
        return [t for t in self.tasks if not t.completed and t.is_scheduled]

    def raise_for_overflow(self) -> None:
        """Raise SchedulingOverflowError if any task could not be placed."""
        if self.overflow_tasks:
            raise SchedulingOverflowError([t.id for t in self.overflow_tasks])


def task_duration(task: Task) -> timedelta:
    """Exact slot length for a task (hours converted to milliseconds, no rounding)."""
    return timedelta(milliseconds=task.estimated_hours * MILLISECONDS_PER_HOUR)


def commitment_order(tasks: List[Task]) -> List[Task]:
    """Sort tasks into commitment order.

    Due date ascending, then priority descending (high, medium, low), then id
    ascending so equal keys still produce one fixed order.
    """
    return sorted(tasks, key=lambda t: (t.due_date, -priority_weight(t.priority), t.id))


def round_up_to_granularity(dt: datetime) -> datetime:
    """Round datetime up to the next scheduling boundary (15 minutes).

    A value already exactly on a boundary is returned unchanged.

    Args:
        dt: Datetime to round

    Returns:
        Rounded datetime with seconds and microseconds cleared
    """
    floored = dt.replace(minute=(dt.minute // SCHEDULING_GRANULARITY_MINUTES) * SCHEDULING_GRANULARITY_MINUTES,
                         second=0, microsecond=0)
    if floored == dt:
        return floored
    return floored + timedelta(minutes=SCHEDULING_GRANULARITY_MINUTES)


def _preferred_start(task: Task, now: datetime, hours: WorkingHours) -> datetime:
    """Due date's time-of-day on today's date when inside the window, else window open."""
    due = task.due_date
    candidate = now.replace(hour=due.hour, minute=due.minute, second=0, microsecond=0)
    if hours.contains_time(candidate):
        return candidate
    return hours.opens(now.date())


def _clamp_to_window(candidate: datetime, hours: WorkingHours) -> datetime:
    if candidate < hours.opens(candidate.date()):
        return hours.opens(candidate.date())
    if candidate >= hours.closes(candidate.date()):
        return hours.opens(candidate.date() + timedelta(days=1))
    return candidate


def schedule_tasks(
    tasks: List[Task],
    now: Optional[datetime] = None,
    working_hours: Optional[WorkingHours] = None,
    max_lookahead_days: Optional[int] = None,
) -> SchedulingResult:
    """Assign slots to every incomplete task.

    Completed tasks are returned untouched (their last-known slot is kept).
    Incomplete tasks that cannot be placed, either because their duration is
    longer than the working window or because the next free slot lies beyond
    the lookahead limit, are returned with no slot and listed as overflow.

    Args:
        tasks: Full task set, any order
        now: Reference time; no slot starts before it (defaults to now)
        working_hours: Daily window (defaults to 09:00-17:00)
        max_lookahead_days: Furthest day after ``now`` a slot may start on

    Returns:
        SchedulingResult whose ``tasks`` mirrors the input order
    """
    result = SchedulingResult()

    if now is None:
        now = datetime.now()
    if working_hours is None:
        working_hours = WorkingHours()
    if max_lookahead_days is None:
        max_lookahead_days = DEFAULT_MAX_LOOKAHEAD_DAYS

    result.now = now
    last_day = now.date() + timedelta(days=max_lookahead_days)

    placed = {}
    latest_end: Optional[datetime] = None

    for task in commitment_order([t for t in tasks if not t.completed]):
        duration = task_duration(task)

        if duration > working_hours.span:
            logger.warning(
                f"Task {task.id} needs {task.estimated_hours}h but the working window is "
                f"{working_hours.span}; leaving it unscheduled"
            )
            placed[task.id] = task.model_copy(update={"scheduled_start": None, "scheduled_end": None})
            result.overflow_tasks.append(placed[task.id])
            continue

        candidate = _preferred_start(task, now, working_hours)
        if candidate < now:
            candidate = round_up_to_granularity(now)
        candidate = _clamp_to_window(candidate, working_hours)

        while True:
            if latest_end is not None and candidate < latest_end:
                # latest_end may sit on a midnight close, outside the next day's window
                candidate = _clamp_to_window(latest_end, working_hours)
            if candidate.date() > last_day:
                break
            if candidate + duration <= working_hours.closes(candidate.date()):
                break
            candidate = working_hours.opens(candidate.date() + timedelta(days=1))

        if candidate.date() > last_day:
            logger.warning(
                f"Task {task.id} could not be placed within {max_lookahead_days} days of {now.isoformat()}"
            )
            placed[task.id] = task.model_copy(update={"scheduled_start": None, "scheduled_end": None})
            result.overflow_tasks.append(placed[task.id])
            continue

        end = candidate + duration
        placed[task.id] = task.model_copy(update={"scheduled_start": candidate, "scheduled_end": end})
        latest_end = end
        logger.debug(f"Scheduled task {task.id} ({task.title[:50]}): {candidate.isoformat()} - {end.isoformat()}")

    result.tasks = [placed.get(t.id, t) for t in tasks]
    logger.info(
        f"Reschedule pass at {now.isoformat()}: {len(placed) - len(result.overflow_tasks)} placed, "
        f"{len(result.overflow_tasks)} overflow, {len(tasks) - len(placed)} completed"
    )
    return result
