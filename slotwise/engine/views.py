"""List filtering and sorting for task views.

Consumers of the repository (list pages, API queries) narrow and order the
task set with these helpers. They never affect scheduling.
"""

from datetime import datetime, time, timedelta
from enum import Enum
from typing import List, Optional

from slotwise.models.task import Task, priority_weight
from slotwise.models.constants import DUE_SOON_DAYS


class TaskFilter(str, Enum):
    """Named task list filters."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"


class SortOption(str, Enum):
    """Fields a task list can be sorted by."""
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    TITLE = "title"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def _end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)


def _week_bounds(dt: datetime):
    """Sunday-to-Saturday week containing ``dt``."""
    days_since_sunday = (dt.weekday() + 1) % 7
    start = _start_of_day(dt) - timedelta(days=days_since_sunday)
    end = _end_of_day(start + timedelta(days=6))
    return start, end


def filter_tasks(tasks: List[Task], task_filter: TaskFilter, now: Optional[datetime] = None) -> List[Task]:
    """Filter tasks by due date relative to ``now``.

    Args:
        tasks: Tasks to filter
        task_filter: all, today, week (Sunday-start) or overdue
        now: Reference time (defaults to now)

    Returns:
        Matching tasks in input order
    """
    if now is None:
        now = datetime.now()
    task_filter = TaskFilter(task_filter)

    if task_filter == TaskFilter.TODAY:
        start, end = _start_of_day(now), _end_of_day(now)
        return [t for t in tasks if start <= t.due_date <= end]
    if task_filter == TaskFilter.WEEK:
        start, end = _week_bounds(now)
        return [t for t in tasks if start <= t.due_date <= end]
    if task_filter == TaskFilter.OVERDUE:
        start = _start_of_day(now)
        return [t for t in tasks if t.due_date < start and not t.completed]
    return list(tasks)


def _sort_key(task: Task, sort: SortOption):
    if sort == SortOption.PRIORITY:
        return priority_weight(task.priority)
    if sort == SortOption.TITLE:
        return task.title.lower()
    return task.due_date


def sort_tasks(
    tasks: List[Task],
    sort: SortOption = SortOption.DUE_DATE,
    direction: SortDirection = SortDirection.ASC,
) -> List[Task]:
    """Return a new list sorted by one field. Ties keep their input order."""
    sort = SortOption(sort)
    reverse = SortDirection(direction) == SortDirection.DESC
    return sorted(tasks, key=lambda t: _sort_key(t, sort), reverse=reverse)


def is_overdue(dt: datetime, now: Optional[datetime] = None) -> bool:
    if now is None:
        now = datetime.now()
    return dt < now


def is_due_soon(dt: datetime, now: Optional[datetime] = None) -> bool:
    """True when ``dt`` falls strictly between now and three days from now."""
    if now is None:
        now = datetime.now()
    return now < dt < now + timedelta(days=DUE_SOON_DAYS)


def format_hours(hours: float) -> str:
    """Human-readable duration, e.g. ``1 hour 30 min`` or ``45 min``."""
    if hours >= 1:
        whole = int(hours)
        minutes = round((hours - whole) * 60)
        unit = "hour" if whole == 1 else "hours"
        if minutes == 0:
            return f"{whole} {unit}"
        return f"{whole} {unit} {minutes} min"
    return f"{round(hours * 60)} min"
