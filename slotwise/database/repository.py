"""Repository layer for database operations."""

import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional
from sqlalchemy.orm import Session

from slotwise.config import get_settings
from slotwise.errors import TaskNotFoundError
from slotwise.engine.scheduler import schedule_tasks, SchedulingResult, WorkingHours
from slotwise.models.task import Task, TaskCreate, TaskUpdate
from slotwise.models.task_factory import new_task_fields
from slotwise.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)

# Changes to any of these trigger a full reschedule pass
SCHEDULE_FIELDS = ("estimated_hours", "priority", "due_date")

# Serializes mutate-then-reschedule sequences within one process
_write_lock = threading.Lock()


def _schedule_fields_changed(before: dict, changes: dict) -> bool:
    """Whether an update alters a field the scheduler reads, or reopens a completed task."""
    if before["completed"] and changes.get("completed") is False:
        return True
    for name in SCHEDULE_FIELDS:
        if name not in changes:
            continue
        new, old = changes[name], before[name]
        if name == "priority":
            new, old = enum_to_value(new), enum_to_value(old)
        if new != old:
            return True
    return False


class TaskRepository:
    """Repository for Task database operations.

    Every mutation that affects scheduling is followed by a full reschedule
    pass, and both are committed together.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Callable[[], datetime]] = None,
        working_hours: Optional[WorkingHours] = None,
        max_lookahead_days: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock or datetime.now
        if working_hours is None or max_lookahead_days is None:
            settings = get_settings()
            if working_hours is None:
                working_hours = WorkingHours(
                    start_hour=settings.workday_start_hour,
                    end_hour=settings.workday_end_hour,
                )
            if max_lookahead_days is None:
                max_lookahead_days = settings.max_lookahead_days
        self.working_hours = working_hours
        self.max_lookahead_days = max_lookahead_days

    def _get_row(self, task_id: int) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(TaskDB.id == task_id).first()

    def _reschedule(self) -> SchedulingResult:
        """Run the engine over every stored task and write slots back (no commit)."""
        rows = self.db.query(TaskDB).order_by(TaskDB.id).all()
        result = schedule_tasks(
            [row.to_pydantic() for row in rows],
            now=self.clock(),
            working_hours=self.working_hours,
            max_lookahead_days=self.max_lookahead_days,
        )
        for row, task in zip(rows, result.tasks):
            if task.completed:
                continue
            row.scheduled_start = task.scheduled_start
            row.scheduled_end = task.scheduled_end
        return result

    def get(self, task_id: int) -> Optional[Task]:
        """Get task by ID."""
        task_db = self._get_row(task_id)
        return task_db.to_pydantic() if task_db else None

    def get_all(self) -> List[Task]:
        """Get all tasks ordered by id."""
        return [task_db.to_pydantic() for task_db in self.db.query(TaskDB).order_by(TaskDB.id).all()]

    def get_incomplete(self) -> List[Task]:
        """Get all tasks that still take part in scheduling."""
        tasks_db = self.db.query(TaskDB).filter(TaskDB.completed.is_(False)).order_by(TaskDB.id).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def create(self, payload: TaskCreate) -> Task:
        """Create a new task and reschedule everything."""
        with _write_lock:
            try:
                task_db = TaskDB.from_fields(new_task_fields(payload, self.clock()))
                self.db.add(task_db)
                self.db.flush()
                self._reschedule()
                self.db.commit()
                self.db.refresh(task_db)
                logger.debug(f"Created task {task_db.id}: {task_db.title[:50]}")
                return task_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to create task {payload.title[:50]!r}: {type(e).__name__}: {str(e)}")
                raise

    def update(self, task_id: int, payload: TaskUpdate) -> Task:
        """Apply a partial update; reschedule if duration, priority or due date changed or the task was reopened."""
        with _write_lock:
            task_db = self._get_row(task_id)
            if not task_db:
                raise TaskNotFoundError(task_id)

            changes = payload.changes()
            before = {name: getattr(task_db, name) for name in SCHEDULE_FIELDS + ("completed",)}
            try:
                task_db.apply(changes)
                needs_reschedule = _schedule_fields_changed(before, changes)
                if needs_reschedule:
                    self._reschedule()
                self.db.commit()
                self.db.refresh(task_db)
                logger.debug(
                    f"Updated task {task_id} ({', '.join(sorted(changes)) or 'no fields'})"
                    f"{'; rescheduled' if needs_reschedule else ''}"
                )
                return task_db.to_pydantic()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to update task {task_id}: {type(e).__name__}: {str(e)}")
                raise

    def delete(self, task_id: int) -> bool:
        """Delete a task and reschedule the remainder."""
        with _write_lock:
            task_db = self._get_row(task_id)
            if not task_db:
                raise TaskNotFoundError(task_id)

            try:
                self.db.delete(task_db)
                self.db.flush()
                self._reschedule()
                self.db.commit()
                logger.debug(f"Deleted task {task_id}")
                return True
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
                raise

    def reschedule_all(self) -> SchedulingResult:
        """Recompute every incomplete task's slot against the current clock."""
        with _write_lock:
            try:
                result = self._reschedule()
                self.db.commit()
                return result
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to reschedule tasks: {type(e).__name__}: {str(e)}")
                raise
