"""Tests for TaskRepository CRUD operations and reschedule triggers."""

import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from slotwise.database.repository import TaskRepository
from slotwise.errors import TaskNotFoundError
from slotwise.models.task import TaskCreate, TaskUpdate, Priority


def _payload(**overrides) -> TaskCreate:
    data = {
        "title": "Test Task",
        "description": "Test description",
        "estimated_hours": 1,
        "priority": Priority.MEDIUM,
        "due_date": datetime(2024, 1, 1, 10, 0),
    }
    data.update(overrides)
    return TaskCreate(**data)


class TestTaskRepository:
    """Test TaskRepository CRUD operations."""

    def test_create_task(self, task_repository, now):
        """Test creating a task returns it already scheduled."""
        created = task_repository.create(_payload())

        assert created.id == 1
        assert created.title == "Test Task"
        assert created.description == "Test description"
        assert created.priority == Priority.MEDIUM
        assert created.completed is False
        assert created.created_at == now
        assert created.scheduled_start == datetime(2024, 1, 1, 10, 0)
        assert created.scheduled_end == datetime(2024, 1, 1, 11, 0)

    def test_create_defaults_priority_and_description(self, task_repository):
        created = task_repository.create(TaskCreate(
            title="Minimal",
            estimated_hours=0.25,
            due_date=datetime(2024, 1, 1, 20, 0),
        ))

        assert created.priority == Priority.MEDIUM
        assert created.description is None
        assert created.scheduled_start == datetime(2024, 1, 1, 9, 0)

    def test_ids_increase_and_are_not_reused(self, task_repository):
        first = task_repository.create(_payload(title="One"))
        second = task_repository.create(_payload(title="Two"))
        task_repository.delete(second.id)
        third = task_repository.create(_payload(title="Three"))

        assert first.id < second.id < third.id

    def test_create_reschedules_existing_tasks(self, task_repository):
        """A new, earlier-due task takes the slot and pushes the existing one."""
        later = task_repository.create(_payload(title="Later", due_date=datetime(2024, 1, 2, 9, 0)))
        assert later.scheduled_start == datetime(2024, 1, 1, 9, 0)

        task_repository.create(_payload(title="Sooner", due_date=datetime(2024, 1, 1, 9, 0)))

        moved = task_repository.get(later.id)
        assert moved.scheduled_start == datetime(2024, 1, 1, 10, 0)
        assert moved.scheduled_end == datetime(2024, 1, 1, 11, 0)

    def test_get_task_by_id(self, task_repository):
        created = task_repository.create(_payload())
        retrieved = task_repository.get(created.id)

        assert retrieved is not None
        assert retrieved.id == created.id
        assert retrieved.title == created.title

    def test_get_nonexistent_task(self, task_repository):
        """Test retrieving a nonexistent task returns None."""
        assert task_repository.get(999) is None

    def test_get_all_tasks(self, task_repository):
        for title in ["Task 1", "Task 2", "Task 3"]:
            task_repository.create(_payload(title=title))

        all_tasks = task_repository.get_all()

        assert [t.title for t in all_tasks] == ["Task 1", "Task 2", "Task 3"]

    def test_get_incomplete_excludes_completed(self, task_repository):
        open_task = task_repository.create(_payload(title="Open"))
        done = task_repository.create(_payload(title="Done"))
        task_repository.update(done.id, TaskUpdate(completed=True))

        incomplete = task_repository.get_incomplete()

        assert [t.id for t in incomplete] == [open_task.id]

    def test_update_task(self, task_repository):
        created = task_repository.create(_payload())

        updated = task_repository.update(created.id, TaskUpdate(title="Updated Title", description="Updated"))

        assert updated.title == "Updated Title"
        assert updated.description == "Updated"
        assert updated.estimated_hours == created.estimated_hours
        assert updated.created_at == created.created_at

    def test_update_can_clear_description(self, task_repository):
        created = task_repository.create(_payload())

        updated = task_repository.update(created.id, TaskUpdate(description=None))

        assert updated.description is None

    def test_update_nonexistent_task_raises_error(self, task_repository):
        with pytest.raises(TaskNotFoundError, match="Task 42 not found"):
            task_repository.update(42, TaskUpdate(title="Nope"))

    def test_update_duration_reschedules(self, task_repository):
        first = task_repository.create(_payload(title="First", due_date=datetime(2024, 1, 1, 9, 0)))
        second = task_repository.create(_payload(title="Second", due_date=datetime(2024, 1, 1, 9, 30)))
        assert task_repository.get(second.id).scheduled_start == datetime(2024, 1, 1, 10, 0)

        task_repository.update(first.id, TaskUpdate(estimated_hours=2))

        assert task_repository.get(first.id).scheduled_end == datetime(2024, 1, 1, 11, 0)
        assert task_repository.get(second.id).scheduled_start == datetime(2024, 1, 1, 11, 0)

    def test_update_priority_reschedules(self, task_repository):
        due = datetime(2024, 1, 1, 9, 0)
        a = task_repository.create(_payload(title="A", priority=Priority.MEDIUM, due_date=due))
        b = task_repository.create(_payload(title="B", priority=Priority.LOW, due_date=due))
        assert task_repository.get(a.id).scheduled_start == datetime(2024, 1, 1, 9, 0)

        task_repository.update(b.id, TaskUpdate(priority=Priority.HIGH))

        assert task_repository.get(b.id).scheduled_start == datetime(2024, 1, 1, 9, 0)
        assert task_repository.get(a.id).scheduled_start == datetime(2024, 1, 1, 10, 0)

    def test_update_due_date_reschedules(self, task_repository):
        task = task_repository.create(_payload(due_date=datetime(2024, 1, 1, 10, 0)))

        updated = task_repository.update(task.id, TaskUpdate(due_date=datetime(2024, 1, 1, 14, 30)))

        assert updated.scheduled_start == datetime(2024, 1, 1, 14, 30)

    def test_update_other_fields_does_not_reschedule(self, task_repository, clock):
        task = task_repository.create(_payload(due_date=datetime(2024, 1, 1, 10, 0)))
        clock.advance(hours=4)  # now 12:00, a reschedule would move the task

        updated = task_repository.update(task.id, TaskUpdate(title="Renamed"))

        assert updated.scheduled_start == datetime(2024, 1, 1, 10, 0)

    def test_update_with_unchanged_value_does_not_reschedule(self, task_repository, clock):
        task = task_repository.create(_payload(priority=Priority.HIGH))
        clock.advance(hours=4)

        updated = task_repository.update(task.id, TaskUpdate(priority=Priority.HIGH, estimated_hours=1))

        assert updated.scheduled_start == datetime(2024, 1, 1, 10, 0)

    def test_completing_keeps_last_slot_and_frees_time(self, task_repository):
        first = task_repository.create(_payload(title="First", due_date=datetime(2024, 1, 1, 9, 0)))
        second = task_repository.create(_payload(title="Second", due_date=datetime(2024, 1, 1, 9, 0)))

        done = task_repository.update(first.id, TaskUpdate(completed=True))
        assert done.scheduled_start == datetime(2024, 1, 1, 9, 0)

        # Completion alone does not trigger a pass; the next pass frees the slot
        task_repository.reschedule_all()
        assert task_repository.get(first.id).scheduled_start == datetime(2024, 1, 1, 9, 0)
        assert task_repository.get(second.id).scheduled_start == datetime(2024, 1, 1, 9, 0)

    def test_reopening_completed_task_reschedules(self, task_repository):
        """A reopened task re-enters the pass instead of keeping a slot someone else took."""
        a = task_repository.create(_payload(title="A"))
        task_repository.update(a.id, TaskUpdate(completed=True))
        b = task_repository.create(_payload(title="B"))
        assert b.scheduled_start == datetime(2024, 1, 1, 10, 0)

        reopened = task_repository.update(a.id, TaskUpdate(completed=False))

        moved = task_repository.get(b.id)
        assert reopened.completed is False
        assert reopened.scheduled_start == datetime(2024, 1, 1, 10, 0)
        assert reopened.scheduled_end == datetime(2024, 1, 1, 11, 0)
        assert moved.scheduled_start == datetime(2024, 1, 1, 11, 0)
        assert moved.scheduled_end == datetime(2024, 1, 1, 12, 0)

    def test_delete_task(self, task_repository):
        created = task_repository.create(_payload())

        assert task_repository.delete(created.id) is True
        assert task_repository.get(created.id) is None

    def test_delete_nonexistent_task_raises_error(self, task_repository):
        with pytest.raises(TaskNotFoundError):
            task_repository.delete(999)

    def test_delete_reschedules_remainder(self, task_repository):
        first = task_repository.create(_payload(title="First", due_date=datetime(2024, 1, 1, 9, 0)))
        second = task_repository.create(_payload(title="Second", due_date=datetime(2024, 1, 1, 9, 30)))
        assert task_repository.get(second.id).scheduled_start == datetime(2024, 1, 1, 10, 0)

        task_repository.delete(first.id)

        assert task_repository.get(second.id).scheduled_start == datetime(2024, 1, 1, 9, 30)

    def test_reschedule_all_uses_current_clock(self, task_repository, clock):
        task = task_repository.create(_payload(due_date=datetime(2024, 1, 1, 10, 0)))
        clock.now = datetime(2024, 1, 1, 14, 7)

        result = task_repository.reschedule_all()

        assert result.now == datetime(2024, 1, 1, 14, 7)
        assert result.tasks[0].scheduled_start == datetime(2024, 1, 1, 14, 15)
        assert task_repository.get(task.id).scheduled_start == datetime(2024, 1, 1, 14, 15)

    def test_reschedule_all_persists_overflow_as_unscheduled(self, task_repository):
        task = task_repository.create(_payload(estimated_hours=10))

        assert task.scheduled_start is None
        result = task_repository.reschedule_all()
        assert [t.id for t in result.overflow_tasks] == [task.id]
        assert task_repository.get(task.id).scheduled_end is None

    def test_failed_reschedule_rolls_back_create(self, task_repository):
        existing = task_repository.create(_payload(title="Existing"))

        with patch("slotwise.database.repository.schedule_tasks", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError, match="boom"):
                task_repository.create(_payload(title="Broken"))

        assert [t.id for t in task_repository.get_all()] == [existing.id]

    def test_failed_reschedule_rolls_back_update(self, task_repository):
        task = task_repository.create(_payload(estimated_hours=1))

        with patch("slotwise.database.repository.schedule_tasks", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                task_repository.update(task.id, TaskUpdate(estimated_hours=3))

        assert task_repository.get(task.id).estimated_hours == 1

    def test_no_overlap_after_many_mutations(self, task_repository, working_hours):
        ids = []
        for i in range(10):
            created = task_repository.create(_payload(
                title=f"Task {i}",
                due_date=datetime(2024, 1, 1, 9, 0) + timedelta(hours=i * 5),
                estimated_hours=0.75 + (i % 4),
                priority=[Priority.LOW, Priority.MEDIUM, Priority.HIGH][i % 3],
            ))
            ids.append(created.id)
        task_repository.update(ids[3], TaskUpdate(estimated_hours=2.5))
        task_repository.delete(ids[5])

        tasks = [t for t in task_repository.get_all() if t.is_scheduled]
        assert len(tasks) == 9
        for i, a in enumerate(tasks):
            assert a.scheduled_end <= working_hours.closes(a.scheduled_start.date())
            for b in tasks[i + 1:]:
                assert a.scheduled_end <= b.scheduled_start or b.scheduled_end <= a.scheduled_start


def test_repository_reads_working_hours_from_environment(db_session, monkeypatch):
    monkeypatch.setenv("SLOTWISE_WORKDAY_START_HOUR", "7")
    monkeypatch.setenv("SLOTWISE_WORKDAY_END_HOUR", "19")
    monkeypatch.setenv("SLOTWISE_MAX_LOOKAHEAD_DAYS", "14")

    repo = TaskRepository(db_session)

    assert repo.working_hours.start_hour == 7
    assert repo.working_hours.end_hour == 19
    assert repo.max_lookahead_days == 14
