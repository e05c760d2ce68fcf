"""Data models for slotwise."""

from slotwise.models.task import Task, TaskCreate, TaskUpdate, Priority, PRIORITY_WEIGHTS

__all__ = [
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "Priority",
    "PRIORITY_WEIGHTS",
]
