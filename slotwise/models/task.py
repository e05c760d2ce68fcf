"""Task data model for slotwise."""

from datetime import datetime
from typing import Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from slotwise.models.constants import MIN_ESTIMATED_HOURS, MAX_TITLE_LENGTH


class Priority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Higher weight is committed first when due dates tie
PRIORITY_WEIGHTS = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


def priority_weight(priority) -> int:
    """Return the sort weight for a priority (enum or its string value)."""
    return PRIORITY_WEIGHTS[Priority(priority)]


def to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive local wall-clock time.

    Working hours are compared against wall-clock time, so every datetime the
    scheduler sees must be naive and local.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class Task(BaseModel):
    """Canonical Task model."""

    id: int = Field(..., description="Repository-assigned identifier (monotonically increasing)")
    title: str = Field(..., description="Task title")
    description: Optional[str] = Field(None, description="Free-text description")
    estimated_hours: float = Field(..., ge=MIN_ESTIMATED_HOURS, description="Estimated duration in hours")
    priority: Priority = Field(Priority.MEDIUM, description="Priority, used as a tie-break after due date")
    due_date: datetime = Field(..., description="Due date; its time-of-day is a preferred start time")
    completed: bool = Field(False, description="Completed tasks are excluded from scheduling")
    scheduled_start: Optional[datetime] = Field(None, description="Assigned slot start")
    scheduled_end: Optional[datetime] = Field(None, description="Assigned slot end")
    created_at: datetime = Field(..., description="Task creation timestamp")

    @field_validator("due_date", "scheduled_start", "scheduled_end", "created_at")
    @classmethod
    def _local_naive(cls, value):
        return to_local_naive(value)

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_start is not None and self.scheduled_end is not None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    estimated_hours: float = Field(..., ge=MIN_ESTIMATED_HOURS)
    priority: Priority = Priority.MEDIUM
    due_date: datetime

    @field_validator("due_date")
    @classmethod
    def _local_naive(cls, value):
        return to_local_naive(value)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TaskUpdate(BaseModel):
    """Partial update payload. Only fields that were explicitly set are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    description: Optional[str] = None
    estimated_hours: Optional[float] = Field(None, ge=MIN_ESTIMATED_HOURS)
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    @field_validator("due_date")
    @classmethod
    def _local_naive(cls, value):
        return to_local_naive(value)

    def changes(self) -> dict:
        """Return the explicitly supplied fields, dropping nulls for required columns."""
        data = self.model_dump(exclude_unset=True)
        # description is the only nullable field; a null elsewhere means "no change"
        return {k: v for k, v in data.items() if v is not None or k == "description"}

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
