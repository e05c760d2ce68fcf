"""SQLAlchemy database models for slotwise."""

from datetime import datetime
from typing import Union, TypeVar, Type
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime

from slotwise.database.database import Base
from slotwise.models.task import Priority

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


# Fields update() may write; id and created_at are immutable.
MUTABLE_FIELDS = (
    "title",
    "description",
    "estimated_hours",
    "priority",
    "due_date",
    "completed",
    "scheduled_start",
    "scheduled_end",
)


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    # AUTOINCREMENT keeps SQLite from reusing the id of a deleted last row
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(100), nullable=False)
    description = Column(String, nullable=True)

    # Scheduling inputs
    estimated_hours = Column(Float, nullable=False)
    priority = Column(String, nullable=False, default=Priority.MEDIUM.value, index=True)
    due_date = Column(DateTime, nullable=False, index=True)
    completed = Column(Boolean, nullable=False, default=False, index=True)

    # Scheduling outputs
    scheduled_start = Column(DateTime, nullable=True)
    scheduled_end = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from slotwise.models.task import Task

        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            estimated_hours=self.estimated_hours,
            priority=value_to_enum(self.priority, Priority, Priority.MEDIUM),
            due_date=self.due_date,
            completed=bool(self.completed),
            scheduled_start=self.scheduled_start,
            scheduled_end=self.scheduled_end,
            created_at=self.created_at,
        )

    def apply(self, fields: dict) -> None:
        """Copy mutable fields onto the row, converting enums to stored strings."""
        for name, value in fields.items():
            if name not in MUTABLE_FIELDS:
                continue
            if name == "priority":
                value = enum_to_value(value)
            setattr(self, name, value)

    @classmethod
    def from_fields(cls, fields: dict):
        """Create a database row from a new-task field dictionary (no id)."""
        row = cls(created_at=fields["created_at"])
        row.apply(fields)
        return row
