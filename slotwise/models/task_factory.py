"""Task creation factory for slotwise.

Centralizes the defaults a freshly created task starts with. The identity is
not assigned here; the repository's storage assigns it on insert.
"""

from datetime import datetime
from typing import Dict, Any

from slotwise.models.task import TaskCreate, Priority


def create_task_defaults() -> Dict[str, Any]:
    """Get default values for the fields a create payload does not carry.

    Returns:
        Dictionary with default task field values
    """
    return {
        "description": None,
        "priority": Priority.MEDIUM.value,
        "completed": False,
        "scheduled_start": None,
        "scheduled_end": None,
    }


def new_task_fields(payload: TaskCreate, now: datetime) -> Dict[str, Any]:
    """Build the stored field set for a new task.

    Args:
        payload: Validated create payload
        now: Creation timestamp to stamp on the record

    Returns:
        Field dictionary ready to be persisted (no ``id``)
    """
    fields = create_task_defaults()
    fields.update(payload.model_dump(exclude_none=True))
    fields["created_at"] = now
    return fields
