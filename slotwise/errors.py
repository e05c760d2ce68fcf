"""Exception types raised by slotwise."""

from typing import List


class TaskNotFoundError(LookupError):
    """Raised when an update or delete references an unknown task id."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class SchedulingOverflowError(RuntimeError):
    """Raised by callers that treat unplaceable tasks as fatal.

    The scheduling engine itself never raises this; it reports overflow tasks
    on the result and leaves them without a slot.
    """

    def __init__(self, task_ids: List[int]):
        self.task_ids = list(task_ids)
        ids = ", ".join(str(task_id) for task_id in self.task_ids)
        super().__init__(f"Could not place tasks within working hours: {ids}")
