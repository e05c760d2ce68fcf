"""FastAPI web application for slotwise."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from slotwise import __version__
from slotwise.database.database import get_db, init_db
from slotwise.database.repository import TaskRepository
from slotwise.engine.views import (
    TaskFilter,
    SortOption,
    SortDirection,
    filter_tasks,
    sort_tasks,
    is_overdue,
    is_due_soon,
    format_hours,
)
from slotwise.errors import TaskNotFoundError
from slotwise.models.task import Task, TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="slotwise API",
    description="Places your tasks into non-overlapping working-hours slots",
    version=__version__,
    lifespan=lifespan,
)

router = APIRouter(prefix="/api")


# Response models
class TaskResponse(BaseModel):
    """Response for a single task."""
    task: Task


class TaskListItem(Task):
    """Task plus the display flags list views show next to it."""
    overdue: bool
    due_soon: bool
    duration_label: str


class TaskListResponse(BaseModel):
    """Response for task list."""
    tasks: List[TaskListItem]
    count: int


class ScheduleResponse(BaseModel):
    """Response for a manual reschedule."""
    tasks: List[Task]
    overflow_task_ids: List[int]
    scheduled_at: Optional[datetime]


def get_task_repository(db: Session = Depends(get_db)) -> TaskRepository:
    """Repository bound to the request's session."""
    return TaskRepository(db)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    filter: TaskFilter = TaskFilter.ALL,
    sort: Optional[SortOption] = None,
    direction: SortDirection = SortDirection.ASC,
    repo: TaskRepository = Depends(get_task_repository),
):
    """List tasks, optionally filtered and sorted."""
    now = repo.clock()
    tasks = filter_tasks(repo.get_all(), filter, now=now)
    if sort is not None:
        tasks = sort_tasks(tasks, sort, direction)
    items = [
        TaskListItem(
            **t.model_dump(),
            overdue=not t.completed and is_overdue(t.due_date, now=now),
            due_soon=is_due_soon(t.due_date, now=now),
            duration_label=format_hours(t.estimated_hours),
        )
        for t in tasks
    ]
    return TaskListResponse(tasks=items, count=len(items))


# Registered before /tasks/{task_id} so "schedule" is not parsed as an id
@router.post("/tasks/schedule", response_model=ScheduleResponse)
def reschedule_tasks(repo: TaskRepository = Depends(get_task_repository)):
    """Manually re-run scheduling over every stored task."""
    try:
        result = repo.reschedule_all()
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to schedule tasks: {str(e)}")
    return ScheduleResponse(
        tasks=result.tasks,
        overflow_task_ids=[t.id for t in result.overflow_tasks],
        scheduled_at=result.now,
    )


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, repo: TaskRepository = Depends(get_task_repository)):
    """Get a task by ID."""
    task = repo.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse(task=task)


@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(payload: TaskCreate, repo: TaskRepository = Depends(get_task_repository)):
    """Create a task; it comes back already scheduled."""
    try:
        task = repo.create(payload)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create task: {str(e)}")
    logger.info(f"Created task {task.id} scheduled {task.scheduled_start} - {task.scheduled_end}")
    return TaskResponse(task=task)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, payload: TaskUpdate, repo: TaskRepository = Depends(get_task_repository)):
    """Partially update a task."""
    try:
        task = repo.update(task_id, payload)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update task: {str(e)}")
    return TaskResponse(task=task)


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(task_id: int, repo: TaskRepository = Depends(get_task_repository)):
    """Delete a task and reschedule the rest."""
    try:
        repo.delete(task_id)
    except TaskNotFoundError:
        raise HTTPException(status_code=404, detail="Task not found")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete task: {str(e)}")
    return Response(status_code=204)


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
