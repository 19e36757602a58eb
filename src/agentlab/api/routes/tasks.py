"""Tasks API endpoints.

GET    /api/tasks           - List tasks
GET    /api/tasks/summary   - Task counts per status
POST   /api/tasks           - Create task
PATCH  /api/tasks/{task_id} - Update task
DELETE /api/tasks/{task_id} - Delete task
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_current_user_id, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import TaskEntity
from agentlab.models.types import (
    TaskCreate,
    TaskDetail,
    TaskStatusLiteral,
    TaskSummaryDetail,
    TaskUpdate,
)
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import tasks as workspace

router = APIRouter()


def _task_to_detail(task: TaskEntity) -> TaskDetail:
    """Convert TaskEntity to TaskDetail."""
    return TaskDetail(**asdict(task))


@router.get("/tasks", response_model=list[TaskDetail])
def list_tasks(
    status: TaskStatusLiteral | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[TaskDetail]:
    """List tasks, newest first, optionally for one kanban column."""
    return [_task_to_detail(t) for t in repo.list_tasks(session, status=status)]


@router.get("/tasks/summary", response_model=TaskSummaryDetail)
def get_task_summary(session: DbSession = Depends(get_db_session)) -> TaskSummaryDetail:
    """Task counts per status and the number still pending."""
    summary = workspace.summarize_tasks(repo.list_tasks(session))
    return TaskSummaryDetail(counts=summary.counts, pending_count=summary.pending_count)


@router.post("/tasks", response_model=TaskDetail, status_code=201)
def create_task(
    payload: TaskCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str | None = Depends(get_current_user_id),
) -> TaskDetail:
    """Create a task.

    Raises:
        HTTPException: 404 if the linked experiment does not exist.
    """
    try:
        task = workspace.create_task(session, payload.model_dump(), user_id=user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("tasks", "INSERT", task.task_id, asdict(task)))
    return _task_to_detail(task)


@router.patch("/tasks/{task_id}", response_model=TaskDetail)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TaskDetail:
    """Apply a partial update; moving to done stamps completed_at.

    Raises:
        HTTPException: 404 if task or linked experiment not found.
    """
    try:
        task = workspace.update_task(session, task_id, payload.model_dump(exclude_unset=True))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("tasks", "UPDATE", task.task_id, asdict(task)))
    return _task_to_detail(task)


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete a task.

    Raises:
        HTTPException: 404 if task not found.
    """
    try:
        workspace.delete_task(session, task_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("tasks", "DELETE", task_id))
    return Response(status_code=204)
