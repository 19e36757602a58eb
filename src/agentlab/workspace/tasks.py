"""Kanban tasks.

Moving a task to done stamps completed_at; moving it anywhere else
clears it.

Database access goes through repo; every write commits before returning.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import TaskEntity

TASK_STATUSES = ("todo", "in_progress", "done")
PENDING_STATUSES = ("todo", "in_progress")

# Fields that may be cleared with None; None for any other field means "leave as is"
NULLABLE_FIELDS = frozenset({"description", "experiment_id", "due_date"})


@dataclass
class TaskSummary:
    """Task counts per kanban column."""

    counts: dict[str, int]
    pending_count: int


def create_task(
    session: DbSession,
    fields: dict[str, Any],
    user_id: str | None = None,
) -> TaskEntity:
    """Create a task.

    Raises:
        LookupError: If fields reference a missing experiment.
    """
    _check_experiment(session, fields.get("experiment_id"))
    status = fields.get("status") or "todo"
    entity = TaskEntity(
        task_id=str(uuid.uuid4()),
        title=fields["title"],
        status=status,
        priority=fields.get("priority") or "medium",
        description=fields.get("description"),
        experiment_id=fields.get("experiment_id"),
        due_date=fields.get("due_date"),
        completed_at=datetime.now() if status == "done" else None,
        user_id=user_id,
    )
    task = repo.create_task(session, entity)
    repo.commit(session)
    return task


def update_task(session: DbSession, task_id: str, fields: dict[str, Any]) -> TaskEntity:
    """Apply a partial update.

    Raises:
        LookupError: If the task or a referenced experiment does not exist.
    """
    fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_FIELDS}
    if "experiment_id" in fields:
        _check_experiment(session, fields["experiment_id"])
    fields = _with_completion(fields)
    task = repo.update_task(session, task_id, fields)
    if task is None:
        raise LookupError(f"Task not found: {task_id}")
    repo.commit(session)
    return task


def delete_task(session: DbSession, task_id: str) -> None:
    """Delete a task."""
    if not repo.delete_task(session, task_id):
        raise LookupError(f"Task not found: {task_id}")
    repo.commit(session)


def summarize_tasks(tasks: list[TaskEntity]) -> TaskSummary:
    """Count tasks per status.

    Pure function - no database access.
    """
    counts = {status: 0 for status in TASK_STATUSES}
    for task in tasks:
        counts[task.status] = counts.get(task.status, 0) + 1
    pending = sum(counts[status] for status in PENDING_STATUSES)
    return TaskSummary(counts=counts, pending_count=pending)


def _with_completion(fields: dict[str, Any]) -> dict[str, Any]:
    """Derive completed_at from a status change.

    Pure function - no database access.
    """
    status = fields.get("status")
    if status is None:
        return fields
    updated = dict(fields)
    updated["completed_at"] = datetime.now() if status == "done" else None
    return updated


def _check_experiment(session: DbSession, experiment_id: str | None) -> None:
    if experiment_id is not None and repo.get_experiment(session, experiment_id) is None:
        raise LookupError(f"Experiment not found: {experiment_id}")
