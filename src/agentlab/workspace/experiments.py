"""Experiment creation and editing.

Database access goes through repo; every write commits before returning.
"""

from __future__ import annotations

import uuid
from typing import Any

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import ExperimentEntity

# Fields that may be cleared with None; None for any other field means "leave as is"
NULLABLE_FIELDS = frozenset({"notes", "rating", "folder_id"})


def create_experiment(session: DbSession, fields: dict[str, Any]) -> ExperimentEntity:
    """Create an experiment with a fresh ID.

    Raises:
        LookupError: If fields name a folder that does not exist.
    """
    _check_folder(session, fields.get("folder_id"))
    experiment = repo.create_experiment(session, str(uuid.uuid4()), fields)
    repo.commit(session)
    return experiment


def update_experiment(
    session: DbSession, experiment_id: str, fields: dict[str, Any]
) -> ExperimentEntity:
    """Apply a partial update.

    Raises:
        LookupError: If the experiment or the target folder does not exist.
    """
    fields = {k: v for k, v in fields.items() if v is not None or k in NULLABLE_FIELDS}
    if "folder_id" in fields:
        _check_folder(session, fields["folder_id"])
    experiment = repo.update_experiment(session, experiment_id, fields)
    if experiment is None:
        raise LookupError(f"Experiment not found: {experiment_id}")
    repo.commit(session)
    return experiment


def move_to_folder(
    session: DbSession, experiment_id: str, folder_id: str | None
) -> ExperimentEntity:
    """Move an experiment into a folder, or out of any folder with None."""
    return update_experiment(session, experiment_id, {"folder_id": folder_id})


def delete_experiment(session: DbSession, experiment_id: str) -> None:
    """Delete an experiment.

    Raises:
        LookupError: If the experiment does not exist.
    """
    if not repo.delete_experiment(session, experiment_id):
        raise LookupError(f"Experiment not found: {experiment_id}")
    repo.commit(session)


def _check_folder(session: DbSession, folder_id: str | None) -> None:
    if folder_id is not None and repo.get_folder(session, folder_id) is None:
        raise LookupError(f"Folder not found: {folder_id}")
