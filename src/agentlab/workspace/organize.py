"""Folders and tags."""

from __future__ import annotations

import uuid

from sqlalchemy.exc import IntegrityError

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.db.schema import DEFAULT_COLOR
from agentlab.models.domain import FolderEntity, TagEntity


class DuplicateTagError(ValueError):
    """Raised when a tag name is already taken."""


# ============================================================================
# Folders
# ============================================================================


def create_folder(session: DbSession, name: str, color: str | None = None) -> FolderEntity:
    """Create a folder."""
    folder = repo.create_folder(
        session,
        FolderEntity(folder_id=str(uuid.uuid4()), name=name, color=color or DEFAULT_COLOR),
    )
    repo.commit(session)
    return folder


def update_folder(
    session: DbSession,
    folder_id: str,
    name: str | None = None,
    color: str | None = None,
) -> FolderEntity:
    """Rename or recolor a folder.

    Raises:
        LookupError: If the folder does not exist.
    """
    folder = repo.update_folder(session, folder_id, name=name, color=color)
    if folder is None:
        raise LookupError(f"Folder not found: {folder_id}")
    repo.commit(session)
    return folder


def delete_folder(session: DbSession, folder_id: str) -> None:
    """Delete a folder; its experiments move to the top level."""
    if not repo.delete_folder(session, folder_id):
        raise LookupError(f"Folder not found: {folder_id}")
    repo.commit(session)


# ============================================================================
# Tags
# ============================================================================


def create_tag(session: DbSession, name: str, color: str | None = None) -> TagEntity:
    """Create a tag.

    Raises:
        DuplicateTagError: If a tag with that name exists.
    """
    name = name.strip()
    if repo.get_tag_by_name(session, name) is not None:
        raise DuplicateTagError(f"Tag already exists: {name}")
    try:
        tag = repo.create_tag(
            session,
            TagEntity(tag_id=str(uuid.uuid4()), name=name, color=color or DEFAULT_COLOR),
        )
        repo.commit(session)
    except IntegrityError as e:
        # Lost a race with a concurrent create of the same name
        repo.rollback(session)
        raise DuplicateTagError(f"Tag already exists: {name}") from e
    return tag


def delete_tag(session: DbSession, tag_id: str) -> None:
    """Delete a tag and detach it from every experiment."""
    if not repo.delete_tag(session, tag_id):
        raise LookupError(f"Tag not found: {tag_id}")
    repo.commit(session)


def add_tag(session: DbSession, experiment_id: str, tag_id: str) -> bool:
    """Attach a tag to an experiment.

    Idempotent: attaching an already attached tag is a no-op.

    Returns:
        True if a new link was created.

    Raises:
        LookupError: If the experiment or tag does not exist.
    """
    _check_experiment_and_tag(session, experiment_id, tag_id)
    if repo.has_experiment_tag(session, experiment_id, tag_id):
        return False
    repo.create_experiment_tag(session, str(uuid.uuid4()), experiment_id, tag_id)
    repo.commit(session)
    return True


def remove_tag(session: DbSession, experiment_id: str, tag_id: str) -> bool:
    """Detach a tag from an experiment.

    Returns:
        True if a link was removed.
    """
    _check_experiment_and_tag(session, experiment_id, tag_id)
    removed = repo.delete_experiment_tag(session, experiment_id, tag_id)
    repo.commit(session)
    return removed


def _check_experiment_and_tag(session: DbSession, experiment_id: str, tag_id: str) -> None:
    if repo.get_experiment(session, experiment_id) is None:
        raise LookupError(f"Experiment not found: {experiment_id}")
    if repo.get_tag(session, tag_id) is None:
        raise LookupError(f"Tag not found: {tag_id}")
