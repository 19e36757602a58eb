"""Annotations on experiment fields, with @mention notifications.

An annotation marks the half-open character range
[start_offset, end_offset) of one text field of an experiment.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import AnnotationEntity, NotificationEntity
from agentlab.workspace.notifications import create_mention_notification

logger = logging.getLogger(__name__)


@dataclass
class AnnotationCreationResult:
    """Result of creating an annotation."""

    annotation: AnnotationEntity
    notifications: list[NotificationEntity] = field(default_factory=list)


def create_annotation(
    session: DbSession,
    fields: dict[str, Any],
    user_id: str | None = None,
    mentioned_user_ids: list[str] | None = None,
) -> AnnotationCreationResult:
    """Create an annotation and notify every mentioned user once.

    The author is never notified of their own mention.

    Args:
        session: Database session.
        fields: experiment_id, field_name, start_offset, end_offset,
            highlighted_text and note.
        user_id: Author of the annotation.
        mentioned_user_ids: Users referenced with @mentions in the note.

    Raises:
        LookupError: If the experiment does not exist.
        ValueError: If the range ends before it starts.
    """
    experiment_id = fields["experiment_id"]
    if repo.get_experiment(session, experiment_id) is None:
        raise LookupError(f"Experiment not found: {experiment_id}")
    if fields["end_offset"] < fields["start_offset"]:
        raise ValueError("end_offset must not be before start_offset")

    annotation = repo.create_annotation(
        session,
        AnnotationEntity(
            annotation_id=str(uuid.uuid4()),
            experiment_id=experiment_id,
            field_name=fields["field_name"],
            start_offset=fields["start_offset"],
            end_offset=fields["end_offset"],
            highlighted_text=fields["highlighted_text"],
            note=fields["note"],
            user_id=user_id,
        ),
    )

    notifications = []
    # dict.fromkeys keeps first-mention order while dropping repeats
    for mentioned in dict.fromkeys(mentioned_user_ids or []):
        if mentioned == user_id:
            continue
        notifications.append(
            create_mention_notification(
                session,
                mentioned_user_id=mentioned,
                from_user_id=user_id,
                experiment_id=experiment_id,
                annotation_id=annotation.annotation_id,
                highlighted_text=annotation.highlighted_text,
            )
        )

    repo.commit(session)
    if notifications:
        logger.info(
            "Annotation %s mentioned %d user(s)", annotation.annotation_id, len(notifications)
        )
    return AnnotationCreationResult(annotation=annotation, notifications=notifications)


def update_note(session: DbSession, annotation_id: str, note: str) -> AnnotationEntity:
    """Replace an annotation's note. The highlighted range is immutable.

    Raises:
        LookupError: If the annotation does not exist.
    """
    annotation = repo.update_annotation_note(session, annotation_id, note)
    if annotation is None:
        raise LookupError(f"Annotation not found: {annotation_id}")
    repo.commit(session)
    return annotation


def delete_annotation(session: DbSession, annotation_id: str) -> AnnotationEntity:
    """Delete an annotation. Returns the deleted record.

    Raises:
        LookupError: If the annotation does not exist.
    """
    annotation = repo.get_annotation(session, annotation_id)
    if annotation is None or not repo.delete_annotation(session, annotation_id):
        raise LookupError(f"Annotation not found: {annotation_id}")
    repo.commit(session)
    return annotation


def annotations_for_field(
    annotations: list[AnnotationEntity], field_name: str
) -> list[AnnotationEntity]:
    """Annotations on one field, in their listed order."""
    return [a for a in annotations if a.field_name == field_name]
