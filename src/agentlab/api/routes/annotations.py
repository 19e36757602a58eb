"""Annotations API endpoints.

GET    /api/experiments/{experiment_id}/annotations - List annotations
POST   /api/annotations                             - Create annotation
PATCH  /api/annotations/{annotation_id}             - Edit note
DELETE /api/annotations/{annotation_id}             - Delete annotation
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_current_user_id, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import AnnotationEntity
from agentlab.models.types import AnnotationCreate, AnnotationDetail, AnnotationUpdate
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import annotations as workspace

router = APIRouter()


def _annotation_to_detail(annotation: AnnotationEntity) -> AnnotationDetail:
    return AnnotationDetail(**asdict(annotation))


@router.get(
    "/experiments/{experiment_id}/annotations", response_model=list[AnnotationDetail]
)
def list_annotations(
    experiment_id: str,
    field_name: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[AnnotationDetail]:
    """List annotations ordered by field, then start offset.

    Args:
        experiment_id: Experiment the annotations belong to.
        field_name: Only annotations on this field.
        session: Database session (injected).

    Raises:
        HTTPException: 404 if experiment not found.
    """
    if repo.get_experiment(session, experiment_id) is None:
        raise HTTPException(status_code=404, detail="Experiment not found")

    annotations = repo.list_annotations(session, experiment_id)
    if field_name is not None:
        annotations = workspace.annotations_for_field(annotations, field_name)
    return [_annotation_to_detail(a) for a in annotations]


@router.post("/annotations", response_model=AnnotationDetail, status_code=201)
def create_annotation(
    payload: AnnotationCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str | None = Depends(get_current_user_id),
) -> AnnotationDetail:
    """Create an annotation and notify the users it mentions.

    Raises:
        HTTPException: 404 if the experiment does not exist, 400 if the
            range ends before it starts.
    """
    fields = payload.model_dump(exclude={"mentioned_user_ids"})
    try:
        result = workspace.create_annotation(
            session, fields, user_id=user_id, mentioned_user_ids=payload.mentioned_user_ids
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    annotation = result.annotation
    feed.publish(
        ChangeEvent("annotations", "INSERT", annotation.annotation_id, asdict(annotation))
    )
    for notification in result.notifications:
        feed.publish(
            ChangeEvent(
                "notifications", "INSERT", notification.notification_id, asdict(notification)
            )
        )
    return _annotation_to_detail(annotation)


@router.patch("/annotations/{annotation_id}", response_model=AnnotationDetail)
def update_annotation(
    annotation_id: str,
    payload: AnnotationUpdate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> AnnotationDetail:
    """Replace the note of an annotation.

    Raises:
        HTTPException: 404 if annotation not found.
    """
    try:
        annotation = workspace.update_note(session, annotation_id, payload.note)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("annotations", "UPDATE", annotation_id, asdict(annotation)))
    return _annotation_to_detail(annotation)


@router.delete("/annotations/{annotation_id}", status_code=204)
def delete_annotation(
    annotation_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete an annotation.

    Raises:
        HTTPException: 404 if annotation not found.
    """
    try:
        annotation = workspace.delete_annotation(session, annotation_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    # experiment_id stays in the payload so per-experiment watchers see the delete
    feed.publish(
        ChangeEvent(
            "annotations", "DELETE", annotation_id, {"experiment_id": annotation.experiment_id}
        )
    )
    return Response(status_code=204)
