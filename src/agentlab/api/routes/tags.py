"""Tags API endpoints.

GET    /api/tags                                      - List tags
POST   /api/tags                                      - Create tag
DELETE /api/tags/{tag_id}                             - Delete tag
GET    /api/experiments/{experiment_id}/tags          - Tags of an experiment
PUT    /api/experiments/{experiment_id}/tags/{tag_id} - Attach tag
DELETE /api/experiments/{experiment_id}/tags/{tag_id} - Detach tag
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.types import TagCreate, TagDetail
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import organize

router = APIRouter()


@router.get("/tags", response_model=list[TagDetail])
def list_tags(session: DbSession = Depends(get_db_session)) -> list[TagDetail]:
    """List tags ordered by name."""
    return [TagDetail(**asdict(t)) for t in repo.list_tags(session)]


@router.post("/tags", response_model=TagDetail, status_code=201)
def create_tag(
    payload: TagCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TagDetail:
    """Create a tag.

    Raises:
        HTTPException: 409 if the name is taken.
    """
    try:
        tag = organize.create_tag(session, payload.name, payload.color)
    except organize.DuplicateTagError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    feed.publish(ChangeEvent("tags", "INSERT", tag.tag_id, asdict(tag)))
    return TagDetail(**asdict(tag))


@router.delete("/tags/{tag_id}", status_code=204)
def delete_tag(
    tag_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete a tag everywhere.

    Raises:
        HTTPException: 404 if tag not found.
    """
    try:
        organize.delete_tag(session, tag_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("tags", "DELETE", tag_id))
    return Response(status_code=204)


@router.get("/experiments/{experiment_id}/tags", response_model=list[TagDetail])
def list_experiment_tags(
    experiment_id: str,
    session: DbSession = Depends(get_db_session),
) -> list[TagDetail]:
    """Tags attached to an experiment.

    Raises:
        HTTPException: 404 if experiment not found.
    """
    if repo.get_experiment(session, experiment_id) is None:
        raise HTTPException(status_code=404, detail="Experiment not found")

    return [TagDetail(**asdict(t)) for t in repo.get_tags_for_experiment(session, experiment_id)]


@router.put("/experiments/{experiment_id}/tags/{tag_id}", status_code=204)
def attach_tag(
    experiment_id: str,
    tag_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Attach a tag to an experiment. Attaching twice is a no-op."""
    try:
        created = organize.add_tag(session, experiment_id, tag_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    if created:
        feed.publish(
            ChangeEvent(
                "experiment_tags",
                "INSERT",
                f"{experiment_id}:{tag_id}",
                {"experiment_id": experiment_id, "tag_id": tag_id},
            )
        )
    return Response(status_code=204)


@router.delete("/experiments/{experiment_id}/tags/{tag_id}", status_code=204)
def detach_tag(
    experiment_id: str,
    tag_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Detach a tag from an experiment."""
    try:
        removed = organize.remove_tag(session, experiment_id, tag_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    if removed:
        feed.publish(
            ChangeEvent(
                "experiment_tags",
                "DELETE",
                f"{experiment_id}:{tag_id}",
                {"experiment_id": experiment_id, "tag_id": tag_id},
            )
        )
    return Response(status_code=204)
