"""Experiments API endpoints.

GET    /api/experiments                      - List experiments
POST   /api/experiments                      - Create experiment
GET    /api/experiments/{experiment_id}      - Get experiment detail
PATCH  /api/experiments/{experiment_id}      - Update experiment
DELETE /api/experiments/{experiment_id}      - Delete experiment
PUT    /api/experiments/{experiment_id}/folder - Move experiment to a folder
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import ExperimentEntity
from agentlab.models.types import (
    ExperimentCreate,
    ExperimentDetail,
    ExperimentUpdate,
    FolderAssignment,
)
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import experiments as workspace

router = APIRouter()


def _experiment_to_detail(exp: ExperimentEntity) -> ExperimentDetail:
    """Convert ExperimentEntity to ExperimentDetail."""
    return ExperimentDetail(**asdict(exp))


def _publish(feed: ChangeFeed, event_type: str, exp: ExperimentEntity) -> None:
    feed.publish(ChangeEvent("experiments", event_type, exp.experiment_id, asdict(exp)))


@router.get("/experiments", response_model=list[ExperimentDetail])
def list_experiments(
    folder_id: str | None = None,
    goal: str | None = None,
    board_name: str | None = None,
    tag_id: str | None = None,
    session: DbSession = Depends(get_db_session),
) -> list[ExperimentDetail]:
    """List experiments, newest first.

    Args:
        folder_id: Only experiments in this folder.
        goal: Only experiments with exactly this goal.
        board_name: Only experiments on this board.
        tag_id: Only experiments carrying this tag.
        session: Database session (injected).
    """
    experiments = repo.list_experiments(
        session, folder_id=folder_id, goal=goal, board_name=board_name, tag_id=tag_id
    )
    return [_experiment_to_detail(e) for e in experiments]


@router.post("/experiments", response_model=ExperimentDetail, status_code=201)
def create_experiment(
    payload: ExperimentCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ExperimentDetail:
    """Create an experiment.

    Raises:
        HTTPException: 404 if the target folder does not exist.
    """
    try:
        experiment = workspace.create_experiment(session, payload.model_dump())
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    _publish(feed, "INSERT", experiment)
    return _experiment_to_detail(experiment)


@router.get("/experiments/{experiment_id}", response_model=ExperimentDetail)
def get_experiment(
    experiment_id: str,
    session: DbSession = Depends(get_db_session),
) -> ExperimentDetail:
    """Get experiment detail.

    Raises:
        HTTPException: 404 if experiment not found.
    """
    experiment = repo.get_experiment(session, experiment_id)

    if experiment is None:
        raise HTTPException(status_code=404, detail="Experiment not found")

    return _experiment_to_detail(experiment)


@router.patch("/experiments/{experiment_id}", response_model=ExperimentDetail)
def update_experiment(
    experiment_id: str,
    payload: ExperimentUpdate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ExperimentDetail:
    """Apply a partial update; fields not sent are left unchanged.

    Raises:
        HTTPException: 404 if experiment or target folder not found.
    """
    try:
        experiment = workspace.update_experiment(
            session, experiment_id, payload.model_dump(exclude_unset=True)
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    _publish(feed, "UPDATE", experiment)
    return _experiment_to_detail(experiment)


@router.put("/experiments/{experiment_id}/folder", response_model=ExperimentDetail)
def move_experiment(
    experiment_id: str,
    payload: FolderAssignment,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ExperimentDetail:
    """Move an experiment into a folder (null moves it out)."""
    try:
        experiment = workspace.move_to_folder(session, experiment_id, payload.folder_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    _publish(feed, "UPDATE", experiment)
    return _experiment_to_detail(experiment)


@router.delete("/experiments/{experiment_id}", status_code=204)
def delete_experiment(
    experiment_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete an experiment. Its battle history is kept.

    Raises:
        HTTPException: 404 if experiment not found.
    """
    try:
        workspace.delete_experiment(session, experiment_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("experiments", "DELETE", experiment_id))
    return Response(status_code=204)
