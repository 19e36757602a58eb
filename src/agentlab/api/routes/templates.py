"""Experiment templates API endpoints.

GET    /api/templates                           - List templates
POST   /api/templates                           - Create template
PATCH  /api/templates/{template_id}             - Update template
DELETE /api/templates/{template_id}             - Delete template
POST   /api/templates/{template_id}/experiments - New experiment from template
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_current_user_id, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.types import (
    ExperimentDetail,
    TemplateApply,
    TemplateCreate,
    TemplateDetail,
    TemplateUpdate,
)
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import experiments as experiment_workspace
from agentlab.workspace import templates as workspace

router = APIRouter()


@router.get("/templates", response_model=list[TemplateDetail])
def list_templates(session: DbSession = Depends(get_db_session)) -> list[TemplateDetail]:
    """List templates ordered by name."""
    return [TemplateDetail(**asdict(t)) for t in repo.list_templates(session)]


@router.post("/templates", response_model=TemplateDetail, status_code=201)
def create_template(
    payload: TemplateCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str | None = Depends(get_current_user_id),
) -> TemplateDetail:
    """Save a template for the acting user."""
    template = workspace.create_template(session, payload.model_dump(), user_id=user_id)
    feed.publish(
        ChangeEvent("experiment_templates", "INSERT", template.template_id, asdict(template))
    )
    return TemplateDetail(**asdict(template))


@router.patch("/templates/{template_id}", response_model=TemplateDetail)
def update_template(
    template_id: str,
    payload: TemplateUpdate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> TemplateDetail:
    """Apply a partial update.

    Raises:
        HTTPException: 404 if template not found.
    """
    try:
        template = workspace.update_template(
            session, template_id, payload.model_dump(exclude_unset=True)
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("experiment_templates", "UPDATE", template_id, asdict(template)))
    return TemplateDetail(**asdict(template))


@router.delete("/templates/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete a template.

    Raises:
        HTTPException: 404 if template not found.
    """
    try:
        workspace.delete_template(session, template_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("experiment_templates", "DELETE", template_id))
    return Response(status_code=204)


@router.post(
    "/templates/{template_id}/experiments", response_model=ExperimentDetail, status_code=201
)
def create_experiment_from_template(
    template_id: str,
    payload: TemplateApply,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> ExperimentDetail:
    """Create an experiment prefilled from a template.

    Raises:
        HTTPException: 404 if template not found.
    """
    template = repo.get_template(session, template_id)
    if template is None:
        raise HTTPException(status_code=404, detail="Template not found")

    fields = {"name": payload.name, **workspace.template_fields(template)}
    experiment = experiment_workspace.create_experiment(session, fields)
    feed.publish(
        ChangeEvent("experiments", "INSERT", experiment.experiment_id, asdict(experiment))
    )
    return ExperimentDetail(**asdict(experiment))
