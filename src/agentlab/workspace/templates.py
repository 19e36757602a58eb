"""Experiment templates.

A template stores the prompt setup (goal, mission, example, rules,
websearch flag) that prefills a new experiment.
"""

from __future__ import annotations

import uuid
from typing import Any

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import TemplateEntity


def create_template(
    session: DbSession, fields: dict[str, Any], user_id: str | None = None
) -> TemplateEntity:
    """Save a template owned by the acting user."""
    template = repo.create_template(
        session,
        TemplateEntity(
            template_id=str(uuid.uuid4()),
            name=fields["name"],
            goal=fields.get("goal") or "",
            mission=fields.get("mission") or "",
            example=fields.get("example") or "",
            rules=fields.get("rules") or "",
            use_websearch=bool(fields.get("use_websearch")),
            user_id=user_id,
        ),
    )
    repo.commit(session)
    return template


def update_template(
    session: DbSession, template_id: str, fields: dict[str, Any]
) -> TemplateEntity:
    """Apply a partial update. None values are ignored.

    Raises:
        LookupError: If the template does not exist.
    """
    fields = {k: v for k, v in fields.items() if v is not None}
    template = repo.update_template(session, template_id, fields)
    if template is None:
        raise LookupError(f"Template not found: {template_id}")
    repo.commit(session)
    return template


def delete_template(session: DbSession, template_id: str) -> None:
    """Delete a template.

    Raises:
        LookupError: If the template does not exist.
    """
    if not repo.delete_template(session, template_id):
        raise LookupError(f"Template not found: {template_id}")
    repo.commit(session)


def template_fields(template: TemplateEntity) -> dict[str, Any]:
    """Experiment fields a template prefills."""
    return {
        "goal": template.goal,
        "mission": template.mission,
        "example": template.example,
        "rules": template.rules,
        "use_websearch": template.use_websearch,
    }
