"""Domain models for agentlab.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

# Baseline strength score for a record that has never battled
DEFAULT_ELO = 1200


# ============================================================================
# Experiment Domain
# ============================================================================


@dataclass(frozen=True)
class ExperimentEntity:
    """Domain model for an experiment record.

    Frozen so that a list of entities can be handed to the analytics
    functions as a read-only snapshot.
    """

    experiment_id: str
    name: str
    created_at: datetime
    goal: str = ""
    board_name: str = ""
    mission: str = ""
    rules: str = ""
    desired: str = ""
    example: str = ""
    agentic_prompt: str = ""
    search_terms: str = ""
    search_context: str = ""
    board_pulled_context: str = ""
    board_full_context: str = ""
    output: str = ""
    use_websearch: bool = False
    notes: str | None = None
    rating: int | None = None
    elo_rating: int = DEFAULT_ELO
    folder_id: str | None = None
    updated_at: datetime | None = None


# ============================================================================
# Battle Domain
# ============================================================================


@dataclass(frozen=True)
class BattleEntity:
    """Domain model for one recorded battle (append-only)."""

    battle_id: str
    winner_id: str
    loser_id: str
    winner_elo_before: int
    winner_elo_after: int
    loser_elo_before: int
    loser_elo_after: int
    goal: str
    board_name: str
    user_id: str | None = None
    created_at: datetime | None = None


# ============================================================================
# Workspace Domain
# ============================================================================


@dataclass
class FolderEntity:
    """Domain model for a folder."""

    folder_id: str
    name: str
    color: str
    created_at: datetime | None = None


@dataclass
class TagEntity:
    """Domain model for a tag."""

    tag_id: str
    name: str
    color: str
    created_at: datetime | None = None


TaskStatus = Literal["todo", "in_progress", "done"]
TaskPriority = Literal["low", "medium", "high"]


@dataclass
class TaskEntity:
    """Domain model for a kanban task."""

    task_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    description: str | None = None
    experiment_id: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# ============================================================================
# Collaboration Domain
# ============================================================================


@dataclass
class AnnotationEntity:
    """A note pinned to a character range of one experiment field."""

    annotation_id: str
    experiment_id: str
    field_name: str
    start_offset: int
    end_offset: int
    highlighted_text: str
    note: str
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class NotificationEntity:
    """A message for one user, e.g. an @mention in an annotation."""

    notification_id: str
    user_id: str
    type: str
    title: str
    message: str
    link: str | None = None
    read: bool = False
    annotation_id: str | None = None
    from_user_id: str | None = None
    created_at: datetime | None = None


@dataclass
class TemplateEntity:
    """Reusable starting point for new experiments."""

    template_id: str
    name: str
    goal: str = ""
    mission: str = ""
    example: str = ""
    rules: str = ""
    use_websearch: bool = False
    user_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
