"""Pydantic models for the agentlab API.

Request bodies validate client input; response models shape payloads
for the UI.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

TaskStatusLiteral = Literal["todo", "in_progress", "done"]
TaskPriorityLiteral = Literal["low", "medium", "high"]


# ============================================================================
# Experiments
# ============================================================================


class ExperimentCreate(BaseModel):
    """Experiment creation payload."""

    name: str = Field(min_length=1)
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
    folder_id: str | None = None


class ExperimentUpdate(BaseModel):
    """Partial experiment update. Only fields sent are applied."""

    name: str | None = Field(default=None, min_length=1)
    goal: str | None = None
    board_name: str | None = None
    mission: str | None = None
    rules: str | None = None
    desired: str | None = None
    example: str | None = None
    agentic_prompt: str | None = None
    search_terms: str | None = None
    search_context: str | None = None
    board_pulled_context: str | None = None
    board_full_context: str | None = None
    output: str | None = None
    use_websearch: bool | None = None
    notes: str | None = None
    rating: int | None = None
    folder_id: str | None = None


class ExperimentDetail(BaseModel):
    """Experiment details for API response."""

    experiment_id: str
    name: str
    goal: str
    board_name: str
    mission: str
    rules: str
    desired: str
    example: str
    agentic_prompt: str
    search_terms: str
    search_context: str
    board_pulled_context: str
    board_full_context: str
    output: str
    use_websearch: bool
    notes: str | None
    rating: int | None
    elo_rating: int
    folder_id: str | None
    created_at: datetime
    updated_at: datetime | None


class FolderAssignment(BaseModel):
    """Target folder for a move; null moves to the top level."""

    folder_id: str | None


# ============================================================================
# Dashboard
# ============================================================================


class SummaryStatsDetail(BaseModel):
    """Headline dashboard counters."""

    total: int
    rated: int
    unrated: int
    average_rating: float
    success_rate: int
    created_this_week: int


class RatingBucketDetail(BaseModel):
    rating: int
    count: int


class TimelinePointDetail(BaseModel):
    date: str
    count: int
    cumulative_count: int


class GoalPerformanceDetail(BaseModel):
    goal: str
    average_rating: float
    count: int


class TrendPointDetail(BaseModel):
    date: str
    average_rating: float
    count: int


class DashboardStatsDetail(BaseModel):
    """All dashboard views."""

    summary: SummaryStatsDetail
    rating_distribution: list[RatingBucketDetail]
    timeline: list[TimelinePointDetail]
    goal_performance: list[GoalPerformanceDetail]
    rating_trend: list[TrendPointDetail]


# ============================================================================
# Battles
# ============================================================================


class BattleSubmission(BaseModel):
    """Declared outcome of one battle.

    Scores before the battle default to the stored Elo ratings.
    """

    winner_id: str
    loser_id: str
    winner_elo_before: int | None = None
    loser_elo_before: int | None = None
    goal: str = ""
    board_name: str = ""


class BattleOutcome(BaseModel):
    """Scores before and after a recorded battle."""

    winner_id: str
    loser_id: str
    winner_elo_before: int
    winner_elo_after: int
    loser_elo_before: int
    loser_elo_after: int


class BattleDetail(BaseModel):
    """Battle history record for API response."""

    battle_id: str
    winner_id: str
    loser_id: str
    winner_elo_before: int
    winner_elo_after: int
    loser_elo_before: int
    loser_elo_after: int
    goal: str
    board_name: str
    user_id: str | None
    created_at: datetime | None


# ============================================================================
# Folders and tags
# ============================================================================


class FolderCreate(BaseModel):
    name: str = Field(min_length=1)
    color: str | None = None


class FolderUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    color: str | None = None


class FolderDetail(BaseModel):
    folder_id: str
    name: str
    color: str
    created_at: datetime | None


class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=64)
    color: str | None = None


class TagDetail(BaseModel):
    tag_id: str
    name: str
    color: str
    created_at: datetime | None


# ============================================================================
# Tasks
# ============================================================================


class TaskCreate(BaseModel):
    """Task creation payload."""

    title: str = Field(min_length=1)
    description: str | None = None
    status: TaskStatusLiteral = "todo"
    priority: TaskPriorityLiteral = "medium"
    experiment_id: str | None = None
    due_date: datetime | None = None


class TaskUpdate(BaseModel):
    """Partial task update. Only fields sent are applied."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: TaskStatusLiteral | None = None
    priority: TaskPriorityLiteral | None = None
    experiment_id: str | None = None
    due_date: datetime | None = None


class TaskDetail(BaseModel):
    """Task details for API response."""

    task_id: str
    title: str
    description: str | None
    status: TaskStatusLiteral
    priority: TaskPriorityLiteral
    experiment_id: str | None
    due_date: datetime | None
    completed_at: datetime | None
    user_id: str | None
    created_at: datetime | None
    updated_at: datetime | None


class TaskSummaryDetail(BaseModel):
    """Task counts per kanban column."""

    counts: dict[str, int]
    pending_count: int


# ============================================================================
# Annotations and notifications
# ============================================================================


class AnnotationCreate(BaseModel):
    """Annotation creation payload.

    mentioned_user_ids lists the users @mentioned in the note; each gets
    a notification.
    """

    experiment_id: str
    field_name: str = Field(min_length=1)
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    highlighted_text: str
    note: str
    mentioned_user_ids: list[str] = Field(default_factory=list)


class AnnotationUpdate(BaseModel):
    note: str


class AnnotationDetail(BaseModel):
    """Annotation details for API response."""

    annotation_id: str
    experiment_id: str
    field_name: str
    start_offset: int
    end_offset: int
    highlighted_text: str
    note: str
    user_id: str | None
    created_at: datetime | None
    updated_at: datetime | None


class NotificationDetail(BaseModel):
    """Notification details for API response."""

    notification_id: str
    user_id: str
    type: str
    title: str
    message: str
    link: str | None
    read: bool
    annotation_id: str | None
    from_user_id: str | None
    created_at: datetime | None


class NotificationList(BaseModel):
    """A user's latest notifications and their unread total."""

    notifications: list[NotificationDetail]
    unread_count: int


class MarkAllReadResult(BaseModel):
    updated: int


# ============================================================================
# Templates
# ============================================================================


class TemplateCreate(BaseModel):
    """Template creation payload."""

    name: str = Field(min_length=1)
    goal: str = ""
    mission: str = ""
    example: str = ""
    rules: str = ""
    use_websearch: bool = False


class TemplateUpdate(BaseModel):
    """Partial template update. Only fields sent are applied."""

    name: str | None = Field(default=None, min_length=1)
    goal: str | None = None
    mission: str | None = None
    example: str | None = None
    rules: str | None = None
    use_websearch: bool | None = None


class TemplateDetail(BaseModel):
    """Template details for API response."""

    template_id: str
    name: str
    goal: str
    mission: str
    example: str
    rules: str
    use_websearch: bool
    user_id: str | None
    created_at: datetime | None
    updated_at: datetime | None


class TemplateApply(BaseModel):
    """Name of the experiment created from a template."""

    name: str = Field(min_length=1)
