"""Database schema for agentlab.

Experiments, battle history, the workspace tables (folders, tags, tasks)
and the collaboration tables (annotations, notifications, templates),
with the unique constraints the domain relies on.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from agentlab.models.domain import DEFAULT_ELO

DEFAULT_COLOR = "#6366f1"


def _now() -> datetime:
    # Stored naive, in local time; analytics bucket by local calendar day.
    return datetime.now()


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Folder(Base):
    """Named grouping of experiments."""

    __tablename__ = "folders"

    folder_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_COLOR)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


class Experiment(Base):
    """A tracked agent run: prompt, context, output and human rating."""

    __tablename__ = "experiments"

    experiment_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    goal: Mapped[str] = mapped_column(Text, nullable=False, default="")
    board_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    mission: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rules: Mapped[str] = mapped_column(Text, nullable=False, default="")
    desired: Mapped[str] = mapped_column(Text, nullable=False, default="")
    example: Mapped[str] = mapped_column(Text, nullable=False, default="")
    agentic_prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    search_terms: Mapped[str] = mapped_column(Text, nullable=False, default="")
    search_context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    board_pulled_context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    board_full_context: Mapped[str] = mapped_column(Text, nullable=False, default="")
    output: Mapped[str] = mapped_column(Text, nullable=False, default="")
    use_websearch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    elo_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_ELO)
    folder_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("folders.folder_id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


class BattleHistory(Base):
    """One pairwise comparison (append-only).

    Winner/loser ids are plain columns, not foreign keys: history
    outlives the experiments it mentions.
    """

    __tablename__ = "battle_history"

    battle_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    winner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    loser_id: Mapped[str] = mapped_column(String(64), nullable=False)
    winner_elo_before: Mapped[int] = mapped_column(Integer, nullable=False)
    winner_elo_after: Mapped[int] = mapped_column(Integer, nullable=False)
    loser_elo_before: Mapped[int] = mapped_column(Integer, nullable=False)
    loser_elo_after: Mapped[int] = mapped_column(Integer, nullable=False)
    goal: Mapped[str] = mapped_column(Text, nullable=False, default="")
    board_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class Tag(Base):
    """Label that can be attached to many experiments.

    Invariant: UNIQUE(name)
    """

    __tablename__ = "tags"

    tag_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_COLOR)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class ExperimentTag(Base):
    """Experiment <-> tag link.

    Invariant: UNIQUE(experiment_id, tag_id)
    """

    __tablename__ = "experiment_tags"

    link_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    experiment_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("experiments.experiment_id"), nullable=False
    )
    tag_id: Mapped[str] = mapped_column(String(64), ForeignKey("tags.tag_id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)

    __table_args__ = (
        UniqueConstraint("experiment_id", "tag_id", name="uq_experiment_tag"),
    )


class Task(Base):
    """Kanban task, optionally linked to an experiment."""

    __tablename__ = "tasks"

    task_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="todo")
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="medium")
    experiment_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("experiments.experiment_id"), nullable=True
    )
    due_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


class Annotation(Base):
    """Highlighted range of an experiment field with a note."""

    __tablename__ = "annotations"

    annotation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    experiment_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("experiments.experiment_id"), nullable=False, index=True
    )
    field_name: Mapped[str] = mapped_column(String(64), nullable=False)
    start_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    end_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    highlighted_text: Mapped[str] = mapped_column(Text, nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )


class Notification(Base):
    """Per-user notification record. Delivery is the client's concern."""

    __tablename__ = "notifications"

    notification_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(256), nullable=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    annotation_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("annotations.annotation_id"), nullable=True
    )
    from_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)


class ExperimentTemplate(Base):
    """Saved prompt setup used to prefill new experiments."""

    __tablename__ = "experiment_templates"

    template_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    goal: Mapped[str] = mapped_column(Text, nullable=False, default="")
    mission: Mapped[str] = mapped_column(Text, nullable=False, default="")
    example: Mapped[str] = mapped_column(Text, nullable=False, default="")
    rules: Mapped[str] = mapped_column(Text, nullable=False, default="")
    use_websearch: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_now, onupdate=_now
    )
