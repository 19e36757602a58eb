"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from agentlab.db.schema import (
    Annotation,
    BattleHistory,
    Experiment,
    ExperimentTag,
    ExperimentTemplate,
    Folder,
    Notification,
    Tag,
    Task,
)
from agentlab.models.domain import (
    AnnotationEntity,
    BattleEntity,
    ExperimentEntity,
    FolderEntity,
    NotificationEntity,
    TagEntity,
    TaskEntity,
    TemplateEntity,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]

# Columns a client may change on an experiment. elo_rating is excluded:
# only the battle recorder writes it.
EXPERIMENT_EDITABLE_FIELDS = frozenset(
    {
        "name",
        "goal",
        "board_name",
        "mission",
        "rules",
        "desired",
        "example",
        "agentic_prompt",
        "search_terms",
        "search_context",
        "board_pulled_context",
        "board_full_context",
        "output",
        "use_websearch",
        "notes",
        "rating",
        "folder_id",
    }
)

TASK_EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "experiment_id",
        "due_date",
        "completed_at",
    }
)

TEMPLATE_EDITABLE_FIELDS = frozenset(
    {"name", "goal", "mission", "example", "rules", "use_websearch"}
)


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _experiment_to_entity(exp: Experiment) -> ExperimentEntity:
    """Convert SQLAlchemy Experiment to domain entity."""
    return ExperimentEntity(
        experiment_id=exp.experiment_id,
        name=exp.name,
        created_at=exp.created_at,
        goal=exp.goal,
        board_name=exp.board_name,
        mission=exp.mission,
        rules=exp.rules,
        desired=exp.desired,
        example=exp.example,
        agentic_prompt=exp.agentic_prompt,
        search_terms=exp.search_terms,
        search_context=exp.search_context,
        board_pulled_context=exp.board_pulled_context,
        board_full_context=exp.board_full_context,
        output=exp.output,
        use_websearch=exp.use_websearch,
        notes=exp.notes,
        rating=exp.rating,
        elo_rating=exp.elo_rating,
        folder_id=exp.folder_id,
        updated_at=exp.updated_at,
    )


def _battle_to_entity(battle: BattleHistory) -> BattleEntity:
    """Convert SQLAlchemy BattleHistory to domain entity."""
    return BattleEntity(
        battle_id=battle.battle_id,
        winner_id=battle.winner_id,
        loser_id=battle.loser_id,
        winner_elo_before=battle.winner_elo_before,
        winner_elo_after=battle.winner_elo_after,
        loser_elo_before=battle.loser_elo_before,
        loser_elo_after=battle.loser_elo_after,
        goal=battle.goal,
        board_name=battle.board_name,
        user_id=battle.user_id,
        created_at=battle.created_at,
    )


def _folder_to_entity(folder: Folder) -> FolderEntity:
    """Convert SQLAlchemy Folder to domain entity."""
    return FolderEntity(
        folder_id=folder.folder_id,
        name=folder.name,
        color=folder.color,
        created_at=folder.created_at,
    )


def _tag_to_entity(tag: Tag) -> TagEntity:
    """Convert SQLAlchemy Tag to domain entity."""
    return TagEntity(
        tag_id=tag.tag_id,
        name=tag.name,
        color=tag.color,
        created_at=tag.created_at,
    )


def _task_to_entity(task: Task) -> TaskEntity:
    """Convert SQLAlchemy Task to domain entity."""
    return TaskEntity(
        task_id=task.task_id,
        title=task.title,
        status=task.status,
        priority=task.priority,
        description=task.description,
        experiment_id=task.experiment_id,
        due_date=task.due_date,
        completed_at=task.completed_at,
        user_id=task.user_id,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _annotation_to_entity(annotation: Annotation) -> AnnotationEntity:
    """Convert SQLAlchemy Annotation to domain entity."""
    return AnnotationEntity(
        annotation_id=annotation.annotation_id,
        experiment_id=annotation.experiment_id,
        field_name=annotation.field_name,
        start_offset=annotation.start_offset,
        end_offset=annotation.end_offset,
        highlighted_text=annotation.highlighted_text,
        note=annotation.note,
        user_id=annotation.user_id,
        created_at=annotation.created_at,
        updated_at=annotation.updated_at,
    )


def _notification_to_entity(notification: Notification) -> NotificationEntity:
    """Convert SQLAlchemy Notification to domain entity."""
    return NotificationEntity(
        notification_id=notification.notification_id,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        link=notification.link,
        read=notification.read,
        annotation_id=notification.annotation_id,
        from_user_id=notification.from_user_id,
        created_at=notification.created_at,
    )


def _template_to_entity(template: ExperimentTemplate) -> TemplateEntity:
    """Convert SQLAlchemy ExperimentTemplate to domain entity."""
    return TemplateEntity(
        template_id=template.template_id,
        name=template.name,
        goal=template.goal,
        mission=template.mission,
        example=template.example,
        rules=template.rules,
        use_websearch=template.use_websearch,
        user_id=template.user_id,
        created_at=template.created_at,
        updated_at=template.updated_at,
    )


# ============================================================================
# Experiment Repository
# ============================================================================


def get_experiment(session: DbSession, experiment_id: str) -> ExperimentEntity | None:
    """Get experiment by ID."""
    exp = session.query(Experiment).filter(Experiment.experiment_id == experiment_id).first()
    return _experiment_to_entity(exp) if exp else None


def list_experiments(
    session: DbSession,
    *,
    folder_id: str | None = None,
    goal: str | None = None,
    board_name: str | None = None,
    tag_id: str | None = None,
) -> list[ExperimentEntity]:
    """List experiments, newest first, with optional filters."""
    query = session.query(Experiment)
    if folder_id is not None:
        query = query.filter(Experiment.folder_id == folder_id)
    if goal is not None:
        query = query.filter(Experiment.goal == goal)
    if board_name is not None:
        query = query.filter(Experiment.board_name == board_name)
    if tag_id is not None:
        query = query.join(
            ExperimentTag, ExperimentTag.experiment_id == Experiment.experiment_id
        ).filter(ExperimentTag.tag_id == tag_id)
    experiments = query.order_by(Experiment.created_at.desc()).all()
    return [_experiment_to_entity(e) for e in experiments]


def list_experiments_by_elo(
    session: DbSession, goal: str, board_name: str
) -> list[ExperimentEntity]:
    """List experiments of one goal/board ordered by Elo, strongest first."""
    experiments = (
        session.query(Experiment)
        .filter(Experiment.goal == goal, Experiment.board_name == board_name)
        .order_by(Experiment.elo_rating.desc(), Experiment.created_at.asc())
        .all()
    )
    return [_experiment_to_entity(e) for e in experiments]


def create_experiment(
    session: DbSession, experiment_id: str, fields: dict[str, Any]
) -> ExperimentEntity:
    """Create a new experiment.

    Unknown keys in ``fields`` are ignored.
    """
    values = {k: v for k, v in fields.items() if k in EXPERIMENT_EDITABLE_FIELDS}
    exp = Experiment(experiment_id=experiment_id, **values)
    session.add(exp)
    session.flush()
    return _experiment_to_entity(exp)


def update_experiment(
    session: DbSession, experiment_id: str, fields: dict[str, Any]
) -> ExperimentEntity | None:
    """Update editable experiment fields. Returns None if not found."""
    exp = session.query(Experiment).filter(Experiment.experiment_id == experiment_id).first()
    if exp is None:
        return None
    for key, value in fields.items():
        if key in EXPERIMENT_EDITABLE_FIELDS:
            setattr(exp, key, value)
    session.flush()
    return _experiment_to_entity(exp)


def update_elo_rating(session: DbSession, experiment_id: str, elo_rating: int) -> bool:
    """Set an experiment's Elo score. Returns False if not found."""
    exp = session.query(Experiment).filter(Experiment.experiment_id == experiment_id).first()
    if exp is None:
        return False
    exp.elo_rating = elo_rating
    return True


def delete_experiment(session: DbSession, experiment_id: str) -> bool:
    """Delete an experiment with its tag links and annotations; unlink its tasks.

    Battle history and notifications are kept.
    """
    exp = session.query(Experiment).filter(Experiment.experiment_id == experiment_id).first()
    if exp is None:
        return False
    annotation_ids = [
        a.annotation_id
        for a in session.query(Annotation).filter(Annotation.experiment_id == experiment_id)
    ]
    if annotation_ids:
        _detach_notifications(session, annotation_ids)
        session.query(Annotation).filter(Annotation.annotation_id.in_(annotation_ids)).delete(
            synchronize_session=False
        )
    session.query(ExperimentTag).filter(ExperimentTag.experiment_id == experiment_id).delete()
    session.query(Task).filter(Task.experiment_id == experiment_id).update(
        {Task.experiment_id: None}
    )
    session.delete(exp)
    return True


# ============================================================================
# Battle Repository (append-only: no update or delete)
# ============================================================================


def create_battle(session: DbSession, entity: BattleEntity) -> BattleEntity:
    """Insert a battle history record."""
    battle = BattleHistory(
        battle_id=entity.battle_id,
        winner_id=entity.winner_id,
        loser_id=entity.loser_id,
        winner_elo_before=entity.winner_elo_before,
        winner_elo_after=entity.winner_elo_after,
        loser_elo_before=entity.loser_elo_before,
        loser_elo_after=entity.loser_elo_after,
        goal=entity.goal,
        board_name=entity.board_name,
        user_id=entity.user_id,
    )
    session.add(battle)
    return entity


def list_battles(
    session: DbSession,
    *,
    goal: str | None = None,
    board_name: str | None = None,
) -> list[BattleEntity]:
    """List battles, newest first."""
    query = session.query(BattleHistory)
    if goal is not None:
        query = query.filter(BattleHistory.goal == goal)
    if board_name is not None:
        query = query.filter(BattleHistory.board_name == board_name)
    battles = query.order_by(BattleHistory.created_at.desc()).all()
    return [_battle_to_entity(b) for b in battles]


def list_battles_for_experiment(session: DbSession, experiment_id: str) -> list[BattleEntity]:
    """List battles an experiment took part in, newest first."""
    battles = (
        session.query(BattleHistory)
        .filter(
            (BattleHistory.winner_id == experiment_id)
            | (BattleHistory.loser_id == experiment_id)
        )
        .order_by(BattleHistory.created_at.desc())
        .all()
    )
    return [_battle_to_entity(b) for b in battles]


# ============================================================================
# Folder Repository
# ============================================================================


def list_folders(session: DbSession) -> list[FolderEntity]:
    """List folders ordered by name."""
    folders = session.query(Folder).order_by(Folder.name.asc()).all()
    return [_folder_to_entity(f) for f in folders]


def get_folder(session: DbSession, folder_id: str) -> FolderEntity | None:
    """Get folder by ID."""
    folder = session.query(Folder).filter(Folder.folder_id == folder_id).first()
    return _folder_to_entity(folder) if folder else None


def create_folder(session: DbSession, entity: FolderEntity) -> FolderEntity:
    """Create a new folder."""
    folder = Folder(folder_id=entity.folder_id, name=entity.name, color=entity.color)
    session.add(folder)
    session.flush()
    return _folder_to_entity(folder)


def update_folder(
    session: DbSession,
    folder_id: str,
    *,
    name: str | None = None,
    color: str | None = None,
) -> FolderEntity | None:
    """Rename or recolor a folder."""
    folder = session.query(Folder).filter(Folder.folder_id == folder_id).first()
    if folder is None:
        return None
    if name is not None:
        folder.name = name
    if color is not None:
        folder.color = color
    session.flush()
    return _folder_to_entity(folder)


def delete_folder(session: DbSession, folder_id: str) -> bool:
    """Delete a folder, detaching its experiments."""
    folder = session.query(Folder).filter(Folder.folder_id == folder_id).first()
    if folder is None:
        return False
    session.query(Experiment).filter(Experiment.folder_id == folder_id).update(
        {Experiment.folder_id: None}
    )
    session.delete(folder)
    return True


# ============================================================================
# Tag Repository
# ============================================================================


def list_tags(session: DbSession) -> list[TagEntity]:
    """List tags ordered by name."""
    tags = session.query(Tag).order_by(Tag.name.asc()).all()
    return [_tag_to_entity(t) for t in tags]


def get_tag(session: DbSession, tag_id: str) -> TagEntity | None:
    """Get tag by ID."""
    tag = session.query(Tag).filter(Tag.tag_id == tag_id).first()
    return _tag_to_entity(tag) if tag else None


def get_tag_by_name(session: DbSession, name: str) -> TagEntity | None:
    """Get tag by its unique name."""
    tag = session.query(Tag).filter(Tag.name == name).first()
    return _tag_to_entity(tag) if tag else None


def create_tag(session: DbSession, entity: TagEntity) -> TagEntity:
    """Create a new tag."""
    tag = Tag(tag_id=entity.tag_id, name=entity.name, color=entity.color)
    session.add(tag)
    session.flush()
    return _tag_to_entity(tag)


def delete_tag(session: DbSession, tag_id: str) -> bool:
    """Delete a tag and all of its experiment links."""
    tag = session.query(Tag).filter(Tag.tag_id == tag_id).first()
    if tag is None:
        return False
    session.query(ExperimentTag).filter(ExperimentTag.tag_id == tag_id).delete()
    session.delete(tag)
    return True


def get_tags_for_experiment(session: DbSession, experiment_id: str) -> list[TagEntity]:
    """Get the tags attached to an experiment, ordered by name."""
    tags = (
        session.query(Tag)
        .join(ExperimentTag, ExperimentTag.tag_id == Tag.tag_id)
        .filter(ExperimentTag.experiment_id == experiment_id)
        .order_by(Tag.name.asc())
        .all()
    )
    return [_tag_to_entity(t) for t in tags]


def has_experiment_tag(session: DbSession, experiment_id: str, tag_id: str) -> bool:
    """Check whether a tag is attached to an experiment."""
    link = (
        session.query(ExperimentTag)
        .filter(ExperimentTag.experiment_id == experiment_id, ExperimentTag.tag_id == tag_id)
        .first()
    )
    return link is not None


def create_experiment_tag(
    session: DbSession, link_id: str, experiment_id: str, tag_id: str
) -> None:
    """Attach a tag to an experiment."""
    session.add(ExperimentTag(link_id=link_id, experiment_id=experiment_id, tag_id=tag_id))


def delete_experiment_tag(session: DbSession, experiment_id: str, tag_id: str) -> bool:
    """Detach a tag from an experiment."""
    deleted = (
        session.query(ExperimentTag)
        .filter(ExperimentTag.experiment_id == experiment_id, ExperimentTag.tag_id == tag_id)
        .delete()
    )
    return deleted > 0


# ============================================================================
# Task Repository
# ============================================================================


def list_tasks(session: DbSession, status: str | None = None) -> list[TaskEntity]:
    """List tasks, newest first."""
    query = session.query(Task)
    if status is not None:
        query = query.filter(Task.status == status)
    tasks = query.order_by(Task.created_at.desc()).all()
    return [_task_to_entity(t) for t in tasks]


def get_task(session: DbSession, task_id: str) -> TaskEntity | None:
    """Get task by ID."""
    task = session.query(Task).filter(Task.task_id == task_id).first()
    return _task_to_entity(task) if task else None


def create_task(session: DbSession, entity: TaskEntity) -> TaskEntity:
    """Create a new task."""
    task = Task(
        task_id=entity.task_id,
        title=entity.title,
        description=entity.description,
        status=entity.status,
        priority=entity.priority,
        experiment_id=entity.experiment_id,
        due_date=entity.due_date,
        completed_at=entity.completed_at,
        user_id=entity.user_id,
    )
    session.add(task)
    session.flush()
    return _task_to_entity(task)


def update_task(session: DbSession, task_id: str, fields: dict[str, Any]) -> TaskEntity | None:
    """Update editable task fields. Returns None if not found."""
    task = session.query(Task).filter(Task.task_id == task_id).first()
    if task is None:
        return None
    for key, value in fields.items():
        if key in TASK_EDITABLE_FIELDS:
            setattr(task, key, value)
    session.flush()
    return _task_to_entity(task)


def delete_task(session: DbSession, task_id: str) -> bool:
    """Delete a task."""
    task = session.query(Task).filter(Task.task_id == task_id).first()
    if task is None:
        return False
    session.delete(task)
    return True


# ============================================================================
# Annotation Repository
# ============================================================================


def list_annotations(session: DbSession, experiment_id: str) -> list[AnnotationEntity]:
    """List an experiment's annotations by field, then position."""
    annotations = (
        session.query(Annotation)
        .filter(Annotation.experiment_id == experiment_id)
        .order_by(Annotation.field_name, Annotation.start_offset)
        .all()
    )
    return [_annotation_to_entity(a) for a in annotations]


def get_annotation(session: DbSession, annotation_id: str) -> AnnotationEntity | None:
    """Get annotation by ID."""
    annotation = (
        session.query(Annotation).filter(Annotation.annotation_id == annotation_id).first()
    )
    return _annotation_to_entity(annotation) if annotation else None


def create_annotation(session: DbSession, entity: AnnotationEntity) -> AnnotationEntity:
    """Create a new annotation."""
    annotation = Annotation(
        annotation_id=entity.annotation_id,
        experiment_id=entity.experiment_id,
        field_name=entity.field_name,
        start_offset=entity.start_offset,
        end_offset=entity.end_offset,
        highlighted_text=entity.highlighted_text,
        note=entity.note,
        user_id=entity.user_id,
    )
    session.add(annotation)
    session.flush()
    return _annotation_to_entity(annotation)


def update_annotation_note(
    session: DbSession, annotation_id: str, note: str
) -> AnnotationEntity | None:
    """Replace an annotation's note. Returns None if not found."""
    annotation = (
        session.query(Annotation).filter(Annotation.annotation_id == annotation_id).first()
    )
    if annotation is None:
        return None
    annotation.note = note
    session.flush()
    return _annotation_to_entity(annotation)


def delete_annotation(session: DbSession, annotation_id: str) -> bool:
    """Delete an annotation. Notifications that point at it are kept."""
    annotation = (
        session.query(Annotation).filter(Annotation.annotation_id == annotation_id).first()
    )
    if annotation is None:
        return False
    _detach_notifications(session, [annotation_id])
    session.delete(annotation)
    return True


def _detach_notifications(session: DbSession, annotation_ids: list[str]) -> None:
    session.query(Notification).filter(Notification.annotation_id.in_(annotation_ids)).update(
        {Notification.annotation_id: None}, synchronize_session=False
    )


# ============================================================================
# Notification Repository
# ============================================================================


def list_notifications(
    session: DbSession, user_id: str, limit: int = 50
) -> list[NotificationEntity]:
    """List a user's notifications, newest first."""
    notifications = (
        session.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_notification_to_entity(n) for n in notifications]


def get_notification(session: DbSession, notification_id: str) -> NotificationEntity | None:
    """Get notification by ID."""
    notification = (
        session.query(Notification)
        .filter(Notification.notification_id == notification_id)
        .first()
    )
    return _notification_to_entity(notification) if notification else None


def create_notification(session: DbSession, entity: NotificationEntity) -> NotificationEntity:
    """Create a new notification."""
    notification = Notification(
        notification_id=entity.notification_id,
        user_id=entity.user_id,
        type=entity.type,
        title=entity.title,
        message=entity.message,
        link=entity.link,
        read=entity.read,
        annotation_id=entity.annotation_id,
        from_user_id=entity.from_user_id,
    )
    session.add(notification)
    session.flush()
    return _notification_to_entity(notification)


def mark_notification_read(session: DbSession, notification_id: str) -> NotificationEntity | None:
    """Flag one notification as read. Returns None if not found."""
    notification = (
        session.query(Notification)
        .filter(Notification.notification_id == notification_id)
        .first()
    )
    if notification is None:
        return None
    notification.read = True
    session.flush()
    return _notification_to_entity(notification)


def mark_all_notifications_read(session: DbSession, user_id: str) -> int:
    """Flag every unread notification of a user as read. Returns the count."""
    return (
        session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )


def count_unread_notifications(session: DbSession, user_id: str) -> int:
    """Number of unread notifications of a user."""
    return (
        session.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )


def delete_notification(session: DbSession, notification_id: str) -> bool:
    """Delete a notification."""
    deleted = (
        session.query(Notification)
        .filter(Notification.notification_id == notification_id)
        .delete()
    )
    return deleted > 0


# ============================================================================
# Template Repository
# ============================================================================


def list_templates(session: DbSession) -> list[TemplateEntity]:
    """List experiment templates ordered by name."""
    templates = session.query(ExperimentTemplate).order_by(ExperimentTemplate.name).all()
    return [_template_to_entity(t) for t in templates]


def get_template(session: DbSession, template_id: str) -> TemplateEntity | None:
    """Get template by ID."""
    template = (
        session.query(ExperimentTemplate)
        .filter(ExperimentTemplate.template_id == template_id)
        .first()
    )
    return _template_to_entity(template) if template else None


def create_template(session: DbSession, entity: TemplateEntity) -> TemplateEntity:
    """Create a new template."""
    template = ExperimentTemplate(
        template_id=entity.template_id,
        name=entity.name,
        goal=entity.goal,
        mission=entity.mission,
        example=entity.example,
        rules=entity.rules,
        use_websearch=entity.use_websearch,
        user_id=entity.user_id,
    )
    session.add(template)
    session.flush()
    return _template_to_entity(template)


def update_template(
    session: DbSession, template_id: str, fields: dict[str, Any]
) -> TemplateEntity | None:
    """Update editable template fields. Returns None if not found."""
    template = (
        session.query(ExperimentTemplate)
        .filter(ExperimentTemplate.template_id == template_id)
        .first()
    )
    if template is None:
        return None
    for key, value in fields.items():
        if key in TEMPLATE_EDITABLE_FIELDS:
            setattr(template, key, value)
    session.flush()
    return _template_to_entity(template)


def delete_template(session: DbSession, template_id: str) -> bool:
    """Delete a template."""
    deleted = (
        session.query(ExperimentTemplate)
        .filter(ExperimentTemplate.template_id == template_id)
        .delete()
    )
    return deleted > 0


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()


def rollback(session: DbSession) -> None:
    """Roll back current transaction."""
    session.rollback()
