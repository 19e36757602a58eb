"""Notification records.

Only the records live here. Pushing them to a user's screen is left to
clients watching the change feed.
"""

from __future__ import annotations

import uuid

from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.domain import NotificationEntity

MENTION_TYPE = "mention"
MENTION_TITLE = "You were mentioned in an annotation"
MENTION_PREVIEW_CHARS = 50


def mention_message(highlighted_text: str) -> str:
    """Message body for a mention, quoting at most 50 characters.

    Examples:
        >>> mention_message("short")
        'Someone mentioned you in an annotation: "short"'
    """
    preview = highlighted_text[:MENTION_PREVIEW_CHARS]
    if len(highlighted_text) > MENTION_PREVIEW_CHARS:
        preview += "..."
    return f'Someone mentioned you in an annotation: "{preview}"'


def create_mention_notification(
    session: DbSession,
    mentioned_user_id: str,
    from_user_id: str | None,
    experiment_id: str,
    annotation_id: str,
    highlighted_text: str,
) -> NotificationEntity:
    """Record that a user was mentioned in an annotation.

    The caller commits.
    """
    return repo.create_notification(
        session,
        NotificationEntity(
            notification_id=str(uuid.uuid4()),
            user_id=mentioned_user_id,
            type=MENTION_TYPE,
            title=MENTION_TITLE,
            message=mention_message(highlighted_text),
            link=f"/experiment/{experiment_id}",
            annotation_id=annotation_id,
            from_user_id=from_user_id,
        ),
    )


def mark_read(session: DbSession, notification_id: str, user_id: str) -> NotificationEntity:
    """Flag one of the user's notifications as read.

    Raises:
        LookupError: If the user has no such notification.
    """
    _check_owner(session, notification_id, user_id)
    notification = repo.mark_notification_read(session, notification_id)
    repo.commit(session)
    return notification


def mark_all_read(session: DbSession, user_id: str) -> int:
    """Flag every unread notification of a user. Returns how many changed."""
    updated = repo.mark_all_notifications_read(session, user_id)
    repo.commit(session)
    return updated


def delete_notification(session: DbSession, notification_id: str, user_id: str) -> None:
    _check_owner(session, notification_id, user_id)
    repo.delete_notification(session, notification_id)
    repo.commit(session)


def _check_owner(session: DbSession, notification_id: str, user_id: str) -> None:
    # Another user's notification is reported as missing
    notification = repo.get_notification(session, notification_id)
    if notification is None or notification.user_id != user_id:
        raise LookupError(f"Notification not found: {notification_id}")
