"""Notifications API endpoints.

All routes act on the user named in X-User-Id.

GET    /api/notifications                        - Latest 50 and unread count
PATCH  /api/notifications/{notification_id}/read - Mark one as read
POST   /api/notifications/read-all               - Mark all as read
DELETE /api/notifications/{notification_id}      - Delete notification
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_db_session, require_user_id
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.types import MarkAllReadResult, NotificationDetail, NotificationList
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import notifications as workspace

router = APIRouter()


@router.get("/notifications", response_model=NotificationList)
def list_notifications(
    session: DbSession = Depends(get_db_session),
    user_id: str = Depends(require_user_id),
) -> NotificationList:
    """Latest notifications of the acting user, newest first."""
    return NotificationList(
        notifications=[
            NotificationDetail(**asdict(n)) for n in repo.list_notifications(session, user_id)
        ],
        unread_count=repo.count_unread_notifications(session, user_id),
    )


@router.patch("/notifications/{notification_id}/read", response_model=NotificationDetail)
def mark_notification_read(
    notification_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str = Depends(require_user_id),
) -> NotificationDetail:
    """Mark one notification as read.

    Raises:
        HTTPException: 404 if the user has no such notification.
    """
    try:
        notification = workspace.mark_read(session, notification_id, user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(
        ChangeEvent("notifications", "UPDATE", notification_id, asdict(notification))
    )
    return NotificationDetail(**asdict(notification))


@router.post("/notifications/read-all", response_model=MarkAllReadResult)
def mark_all_notifications_read(
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str = Depends(require_user_id),
) -> MarkAllReadResult:
    """Mark every unread notification of the acting user as read."""
    updated = workspace.mark_all_read(session, user_id)
    if updated:
        feed.publish(
            ChangeEvent("notifications", "UPDATE", user_id, {"user_id": user_id, "read": True})
        )
    return MarkAllReadResult(updated=updated)


@router.delete("/notifications/{notification_id}", status_code=204)
def delete_notification(
    notification_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
    user_id: str = Depends(require_user_id),
) -> Response:
    """Delete a notification.

    Raises:
        HTTPException: 404 if the user has no such notification.
    """
    try:
        workspace.delete_notification(session, notification_id, user_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("notifications", "DELETE", notification_id, {"user_id": user_id}))
    return Response(status_code=204)
