"""Folders API endpoints.

GET    /api/folders              - List folders
POST   /api/folders              - Create folder
PATCH  /api/folders/{folder_id}  - Rename or recolor folder
DELETE /api/folders/{folder_id}  - Delete folder
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Response

from agentlab.api.app import get_change_feed, get_db_session
from agentlab.db import repo
from agentlab.db.repo import DbSession
from agentlab.models.types import FolderCreate, FolderDetail, FolderUpdate
from agentlab.realtime.feed import ChangeEvent, ChangeFeed
from agentlab.workspace import organize

router = APIRouter()


@router.get("/folders", response_model=list[FolderDetail])
def list_folders(session: DbSession = Depends(get_db_session)) -> list[FolderDetail]:
    """List folders ordered by name."""
    return [FolderDetail(**asdict(f)) for f in repo.list_folders(session)]


@router.post("/folders", response_model=FolderDetail, status_code=201)
def create_folder(
    payload: FolderCreate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> FolderDetail:
    """Create a folder."""
    folder = organize.create_folder(session, payload.name, payload.color)
    feed.publish(ChangeEvent("folders", "INSERT", folder.folder_id, asdict(folder)))
    return FolderDetail(**asdict(folder))


@router.patch("/folders/{folder_id}", response_model=FolderDetail)
def update_folder(
    folder_id: str,
    payload: FolderUpdate,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> FolderDetail:
    """Rename or recolor a folder.

    Raises:
        HTTPException: 404 if folder not found.
    """
    try:
        folder = organize.update_folder(session, folder_id, payload.name, payload.color)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("folders", "UPDATE", folder.folder_id, asdict(folder)))
    return FolderDetail(**asdict(folder))


@router.delete("/folders/{folder_id}", status_code=204)
def delete_folder(
    folder_id: str,
    session: DbSession = Depends(get_db_session),
    feed: ChangeFeed = Depends(get_change_feed),
) -> Response:
    """Delete a folder; its experiments are kept at the top level.

    Raises:
        HTTPException: 404 if folder not found.
    """
    try:
        organize.delete_folder(session, folder_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    feed.publish(ChangeEvent("folders", "DELETE", folder_id))
    return Response(status_code=204)
