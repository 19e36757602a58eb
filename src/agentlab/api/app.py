"""FastAPI application factory and shared request dependencies."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Generator

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from agentlab.db.repo import DbSession
from agentlab.db.session import get_session, init_db, resolve_db_path
from agentlab.logging_setup import setup_logging
from agentlab.realtime.feed import ChangeFeed, change_feed

logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"


def get_db_session(request: Request) -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(request.app.state.db_path)
    try:
        yield session
    finally:
        session.close()


def get_change_feed() -> ChangeFeed:
    """Dependency for the change feed write routes publish to."""
    return change_feed


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """Acting user, as forwarded by the auth proxy in X-User-Id."""
    return x_user_id


def require_user_id(user_id: str | None = Depends(get_current_user_id)) -> str:
    """Acting user for routes scoped to one user.

    Raises:
        HTTPException: 401 if X-User-Id is missing.
    """
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return user_id


def _cors_origins() -> list[str]:
    raw = os.environ.get("AGENTLAB_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        db_path: Optional path to database file. Defaults to
            AGENTLAB_DB_PATH, then data/agentlab.db.

    Returns:
        Configured FastAPI application.
    """
    setup_logging()
    resolved_path = resolve_db_path(db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(resolved_path)
        logger.info("Database ready at %s", resolved_path)
        yield

    app = FastAPI(
        title="agentlab API",
        description="Agent experiment tracking, dashboard analytics and output battles",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db_path = resolved_path

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routes
    from agentlab.api.routes import (
        annotations,
        battles,
        changes,
        dashboard,
        experiments,
        folders,
        notifications,
        tags,
        tasks,
        templates,
    )

    app.include_router(experiments.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(battles.router, prefix="/api")
    app.include_router(folders.router, prefix="/api")
    app.include_router(tags.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")
    app.include_router(annotations.router, prefix="/api")
    app.include_router(notifications.router, prefix="/api")
    app.include_router(templates.router, prefix="/api")
    app.include_router(changes.router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
