"""SQLite engine and session access.

One engine per database file, created on first use and reused for the
life of the process. The file location comes from, in order: an explicit
argument, AGENTLAB_DB_PATH, or data/agentlab.db.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agentlab.db.schema import Base

DB_PATH_ENV = "AGENTLAB_DB_PATH"
DEFAULT_DB_PATH = Path("data/agentlab.db")

# Absolute path -> (engine, session factory)
_bindings: dict[str, tuple[Engine, sessionmaker]] = {}


def resolve_db_path(db_path: Path | None = None) -> Path:
    """Pick the database file.

    Args:
        db_path: Explicit path. Takes precedence over the environment.

    Returns:
        Path to the SQLite database file.
    """
    if db_path is not None:
        return Path(db_path)
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return Path(env_path)
    return DEFAULT_DB_PATH


def _binding(db_path: Path | None) -> tuple[Engine, sessionmaker]:
    path = resolve_db_path(db_path)
    key = str(path.resolve())
    if key not in _bindings:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Request handlers run on a threadpool; share one connection across threads
        engine = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _bindings[key] = (engine, sessionmaker(bind=engine))
    return _bindings[key]


def get_engine(db_path: Path | None = None) -> Engine:
    """Engine for a database file, created on first call."""
    return _binding(db_path)[0]


def get_session(db_path: Path | None = None) -> Session:
    """Open a new session. The caller closes it."""
    return _binding(db_path)[1]()


def init_db(db_path: Path | None = None) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(get_engine(db_path))
