"""Shared pytest fixtures for agentlab tests."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from agentlab.db.schema import Base, Experiment
from agentlab.realtime.feed import ChangeFeed


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def session(engine):
    """Create a database session for testing."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def feed():
    """A private change feed so tests never share subscribers."""
    return ChangeFeed()


@pytest.fixture
def client(engine, feed):
    """TestClient wired to the in-memory database and private feed."""
    from agentlab.api.app import create_app, get_change_feed, get_db_session

    app = create_app()

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    app.dependency_overrides[get_change_feed] = lambda: feed
    return TestClient(app)


@pytest.fixture
def add_experiment(engine):
    """Insert an experiment row directly. Returns its ID."""

    def _add(experiment_id: str, **fields) -> str:
        with Session(engine) as db_session:
            db_session.add(Experiment(experiment_id=experiment_id, name=experiment_id, **fields))
            db_session.commit()
        return experiment_id

    return _add

