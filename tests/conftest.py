"""Pytest fixtures and configuration for todoview tests."""

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from todoview.config import Settings
from todoview.database.database import Base, init_db
from todoview.models.todoist import (
    TodoistItem,
    TodoistLabel,
    TodoistProject,
    TodoistSection,
    TodoistSnapshot,
)


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PASSWORD = "correct horse battery staple"
TEST_SESSION_SECRET = "test-session-secret-with-enough-length"
TEST_CLIENT_SECRET = "test-client-secret"


@pytest.fixture
def now():
    """Fixed reference time for deterministic tests."""
    return datetime(2026, 1, 26, 12, 0, 0, tzinfo=timezone.utc)


def iso(value: datetime) -> str:
    """Format a datetime the way Todoist does (UTC, `Z` suffix)."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@pytest.fixture
def hours_ago(now):
    """Todoist-formatted timestamp a number of hours before `now`."""
    def _hours_ago(hours: float) -> str:
        return iso(now - timedelta(hours=hours))
    return _hours_ago


@pytest.fixture
def sample_item_base():
    """Base item data for creating test items.

    Returns a dict with default item attributes that can be overridden.
    """
    return {
        "id": "task-1",
        "project_id": "proj-1",
        "section_id": None,
        "parent_id": None,
        "content": "Test Task",
        "description": "",
        "priority": 1,
        "due": None,
        "labels": [],
        "checked": False,
        "is_deleted": False,
        "child_order": 1,
        "completed_at": None,
    }


@pytest.fixture
def make_item(sample_item_base):
    """Factory for TodoistItem objects with overrides."""
    def _make(**overrides):
        return TodoistItem(**{**sample_item_base, **overrides})
    return _make


@pytest.fixture
def sample_project_base():
    """Base project data for creating test projects."""
    return {
        "id": "proj-1",
        "name": "Project",
        "color": "blue",
        "parent_id": None,
        "order": 1,
        "child_order": 1,
        "is_inbox_project": False,
        "collapsed": False,
        "shared": False,
        "view_style": "list",
        "is_deleted": False,
        "is_archived": False,
    }


@pytest.fixture
def make_project(sample_project_base):
    """Factory for TodoistProject objects with overrides."""
    def _make(**overrides):
        return TodoistProject(**{**sample_project_base, **overrides})
    return _make


@pytest.fixture
def make_section():
    """Factory for TodoistSection objects with overrides."""
    def _make(**overrides):
        base = {
            "id": "sec-1",
            "project_id": "proj-1",
            "name": "Section",
            "order": 1,
            "is_deleted": False,
            "is_archived": False,
        }
        return TodoistSection(**{**base, **overrides})
    return _make


@pytest.fixture
def sample_snapshot(make_project, make_section, make_item, now):
    """Small upstream snapshot: an Inbox and one sectioned project."""
    return TodoistSnapshot(
        projects=[
            make_project(id="inbox", name="Inbox", is_inbox_project=True, order=99),
            make_project(id="proj-1", name="Work", order=5),
        ],
        sections=[make_section(id="sec-1", project_id="proj-1", name="Doing", order=1)],
        items=[
            make_item(id="t-inbox", project_id="inbox", content="Buy milk"),
            make_item(id="t-work", project_id="proj-1", section_id="sec-1", content="Ship it", priority=4),
            make_item(id="t-sub", project_id="proj-1", parent_id="t-work", content="Write tests"),
        ],
        labels=[TodoistLabel(id="l1", name="urgent"), TodoistLabel(id="l2", name="")],
        completed_items=[
            make_item(
                id="t-done",
                project_id="proj-1",
                content="Done recently",
                checked=True,
                completed_at=iso(now - timedelta(hours=3)),
            ),
        ],
        sync_token="sync-token-1",
    )


@pytest.fixture
def test_settings():
    """Settings with every secret configured and background refresh off."""
    return Settings(
        app_password=TEST_PASSWORD,
        session_secret=TEST_SESSION_SECRET,
        todoist_api_token="test-todoist-token",
        todoist_client_secret=TEST_CLIENT_SECRET,
        database_url=TEST_DATABASE_URL,
        enable_background_refresh=False,
        heartbeat_interval_seconds=0.01,
        max_heartbeats=2,
    )


@pytest.fixture(scope="function")
def session_factory():
    """Session factory bound to a fresh in-memory SQLite database."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    init_db(engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    """Database session for repository tests."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mock_todoist_client(sample_snapshot):
    """Todoist client double returning the sample snapshot."""
    client = MagicMock()
    client.fetch_snapshot.return_value = sample_snapshot
    return client


@pytest.fixture
def test_app(test_settings, mock_todoist_client, session_factory, now):
    """App wired to the test settings, the client double and the test database."""
    from todoview.api.app import create_app

    app = create_app(
        settings=test_settings,
        client_factory=lambda: mock_todoist_client,
        session_factory=session_factory,
    )
    app.state.refresher.clock = lambda: now
    return app


@pytest.fixture
def test_client(test_app):
    """FastAPI test client (runs the app lifespan)."""
    with TestClient(test_app) as client:
        yield client


@pytest.fixture
def auth_headers(test_settings):
    """Authorization header carrying a valid session token."""
    from todoview.auth.jwt import create_access_token

    return {"Authorization": f"Bearer {create_access_token(test_settings)}"}
