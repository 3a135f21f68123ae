from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from planner import create_app
from planner.config import TestingConfig
from planner.extensions import db
from planner.models import CalendarEvent, Notification, Task
from planner.src.utils import utcnow

"""
Shared pytest fixtures: an app on an in-memory database, a client, and
factories for tasks owned by the anonymous user unless told otherwise.
"""


@pytest.fixture
def app(tmp_path):
    """Create and configure a Flask app for testing."""

    class Config(TestingConfig):
        SETTINGS_FILE = str(tmp_path / "settings.json")

    app = create_app(Config)

    with app.app_context():
        db.create_all()
        yield app
        # Clean up after tests
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def test_db(app):
    """Set up the database for testing and clean it after tests."""
    with app.app_context():
        Notification.query.delete()
        CalendarEvent.query.delete()
        Task.query.delete()
        db.session.commit()

        yield db

        Notification.query.delete()
        CalendarEvent.query.delete()
        Task.query.delete()
        db.session.commit()


@pytest.fixture
def auth_headers(app):
    """Factory for Authorization headers carrying a user's identity."""

    def _headers(user_id):
        token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def create_task_factory(test_db):
    """Factory to create tasks with different configurations"""

    def _create_task(
        title="Test Task",
        duration=60,
        priority="medium",
        deadline=None,
        scheduled_time=None,
        status="pending",
        user_id="local",
        **kwargs,
    ):
        task = Task(
            title=title,
            duration=duration,
            priority=priority,
            deadline=deadline,
            scheduled_time=scheduled_time,
            status=status,
            user_id=user_id,
            **kwargs,
        )
        test_db.session.add(task)
        test_db.session.commit()
        return task

    return _create_task


@pytest.fixture
def days_from_now():
    def _days_from_now(days, hours=0):
        return (utcnow() + timedelta(days=days, hours=hours)).replace(microsecond=0)

    return _days_from_now
