from datetime import timedelta

import pytest
from flask import json

from planner.extensions import db
from planner.models import CalendarEvent, Task
from planner.settings import save_calendar_settings
from planner.src.calendar_sync import (
    remove_task_from_calendar,
    safe_sync_task,
    sync_task_to_calendar,
)
from planner.src.utils import format_iso_datetime


# Sync collaborator
def test_sync_creates_event_keyed_by_task(app, test_db, create_task_factory, days_from_now):
    slot = days_from_now(1)
    task = create_task_factory(title="Review PR", duration=45, scheduled_time=slot)

    event = sync_task_to_calendar(task, "team")

    assert event.task_id == task.id
    assert event.calendar_id == "team"
    assert event.start == slot
    assert event.end == slot + timedelta(minutes=45)
    assert task.calendar_event_id == event.id


def test_sync_updates_existing_event(app, test_db, create_task_factory, days_from_now):
    task = create_task_factory(title="Review PR", scheduled_time=days_from_now(1))
    first = sync_task_to_calendar(task)

    new_slot = days_from_now(2)
    task.scheduled_time = new_slot
    task.title = "Review PR again"
    db.session.commit()
    second = sync_task_to_calendar(task)

    assert second.id == first.id
    assert CalendarEvent.query.count() == 1
    assert second.start == new_slot
    assert second.subject == "Review PR again"


def test_sync_requires_scheduled_time(app, test_db, create_task_factory):
    task = create_task_factory(title="Floating")
    with pytest.raises(ValueError):
        sync_task_to_calendar(task)


def test_safe_sync_swallows_errors(app, test_db, create_task_factory):
    task = create_task_factory(title="Floating")
    assert safe_sync_task(task) is None
    assert CalendarEvent.query.count() == 0


def test_remove_task_from_calendar(app, test_db, create_task_factory, days_from_now):
    task = create_task_factory(title="Review PR", scheduled_time=days_from_now(1))
    sync_task_to_calendar(task)

    assert remove_task_from_calendar(task) == 1
    assert task.calendar_event_id is None
    assert CalendarEvent.query.count() == 0


# Tests for GET /api/calendar
def test_get_calendar_events_in_range(client, test_db, create_task_factory, days_from_now):
    inside = create_task_factory(title="Inside", scheduled_time=days_from_now(1))
    outside = create_task_factory(title="Outside", scheduled_time=days_from_now(5))
    sync_task_to_calendar(inside)
    sync_task_to_calendar(outside)

    start = format_iso_datetime(days_from_now(0))
    end = format_iso_datetime(days_from_now(2))
    response = client.get(f"/api/calendar?start_date={start}&end_date={end}")

    assert response.status_code == 200
    data = json.loads(response.data)
    assert [event["subject"] for event in data] == ["Inside"]


def test_get_calendar_events_scoped_to_user(client, test_db, create_task_factory, days_from_now):
    task = create_task_factory(title="Alice's", user_id="alice", scheduled_time=days_from_now(1))
    sync_task_to_calendar(task)

    start = format_iso_datetime(days_from_now(0))
    end = format_iso_datetime(days_from_now(2))
    response = client.get(f"/api/calendar?start_date={start}&end_date={end}")

    assert json.loads(response.data) == []


def test_get_calendar_events_missing_start_date(client):
    response = client.get("/api/calendar?end_date=2024-01-01T00:00:00Z")
    assert response.status_code == 400
    assert "start_date is required" in json.loads(response.data)["error"]


def test_get_calendar_events_missing_end_date(client):
    response = client.get("/api/calendar?start_date=2024-01-01T00:00:00Z")
    assert response.status_code == 400
    assert "end_date is required" in json.loads(response.data)["error"]


def test_get_calendar_events_invalid_date_format(client):
    response = client.get("/api/calendar?start_date=not-a-date&end_date=2024-01-01T00:00:00Z")
    assert response.status_code == 400
    assert "Invalid date format" in json.loads(response.data)["error"]


# Tests for POST /api/calendar/sync/<task_id>
def test_sync_task_endpoint(client, test_db, create_task_factory, days_from_now):
    save_calendar_settings("local", {"calendar_id": "personal"})
    task = create_task_factory(title="Gym", scheduled_time=days_from_now(1))

    response = client.post(f"/api/calendar/sync/{task.id}")

    assert response.status_code == 200
    data = json.loads(response.data)
    assert data["event"]["calendar_id"] == "personal"
    assert db.session.get(Task, task.id).calendar_event_id == data["event"]["id"]


def test_sync_task_endpoint_unscheduled(client, test_db, create_task_factory):
    task = create_task_factory(title="Someday")
    response = client.post(f"/api/calendar/sync/{task.id}")
    assert response.status_code == 400
