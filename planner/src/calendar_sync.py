"""
Mirror scheduled tasks into the user's calendar.

Each task owns at most one managed CalendarEvent, keyed by the task id.
Syncing is a side effect of scheduling and must never make it fail, so
callers on the scheduling path go through `safe_sync_task`.
"""

from planner.extensions import create_logger, db
from planner.models import CalendarEvent

logger = create_logger(__name__, level="DEBUG")


def sync_task_to_calendar(task, calendar_id="primary"):
    if not task.scheduled_time:
        raise ValueError(f"Task {task.id} has no scheduled time to sync")

    event = CalendarEvent.query.filter_by(task_id=task.id).first()
    if event is None:
        event = CalendarEvent(task_id=task.id, user_id=task.user_id)
        db.session.add(event)
        logger.debug(f"Creating calendar event for task {task.id}")
    else:
        logger.debug(f"Updating calendar event {event.id} for task {task.id}")

    event.calendar_id = calendar_id
    event.subject = task.title
    event.description = task.description
    event.start = task.scheduled_time
    event.end = task.scheduled_end
    db.session.flush()

    task.calendar_event_id = event.id
    db.session.commit()
    return event


def safe_sync_task(task, calendar_id="primary"):
    try:
        return sync_task_to_calendar(task, calendar_id)
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Error syncing task {task.id} to calendar: {str(e)}")
        return None


def remove_task_from_calendar(task):
    deleted = CalendarEvent.query.filter_by(task_id=task.id).delete()
    task.calendar_event_id = None
    db.session.commit()
    return deleted
