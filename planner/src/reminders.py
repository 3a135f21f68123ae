from datetime import timedelta

from planner.extensions import create_logger, db
from planner.models import Notification
from planner.src.utils import utcnow

logger = create_logger(__name__, level="DEBUG")


def build_task_reminders(task, now=None, scheduled_lead=15, deadline_lead=60):
    """
    Work out which reminders a task should have.

    One an hour before the deadline and one 15 minutes before the scheduled
    start. Reminders whose notify time has already passed are dropped.
    Returns a list of dicts ready to become Notification rows.
    """
    now = now or utcnow()
    reminders = []

    if task.deadline:
        notify_at = task.deadline - timedelta(minutes=deadline_lead)
        if notify_at > now:
            reminders.append(
                {
                    "notification_type": "deadline",
                    "title": "Deadline Approaching",
                    "message": f'Task "{task.title}" is due in {_describe_lead(deadline_lead)}',
                    "notify_at": notify_at,
                }
            )

    if task.scheduled_time:
        notify_at = task.scheduled_time - timedelta(minutes=scheduled_lead)
        if notify_at > now:
            reminders.append(
                {
                    "notification_type": "scheduled",
                    "title": "Task Starting Soon",
                    "message": f'Task "{task.title}" is scheduled to start in {_describe_lead(scheduled_lead)}',
                    "notify_at": notify_at,
                }
            )

    return reminders


def _describe_lead(minutes):
    if minutes == 60:
        return "1 hour"
    if minutes % 60 == 0:
        return f"{minutes // 60} hours"
    return f"{minutes} minutes"


def delete_task_reminders(task_id, notification_type=None):
    query = Notification.query.filter_by(task_id=task_id)
    if notification_type:
        query = query.filter_by(notification_type=notification_type)
    deleted = query.delete()
    db.session.commit()
    return deleted


def create_task_reminders(user_id, task, scheduled_lead=15, deadline_lead=60):
    """
    Replace the task's reminders with freshly computed ones.

    Never raises: a task is still valid without its reminders.
    """
    try:
        Notification.query.filter_by(task_id=task.id).delete()
        reminders = build_task_reminders(
            task, scheduled_lead=scheduled_lead, deadline_lead=deadline_lead
        )
        for reminder in reminders:
            db.session.add(
                Notification(
                    user_id=user_id,
                    task_id=task.id,
                    task_title=task.title,
                    **reminder,
                )
            )
        db.session.commit()
        logger.debug(f"Created {len(reminders)} reminders for task {task.id}")
        return reminders
    except Exception as e:
        db.session.rollback()
        logger.warning(f"Error creating reminders for task {task.id}: {str(e)}")
        return []


def process_due_notifications(user_id, now=None):
    """Mark the user's pending reminders that are due as sent and return them."""
    now = now or utcnow()
    due = (
        Notification.query.filter(
            Notification.user_id == user_id,
            Notification.status == "pending",
            Notification.notify_at <= now,
        )
        .order_by(Notification.notify_at.asc())
        .all()
    )
    for notification in due:
        notification.mark_sent()
    db.session.commit()
    return due
