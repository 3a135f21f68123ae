from planner.extensions import db
from planner.models import Task
from planner.src.calendar_sync import remove_task_from_calendar
from planner.src.reminders import delete_task_reminders


def get_pending_tasks(user_id):
    """Retrieve a user's pending tasks, oldest first."""
    return (
        Task.query.filter(Task.user_id == user_id, Task.status == "pending")
        .order_by(Task.created_at.asc())
        .all()
    )


def get_tasks_by_id(task_ids):
    """Map task id -> Task for the given ids."""
    task_ids = list(task_ids)
    if not task_ids:
        return {}
    return {task.id: task for task in Task.query.filter(Task.id.in_(task_ids)).all()}


def clear_pending_schedule(user_id):
    """
    Unschedule every pending task the user owns.

    Start reminders and calendar events hang off the scheduled time, so they
    go with it. Deadline reminders stay.
    """
    tasks = Task.query.filter(
        Task.user_id == user_id,
        Task.status == "pending",
        Task.scheduled_time.isnot(None),
    ).all()
    for task in tasks:
        task.scheduled_time = None
        delete_task_reminders(task.id, notification_type="scheduled")
        if task.calendar_event_id:
            remove_task_from_calendar(task)
    db.session.commit()
    return len(tasks)
