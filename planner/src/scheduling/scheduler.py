from datetime import timedelta
from enum import Enum
from functools import cmp_to_key

from flask import current_app

from planner.config import Config
from planner.extensions import create_logger, db
from planner.settings import get_calendar_settings, is_calendar_sync_enabled
from planner.src.calendar_sync import safe_sync_task
from planner.src.reminders import create_task_reminders
from planner.src.scheduling.utils import get_pending_tasks, get_tasks_by_id
from planner.src.utils import parse_iso_datetime, utcnow

logger = create_logger(__name__, level="DEBUG")

SLOT_MINUTES = Config.SCHEDULE_SLOT_MINUTES


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANKS = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def priority_rank(value):
    """Sort rank of a priority value. Anything unrecognised ranks as low."""
    try:
        return PRIORITY_RANKS[Priority(value)]
    except ValueError:
        return PRIORITY_RANKS[Priority.LOW]


def effective_duration(task):
    """Duration in minutes, falling back to an hour when unset or not positive."""
    duration = task.get("duration")
    if not duration or duration <= 0:
        return Config.DEFAULT_TASK_DURATION
    return duration


def next_slot(now, slot_minutes=SLOT_MINUTES):
    """Round `now` up to the next slot boundary, seconds and microseconds zeroed."""
    floored = now.replace(
        minute=now.minute - now.minute % slot_minutes, second=0, microsecond=0
    )
    if floored == now:
        return floored
    return floored + timedelta(minutes=slot_minutes)


def _as_datetime(value):
    # Aware datetimes and ISO strings both come back as naive UTC
    return parse_iso_datetime(value)


def compare_candidates(a, b):
    """
    Ordering of unscheduled tasks.

    Priority first. Within a priority, tasks that both have deadlines go by
    deadline, a task with a deadline beats one without, and tasks without
    deadlines go shortest first.
    """
    priority_diff = priority_rank(a.get("priority")) - priority_rank(b.get("priority"))
    if priority_diff != 0:
        return priority_diff

    a_deadline = _as_datetime(a.get("deadline"))
    b_deadline = _as_datetime(b.get("deadline"))
    if a_deadline and b_deadline:
        return (a_deadline > b_deadline) - (a_deadline < b_deadline)

    if a_deadline:
        return -1
    if b_deadline:
        return 1

    return (a.get("duration") or 0) - (b.get("duration") or 0)


def schedule_tasks(tasks, now=None, slot_minutes=SLOT_MINUTES):
    """
    Greedily assign a start time to every task that does not have one yet.

    Candidates are placed one after another on a single timeline starting
    at the next quarter hour. When a task would end after its deadline it is
    pulled back to start at `deadline - duration`, provided that instant is
    still in the future; otherwise it keeps its sequential slot and misses
    the deadline. The pull-back is not checked against tasks already placed,
    so it can overlap them.

    Args:
        tasks: Task records (dicts). Records are copied, never modified.
        now: Current time, defaults to the wall clock. Aware values are
            converted to naive UTC, like every deadline.
        slot_minutes: Granularity the first start time is rounded up to.

    Returns:
        tuple: (scheduled_tasks, missed_deadlines)
            - scheduled_tasks: Tasks that already had a scheduled_time,
              unchanged, followed by the newly scheduled tasks in placement order
            - missed_deadlines: Ids of newly scheduled tasks that end after
              their deadline
    """
    now = _as_datetime(now) or utcnow()

    fixed_tasks = [dict(task) for task in tasks if task.get("scheduled_time")]
    candidates = sorted(
        (task for task in tasks if not task.get("scheduled_time")),
        key=cmp_to_key(compare_candidates),
    )

    cursor = next_slot(now, slot_minutes)
    logger.debug(
        f"Scheduling {len(candidates)} tasks from {cursor} "
        f"({len(fixed_tasks)} already scheduled)"
    )

    scheduled_tasks = []
    missed_deadlines = []
    for task in candidates:
        duration = timedelta(minutes=effective_duration(task))
        start = cursor

        deadline = _as_datetime(task.get("deadline"))
        if deadline and start + duration > deadline:
            required_start = deadline - duration
            if required_start > now:
                logger.debug(
                    f"Pulling task {task.get('id')} back to {required_start} to meet its deadline"
                )
                start = required_start

        if deadline and start + duration > deadline:
            logger.debug(f"Task {task.get('id')} will miss its deadline {deadline}")
            missed_deadlines.append(task.get("id"))

        scheduled_tasks.append({**task, "scheduled_time": start})
        cursor = start + duration

    return fixed_tasks + scheduled_tasks, missed_deadlines


def generate_schedule(user_id):
    """
    Schedule a user's pending tasks and persist the result.

    Fetches the user's pending tasks, runs the greedy scheduler over them,
    stores the new start times, then refreshes reminders and mirrors the
    tasks into the user's calendar when sync is on. Reminder and calendar
    failures are logged and do not undo the schedule.

    Args:
        user_id: Owner of the tasks to schedule

    Returns:
        tuple: (scheduled_tasks, missed_deadlines)
            - scheduled_tasks: Task DB objects that received a new scheduled_time
            - missed_deadlines: Ids of those tasks that will end after their deadline
    """
    pending_tasks = get_pending_tasks(user_id)
    records = [task.to_schedule_record() for task in pending_tasks]

    results, missed_deadlines = schedule_tasks(
        records,
        now=utcnow(),
        slot_minutes=current_app.config["SCHEDULE_SLOT_MINUTES"],
    )
    fixed_ids = {record["id"] for record in records if record["scheduled_time"]}

    tasks_by_id = get_tasks_by_id(
        [record["id"] for record in results if record["id"] not in fixed_ids]
    )
    scheduled_tasks = []
    for record in results:
        if record["id"] in fixed_ids:
            continue
        task = tasks_by_id[record["id"]]
        task.scheduled_time = record["scheduled_time"]
        scheduled_tasks.append(task)
    db.session.commit()
    logger.info(f"Scheduled {len(scheduled_tasks)} tasks for user {user_id}")

    for task in scheduled_tasks:
        create_task_reminders(
            user_id,
            task,
            scheduled_lead=current_app.config["SCHEDULED_REMINDER_MINUTES"],
            deadline_lead=current_app.config["DEADLINE_REMINDER_MINUTES"],
        )

    if is_calendar_sync_enabled(user_id):
        calendar_id = get_calendar_settings(user_id)["calendar_id"]
        for task in scheduled_tasks:
            safe_sync_task(task, calendar_id)

    return scheduled_tasks, missed_deadlines
