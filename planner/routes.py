from flask import Blueprint, current_app, jsonify, request

from planner.extensions import create_logger, db
from planner.models import TASK_PRIORITIES, Task, validate_task_fields
from planner.settings import (
    get_calendar_settings,
    is_calendar_sync_enabled,
    save_calendar_settings,
)
from planner.src.calendar_sync import remove_task_from_calendar, safe_sync_task
from planner.src.estimation import predict_task_complexity, predict_task_duration
from planner.src.reminders import create_task_reminders, delete_task_reminders
from planner.src.scheduling.scheduler import generate_schedule
from planner.src.scheduling.utils import clear_pending_schedule
from planner.src.utils import get_current_user_id, parse_iso_datetime, utcnow

logger = create_logger(__name__, level="DEBUG")

base_bp = Blueprint("base", __name__)
task_bp = Blueprint("task", __name__, url_prefix="/api/tasks")

schedule_bp = Blueprint("schedule", __name__, url_prefix="/api/schedule")
settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")

EDITABLE_FIELDS = [
    "title",
    "description",
    "priority",
    "complexity",
    "category",
    "duration",
    "deadline",
    "scheduled_time",
    "status",
]
DATETIME_FIELDS = ["deadline", "scheduled_time"]


@base_bp.route("/")
def index():
    """API root endpoint - returns API status and basic information"""
    logger.info("Root endpoint accessed")
    return (
        jsonify(
            {
                "status": "healthy",
            }
        ),
        200,
    )


def extract_task_fields(data):
    """Pick the editable fields out of a request body, parsing timestamps."""
    fields = {key: data[key] for key in EDITABLE_FIELDS if key in data}
    for key in DATETIME_FIELDS:
        if key in fields and fields[key] is not None:
            try:
                fields[key] = parse_iso_datetime(fields[key])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid {key} format")
    return fields


def get_user_task_or_404(task_id):
    return Task.query.filter_by(id=task_id, user_id=get_current_user_id()).first_or_404()


def get_completed_history(user_id):
    """Completed tasks of a user, in the shape the duration estimator wants."""
    completed = Task.query.filter_by(user_id=user_id, status="completed").all()
    return [
        {
            "description": task.description or task.title,
            "priority": task.priority,
            "duration": task.duration,
        }
        for task in completed
        if task.duration
    ]


def refresh_task_side_effects(user_id, task):
    """Reminders and calendar follow the task's current deadline and slot."""
    create_task_reminders(
        user_id,
        task,
        scheduled_lead=current_app.config["SCHEDULED_REMINDER_MINUTES"],
        deadline_lead=current_app.config["DEADLINE_REMINDER_MINUTES"],
    )

    if task.scheduled_time and is_calendar_sync_enabled(user_id):
        safe_sync_task(task, get_calendar_settings(user_id)["calendar_id"])
    elif not task.scheduled_time and task.calendar_event_id:
        remove_task_from_calendar(task)


# Task routes
@task_bp.route("", methods=["GET"])
def get_tasks():
    """
    Get the caller's tasks with optional filtering

    Query parameters:
    - status: 'pending' or 'completed'
    - priority: 'high', 'medium' or 'low'
    - start_date: Only tasks scheduled at or after this date (ISO format)
    - end_date: Only tasks scheduled at or before this date (ISO format)
    """
    status = request.args.get("status")
    priority = request.args.get("priority")
    start_date = request.args.get("start_date")
    end_date = request.args.get("end_date")

    query = Task.query.filter(Task.user_id == get_current_user_id())

    if status:
        query = query.filter(Task.status == status)

    if priority:
        query = query.filter(Task.priority == priority)

    # Filter by scheduled period
    try:
        if start_date:
            query = query.filter(Task.scheduled_time >= parse_iso_datetime(start_date))
        if end_date:
            query = query.filter(Task.scheduled_time <= parse_iso_datetime(end_date))
    except ValueError as e:
        logger.warning(f"Invalid date filter: {e}")
        return jsonify({"error": "Invalid date format"}), 400

    tasks = query.order_by(Task.created_at.asc()).all()
    return jsonify([task.to_dict() for task in tasks])


@task_bp.route("", methods=["POST"])
def create_task():
    """Create a new task"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Missing required fields"}), 400

    user_id = get_current_user_id()
    try:
        fields = extract_task_fields(data)
        fields.pop("status", None)

        description = fields.get("description") or ""
        if not fields.get("duration"):
            if description:
                fields["duration"] = predict_task_duration(
                    description,
                    fields.get("priority", "medium"),
                    get_completed_history(user_id),
                )
            else:
                fields["duration"] = current_app.config["DEFAULT_TASK_DURATION"]
        if not fields.get("complexity"):
            fields["complexity"] = predict_task_complexity(description)

        validate_task_fields(
            fields,
            creating=True,
            fixed_schedule=fields.get("scheduled_time") is not None,
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    task = Task(user_id=user_id, status="pending", **fields)
    db.session.add(task)
    db.session.commit()
    logger.info(f"Created task {task.id} for user {user_id}")

    if task.deadline or task.scheduled_time:
        refresh_task_side_effects(user_id, task)

    return (
        jsonify(
            {
                "id": task.id,
                "title": task.title,
                "duration": task.duration,
                "message": "Task created successfully",
            }
        ),
        201,
    )


@task_bp.route("/estimate", methods=["POST"])
def estimate_task():
    """Predict duration and complexity for a task description"""
    data = request.get_json(silent=True) or {}
    description = data.get("description") or ""
    priority = data.get("priority", "medium")

    if not description.strip():
        return jsonify({"error": "Missing description"}), 400
    if priority not in TASK_PRIORITIES:
        return jsonify({"error": f"Invalid priority: {priority}"}), 400

    history = get_completed_history(get_current_user_id())
    return jsonify(
        {
            "duration": predict_task_duration(description, priority, history),
            "complexity": predict_task_complexity(description),
        }
    )


@task_bp.route("/stats", methods=["GET"])
def get_task_stats():
    """Counts for the analytics page"""
    tasks = Task.query.filter_by(user_id=get_current_user_id()).all()

    category_breakdown = {}
    priority_breakdown = {priority: 0 for priority in TASK_PRIORITIES}
    for task in tasks:
        category = task.category or "uncategorized"
        category_breakdown[category] = category_breakdown.get(category, 0) + 1
        priority = task.priority or "medium"
        priority_breakdown[priority] = priority_breakdown.get(priority, 0) + 1

    return jsonify(
        {
            "total": len(tasks),
            "completed": sum(1 for task in tasks if task.status == "completed"),
            "pending": sum(1 for task in tasks if task.status == "pending"),
            "overdue": sum(1 for task in tasks if task.is_overdue),
            "category_breakdown": category_breakdown,
            "priority_breakdown": priority_breakdown,
        }
    )


@task_bp.route("/<task_id>", methods=["GET"])
def get_task(task_id):
    """Get task details"""
    task = get_user_task_or_404(task_id)
    return jsonify(task.to_dict())


@task_bp.route("/<task_id>", methods=["PUT"])
def update_task(task_id):
    """Update a task"""
    task = get_user_task_or_404(task_id)
    data = request.get_json(silent=True) or {}

    try:
        fields = extract_task_fields(data)
        if "duration" in fields and not fields["duration"]:
            fields["duration"] = current_app.config["DEFAULT_TASK_DURATION"]

        merged = {
            "duration": fields.get("duration", task.duration),
            "deadline": fields.get("deadline", task.deadline),
            "scheduled_time": fields.get("scheduled_time", task.scheduled_time),
        }
        if "title" in fields:
            merged["title"] = fields["title"]
        for key in ("priority", "status"):
            if key in fields:
                merged[key] = fields[key]
        if "deadline" not in fields and "duration" not in fields:
            merged.pop("deadline")

        validate_task_fields(
            merged,
            creating="title" in fields,
            fixed_schedule=merged["scheduled_time"] is not None,
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    for key, value in fields.items():
        setattr(task, key, value)
    db.session.commit()

    if task.is_completed:
        delete_task_reminders(task.id)
    elif "deadline" in fields or "scheduled_time" in fields or "status" in fields:
        refresh_task_side_effects(task.user_id, task)

    return jsonify({"message": "Task updated successfully"})


@task_bp.route("/<task_id>", methods=["DELETE"])
def delete_task(task_id):
    """Delete a task with its reminders and calendar event"""
    task = get_user_task_or_404(task_id)

    delete_task_reminders(task.id)
    if task.calendar_event_id:
        remove_task_from_calendar(task)

    db.session.delete(task)
    db.session.commit()

    return jsonify({"message": "Task deleted successfully"})


@task_bp.route("/<task_id>/complete", methods=["POST"])
def complete_task(task_id):
    """Mark task as complete"""
    task = get_user_task_or_404(task_id)
    task.complete()
    db.session.commit()
    delete_task_reminders(task.id)

    return jsonify({"message": "Task marked as complete"})


@task_bp.route("/<task_id>/toggle", methods=["POST"])
def toggle_task(task_id):
    """Flip a task between pending and completed"""
    task = get_user_task_or_404(task_id)
    task.toggle()
    db.session.commit()

    if task.is_completed:
        delete_task_reminders(task.id)
    else:
        refresh_task_side_effects(task.user_id, task)

    return jsonify({"message": f"Task marked as {task.status}", "status": task.status})


# Schedule routes
@schedule_bp.route("/clear", methods=["DELETE"])
def clear_all_scheduled_tasks():
    """Unschedule every pending task of the caller"""
    cleared = clear_pending_schedule(get_current_user_id())
    return jsonify({"message": "All tasks set to unscheduled", "cleared": cleared})


@schedule_bp.route("", methods=["POST"])
def generate_new_schedule():
    """Schedules all of the caller's pending tasks"""
    if request.content_length and not request.is_json:
        return (
            jsonify(
                {"error": "Request must be JSON with Content-Type: application/json"}
            ),
            415,
        )

    user_id = get_current_user_id()
    try:
        scheduled_tasks, missed_deadlines = generate_schedule(user_id)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error generating schedule: {str(e)}")
        return jsonify({"error": f"Failed to generate schedule: {str(e)}"}), 500

    if missed_deadlines:
        logger.warning(
            f"{len(missed_deadlines)} tasks will miss their deadline for user {user_id}"
        )

    message = (
        "Schedule generated successfully (times in UTC)"
        if scheduled_tasks
        else "No tasks to schedule"
    )
    return jsonify(
        {
            "message": message,
            "tasks": [task.to_dict() for task in scheduled_tasks],
            "missed_deadlines": missed_deadlines,
            "generated_at": utcnow().isoformat() + "Z",
        }
    )


# Settings routes
@settings_bp.route("/calendar", methods=["GET"])
def get_calendar_sync_settings():
    """Get the caller's calendar sync settings"""
    return jsonify(get_calendar_settings(get_current_user_id()))


@settings_bp.route("/calendar", methods=["POST"])
def set_calendar_sync_settings():
    """Update the caller's calendar sync settings"""
    data = request.get_json(silent=True)
    if not data:
        return jsonify({"error": "Missing settings"}), 400

    try:
        settings = save_calendar_settings(get_current_user_id(), data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"message": "Calendar settings saved", "settings": settings})
