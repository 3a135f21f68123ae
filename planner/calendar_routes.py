from flask import Blueprint, jsonify, request

from planner.extensions import create_logger
from planner.models import CalendarEvent, Task
from planner.settings import get_calendar_settings
from planner.src.calendar_sync import safe_sync_task
from planner.src.utils import get_current_user_id, parse_iso_datetime

logger = create_logger(__name__, level="DEBUG")
calendar_bp = Blueprint("calendar", __name__, url_prefix="/api/calendar")


@calendar_bp.route("", methods=["GET"])
def get_calendar():
    """Get the caller's calendar events within a date range"""
    start_date = request.args.get("start_date")
    end_date = request.args.get("end_date")

    if not start_date:
        return jsonify({"error": "start_date is required"}), 400
    if not end_date:
        return jsonify({"error": "end_date is required"}), 400

    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        return jsonify({"error": "Invalid date format"}), 400

    events = (
        CalendarEvent.query.filter(
            CalendarEvent.user_id == get_current_user_id(),
            CalendarEvent.end >= start,
            CalendarEvent.start <= end,
        )
        .order_by(CalendarEvent.start)
        .all()
    )

    return jsonify([event.to_dict() for event in events])


@calendar_bp.route("/sync/<task_id>", methods=["POST"])
def sync_task(task_id):
    """Push one scheduled task to the calendar on demand"""
    user_id = get_current_user_id()
    task = Task.query.filter_by(id=task_id, user_id=user_id).first_or_404()

    if not task.scheduled_time:
        return jsonify({"error": "Task is not scheduled"}), 400

    event = safe_sync_task(task, get_calendar_settings(user_id)["calendar_id"])
    if event is None:
        return jsonify({"error": "Failed to sync task to calendar"}), 502

    return jsonify({"message": "Task synced to calendar", "event": event.to_dict()})
