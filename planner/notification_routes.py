from flask import Blueprint, jsonify, request

from planner.extensions import create_logger, db
from planner.models import NOTIFICATION_STATUSES, Notification
from planner.src.reminders import process_due_notifications
from planner.src.utils import get_current_user_id

logger = create_logger(__name__, level="DEBUG")

notification_bp = Blueprint(
    "notification", __name__, url_prefix="/api/notifications"
)


def get_user_notification_or_404(notification_id):
    return Notification.query.filter_by(
        id=notification_id, user_id=get_current_user_id()
    ).first_or_404()


@notification_bp.route("", methods=["GET"])
def get_notifications():
    """
    Get the caller's notifications, soonest first

    Query parameters:
    - status: 'pending', 'sent' or 'read'
    """
    status = request.args.get("status")
    if status and status not in NOTIFICATION_STATUSES:
        return jsonify({"error": f"Invalid status: {status}"}), 400

    query = Notification.query.filter(Notification.user_id == get_current_user_id())
    if status:
        query = query.filter(Notification.status == status)

    notifications = query.order_by(Notification.notify_at.asc()).all()
    return jsonify([notification.to_dict() for notification in notifications])


@notification_bp.route("/process", methods=["POST"])
def process_notifications():
    """Deliver every pending reminder that is due"""
    due = process_due_notifications(get_current_user_id())
    logger.debug(f"Delivered {len(due)} due notifications")
    return jsonify([notification.to_dict() for notification in due])


@notification_bp.route("/<notification_id>/read", methods=["POST"])
def mark_notification_read(notification_id):
    """Mark a notification as read"""
    notification = get_user_notification_or_404(notification_id)
    notification.mark_read()
    db.session.commit()
    return jsonify({"message": "Notification marked as read"})


@notification_bp.route("/<notification_id>", methods=["DELETE"])
def delete_notification(notification_id):
    """Delete a notification"""
    notification = get_user_notification_or_404(notification_id)
    db.session.delete(notification)
    db.session.commit()
    return jsonify({"message": "Notification deleted successfully"})
