import uuid
from datetime import timedelta

from .extensions import create_logger, db
from .src.utils import format_iso_datetime, utcnow

logger = create_logger(__name__, level="DEBUG")

TASK_PRIORITIES = ("high", "medium", "low")
TASK_STATUSES = ("pending", "completed")
NOTIFICATION_TYPES = ("deadline", "scheduled")
NOTIFICATION_STATUSES = ("pending", "sent", "read")


def generate_uuid():
    return str(uuid.uuid4())


class Task(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    priority = db.Column(db.String(10), nullable=False, default="medium")
    complexity = db.Column(db.String(10), nullable=True, default="medium")
    category = db.Column(db.String(50), nullable=True, default="work")
    duration = db.Column(db.Integer, nullable=False, default=60)  # in minutes

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    deadline = db.Column(db.DateTime, nullable=True)
    scheduled_time = db.Column(db.DateTime, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="pending")

    calendar_event_id = db.Column(db.String(36), nullable=True)

    notifications = db.relationship(
        "Notification",
        backref=db.backref("task", lazy=True),
        cascade="all, delete-orphan",
        lazy=True,
    )

    @property
    def is_completed(self):
        return self.status == "completed"

    @property
    def scheduled_end(self):
        if not self.scheduled_time:
            return None
        return self.scheduled_time + timedelta(minutes=self.duration or 60)

    @property
    def is_overdue(self):
        return (
            self.status == "pending"
            and self.deadline is not None
            and self.deadline < utcnow()
        )

    def __repr__(self):
        s = f"<Task {self.id}: {self.title}. Priority: {self.priority}"
        if self.deadline:
            s += f" Deadline: {self.deadline}"
        if self.scheduled_time:
            s += f" Scheduled: {self.scheduled_time}"
        if self.status:
            s += f" Status: {self.status}"
        return s + ">"

    def complete(self):
        self.status = "completed"

    def toggle(self):
        self.status = "pending" if self.is_completed else "completed"

    def to_schedule_record(self):
        """Snapshot of the fields the scheduling engine looks at."""
        return {
            "id": self.id,
            "title": self.title,
            "priority": self.priority,
            "duration": self.duration,
            "deadline": self.deadline,
            "scheduled_time": self.scheduled_time,
            "status": self.status,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "complexity": self.complexity,
            "category": self.category,
            "duration": self.duration,
            "deadline": format_iso_datetime(self.deadline),
            "scheduled_time": format_iso_datetime(self.scheduled_time),
            "scheduled_end": format_iso_datetime(self.scheduled_end),
            "status": self.status,
            "is_completed": self.is_completed,
            "is_overdue": self.is_overdue,
            "calendar_event_id": self.calendar_event_id,
            "created_at": format_iso_datetime(self.created_at),
            "updated_at": format_iso_datetime(self.updated_at),
        }


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    task_id = db.Column(
        db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    task_title = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.String(512), nullable=False)
    notification_type = db.Column(db.String(20), nullable=False)
    notify_at = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default="pending")

    created_at = db.Column(db.DateTime, default=utcnow)
    sent_at = db.Column(db.DateTime, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)

    def __repr__(self):
        return f"<Notification {self.id}: {self.notification_type} for {self.task_id} at {self.notify_at}>"

    def mark_sent(self):
        self.status = "sent"
        self.sent_at = utcnow()

    def mark_read(self):
        self.status = "read"
        self.read_at = utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_id": self.task_id,
            "task_title": self.task_title,
            "title": self.title,
            "message": self.message,
            "notification_type": self.notification_type,
            "notify_at": format_iso_datetime(self.notify_at),
            "status": self.status,
            "created_at": format_iso_datetime(self.created_at),
            "sent_at": format_iso_datetime(self.sent_at),
            "read_at": format_iso_datetime(self.read_at),
        }


class CalendarEvent(db.Model):
    __tablename__ = "calendar_events"

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    user_id = db.Column(db.String(128), nullable=False, index=True)
    task_id = db.Column(db.String(36), nullable=True, unique=True)
    calendar_id = db.Column(db.String(255), nullable=False, default="primary")
    subject = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start = db.Column(db.DateTime, nullable=False)
    end = db.Column(db.DateTime, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<CalendarEvent {self.id}: {self.subject}>"

    def to_dict(self):
        return {
            "id": self.id,
            "task_id": self.task_id,
            "calendar_id": self.calendar_id,
            "subject": self.subject,
            "description": self.description,
            "start": format_iso_datetime(self.start),
            "end": format_iso_datetime(self.end),
        }


def validate_task_fields(data, creating=False, fixed_schedule=False, now=None):
    """
    Check user supplied task fields. Datetime fields must already be parsed.

    A task with a deadline has to be completable when started right away,
    unless it is pinned to an explicit scheduled_time.
    """
    if creating:
        title = data.get("title")
        if title is not None and not isinstance(title, str):
            raise ValueError("Title must be a string")
        if not (title or "").strip():
            raise ValueError("Missing required field: title")

    if "priority" in data and data["priority"] not in TASK_PRIORITIES:
        raise ValueError(f"Invalid priority: {data['priority']}")

    if "status" in data and data["status"] not in TASK_STATUSES:
        raise ValueError(f"Invalid status: {data['status']}")

    duration = data.get("duration")
    if duration is not None:
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise ValueError("Duration must be a positive number of minutes")

    deadline = data.get("deadline")
    if deadline is not None and duration and not fixed_schedule:
        now = now or utcnow()
        if now + timedelta(minutes=duration) > deadline:
            raise ValueError(
                "Task cannot be completed before the deadline. Please adjust the duration or deadline."
            )
