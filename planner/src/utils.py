from datetime import datetime, timezone

import pytz
from flask import current_app
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request


def get_current_user_id():
    """Owner of the current request: the token identity, or the anonymous user."""
    verify_jwt_in_request(optional=True)
    return get_jwt_identity() or current_app.config["ANONYMOUS_USER_ID"]


def utcnow():
    """Current time as a naive UTC datetime, the form everything is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(datetime_str):
    """
    Parse an ISO format datetime string into a naive UTC datetime object.
    This function will consistently handle:
    - UTC ISO strings with 'Z' suffix
    - ISO strings with explicit timezone offsets
    - Naive ISO strings (assuming they represent UTC times)

    Raises ValueError for strings that are not ISO datetimes.
    """
    if not datetime_str:
        return None

    if isinstance(datetime_str, datetime):
        dt = datetime_str
    else:
        dt = datetime.fromisoformat(datetime_str.strip().replace("Z", "+00:00"))

    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)

    # Convert to UTC and make it naive for storage
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def format_iso_datetime(dt):
    """Serialize a naive UTC datetime for the API, with a Z to indicate UTC."""
    if dt is None:
        return None
    return dt.isoformat() + "Z"
