import json
import os

from flask import current_app

DEFAULT_CALENDAR_SETTINGS = {
    "enabled": False,
    "sync_enabled": False,
    "calendar_id": "primary",
}


def _settings_file():
    return current_app.config["SETTINGS_FILE"]


def get_settings():
    path = _settings_file()
    if not os.path.exists(path):
        return {}
    with open(path, "r") as f:
        return json.load(f)


def set_settings(settings):
    with open(_settings_file(), "w") as f:
        json.dump(settings, f)


def get_setting(key):
    settings = get_settings()
    return settings.get(key)


def set_setting(key, value):
    settings = get_settings()
    settings[key] = value
    set_settings(settings)


def get_calendar_settings(user_id):
    stored = (get_setting("calendar") or {}).get(user_id, {})
    return {**DEFAULT_CALENDAR_SETTINGS, **stored}


def save_calendar_settings(user_id, updates):
    unknown = set(updates) - set(DEFAULT_CALENDAR_SETTINGS)
    if unknown:
        raise ValueError(f"Unknown calendar settings: {', '.join(sorted(unknown))}")

    all_calendars = get_setting("calendar") or {}
    merged = {**get_calendar_settings(user_id), **updates}
    all_calendars[user_id] = merged
    set_setting("calendar", all_calendars)
    return merged


def is_calendar_sync_enabled(user_id):
    settings = get_calendar_settings(user_id)
    return bool(settings["enabled"] and settings["sync_enabled"])
