import os
import uuid
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


class Config:
    ROOT_DIR = Path(os.path.abspath(os.path.dirname(__file__))).parent
    SECRET_KEY = os.environ.get("SECRET_KEY")
    if not SECRET_KEY:
        SECRET_KEY = str(uuid.uuid4())
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    ENV = os.environ.get("ENV", "development").lower()

    CORS_HEADERS = "Content-Type"

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Per-user calendar sync settings live here
    SETTINGS_FILE = os.environ.get(
        "PLANNER_SETTINGS_FILE", os.path.join(ROOT_DIR, "_settings.json")
    )

    # Owner used when a request carries no identity token
    ANONYMOUS_USER_ID = "local"

    # All scheduling math is done in minutes, in UTC
    SCHEDULE_SLOT_MINUTES = 15
    DEFAULT_TASK_DURATION = 60
    SCHEDULED_REMINDER_MINUTES = 15
    DEADLINE_REMINDER_MINUTES = 60


class DevelopmentConfig(Config):
    ENV = "development"
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = "sqlite:///" + os.path.join(Config.ROOT_DIR, "app.db")


class ProductionConfig(Config):
    ENV = "production"
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", "sqlite:///" + os.path.join(Config.ROOT_DIR, "app.db")
    )


class TestingConfig(Config):
    ENV = "testing"
    DEBUG = True
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length-for-hs256"
