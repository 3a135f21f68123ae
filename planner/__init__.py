from flask import Flask

from .config import Config, DevelopmentConfig, ProductionConfig
from .extensions import cors, create_logger, db, jwt

logger = create_logger(__name__, level="INFO")


def create_app(config_class=None):
    if config_class is None:
        config_class = (
            ProductionConfig if Config.ENV == "production" else DevelopmentConfig
        )

    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app)

    from .calendar_routes import calendar_bp
    from .notification_routes import notification_bp
    from .routes import base_bp, schedule_bp, settings_bp, task_bp

    app.register_blueprint(base_bp)
    app.register_blueprint(task_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(calendar_bp)

    with app.app_context():
        db.create_all()

    logger.info(f"App created with {config_class.__name__}")
    return app
