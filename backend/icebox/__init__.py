# backend/icebox/__init__.py
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import IceboxError
from .extensions import db, migrate
from .logging_config import ActorContext, configure_logging, get_logger

logger = get_logger("app")


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    configure_logging(level=app.config["LOG_LEVEL"], json_output=app.config["LOG_JSON"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.inventory import inventory_bp
    from .routes.cash import cash_bp
    from .routes.trips import trips_bp
    from .routes.owner_sales import owner_sales_bp
    from .routes.transfers import transfers_bp
    from .routes.payments import payments_bp
    from .routes.audit import audit_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(cash_bp)
    app.register_blueprint(trips_bp)
    app.register_blueprint(owner_sales_bp)
    app.register_blueprint(transfers_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(audit_bp)

    @app.errorhandler(IceboxError)
    def handle_icebox_error(exc: IceboxError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    @app.teardown_request
    def clear_actor_context(exc):
        ActorContext.clear()

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
