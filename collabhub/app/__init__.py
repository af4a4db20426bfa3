"""
app/__init__.py - Flask application factory.

create_app(config_name) builds a fresh app per call. Importing this module
has no side effects, so tests can build isolated apps and Alembic can load
the models without a running server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise extensions (SQLAlchemy, notification hub) via init_app()
  4. Register request-id / access-log hooks
  5. Register all route blueprints under /api/v1 (health probes at the root)
  6. Register global error handlers (AppError, ValidationError,
     HTTPException → JSON; Exception → 500)
  7. Register the `flask create-admin` CLI command

Model modules are imported inside create_app() only to register their
tables on db.metadata.
"""

from __future__ import annotations

import logging
import traceback

import click
from flask import Flask, jsonify, request
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from collabhub.config import config_by_name, validate_production_config


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Builds the API app for `config_name` ("development", "testing" or
    "production"). Unknown names fall back to development.
    """
    app = Flask(__name__)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    from collabhub.app.extensions import db, notification_hub
    db.init_app(app)
    notification_hub.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Registers every table on db.metadata for create_all and autogenerate.
    with app.app_context():
        from collabhub.app.models import (  # noqa: F401
            application,
            audit_log,
            campaign,
            match,
            media_asset,
            proposal,
            refresh_token,
            transaction,
            user,
        )

    from collabhub.app.middleware.request_context import register_request_hooks
    register_request_hooks(app)

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)
    _register_cli(app)

    return app


def _configure_logging(app: Flask) -> None:
    """Applies LOG_LEVEL to the app logger and the collabhub.* service loggers."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger("collabhub").setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _register_blueprints(app: Flask) -> None:
    """
    Mounts each resource blueprint under /api/v1/<resource>; route modules
    declare paths relative to that prefix.
    """
    from collabhub.app.routes.admin import admin_bp
    from collabhub.app.routes.analytics import analytics_bp
    from collabhub.app.routes.applications import applications_bp
    from collabhub.app.routes.auth import auth_bp
    from collabhub.app.routes.campaigns import campaigns_bp
    from collabhub.app.routes.health import health_bp
    from collabhub.app.routes.matches import matches_bp
    from collabhub.app.routes.media import media_bp
    from collabhub.app.routes.notifications import notifications_bp
    from collabhub.app.routes.proposals import proposals_bp
    from collabhub.app.routes.transactions import transactions_bp
    from collabhub.app.routes.users import users_bp

    app.register_blueprint(auth_bp,          url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp,         url_prefix="/api/v1/users")
    app.register_blueprint(campaigns_bp,     url_prefix="/api/v1/campaigns")
    app.register_blueprint(matches_bp,       url_prefix="/api/v1/matches")
    app.register_blueprint(applications_bp,  url_prefix="/api/v1/applications")
    app.register_blueprint(proposals_bp,     url_prefix="/api/v1/proposals")
    app.register_blueprint(transactions_bp,  url_prefix="/api/v1/transactions")
    app.register_blueprint(media_bp,         url_prefix="/api/v1/media")
    app.register_blueprint(admin_bp,         url_prefix="/api/v1/admin")
    app.register_blueprint(analytics_bp,     url_prefix="/api/v1/analytics")
    app.register_blueprint(notifications_bp, url_prefix="/api/v1/notifications")
    # Probes stay at the root so load balancers need no API prefix.
    app.register_blueprint(health_bp)


def _validation_details(messages) -> list[dict]:
    """Flattens marshmallow's {field: [msg, ...]} into [{field, message}, ...]."""
    details: list[dict] = []
    if isinstance(messages, dict):
        for field_name, field_errors in messages.items():
            field = None if field_name == "_schema" else field_name
            if isinstance(field_errors, dict):
                for nested in _validation_details(field_errors):
                    nested_field = nested["field"]
                    nested["field"] = f"{field}.{nested_field}" if field and nested_field else field
                    details.append(nested)
                continue
            if not isinstance(field_errors, list):
                field_errors = [field_errors]
            for message in field_errors:
                details.append({"field": field, "message": str(message)})
    elif isinstance(messages, list):
        details.extend({"field": None, "message": str(m)} for m in messages)
    else:
        details.append({"field": None, "message": str(messages)})
    return details


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → 400 with every field issue under error.details; the
                        code is MISSING_FIELD when the first issue is a missing
                        required field, VALIDATION_FAILED otherwise
      HTTPException   → werkzeug 404/405/... in the same envelope
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from collabhub.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        details = _validation_details(error.messages)
        first = details[0] if details else {"field": None, "message": "Invalid input."}

        if first["message"].startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
        else:
            code = ErrorCode.VALIDATION_FAILED

        body = AppError(
            code,
            first["message"],
            400,
            field=first["field"],
            details=details,
        ).to_dict()
        return jsonify(body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        codes = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }
        code = codes.get(error.code, ErrorCode.BAD_REQUEST)
        return jsonify({
            "error": {
                "code": code,
                "message": error.description or error.name,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        # Traceback goes to the log only.
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Reflects allowed origins for the SPA dev server.

    Enabled only when DEBUG or TESTING is true. Origins listed in
    CORS_ORIGINS are reflected with credentials allowed, so the SPA dev
    server can send the session cookies and the X-CSRF-Token header.
    """

    @app.after_request
    def add_cors_headers(response):
        if not (app.config.get("DEBUG") or app.config.get("TESTING")):
            return response

        origin = request.headers.get("Origin")
        if origin and origin in app.config.get("CORS_ORIGINS", []):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = (
                "Authorization, Content-Type, X-CSRF-Token, X-Request-ID"
            )

        return response


def _register_cli(app: Flask) -> None:

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    @click.option("--name", default="Platform Admin", show_default=True)
    def create_admin(email: str, password: str, name: str) -> None:
        """Create or promote the ADMIN account for EMAIL."""
        from collabhub.app.extensions import db
        from collabhub.app.services import auth_service

        user = auth_service.ensure_admin(email.strip().lower(), password, name, db.session)
        db.session.commit()
        click.echo(f"Admin account ready: id={user.id} email={user.email}")
