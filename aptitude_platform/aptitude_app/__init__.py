"""aptitude_app package – application factory and blueprint registration."""

from __future__ import annotations

import os
from time import perf_counter

import click
from flask import Flask, g, request
from flask_jwt_extended import JWTManager
from sqlalchemy import event

from config import resolve_config
from .blueprints import BLUEPRINTS
from .extensions import cors, db, jwt, migrate, limiter
from .logging_config import configure_logging, assign_request_id
from .metrics import record_request


def create_app(config_name: str | None = None) -> Flask:
    """Application factory used by both CLI and runtime servers."""

    app = Flask(__name__)
    _configure_app(app, config_name)
    configure_logging(app)
    _register_extensions(app)
    _register_blueprints(app)
    _register_shellcontext(app)
    _register_cli(app)
    _register_bootstrap(app)
    _register_request_hooks(app)

    return app


def _configure_app(app: Flask, config_name: str | None) -> None:
    env_name = config_name or os.getenv("FLASK_CONFIG")
    config_obj = resolve_config(env_name)
    app.config.from_object(config_obj)


def _register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    _configure_jwt(jwt)
    _configure_sqlite_engine(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )
    limiter.default_limits = app.config.get("RATE_LIMIT_DEFAULTS", [])
    limiter.init_app(app)


def _register_blueprints(app: Flask) -> None:
    for blueprint, prefix in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=prefix)


def _register_shellcontext(app: Flask) -> None:
    # Lazy import inside function to avoid circular dependencies.
    from . import models

    @app.shell_context_processor
    def shell_context():
        return {
            "db": db,
            "User": models.User,
            "Question": models.Question,
            "DailyAssignment": models.DailyAssignment,
            "Attempt": models.Attempt,
        }


def _configure_jwt(jwt_manager: JWTManager) -> None:
    from flask import jsonify

    from .models import User

    @jwt_manager.user_lookup_loader
    def user_lookup_callback(_jwt_header, jwt_data):
        identity = jwt_data.get("sub")
        if identity is None:
            return None
        try:
            identity_int = int(identity)
        except (TypeError, ValueError):
            return None
        return db.session.get(User, identity_int)

    @jwt_manager.user_lookup_error_loader
    def unknown_user_callback(_jwt_header, jwt_data):
        return jsonify({"message": "Unknown user", "sub": jwt_data.get("sub")}), 404

    @jwt_manager.expired_token_loader
    def expired_token_callback(jwt_header, jwt_data):
        return jsonify({"message": "Token has expired"}), 401

    @jwt_manager.invalid_token_loader
    def invalid_token_callback(error_string):
        return jsonify({"message": "Invalid token", "error": error_string}), 401

    @jwt_manager.unauthorized_loader
    def missing_token_callback(error_string):
        return jsonify({"message": "Missing authorization token"}), 401


def _register_bootstrap(app: Flask) -> None:
    @app.before_request
    def ensure_schema():
        if app.config.get("_SCHEMA_READY"):
            return
        try:
            _ensure_schema(app)
            app.config["_SCHEMA_READY"] = True
        except Exception as exc:  # pragma: no cover - defensive logging
            app.logger.debug("Schema bootstrap skipped: %s", exc)
            app.config["_SCHEMA_READY"] = False


def _register_request_hooks(app: Flask) -> None:
    @app.before_request
    def start_request():
        assign_request_id()
        g.request_started_at = perf_counter()

    @app.after_request
    def finalize(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers["X-Request-ID"] = request_id
        started = getattr(g, "request_started_at", None)
        latency = perf_counter() - started if started else 0.0
        endpoint = request.endpoint or request.path
        record_request(request.method, endpoint, response.status_code, latency)
        return response


def _configure_sqlite_engine(app: Flask) -> None:
    uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if not uri.startswith("sqlite") or ":memory:" in uri:
        return
    busy_timeout_ms = int(app.config.get("SQLITE_BUSY_TIMEOUT_MS", 15000))

    with app.app_context():
        engine = db.engine

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):  # pragma: no cover
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA journal_mode=WAL;")
                cursor.execute(f"PRAGMA busy_timeout={busy_timeout_ms};")
                cursor.execute("PRAGMA synchronous=NORMAL;")
                cursor.execute("PRAGMA foreign_keys=ON;")
            finally:
                cursor.close()


def _ensure_schema(app: Flask) -> None:
    with app.app_context():
        db.create_all()


def _register_cli(app: Flask) -> None:
    @app.cli.command("seed-users")
    @click.option("--email", default="student@example.com", show_default=True, help="Demo account email.")
    @click.option(
        "--level",
        default="Beginner",
        show_default=True,
        help="Starting level for the demo account.",
    )
    def seed_users(email: str, level: str) -> None:
        """Create a demo student and print a bearer token for it."""

        from .models import User
        from .services.difficulty_service import canonical_level
        from .utils import generate_access_token

        with app.app_context():
            _ensure_schema(app)
            email = email.strip().lower()
            user = User.query.filter_by(email=email).first()
            if user is None:
                user = User(email=email, username=email.split("@")[0], level=canonical_level(level))
                db.session.add(user)
                db.session.commit()
                click.echo(f"Seeded student {email} (id {user.id}).")
            else:
                click.echo(f"Student {email} already exists (id {user.id}).")
            click.echo(f"Access token: {generate_access_token(user)}")

    @app.cli.group("daily")
    def daily_group():
        """Daily practice management commands."""

    @daily_group.command("assign")
    @click.option("--user-id", type=int, help="Assign today's questions to a specific user ID.")
    @click.option(
        "--all",
        "assign_all",
        is_flag=True,
        default=False,
        help="Assign questions to every student account.",
    )
    @click.option(
        "--date",
        "assign_date",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="Assignment date (YYYY-MM-DD). Defaults to today (UTC).",
    )
    def assign_command(user_id: int | None, assign_all: bool, assign_date):
        """Build daily question sets via CLI."""

        if not assign_all and not user_id:
            raise click.UsageError("Provide --user-id or use --all to target students.")
        if assign_all and user_id:
            raise click.UsageError("Use either --user-id or --all, not both.")

        from werkzeug.exceptions import NotFound

        from .models import User
        from .services import assignment_service

        target_date = assign_date.date() if assign_date else None

        with app.app_context():
            _ensure_schema(app)
            if assign_all:
                user_ids = [u.id for u in User.query.filter_by(role="student").all()]
                if not user_ids:
                    click.echo("No student accounts found; nothing to assign.")
                    return
            else:
                user_ids = [user_id]

            for target_user_id in user_ids:
                try:
                    result = assignment_service.ensure_assigned(target_user_id, target_date)
                except NotFound as exc:
                    raise click.ClickException(f"User {target_user_id} not found.") from exc
                if not result.ready:
                    click.echo(
                        f"User {target_user_id}: not ready on {result.assignment_date.isoformat()}."
                    )
                    continue
                verb = "Assigned" if result.created else "Already assigned"
                click.echo(
                    f"{verb} {len(result.question_ids)}/{result.requested} questions "
                    f"to user {target_user_id} on {result.assignment_date.isoformat()}."
                )

    @daily_group.command("streak-check")
    @click.option(
        "--date",
        "check_date",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        help="Day to evaluate (YYYY-MM-DD). Defaults to today (UTC).",
    )
    def streak_check_command(check_date):
        """Reset lapsed streaks and apply the streak-loss penalty."""

        from .services import assignment_service, scoring_service

        today = assignment_service.resolve_today(check_date.date() if check_date else None)
        with app.app_context():
            _ensure_schema(app)
            processed = scoring_service.apply_streak_penalties(today)
        click.echo(f"Processed {processed} lapsed streaks for {today.isoformat()}.")
