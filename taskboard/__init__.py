import os
import logging

import click
from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from taskboard.config import config_by_name
from taskboard.errors import Internal, TaskBoardError
from taskboard.extensions import db, migrate, login_manager, limiter

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from taskboard import models  # noqa: F401

    # --- Register blueprints ---
    from taskboard.blueprints.auth import auth_bp
    from taskboard.blueprints.boards import boards_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(boards_bp)

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    # --- Error handlers ---
    @app.errorhandler(TaskBoardError)
    def handle_taskboard_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        """Backing-store failure: log the detail, tell the caller nothing."""
        logger.exception("Database error")
        db.session.rollback()
        error = Internal()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.name.lower()}), e.code

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers / CORS ---
    @app.after_request
    def add_response_headers(response):
        """Add security headers (and CORS headers when configured)."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        origin = app.config.get("CORS_ALLOW_ORIGIN")
        if origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = (
                "Content-Type, Authorization"
            )
            response.headers["Access-Control-Allow-Methods"] = (
                "GET, POST, PATCH, DELETE, OPTIONS"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete expired sessions.

        Expired sessions never authenticate; this only reclaims the rows.
        Safe to run from cron at any interval.

        Usage:
            flask purge-sessions
        """
        from taskboard.services.session_service import SessionGate

        deleted = SessionGate(db.session).purge_expired_sessions()
        db.session.commit()
        click.echo(f"Deleted {deleted} expired session(s).")

    @app.cli.command("seed-demo")
    @click.option("--email", default="demo@taskboard.local", help="Demo user email")
    @click.option("--password", default="demo12345", help="Demo user password")
    def seed_demo(email, password):
        """Create a demo user with one board and a few cards.

        Usage:
            flask seed-demo
            flask seed-demo --email me@example.com --password s3cret-pass
        """
        from taskboard.services import unit_of_work
        from taskboard.services.board_service import BoardStore
        from taskboard.services.session_service import SessionGate
        from taskboard.services.user_service import AccountService

        accounts = AccountService(db.session)
        user = accounts.get_user_by_email(email)
        if user:
            click.echo(f"Demo user already exists: {email}")
        else:
            with unit_of_work(db.session):
                user = accounts.create_user(email, password, name="Demo User")
            click.echo(f"Created demo user: {email}")

        store = BoardStore(db.session)
        board = store.create_board(user.id, "Demo Board")
        todo = board.columns[0]
        for title in ("Sketch the layout", "Build the store", "Ship it"):
            store.create_card(todo.id, user.id, title)

        with unit_of_work(db.session):
            auth_session = SessionGate(db.session).issue_session(user.id)
            token = auth_session.token

        click.echo("")
        click.echo("=" * 60)
        click.echo("Seed data created successfully!")
        click.echo("=" * 60)
        click.echo(f"  User:   {email} / {password}")
        click.echo(f"  Board:  {board.name} (id: {board.id})")
        click.echo(f"  Token:  {token}")
        click.echo("=" * 60)
