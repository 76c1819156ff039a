"""
Program: «Digital Residue» – file-sharing portal API.
Module: app.py – application factory.

Wires the shared extensions, the blob store, the JSON API, error handlers,
operator CLI commands and the background expiry sweeper.
"""

import atexit
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import click
from flask import Flask, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from config import Config
from extensions import babel, cors, db, migrate
from routes.api import register_routes
from utils.api_response import api_error
from utils.blob_store import BlobStore
from utils.expiry_sweeper import ExpirySweeper, sweep_expired

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _init_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    fmt = logging.Formatter(LOG_FORMAT)

    app.logger.setLevel(level)
    sweeper_logger = logging.getLogger("digital_residue.sweeper")
    sweeper_logger.setLevel(level)

    if app.config.get("TESTING"):
        return

    handlers = [logging.StreamHandler()]
    log_dir = app.config.get("LOG_DIR")
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                Path(log_dir) / "digital_residue.log",
                maxBytes=5_000_000,
                backupCount=3,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(fmt)
        app.logger.addHandler(handler)
        sweeper_logger.addHandler(handler)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(RequestEntityTooLarge)
    def payload_too_large(_exc):
        return api_error("PAYLOAD_TOO_LARGE", "File is too large", status=413)

    @app.errorhandler(SQLAlchemyError)
    def storage_failure(_exc):
        db.session.rollback()
        app.logger.exception("Unhandled database error on %s %s", request.method, request.path)
        return api_error("INTERNAL_ERROR", "Internal server error", status=500)

    @app.errorhandler(OSError)
    def filesystem_failure(_exc):
        app.logger.exception("Unhandled filesystem error on %s %s", request.method, request.path)
        return api_error("INTERNAL_ERROR", "Internal server error", status=500)

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        if not request.path.startswith("/api/"):
            return exc
        code = "NOT_FOUND" if exc.code == 404 else "HTTP_ERROR"
        return api_error(code, exc.description or exc.name, status=exc.code or 500)


def _register_commands(app: Flask) -> None:
    @app.cli.command("sweep-expired")
    def sweep_expired_command():
        """Remove expired uploads now."""
        removed = sweep_expired(app.extensions["blob_store"])
        click.echo(f"Removed {removed} expired upload(s).")

    @app.cli.command("reset-data")
    @click.option("--yes", is_flag=True, help="Confirm deletion of all uploads.")
    def reset_data_command(yes: bool):
        """Delete the database contents and every stored file."""
        if not yes:
            click.echo("This deletes every upload, comment and stored file. Re-run with --yes.")
            return
        db.drop_all()
        db.create_all()
        removed = app.extensions["blob_store"].clear()
        click.echo(f"Reset complete. Deleted {removed} stored file(s).")


def _start_sweeper(app: Flask, blob_store: BlobStore) -> None:
    sweeper = ExpirySweeper(
        app,
        blob_store,
        interval_minutes=app.config["EXPIRY_SWEEP_INTERVAL_MINUTES"],
    )
    app.extensions["expiry_sweeper"] = sweeper

    if not app.config.get("EXPIRY_SWEEP_ENABLED") or app.config.get("TESTING"):
        return
    # The reloader parent process must not run a second sweeper.
    if app.debug and os.environ.get("WERKZEUG_RUN_MAIN") != "true":
        return

    sweeper.start()
    atexit.register(sweeper.shutdown)


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    _init_logging(app)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        database_path = Path(app.instance_path) / "digital_residue.db"
        app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{database_path.as_posix()}"

    blob_store = BlobStore(app.config["UPLOAD_FOLDER"])
    blob_store.ensure_root()
    app.extensions["blob_store"] = blob_store

    db.init_app(app)
    migrate.init_app(app, db)
    babel.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # Model registration for create_all and migrations.
    import models  # noqa: F401

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    register_routes(app)
    _register_error_handlers(app)
    _register_commands(app)
    _start_sweeper(app, blob_store)

    app.logger.info("Application ready, uploads stored in %s", blob_store.root)
    return app


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", "3000")))
