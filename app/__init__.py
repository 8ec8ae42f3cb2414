# app/__init__.py
import logging
import os
import sqlite3
from datetime import datetime

import click
from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .extensions import db, migrate, jwt, cache
from .errors import ServiceError
from .helpers import api_response

load_dotenv()


def _env_int(name, default):
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_options(uri):
    options = {"pool_pre_ping": True}
    if uri.startswith("postgresql"):
        # bounded data-source calls: fail instead of hanging a request or the sweep
        options["pool_timeout"] = 5
        options["connect_args"] = {"connect_timeout": 5, "options": "-c statement_timeout=5000"}
    return options


def create_app(config_overrides=None):
    app = Flask(__name__)

    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///eldercare.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'super-secret')
    app.config['FRONTEND_URL'] = os.getenv('FRONTEND_URL', 'http://localhost:3000')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    app.config['REDIS_URL'] = os.getenv('REDIS_URL') or os.getenv('REDIS_CONNECTION_STRING')
    app.config['CACHE_NAMESPACE'] = os.getenv('CACHE_NAMESPACE', '')
    app.config['CACHE_SOCKET_TIMEOUT'] = _env_int('CACHE_SOCKET_TIMEOUT', 2)

    app.config['REMINDER_SWEEP_ENABLED'] = os.getenv('REMINDER_SWEEP_ENABLED', '1') == '1'
    app.config['REMINDER_SWEEP_INTERVAL_SECS'] = _env_int('REMINDER_SWEEP_INTERVAL_SECS', 60)
    app.config['SCHEDULE_FANOUT_WORKERS'] = _env_int('SCHEDULE_FANOUT_WORKERS', 4)
    app.config['SCHEDULE_FANOUT_TIMEOUT_SECS'] = _env_int('SCHEDULE_FANOUT_TIMEOUT_SECS', 10)
    app.config['CLOCK'] = datetime.now

    if config_overrides:
        app.config.update(config_overrides)
    app.config.setdefault('SQLALCHEMY_ENGINE_OPTIONS', _engine_options(app.config['SQLALCHEMY_DATABASE_URI']))

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    cache.init_app(app)

    CORS(app,
         origins=[app.config['FRONTEND_URL']],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
         allow_headers=["Content-Type", "Authorization"])

    @app.errorhandler(ServiceError)
    def handle_service_error(e):
        return api_response(False, e.message, status_code=e.status_code)

    @app.errorhandler(Exception)
    def handle_error(e):
        from werkzeug.exceptions import HTTPException
        if isinstance(e, HTTPException):
            return api_response(False, e.description, status_code=e.code)
        app.logger.exception("Unhandled error")
        return api_response(False, str(e), status_code=500)

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return api_response(False, "Token expired", status_code=401)

    @jwt.invalid_token_loader
    def invalid_token_callback(err_msg):
        return api_response(False, f"Invalid token: {err_msg}", status_code=422)

    @jwt.unauthorized_loader
    def missing_token_callback(err_msg):
        return api_response(False, f"Missing token: {err_msg}", status_code=401)

    from . import models  # noqa: F401  (register tables with the metadata)
    from .routes.auth_routes import auth_bp
    from .routes.schedule_routes import schedule_bp
    from .routes.admin_routes import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(admin_bp)

    _register_cli(app)
    _start_reminder_sweep(app)

    return app


def _start_reminder_sweep(app):
    from .services.reminder_service import ReminderSweep, ReminderSweepRunner

    if not app.config['REMINDER_SWEEP_ENABLED'] or app.testing:
        return None
    runner = ReminderSweepRunner(app, ReminderSweep(), interval=app.config['REMINDER_SWEEP_INTERVAL_SECS'])
    app.extensions['reminder_sweep'] = runner
    runner.start()
    return runner


def _register_cli(app):
    from .models.user import User, ROLES

    @app.cli.command("create-user")
    @click.argument("username")
    @click.argument("password")
    @click.argument("role", type=click.Choice(ROLES))
    @click.option("--linked-id", type=int, default=None, help="Patient/caregiver/family id this login acts as")
    def create_user(username, password, role, linked_id):
        """Create a login for the dashboards."""
        if User.query.filter_by(username=username).first():
            raise click.ClickException(f"User {username} already exists")
        user = User(username=username, role=role, linked_id=linked_id)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        click.echo(f"Created {role} user {username} (id {user.id})")
