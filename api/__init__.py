import logging

import click
from flask import Flask, current_app
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, parse_duration
from .errors import register_error_handlers
from models.db_storage import DBStorage
from models.credential_store import CredentialStore
from models.session_store import SessionStore
from services.session_manager import SessionManager
from utils.security import TokenCodec, build_password_hasher

logger = logging.getLogger(__name__)

MIN_SECRET_BYTES = 32

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Team Manager API",
        "version": "1.0.0",
        "description": "Authentication and session endpoints for the team, player and task manager.",
    },
    "basePath": "/",  # Blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def init_auth(app: Flask) -> SessionManager:
    """
    Build the long-lived auth components once and share them via app.extensions.
    Request handlers never construct stores or codecs of their own.
    """
    secret = app.config.get("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET must be set")
    if len(secret.encode()) < MIN_SECRET_BYTES:
        logger.warning("JWT_SECRET is shorter than %d bytes", MIN_SECRET_BYTES)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    codec = TokenCodec(
        secret=secret,
        access_ttl=parse_duration(app.config["ACCESS_TOKEN_TTL"]),
        algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
        issuer=app.config.get("JWT_ISSUER", "team-manager-api"),
    )
    manager = SessionManager(
        credentials=CredentialStore(storage),
        sessions=SessionStore(storage),
        codec=codec,
        hasher=build_password_hasher(app.config),
        refresh_ttl=parse_duration(app.config["REFRESH_TOKEN_TTL"]),
        rotate_refresh_tokens=app.config.get("REFRESH_TOKEN_ROTATION", False),
    )

    app.extensions["storage"] = storage
    app.extensions["token_codec"] = codec
    app.extensions["session_manager"] = manager
    return manager


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (used by tests).
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Uniform error envelope
    register_error_handlers(app)

    init_auth(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        app.extensions["storage"].close()

    @app.cli.command("purge-sessions")
    def purge_sessions():
        """Delete refresh-token sessions that are inactive and expired."""
        removed = current_app.extensions["session_manager"].purge_expired_sessions()
        click.echo(f"Purged {removed} session(s)")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Team Manager API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
