import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from models.credential_store import CredentialStore
from services.auth import AuthService
from services.users import UserService
from utils.tokens import TokenCodec, TokenSettings

__version__ = "1.0.0"

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "User Auth API",
        "version": __version__,
        "description": "REST API for managing users, with access tokens and rotating refresh tokens.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
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


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level.upper())


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Services are built once here and shared through app.extensions.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    config = get_config(config_name)
    app.config.from_object(config)
    configure_logging(app.config["LOG_LEVEL"])

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    # Immutable token settings, read from config once
    codec = TokenCodec(TokenSettings.from_config(app.config))
    store = CredentialStore()
    app.extensions["token_codec"] = codec
    app.extensions["credential_store"] = store
    app.extensions["auth_service"] = AuthService(store, codec)
    app.extensions["user_service"] = UserService(store)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.cli.command("purge-refresh-tokens")
    def purge_refresh_tokens():
        """Delete refresh tokens past their expiry."""
        removed = store.purge_expired_refresh_tokens()
        store.save()
        click.echo(f"Removed {removed} expired refresh token(s)")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to User Auth API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    logging.getLogger(__name__).debug("app created with %s", config.__name__)
    return app
