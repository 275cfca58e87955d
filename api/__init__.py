import logging
from typing import Mapping

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from services import build_services
from .config import get_config
from .errors import register_error_handlers
from .middleware import register_request_hooks

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Todo API",
        "version": "1.0.0",
        "description": "REST API for managing todos with JWT authentication and refresh token rotation.",
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

API_PREFIX = "/api/v1"


def configure_logging(app: Flask):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)


def create_app(config_name: str | None = None, overrides: Mapping | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The store, token service, query engine, notification queue and rate
    limiter are built once here and kept on app.extensions["services"].
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    configure_logging(app)

    proxies = app.config.get("TRUSTED_PROXY_COUNT", 0)
    if proxies:
        # remote_addr comes from X-Forwarded-For only behind known proxies
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    origins = app.config.get("CORS_ORIGINS", "*")
    if origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(
        app,
        resources={r"/*": {"origins": origins}},
        allow_headers=["Origin", "Content-Type", "Authorization"],
    )

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    services = build_services(app.config)
    app.extensions["services"] = services

    # Register global error handlers that return the uniform envelope
    register_error_handlers(app)
    register_request_hooks(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .todos import bp as todos_bp

    app.register_blueprint(health_bp, url_prefix=API_PREFIX)
    app.register_blueprint(auth_bp, url_prefix=f"{API_PREFIX}/auth")
    app.register_blueprint(users_bp, url_prefix=API_PREFIX)
    app.register_blueprint(todos_bp, url_prefix=API_PREFIX)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        services.storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Todo API",
            "docs": "/apidocs/",
            "health": f"{API_PREFIX}/health",
        }, 200

    services.start_background(app.config)

    return app
