from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .container import EXTENSION_KEY, Services
from .errors import register_error_handlers
from .request_logging import register_request_logging
from models.seed import seed_authorization
from utils.logging_config import setup_logging

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Pet Service API",
        "version": "1.0.0",
        "description": "Pet Service API with JWT authentication: accounts, pets, life events, media, comments and appointments.",
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


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Storage, token service, revocation store, permission resolver, auth gate
    and notifier are built here from config and handed around explicitly.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    setup_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    register_request_logging(app)

    svc = Services.from_config(app.config)
    svc.storage.reload()
    if app.config.get("SEED_AUTHORIZATION", True):
        seed_authorization(svc.storage)
    svc.storage.close()
    app.extensions[EXTENSION_KEY] = svc

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .pets import bp as pets_bp
    from .comments import bp as comments_bp
    from .appointments import bp as appointments_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1")
    app.register_blueprint(pets_bp, url_prefix="/api/v1")
    app.register_blueprint(comments_bp, url_prefix="/api/v1")
    app.register_blueprint(appointments_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        svc.storage.close()

    @app.route("/")
    def root():
        return {
            "message": f"Welcome to {app.config['PROJECT_NAME']}",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
