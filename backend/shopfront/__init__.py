# backend/shopfront/__init__.py
from flask import Flask, g, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config, DEV_JWT_SECRET
from .extensions import db, migrate
from .logging_setup import configure_logging, register_request_id_hooks
from .responses import error_response
from .validation import ConflictError, ValidationError


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    proxies = app.config.get("TRUSTED_PROXY_COUNT", 0)
    if proxies:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    configure_logging(app)
    register_request_id_hooks(app)

    @app.before_request
    def reset_actor():
        # g outlives a request when an app context is already pushed (CLI, tests)
        g.current_actor = None
        g.permissions = ()

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.public_users import public_users_bp
    from .routes.public_catalog import public_catalog_bp
    from .routes.public_orders import public_orders_bp
    from .routes.users import users_bp
    from .routes.staff import staff_bp
    from .routes.roles import roles_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.product_history import product_history_bp
    from .routes.orders import orders_bp
    from .routes.audit_logs import audit_logs_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(public_users_bp)
    app.register_blueprint(public_catalog_bp)
    app.register_blueprint(public_orders_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(product_history_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(audit_logs_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type, X-Request-Id"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    register_error_handlers(app)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("APP_ENV") == "production" and app.config.get("JWT_SECRET") == DEV_JWT_SECRET:
        app.logger.error("Config: JWT_SECRET is not set, using the development default")

    return app


def register_error_handlers(app: Flask) -> None:
    """Every failure leaves the API as the {success: false, error} envelope."""

    @app.errorhandler(ValidationError)
    @app.errorhandler(ConflictError)
    def handle_bad_input(e):
        return error_response(str(e), 400)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return error_response(e.name, e.code)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        # Raw exception text never reaches the client
        app.logger.exception("App: Unhandled error on %s %s", request.method, request.path)
        db.session.rollback()
        return error_response("Internal Server Error", 500)
