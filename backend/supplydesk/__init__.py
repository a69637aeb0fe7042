# backend/supplydesk/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    from .logging_config import configure_logging
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.auth import auth_bp
    from .routes.pages import pages_bp
    from .routes.admin import admin_bp
    from .routes.categories import categories_bp
    from .routes.dashboard import dashboard_bp
    from .routes.director_users import director_users_bp
    from .routes.director_products import director_products_bp
    from .routes.director_stock import director_stock_bp
    from .routes.director_orders import director_orders_bp
    from .routes.director_reports import director_reports_bp
    from .routes.user_orders import user_orders_bp
    from .routes.user_finance import user_finance_bp
    from .routes.user_customers import user_customers_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(director_users_bp)
    app.register_blueprint(director_products_bp)
    app.register_blueprint(director_stock_bp)
    app.register_blueprint(director_orders_bp)
    app.register_blueprint(director_reports_bp)
    app.register_blueprint(user_orders_bp)
    app.register_blueprint(user_finance_bp)
    app.register_blueprint(user_customers_bp)

    # Session resolution and page routing run before every request
    from .middleware import register_middleware
    register_middleware(app)

    from .errors import register_error_handlers
    register_error_handlers(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
