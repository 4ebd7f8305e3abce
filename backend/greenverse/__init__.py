# backend/greenverse/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .errors import register_error_handlers


LOCAL_DEV_ORIGINS = {
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:4173",
    "http://127.0.0.1:4173",
}


def create_app(config: Config | None = None) -> Flask:
    """
    Application factory.

    config defaults to Config.from_env(), which raises ConfigError when
    DATABASE_URL (or JWT_SECRET in production) is missing.
    """
    if config is None:
        config = Config.from_env()

    app = Flask(__name__, instance_relative_config=True)
    app.config.update(config.flask_settings())
    app.logger.setLevel(getattr(logging, config.log_level, logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    register_error_handlers(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.orders import orders_bp
    from .routes.clusters import clusters_bp
    from .routes.employees import employees_bp
    from .routes.production import production_bp
    from .routes.attendance import attendance_bp
    from .routes.materials import materials_bp
    from .routes.users import users_bp
    from .routes.profile import profile_bp
    from .routes.dashboard import dashboard_bp
    from .routes.finance import finance_bp
    from .routes.impact import impact_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(clusters_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(production_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(materials_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(finance_bp)
    app.register_blueprint(impact_bp)

    allowed_origins = LOCAL_DEV_ORIGINS | {config.frontend_url.rstrip("/")}

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info("GreenVerse API configured (env=%s)", config.app_env)
    return app
