# backend/bstock/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        # Applied before extensions bind so tests can swap the database
        app.config.update(config_overrides)

    # Module loggers (bstock.services.*) propagate to app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sales import sales_bp
    from .routes.variants import variants_bp
    from .routes.products import products_bp
    from .routes.vendors import vendors_bp
    from .routes.users import users_bp
    from .routes.subscriptions import subscriptions_bp, webhooks_bp
    from .routes.analytics import analytics_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(variants_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(vendors_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(subscriptions_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(analytics_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
