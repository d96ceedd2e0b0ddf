# backend/shopadmin/__init__.py
import os

from flask import Flask, request, send_from_directory

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.roles import roles_bp
    from .routes.permissions import permissions_bp
    from .routes.categories import categories_bp
    from .routes.products import products_bp
    from .routes.tags import tags_bp
    from .routes.media import media_bp
    from .routes.upload import upload_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(roles_bp)
    app.register_blueprint(permissions_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(tags_bp)
    app.register_blueprint(media_bp)
    app.register_blueprint(upload_bp)

    from .responses import register_error_handlers
    register_error_handlers(app)

    @app.get("/uploads/<path:relative_path>")
    def serve_upload(relative_path):
        return send_from_directory(os.path.abspath(app.config["UPLOAD_DESTINATION"]), relative_path)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in set(app.config["CORS_ORIGINS"]):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
