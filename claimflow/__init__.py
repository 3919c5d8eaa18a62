"""Application factory and extension initialization for Claimflow."""
from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from flask import Flask
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Global extension instances -------------------------------------------------

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


def create_app(
    config_name: Optional[str] = None, overrides: Optional[Mapping[str, Any]] = None
) -> Flask:
    """Flask application factory."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)

    from claimflow.config import config_by_name

    config_name = config_name or os.getenv("FLASK_CONFIG", "development")
    config_class = config_by_name.get(config_name.lower())
    if config_class is None:
        raise ValueError(f"Unknown Flask configuration '{config_name}'")

    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    logging.getLogger("claimflow").setLevel(app.config["LOG_LEVEL"])
    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Ensure instance folder exists for SQLite DBs
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    from claimflow.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from claimflow.admin import admin_bp
    from claimflow.approvals import approvals_bp
    from claimflow.claims import claims_bp
    from claimflow.currency import currency_bp

    app.register_blueprint(claims_bp)
    app.register_blueprint(approvals_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(currency_bp)

    # Import all models to ensure they are registered with SQLAlchemy
    from claimflow.models import (  # noqa: F401
        ApprovalPolicy, ApprovalSequence, ApprovalStep, Claim, ClaimItem, Company, User
    )
    from claimflow.utils.helpers import json_response

    @login_manager.user_loader
    def load_user(user_id: str) -> Optional[User]:
        return db.session.get(User, int(user_id))

    @login_manager.request_loader
    def load_user_from_request(request) -> Optional[User]:
        # Identity is asserted upstream by the authentication gateway.
        raw_id = request.headers.get("X-User-Id")
        if not raw_id or not raw_id.isdigit():
            return None
        user = db.session.get(User, int(raw_id))
        if user is None or not user.is_active:
            return None
        return user

    @login_manager.unauthorized_handler
    def unauthorized():
        return json_response({"error": "Authentication required.", "code": "unauthenticated"}, status=401)

    @app.shell_context_processor
    def shell_context():
        return {"db": db, "User": User, "Claim": Claim}

    return app
