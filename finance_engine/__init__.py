"""Financial Projection Engine Flask Application Factory."""

import logging
from typing import Optional

from flask import Flask

from finance_engine.config import Settings, get_global_settings
from finance_engine.services.projection_service import ProjectionService


def create_app(settings: Optional[Settings] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Configuration from Pydantic Settings
    if settings is None:
        settings = get_global_settings()
    app.config["SECRET_KEY"] = settings.secret_key
    app.config["ENV"] = settings.flask_env
    app.config["DEBUG"] = settings.app_env == "development"

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(settings.log_level)

    app.extensions["projection_service"] = ProjectionService.from_settings(settings)

    # Register blueprints
    from finance_engine.blueprints.health import health_bp
    from finance_engine.blueprints.projections import projections_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(projections_bp)

    return app
