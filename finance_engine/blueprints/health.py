"""Liveness blueprint for the projection API."""

from flask import Blueprint, Response, current_app, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Report that the app is up and its projection service is registered.

    Returns:
        JSON response with status information
    """
    service_ready = "projection_service" in current_app.extensions
    return jsonify({"status": "ok" if service_ready else "degraded"})
