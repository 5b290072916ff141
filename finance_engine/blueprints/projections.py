"""
Projection blueprint.

This module exposes each projection engine over HTTP: the request body is the
projection's input payload and the response is the JSON-ready result.
"""

from typing import Any

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from finance_engine.models.errors import InvalidInputError, NonAmortizingPaymentError
from finance_engine.services.projection_service import (
    PROJECTION_TYPES,
    ProjectionService,
    UnknownProjectionError,
)

projections_bp = Blueprint("projections", __name__, url_prefix="/api")


def _get_service() -> ProjectionService:
    return current_app.extensions["projection_service"]


@projections_bp.route("/projections", methods=["GET"])
def list_projections() -> Any:
    """List the supported projection types.

    Returns:
        JSON response with the projection type names
    """
    return jsonify({"projection_types": list(PROJECTION_TYPES)})


@projections_bp.route("/projections/<projection_type>", methods=["POST"])
def run_projection(projection_type: str) -> Any:
    """Run a projection with the request body as its inputs.

    Args:
        projection_type: Name of the projection to run

    Returns:
        JSON response with the projection result
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        result = _get_service().run_projection(projection_type, data)
    except UnknownProjectionError as e:
        return jsonify({"error": "Unknown projection type", "message": str(e)}), 404
    except ValidationError as e:
        return (
            jsonify(
                {
                    "error": "Invalid input",
                    "details": e.errors(include_url=False, include_context=False),
                }
            ),
            400,
        )
    except InvalidInputError as e:
        return jsonify({"error": "Invalid input", "message": str(e)}), 400
    except NonAmortizingPaymentError as e:
        return jsonify({"error": "Non-amortizing payment", "message": str(e)}), 422
    except Exception as e:
        current_app.logger.error(f"Error running {projection_type} projection: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(result)
