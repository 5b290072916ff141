"""
Tests for the projection HTTP endpoints.

This module tests request handling, status code mapping and the JSON shape of
projection responses.
"""

import pytest


class TestListProjections:
    """Test GET /api/projections."""

    def test_lists_all_types(self, client):
        """Test that every projection type is advertised."""
        response = client.get("/api/projections")

        assert response.status_code == 200
        assert response.get_json() == {
            "projection_types": [
                "amortization",
                "refinance",
                "retirement_income",
                "fire",
                "healthcare",
            ]
        }


class TestRunProjection:
    """Test POST /api/projections/<type>."""

    def test_amortization(self, client):
        """Test a successful amortization request."""
        response = client.post(
            "/api/projections/amortization",
            json={
                "balance": 300000,
                "annual_rate_percent": 6.5,
                "term_months": 360,
                "start_date": "2024-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["monthly_payment"] == pytest.approx(1896.20, abs=0.01)
        assert data["payoff_date"] == "2054-01"
        assert data["schedule"][-1]["balance"] == pytest.approx(0, abs=0.01)

    def test_refinance_infinite_break_even_is_null(self, client):
        """Test that a refinance without savings returns a null break-even."""
        response = client.post(
            "/api/projections/refinance",
            json={
                "current": {
                    "balance": 200000,
                    "annual_rate_percent": 4.0,
                    "monthly_payment": 1500,
                    "remaining_months": 180,
                },
                "proposed": {"annual_rate_percent": 8.0, "term_months": 180},
                "start_date": "2024-01",
            },
        )

        assert response.status_code == 200
        assert response.get_json()["break_even_months"] is None

    def test_fire(self, client):
        """Test a successful FIRE request."""
        response = client.post(
            "/api/projections/fire",
            json={
                "current_net_worth": 50000,
                "annual_income": 100000,
                "annual_expenses": 70000,
                "annual_savings": 30000,
                "retirement_annual_expenses": 60000,
                "start_date": "2024-01",
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["fi_number"] == pytest.approx(1_500_000)
        assert data["monthly_projection"][0]["date"] == "2024-01"

    def test_unknown_type_returns_404(self, client):
        """Test that unknown projection types are not found."""
        response = client.post("/api/projections/lottery", json={})

        assert response.status_code == 404
        assert response.get_json()["error"] == "Unknown projection type"

    def test_non_object_body_returns_400(self, client):
        """Test that the body must be a JSON object."""
        response = client.post("/api/projections/amortization", json=[1, 2, 3])

        assert response.status_code == 400

    def test_missing_body_returns_400(self, client):
        """Test that a request without JSON is rejected."""
        response = client.post("/api/projections/amortization", data="not json")

        assert response.status_code == 400

    def test_validation_error_returns_400_with_details(self, client):
        """Test that schema errors are reported field by field."""
        response = client.post(
            "/api/projections/amortization",
            json={"balance": -1, "annual_rate_percent": 5.0, "term_months": 12},
        )

        assert response.status_code == 400
        data = response.get_json()
        assert data["error"] == "Invalid input"
        assert any(d["loc"] == ["balance"] for d in data["details"])

    def test_invalid_input_returns_400(self, client):
        """Test that domain validation errors map to 400."""
        response = client.post(
            "/api/projections/fire",
            json={
                "current_net_worth": 0,
                "annual_income": 0,
                "annual_expenses": 0,
                "annual_savings": 0,
                "retirement_annual_expenses": 40000,
                "withdrawal_rate": 0,
            },
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid input"

    def test_non_amortizing_payment_returns_422(self, client):
        """Test that a payment below interest is unprocessable."""
        response = client.post(
            "/api/projections/amortization",
            json={
                "balance": 100000,
                "annual_rate_percent": 12.0,
                "term_months": 360,
                "monthly_payment": 900,
            },
        )

        assert response.status_code == 422
        assert "never decrease" in response.get_json()["message"]

    def test_unexpected_error_returns_500(self, app, client, monkeypatch):
        """Test that unexpected failures are hidden behind a 500."""
        service = app.extensions["projection_service"]

        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(service, "run_projection", explode)
        response = client.post("/api/projections/fire", json={})

        assert response.status_code == 500
        assert response.get_json() == {"error": "Internal server error"}

    @pytest.mark.parametrize(
        "sensitivity",
        [
            {"variable": "healthcare_inflation", "values": ["abc"]},
            ["healthcare_inflation"],
            {"variable": "investment_return", "values": [-150.0]},
        ],
    )
    def test_malformed_sensitivity_returns_400(self, client, sensitivity):
        """Test that a bad sensitivity request is reported as invalid input."""
        response = client.post(
            "/api/projections/healthcare",
            json={
                "current_age": 50,
                "retirement_age": 62,
                "life_expectancy": 90,
                "current_annual_premium": 6000,
                "annual_out_of_pocket": 2000,
                "sensitivity": sensitivity,
            },
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid input"

    def test_non_numeric_as_of_year_returns_400(self, client):
        """Test that a malformed as_of_year is rejected as invalid input."""
        response = client.post(
            "/api/projections/retirement_income",
            json={
                "current_age": 60,
                "retirement_age": 65,
                "target_income": 40000,
                "as_of_year": "next year",
            },
        )

        assert response.status_code == 400
        assert "as_of_year" in response.get_json()["message"]
