"""
Unit tests for the profile and portfolio APIs.
"""

from datetime import date
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.dependencies.auth import get_optional_identity
from src.api.dependencies.chat_deps import get_registry
from src.api.dependencies.portfolio_deps import (
    get_financial_data_service,
    get_portfolio_service,
    get_profile_service,
)
from src.api.portfolio import router as portfolio_router
from src.api.profile import router as profile_router
from src.core.exceptions import AppError, NotFoundError
from src.main import app_error_handler
from src.models.holding import Holding
from src.models.identity import Identity
from src.models.profile import Persona, UserProfile
from src.models.transaction import Transaction

# ===== Fixtures =====


@pytest.fixture
def identity_holder():
    return {"identity": Identity(user_id="user_123")}


@pytest.fixture
def profile_service():
    service = Mock()
    service.ensure_profile = AsyncMock(return_value=UserProfile())
    service.save_profile = AsyncMock(side_effect=lambda identity, profile: profile)
    return service


@pytest.fixture
def registry():
    registry = Mock()
    registry.notify_profile_changed = AsyncMock(return_value=2)
    return registry


@pytest.fixture
def portfolio_service():
    service = Mock()
    service.list_holdings = AsyncMock(
        return_value=[
            Holding(
                holding_id="holding_1",
                user_id="user_123",
                name="Nifty 50",
                ticker="NIFTYBEES",
                value=1000,
                gain=100,
            )
        ]
    )
    service.save_holding = AsyncMock(
        side_effect=lambda identity, holding, holding_id=None: Holding(
            holding_id=holding_id or "holding_new",
            user_id=identity.user_id,
            **holding.model_dump(),
        )
    )
    service.delete_holding = AsyncMock()
    service.list_transactions = AsyncMock(
        return_value=[
            Transaction(
                transaction_id="txn_1",
                user_id="user_123",
                amount=-20,
                type="expense",
                category="Food",
                date=date(2025, 3, 1),
            )
        ]
    )
    service.delete_transaction = AsyncMock(side_effect=NotFoundError("Transaction not found"))
    return service


@pytest.fixture
def financial_service():
    service = Mock()
    service.get_financial_summary = AsyncMock(return_value=None)
    return service


@pytest.fixture
def client(identity_holder, profile_service, registry, portfolio_service, financial_service):
    app = FastAPI()
    app.include_router(profile_router)
    app.include_router(portfolio_router)
    app.add_exception_handler(AppError, app_error_handler)

    app.dependency_overrides[get_optional_identity] = lambda: identity_holder["identity"]
    app.dependency_overrides[get_profile_service] = lambda: profile_service
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_portfolio_service] = lambda: portfolio_service
    app.dependency_overrides[get_financial_data_service] = lambda: financial_service

    return TestClient(app)


# ===== Profile Tests =====


class TestProfileApi:
    """Test /api/profile"""

    def test_get_creates_default(self, client, profile_service):
        response = client.get("/api/profile")

        assert response.status_code == 200
        assert response.json()["profile"]["persona"] == "Student"
        profile_service.ensure_profile.assert_awaited_once()

    def test_requires_authentication(self, client, identity_holder):
        identity_holder["identity"] = None

        assert client.get("/api/profile").status_code == 401

    def test_save_notifies_sessions(self, client, registry):
        response = client.put(
            "/api/profile", json={"persona": "Professional", "age": 31, "goals": "Retire"}
        )

        data = response.json()
        assert data["profile"]["persona"] == "Professional"
        assert data["sessions_restarted"] == 2
        user_id, profile = registry.notify_profile_changed.call_args[0]
        assert user_id == "user_123"
        assert profile.persona == Persona.PROFESSIONAL

    def test_blank_age_accepted(self, client):
        response = client.put("/api/profile", json={"persona": "Student", "age": "", "income": ""})

        assert response.status_code == 200
        assert response.json()["profile"]["age"] is None

    def test_invalid_risk_tolerance(self, client):
        assert client.put("/api/profile", json={"risk_tolerance": 9}).status_code == 422


# ===== Portfolio Tests =====


class TestPortfolioApi:
    """Test /api/portfolio"""

    def test_list_holdings(self, client):
        data = client.get("/api/portfolio/holdings").json()

        assert data["holdings"][0]["ticker"] == "NIFTYBEES"

    def test_create_holding(self, client):
        response = client.post(
            "/api/portfolio/holdings",
            json={"name": "Gold ETF", "ticker": "GOLDBEES", "value": 500, "gain": -5},
        )

        assert response.status_code == 201
        assert response.json()["holding_id"] == "holding_new"

    def test_negative_value_rejected(self, client):
        response = client.post(
            "/api/portfolio/holdings", json={"name": "X", "ticker": "X", "value": -1}
        )

        assert response.status_code == 422

    def test_list_transactions(self, client):
        data = client.get("/api/portfolio/transactions").json()

        assert data["transactions"][0]["date"] == "2025-03-01"

    def test_delete_missing_transaction(self, client):
        response = client.delete("/api/portfolio/transactions/txn_missing")

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found_error"

    def test_summary_without_data(self, client):
        assert client.get("/api/portfolio/financial-summary").status_code == 404
