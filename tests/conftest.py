from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from catalyst.backend.main import app
from catalyst.backend.services.gemini import get_ai_client
from catalyst.backend.services.notifications import get_notifier
from catalyst.backend.services.sheets import get_sheet_appender
from fakes import FakeAIClient, FakeSheet, FakeTransport, make_notifier


@pytest.fixture
def submission_payload() -> Dict[str, Any]:
    return {
        "name": "Ann",
        "email": "ann@x.com",
        "phoneNumber": "+1",
        "collegeName": "X",
        "address": "Y",
        "projectTitle": "Shop App",
        "projectDescription": "Build an e-commerce app with cart and payments",
        "projectType": "mobile",
        "budget": "7000",
    }


@pytest.fixture
def fake_ai() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def fake_sheet() -> FakeSheet:
    return FakeSheet()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    app.state.rate_limiter.reset()
    yield
    app.state.rate_limiter.reset()


@pytest.fixture
def client(fake_ai, fake_sheet, fake_transport):
    """TestClient with the provider clients swapped for in-memory fakes."""
    app.dependency_overrides[get_ai_client] = lambda: fake_ai
    app.dependency_overrides[get_sheet_appender] = lambda: fake_sheet
    app.dependency_overrides[get_notifier] = lambda: make_notifier(fake_transport)
    yield TestClient(app)
    app.dependency_overrides.clear()
