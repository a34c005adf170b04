"""
Pytest configuration shared by the test modules
"""

import os
import tempfile
from datetime import timedelta

import pytest

# Environment must be in place before any medpresecure module is imported
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["MONGO_URI"] = "mongodb://localhost:27017/?replicaSet=rs0"
os.environ["OPENAI_API_KEY"] = "test-key"
os.environ["CLINIC_TIMEZONE"] = "UTC"
os.environ["CANCELLED_FREES_SLOT"] = "false"
os.environ["LOG_FILE"] = os.path.join(tempfile.gettempdir(), "medpresecure-tests", "app.log")

from fakes import InMemoryAppointmentStore  # noqa: E402


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def coordinator(store):
    from medpresecure.services.booking_service import SlotReservationCoordinator
    return SlotReservationCoordinator(store)


@pytest.fixture
def client(store):
    from fastapi.testclient import TestClient
    from medpresecure.db.client import get_store
    from medpresecure.main import app

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    from medpresecure.core.security import create_access_token

    def make(user_id: str) -> dict:
        token = create_access_token({"sub": user_id}, expires_delta=timedelta(minutes=5))
        return {"Authorization": f"Bearer {token}"}
    return make
