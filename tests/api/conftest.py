"""API test client wired to in-memory services."""
import pytest
from fastapi.testclient import TestClient

from facematch.infrastructure.dependencies import (
    get_devotee_search_service,
    get_face_matching_service,
)
from facematch.main import app


@pytest.fixture
def client(face_matching_service, devotee_search_service):
    # No context manager: the lifespan would connect to the configured database
    app.dependency_overrides[get_face_matching_service] = lambda: face_matching_service
    app.dependency_overrides[get_devotee_search_service] = lambda: devotee_search_service
    yield TestClient(app)
    app.dependency_overrides.clear()
