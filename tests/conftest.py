"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from src.main import app


logger = logging.getLogger(__name__)


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without lifespan (no scheduler, no store initialization).

    Dependency overrides set by a test are cleared afterwards.
    """
    yield TestClient(app)
    app.dependency_overrides.clear()
