"""Shared pytest configuration.

Environment is set before the application is imported so settings and
logging pick up the test values.
"""

import os
import tempfile
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="videocomments-logs-"))
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("LOG_REQUESTS", "false")


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without lifespan: no store or cache connections are made."""
    from videocomments.main import app

    yield TestClient(app)
    app.dependency_overrides.clear()
