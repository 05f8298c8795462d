"""
tests/conftest.py — API client fixture.

The FastAPI app is exercised through TestClient without running its
lifespan: the pool and identity resolver are swapped in via
dependency_overrides, and record-store calls are patched per test.
"""
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from fakes import FakeIdentity


@pytest.fixture
def identity() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture
def client(identity):
    from api.main import app
    from api.dependencies.auth import get_identity
    from api.dependencies.db import get_pool

    app.dependency_overrides[get_pool] = lambda: MagicMock()
    app.dependency_overrides[get_identity] = lambda: identity
    yield TestClient(app)
    app.dependency_overrides.clear()
