from __future__ import annotations

import os
from uuid import uuid4

import pytest

from tests.testkit import ApiClient, NameFactory


@pytest.fixture(scope="session")
def api() -> ApiClient:
    if os.getenv("RUN_API_INTEGRATION", "0") != "1":
        pytest.skip("Integration tests disabled. Set RUN_API_INTEGRATION=1.")

    base_url = os.getenv("TEST_API_BASE_URL", "http://localhost:8000")
    client = ApiClient(base_url)
    try:
        health = client.call("GET", "/health")
    except Exception as exc:  # pragma: no cover - guard rail
        pytest.fail(f"API not reachable at {base_url}: {exc}")
    if not isinstance(health, dict) or not health.get("ok"):
        pytest.fail(f"Invalid health check at {base_url}: {health}")
    return client


@pytest.fixture(scope="session")
def names() -> NameFactory:
    return NameFactory(seed=uuid4().hex[:8])


@pytest.fixture
def deletion_headers(api) -> dict[str, str]:
    """Headers that satisfy the deletion guard when it is enabled on the server."""
    password = os.getenv("TEST_DELETION_PASSWORD", "admin123")
    out = api.call("POST", "/api/auth/verify-deletion", body={"password": password})
    return {"X-Deletion-Token": out["deletion_token"]}
