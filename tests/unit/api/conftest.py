"""Fixtures for API route tests."""

from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

ADMIN_HEADERS = {
    "X-User-Id": "user-admin-1",
    "X-User-Role": "admin",
    "X-User-Name": "Ana Admin",
}
AGENT_HEADERS = {"X-User-Id": "user-agent-1", "X-User-Role": "agent"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Headers the gateway authorizer sets for an admin."""
    return dict(ADMIN_HEADERS)


@pytest.fixture
def agent_headers() -> dict[str, str]:
    return dict(AGENT_HEADERS)


@pytest.fixture
def client(create_tables: None) -> Generator[TestClient, None, None]:
    """Test client over the mocked tables.

    Services are built lazily inside the mock_aws context because
    reset_services() runs before each test.
    """
    from quote_api.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def created_package(
    client: TestClient, package_data: dict[str, Any], admin_headers: dict[str, str]
) -> dict[str, Any]:
    """An active package created through the API (version 2)."""
    response = client.post("/api/packages", json=package_data, headers=admin_headers)
    assert response.status_code == 201
    package = response.json()

    response = client.post(
        f"/api/packages/{package['package_id']}/status",
        json={"status": "active", "expected_version": 1},
        headers=admin_headers,
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def created_quote(client: TestClient, admin_headers: dict[str, str]) -> dict[str, Any]:
    """A draft quote at 500 created through the API (version 1)."""
    response = client.post(
        "/api/quotes",
        json={
            "enquiry_id": "ENQ-1001",
            "lead_name": "Jamie Lead",
            "hotel_name": "Hotel Piolets",
            "number_of_people": 8,
            "number_of_nights": 2,
            "arrival_date": "2025-01-15",
            "total_price": 500,
            "currency": "EUR",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()
