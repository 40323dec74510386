"""Pytest configuration and fixtures for the quote engine tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Wired services over the mocked tables
- Sample packages, quotes and actors
"""

import datetime as dt
import os
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-quotes")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from quote_engine.models import (  # noqa: E402
    Actor,
    ActorRole,
    Currency,
    Package,
    PackageCreate,
    PackageStatus,
    Quote,
    QuoteCreate,
    QuoteStatus,
)

TABLE_PREFIX = os.environ["DYNAMODB_TABLE_PREFIX"]


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws get fresh service instances inside the mock
    context rather than reusing ones built outside it.
    """
    from quote_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    tables = [
        {
            "TableName": f"{TABLE_PREFIX}-packages",
            "KeySchema": [{"AttributeName": "package_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "package_id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-quotes",
            "KeySchema": [{"AttributeName": "quote_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "quote_id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-version-history",
            "KeySchema": [
                {"AttributeName": "entity_id", "KeyType": "HASH"},
                {"AttributeName": "record_key", "KeyType": "RANGE"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": "entity_id", "AttributeType": "S"},
                {"AttributeName": "record_key", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-audit-logs",
            "KeySchema": [{"AttributeName": "event_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "event_id", "AttributeType": "S"},
                {"AttributeName": "resource_id", "AttributeType": "S"},
                {"AttributeName": "timestamp", "AttributeType": "S"},
            ],
            "GlobalSecondaryIndexes": [
                {
                    "IndexName": "resource_id-index",
                    "KeySchema": [
                        {"AttributeName": "resource_id", "KeyType": "HASH"},
                        {"AttributeName": "timestamp", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                },
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
        {
            "TableName": f"{TABLE_PREFIX}-users",
            "KeySchema": [{"AttributeName": "user_id", "KeyType": "HASH"}],
            "AttributeDefinitions": [
                {"AttributeName": "user_id", "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        },
    ]

    for table_config in tables:
        dynamodb_client.create_table(**table_config)


# === Service Fixtures ===


@pytest.fixture
def db(create_tables: None) -> Any:
    """DynamoDBService over the mocked tables."""
    from quote_engine.services.dynamodb import DynamoDBService

    return DynamoDBService()


@pytest.fixture
def users(db: Any) -> Any:
    from quote_engine.services.user_directory import UserDirectory

    return UserDirectory(db)


@pytest.fixture
def history(db: Any, users: Any) -> Any:
    from quote_engine.services.version_history import VersionHistoryService

    return VersionHistoryService(db, users)


@pytest.fixture
def audit(db: Any) -> Any:
    from quote_engine.services.audit_log import AuditLogger

    return AuditLogger(db, enabled=True)


@pytest.fixture
def catalog(db: Any, history: Any, audit: Any) -> Any:
    from quote_engine.services.package_catalog import PackageCatalog

    return PackageCatalog(db, history, audit)


@pytest.fixture
def quote_service(db: Any, catalog: Any, history: Any, audit: Any) -> Any:
    from quote_engine.services.quote_tracker import QuoteService

    return QuoteService(db, catalog, history, audit)


# === Actor Fixtures ===


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(id="user-admin-1", role=ActorRole.ADMIN, name="Ana Admin")


@pytest.fixture
def other_admin() -> Actor:
    return Actor(id="user-admin-2", role=ActorRole.ADMIN, name="Ola Other")


@pytest.fixture
def agent_actor() -> Actor:
    return Actor(id="user-agent-1", role=ActorRole.AGENT, name="Sam Agent")


# === Sample Data Fixtures ===


def make_package_data(**overrides: Any) -> dict[str, Any]:
    """Pricing definition used across tests.

    Tiers "6-11 People" and "12+ People", durations 2/3/4 nights:
    - January: tier 0 = 100/2n, 140/3n; tier 1 = 90/2n, ON_REQUEST/4n
    - February: tier 0 = 110/2n
    - Easter (2025-04-14..2025-04-21): tier 0 = 150/2n
    - April: tier 0 = 120/2n
    """
    data: dict[str, Any] = {
        "name": "Ski Weekend Andorra",
        "destination": "Andorra",
        "resort": "Soldeu",
        "currency": "EUR",
        "group_size_tiers": [
            {"label": "6-11 People", "min_people": 6, "max_people": 11},
            {"label": "12+ People", "min_people": 12, "max_people": 999},
        ],
        "duration_options": [2, 3, 4],
        "pricing_matrix": [
            {
                "period": "January",
                "period_type": "month",
                "prices": [
                    {"group_size_tier_index": 0, "nights": 2, "price": 100},
                    {"group_size_tier_index": 0, "nights": 3, "price": 140},
                    {"group_size_tier_index": 1, "nights": 2, "price": 90},
                    {"group_size_tier_index": 1, "nights": 4, "price": "ON_REQUEST"},
                ],
            },
            {
                "period": "February",
                "period_type": "month",
                "prices": [
                    {"group_size_tier_index": 0, "nights": 2, "price": 110},
                ],
            },
            {
                "period": "Easter",
                "period_type": "special",
                "start_date": "2025-04-14",
                "end_date": "2025-04-21",
                "prices": [
                    {"group_size_tier_index": 0, "nights": 2, "price": 150},
                ],
            },
            {
                "period": "April",
                "period_type": "month",
                "prices": [
                    {"group_size_tier_index": 0, "nights": 2, "price": 120},
                ],
            },
        ],
        "inclusions": [{"text": "Airport transfers", "category": "transfer"}],
        "accommodation_examples": ["Hotel Piolets"],
        "sales_notes": "Great for stag groups\nLift passes extra",
    }
    data.update(overrides)
    return data


@pytest.fixture
def package_data() -> dict[str, Any]:
    return make_package_data()


@pytest.fixture
def package_create(package_data: dict[str, Any]) -> PackageCreate:
    return PackageCreate.model_validate(package_data)


@pytest.fixture
def sample_package(package_data: dict[str, Any]) -> Package:
    """An active in-memory package at version 1."""
    now = dt.datetime(2024, 11, 1, 9, 0, tzinfo=dt.UTC)
    return Package.model_validate(
        {
            **package_data,
            "package_id": "PKG-TEST00000001",
            "status": PackageStatus.ACTIVE,
            "version": 1,
            "created_by": "user-admin-1",
            "last_modified_by": "user-admin-1",
            "created_at": now,
            "updated_at": now,
        }
    )


@pytest.fixture
def quote_create() -> QuoteCreate:
    return QuoteCreate(
        enquiry_id="ENQ-1001",
        lead_name="Jamie Lead",
        hotel_name="Hotel Piolets",
        number_of_people=8,
        number_of_nights=2,
        arrival_date=dt.date(2025, 1, 15),
        whats_included="Accommodation\nLift passes",
        total_price=0,
        currency=Currency.EUR,
    )


@pytest.fixture
def sample_quote(quote_create: QuoteCreate) -> Quote:
    """A draft in-memory quote at version 1."""
    now = dt.datetime(2024, 12, 1, 9, 0, tzinfo=dt.UTC)
    return Quote(
        **quote_create.model_dump(),
        quote_id="QTE-TEST00000001",
        status=QuoteStatus.DRAFT,
        version=1,
        created_by="user-admin-1",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def active_package(catalog: Any, package_create: PackageCreate, admin_actor: Actor) -> Package:
    """A stored, active package at version 2."""
    package = catalog.create_package(package_create, admin_actor)
    return catalog.set_status(package.package_id, PackageStatus.ACTIVE, admin_actor, 1)


@pytest.fixture
def stored_quote(quote_service: Any, quote_create: QuoteCreate, admin_actor: Actor) -> Quote:
    """A stored draft quote at version 1."""
    return quote_service.create_quote(quote_create, admin_actor)
