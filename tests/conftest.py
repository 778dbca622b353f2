"""Shared pytest fixtures for merchant onboarding tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import UTC, datetime

import pytest

from merchant_onboarding.domain.models import (
    Contact,
    Location,
    Merchant,
    MerchantCreate,
    MerchantStatus,
    PrimaryCategory,
    Rating,
)
from merchant_onboarding.infrastructure.api.dependencies import (
    get_configuration_port,
    get_service_configuration,
)

ENV_VARS = (
    "SERVICE_NAME",
    "ENVIRONMENT",
    "LOG_LEVEL",
    "API_PORT",
    "AWS_REGION",
    "API_BASE_URL",
    "IDENTITY_BACKEND",
    "USER_POOL_ID",
    "USER_POOL_CLIENT_ID",
    "PROFILE_STORE_BACKEND",
    "NATS_URL",
    "USERS_TABLE_NAME",
    "MERCHANTS_TABLE_NAME",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    """Remove service variables from the environment and reset cached configuration."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_configuration_port.cache_clear()
    get_service_configuration.cache_clear()
    yield monkeypatch
    get_configuration_port.cache_clear()
    get_service_configuration.cache_clear()


@pytest.fixture
def sample_location() -> Location:
    """Create a sample merchant location."""
    return Location(
        address="12 High Street",
        city="Leeds",
        state="West Yorkshire",
        postal_code="LS1 1AA",
        latitude=53.7997,
        longitude=-1.5492,
    )


@pytest.fixture
def sample_contact() -> Contact:
    """Create a sample merchant contact."""
    return Contact(
        phone_number="+44 113 000 0000",
        email="hello@fixit.example.com",
        website_url="https://fixit.example.com",
    )


@pytest.fixture
def merchant_create(sample_location: Location, sample_contact: Contact) -> MerchantCreate:
    """Create a valid merchant creation input."""
    return MerchantCreate(
        legal_name="Fix It Ltd",
        trading_name="Fix It",
        short_description="Repairs small appliances",
        primary_category=PrimaryCategory.REPAIR,
        categories=["Electronics", "Appliances"],
        location=sample_location,
        contact=sample_contact,
    )


@pytest.fixture
def sample_merchant(sample_location: Location, sample_contact: Contact) -> Merchant:
    """Create a fully populated merchant."""
    return Merchant(
        merchant_id="b2d7c9a4-0000-4000-8000-000000000001",
        legal_name="Fix It Ltd",
        trading_name="Fix It",
        short_description="Repairs small appliances",
        primary_category=PrimaryCategory.REPAIR,
        categories=["Electronics", "Appliances"],
        verification_status=MerchantStatus.VERIFIED,
        location=sample_location,
        contact=sample_contact,
        services=[{"name": "Toaster repair", "description": "Same-day fixes"}],
        rating=Rating(average=4.5, count=12),
        operating_hours=[
            {"dayOfWeek": "Monday", "openTime": "09:00", "closeTime": "17:30"},
        ],
        created_at=datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
        updated_at=datetime(2024, 2, 1, 9, 0, tzinfo=UTC),
    )
