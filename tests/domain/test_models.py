"""Tests for merchant domain models."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from merchant_onboarding.domain.models import (
    Merchant,
    MerchantPatch,
    MerchantSearchResult,
    PrimaryCategory,
    Rating,
    ServiceConfiguration,
)


class TestMerchant:
    """Test cases for the Merchant entity."""

    def test_rejects_more_than_four_categories(self, sample_merchant: Merchant) -> None:
        """Test that the category list is bounded."""
        data = sample_merchant.model_dump()
        data["categories"] = ["a", "b", "c", "d", "e"]

        with pytest.raises(ValidationError):
            Merchant(**data)

    def test_rejects_updated_before_created(self, sample_merchant: Merchant) -> None:
        """Test that updatedAt cannot precede createdAt."""
        data = sample_merchant.model_dump()
        data["updated_at"] = datetime(2023, 12, 31, tzinfo=UTC)

        with pytest.raises(ValidationError) as exc_info:
            Merchant(**data)

        assert "updatedAt cannot be before createdAt" in str(exc_info.value)

    def test_parses_iso_timestamps_with_z_suffix(self, sample_merchant: Merchant) -> None:
        """Test that Z-suffixed timestamps are accepted."""
        data = sample_merchant.model_dump()
        data["created_at"] = "2024-01-01T09:00:00Z"
        data["updated_at"] = "2024-01-01T09:00:00.000Z"

        merchant = Merchant(**data)

        assert merchant.created_at == merchant.updated_at

    def test_rejects_date_only_timestamp(self, sample_merchant: Merchant) -> None:
        """Test that timestamps need a time component."""
        data = sample_merchant.model_dump()
        data["created_at"] = "2024-01-01"

        with pytest.raises(ValidationError):
            Merchant(**data)

    def test_rating_bounds(self) -> None:
        """Test rating average and count limits."""
        with pytest.raises(ValidationError):
            Rating(average=5.1, count=1)
        with pytest.raises(ValidationError):
            Rating(average=1, count=-1)

    def test_api_dict_uses_camel_case_and_omits_absent(self, sample_merchant: Merchant) -> None:
        """Test the wire representation."""
        merchant = sample_merchant.model_copy(update={"trading_name": None})

        body = merchant.to_api_dict()

        assert body["merchantId"] == merchant.merchant_id
        assert body["primaryCategory"] == "Repair"
        assert body["location"]["postalCode"] == "LS1 1AA"
        assert body["operatingHours"][0]["dayOfWeek"] == "Monday"
        assert body["createdAt"] == "2024-01-01T09:00:00+00:00"
        assert "tradingName" not in body


class TestMerchantPatch:
    """Test cases for the typed merchant patch."""

    def test_tracks_only_present_fields(self) -> None:
        """Test that only provided fields are reported."""
        patch = MerchantPatch(primary_category=PrimaryCategory.DONATE, trading_name=None)

        assert patch.present_fields() == {
            "primary_category": PrimaryCategory.DONATE,
            "trading_name": None,
        }

    def test_accepts_camel_case_input(self) -> None:
        """Test alias population."""
        patch = MerchantPatch.model_validate({"legalName": "New Name"})

        assert patch.model_fields_set == {"legal_name"}

    def test_rejects_clearing_required_fields(self) -> None:
        """Test that required attributes cannot be set to null."""
        with pytest.raises(ValidationError) as exc_info:
            MerchantPatch(legal_name=None)

        assert "Fields cannot be cleared: legal_name" in str(exc_info.value)

    def test_enforces_category_bound(self) -> None:
        """Test that a patch cannot exceed the category limit."""
        with pytest.raises(ValidationError):
            MerchantPatch(categories=["a", "b", "c", "d", "e"])


class TestMerchantSearchResult:
    """Test cases for the search result."""

    def test_empty_result(self) -> None:
        """Test an empty search renders a zero count."""
        result = MerchantSearchResult(merchants=[], count=0, category=PrimaryCategory.REFILL)

        assert result.to_api_dict() == {"merchants": [], "count": 0, "category": "Refill"}


class TestServiceConfiguration:
    """Test cases for service configuration."""

    def test_missing_settings_for_memory_backend(self) -> None:
        """Test that pool ids are not required without cognito."""
        config = ServiceConfiguration(
            environment="development",
            log_level="INFO",
            api_port=8000,
            users_table_name="users",
        )

        assert config.missing_registration_settings() == {
            "USER_POOL_ID": False,
            "USER_POOL_CLIENT_ID": False,
            "USERS_TABLE_NAME": False,
        }

    def test_missing_settings_for_cognito_backend(self) -> None:
        """Test that cognito requires pool ids."""
        config = ServiceConfiguration(
            environment="development",
            log_level="INFO",
            api_port=8000,
            identity_backend="cognito",
            user_pool_id="pool",
        )

        assert config.missing_registration_settings() == {
            "USER_POOL_ID": False,
            "USER_POOL_CLIENT_ID": True,
            "USERS_TABLE_NAME": True,
        }

    def test_rejects_invalid_nats_url(self) -> None:
        """Test NATS URL scheme validation."""
        with pytest.raises(ValidationError):
            ServiceConfiguration(
                environment="development",
                log_level="INFO",
                api_port=8000,
                nats_url="http://localhost:4222",
            )
