"""Domain models for the merchant directory.

This module contains the Merchant entity and its value objects with Pydantic v2
validation. Field names are snake_case in Python and camelCase on the wire.
Domain models are free from any infrastructure dependencies.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ..utils.timezone import parse_iso_to_utc, to_iso

MAX_CATEGORIES = 4
MAX_SERVICES = 10
MAX_OPERATING_HOURS = 7

_HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PrimaryCategory(str, Enum):
    """Closed set of primary merchant categories."""

    REPAIR = "Repair"
    REFILL = "Refill"
    RECYCLING = "Recycling"
    DONATE = "Donate"

    @classmethod
    def values(cls) -> list[str]:
        """List the wire values in declaration order."""
        return [member.value for member in cls]


class MerchantStatus(str, Enum):
    """Verification status for merchant listings."""

    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"


class Location(BaseModel):
    """Value object for a merchant's physical address and coordinates."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    address: str = Field(..., min_length=1, description="Street address")
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., alias="postalCode", min_length=1)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Contact(BaseModel):
    """Value object for merchant contact details."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    phone_number: str = Field(..., alias="phoneNumber", min_length=1)
    email: str = Field(..., min_length=3)
    website_url: str | None = Field(None, alias="websiteUrl")


class MerchantService(BaseModel):
    """Value object for a single service offered by a merchant."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    description: str


class Rating(BaseModel):
    """Denormalized rating metrics."""

    model_config = ConfigDict(frozen=True)

    average: float = Field(default=0, ge=0, le=5)
    count: int = Field(default=0, ge=0)


class OperatingHours(BaseModel):
    """Opening window for one day of the week."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    day_of_week: str = Field(..., alias="dayOfWeek", min_length=1)
    open_time: str = Field(..., alias="openTime", pattern=_HHMM_PATTERN)
    close_time: str = Field(..., alias="closeTime", pattern=_HHMM_PATTERN)


class MerchantCreate(BaseModel):
    """Input for creating a merchant. Identity, status, rating and timestamps are assigned."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    legal_name: str = Field(..., alias="legalName", min_length=1)
    trading_name: str | None = Field(None, alias="tradingName")
    short_description: str = Field(..., alias="shortDescription")
    primary_category: PrimaryCategory = Field(..., alias="primaryCategory")
    categories: list[str] = Field(default_factory=list, max_length=MAX_CATEGORIES)
    location: Location
    contact: Contact
    services: list[MerchantService] | None = Field(None, max_length=MAX_SERVICES)
    operating_hours: list[OperatingHours] | None = Field(
        None, alias="operatingHours", max_length=MAX_OPERATING_HOURS
    )


class MerchantPatch(BaseModel):
    """Typed partial update for a merchant.

    Only fields explicitly provided take part in the update; presence is
    tracked by ``model_fields_set``. Passing ``None`` for an optional
    attribute (trading name, services, operating hours) removes it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    legal_name: str | None = Field(None, alias="legalName", min_length=1)
    trading_name: str | None = Field(None, alias="tradingName")
    short_description: str | None = Field(None, alias="shortDescription")
    primary_category: PrimaryCategory | None = Field(None, alias="primaryCategory")
    categories: list[str] | None = Field(None, max_length=MAX_CATEGORIES)
    verification_status: MerchantStatus | None = Field(None, alias="verificationStatus")
    location: Location | None = None
    contact: Contact | None = None
    services: list[MerchantService] | None = Field(None, max_length=MAX_SERVICES)
    rating: Rating | None = None
    operating_hours: list[OperatingHours] | None = Field(
        None, alias="operatingHours", max_length=MAX_OPERATING_HOURS
    )

    @model_validator(mode="after")
    def validate_required_not_cleared(self) -> MerchantPatch:
        """Reject explicit nulls for attributes every merchant must have."""
        required = {
            "legal_name",
            "short_description",
            "primary_category",
            "categories",
            "verification_status",
            "location",
            "contact",
            "rating",
        }
        cleared = sorted(
            name for name in required & self.model_fields_set if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self

    def present_fields(self) -> dict[str, Any]:
        """Return the explicitly provided fields keyed by Python name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class Merchant(BaseModel):
    """Domain entity representing a merchant listing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    merchant_id: str = Field(..., alias="merchantId", min_length=1)
    legal_name: str = Field(..., alias="legalName", min_length=1)
    trading_name: str | None = Field(None, alias="tradingName")
    short_description: str = Field(..., alias="shortDescription")
    primary_category: PrimaryCategory = Field(..., alias="primaryCategory")
    categories: list[str] = Field(default_factory=list, max_length=MAX_CATEGORIES)
    verification_status: MerchantStatus = Field(..., alias="verificationStatus")
    location: Location
    contact: Contact
    services: list[MerchantService] | None = Field(None, max_length=MAX_SERVICES)
    rating: Rating = Field(default_factory=Rating)
    operating_hours: list[OperatingHours] | None = Field(
        None, alias="operatingHours", max_length=MAX_OPERATING_HOURS
    )
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime:
        """Parse timestamp from ISO 8601 strings and normalize datetimes to UTC."""
        if isinstance(v, datetime):
            if v.tzinfo is None:
                return v.replace(tzinfo=UTC)
            return v.astimezone(UTC)
        if isinstance(v, str):
            if "T" not in v:
                raise ValueError(
                    f"Invalid timestamp format: {v}. "
                    "Must be ISO 8601 format with time (e.g., 2024-01-01T00:00:00Z)"
                )
            try:
                return parse_iso_to_utc(v)
            except ValueError as e:
                raise ValueError(f"Invalid timestamp format: {v}") from e
        raise ValueError(f"Invalid timestamp format: {v}")

    @model_validator(mode="after")
    def validate_updated_after_created(self) -> Merchant:
        """Validate updated_at is not before created_at."""
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt cannot be before createdAt")
        return self

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format string."""
        return to_iso(value)

    def to_api_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, omitting absent optional attributes."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class MerchantSearchResult(BaseModel):
    """Result of a category search over the directory."""

    model_config = ConfigDict(frozen=True)

    merchants: list[Merchant] = Field(default_factory=list)
    count: int = Field(..., ge=0)
    category: PrimaryCategory

    def to_api_dict(self) -> dict[str, Any]:
        """Render the search result as the response body."""
        return {
            "merchants": [merchant.to_api_dict() for merchant in self.merchants],
            "count": self.count,
            "category": self.category.value,
        }


class ServiceConfiguration(BaseModel):
    """Domain model for service configuration."""

    model_config = ConfigDict(strict=True, frozen=True)

    service_name: str = Field(default="merchant-onboarding", min_length=1)
    environment: Literal["development", "staging", "production"] = Field(
        ..., description="Deployment environment"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        ..., description="Logging level"
    )
    api_port: int = Field(..., ge=1, le=65535, description="API port number")
    aws_region: str = Field(default="us-east-1", min_length=1)
    api_base_url: str | None = Field(None, description="Public base URL of this API")
    identity_backend: Literal["memory", "cognito"] = Field(default="memory")
    user_pool_id: str | None = Field(None, description="Identity directory pool id")
    user_pool_client_id: str | None = Field(None, description="Identity directory client id")
    profile_store_backend: Literal["memory", "nats"] = Field(default="memory")
    nats_url: str = Field(default="nats://localhost:4222", description="NATS server URL")
    users_table_name: str | None = Field(None, description="Users profile table")
    merchants_table_name: str | None = Field(None, description="Merchant directory table")

    @field_validator("nats_url")
    @classmethod
    def validate_nats_url(cls, v: str) -> str:
        """Validate NATS URL format."""
        if not v.startswith(("nats://", "tls://")):
            raise ValueError("NATS URL must start with nats:// or tls://")
        return v

    def missing_registration_settings(self) -> dict[str, bool]:
        """Report which settings the registration flow needs but lacks.

        Pool identifiers are only required by the cognito identity backend.
        """
        needs_pool = self.identity_backend == "cognito"
        return {
            "USER_POOL_ID": needs_pool and not self.user_pool_id,
            "USER_POOL_CLIENT_ID": needs_pool and not self.user_pool_client_id,
            "USERS_TABLE_NAME": not self.users_table_name,
        }


class HealthStatus(BaseModel):
    """Domain model representing the health status of the service."""

    model_config = ConfigDict(strict=True, frozen=True)

    status: Literal["healthy", "unhealthy"] = Field(..., description="Health status")
    service_name: str = Field(..., min_length=1)
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    environment: str
    profile_store_backend: str
    identity_backend: str
