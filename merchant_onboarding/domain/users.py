"""Domain models for user registration.

A sign-up request is a closed tagged union over the user type. Only the
merchant variant carries a business payload; customer and admin variants are
accepted structurally but have no registration pipeline yet.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
)

_EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[^a-zA-Z\d]"), "a symbol"),
)


class UserType(str, Enum):
    """Closed set of account types."""

    MERCHANT = "merchant"
    CUSTOMER = "customer"
    ADMIN = "admin"


def _check_email(v: str) -> str:
    if not _EMAIL_PATTERN.search(v):
        raise ValueError("Invalid email address")
    return v


def _fold_user_type(v: Any) -> Any:
    return v.lower() if isinstance(v, str) else v


class Address(BaseModel):
    """Postal address of a registering business."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    building_number: str = Field(..., alias="buildingNumber", min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class PrimaryContact(BaseModel):
    """Person the marketplace contacts about a merchant account."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    email: str
    phone: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate e-mail shape."""
        return _check_email(v)


class _SignUpBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: str
    password: str = Field(..., min_length=8)

    @field_validator("user_type", mode="before", check_fields=False)
    @classmethod
    def fold_user_type(cls, v: Any) -> Any:
        """Match user types case-insensitively."""
        return _fold_user_type(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate e-mail shape."""
        return _check_email(v)

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, v: str) -> str:
        """Require lowercase, uppercase, digit and symbol characters."""
        missing = [label for pattern, label in _PASSWORD_RULES if not pattern.search(v)]
        if missing:
            raise ValueError(f"Password must contain {', '.join(missing)}")
        return v


class MerchantSignUp(_SignUpBase):
    """Sign-up payload for a merchant account."""

    user_type: Literal["merchant"] = Field(..., alias="userType")
    business_name: str = Field(..., alias="businessName", min_length=1)
    registration_number: str = Field(..., alias="registrationNumber", min_length=1)
    year_of_registration: int = Field(..., alias="yearOfRegistration", strict=True)
    website: str | None = None
    address: Address
    phone: str = Field(..., min_length=1)
    primary_contact: PrimaryContact = Field(..., alias="primaryContact")
    product_categories: list[Annotated[str, Field(min_length=1)]] = Field(
        ..., alias="productCategories", min_length=1
    )


class CustomerSignUp(_SignUpBase):
    """Sign-up payload for a customer account."""

    user_type: Literal["customer"] = Field(..., alias="userType")


class AdminSignUp(_SignUpBase):
    """Sign-up payload for an administrator account."""

    user_type: Literal["admin"] = Field(..., alias="userType")


def _user_type_tag(value: Any) -> str | None:
    """Resolve the union tag from raw input or a built model."""
    if isinstance(value, dict):
        raw = value.get("userType", value.get("user_type"))
    else:
        raw = getattr(value, "user_type", None)
    if isinstance(raw, UserType):
        return raw.value
    if isinstance(raw, str):
        return raw.lower()
    return None


SignUpRequest = Annotated[
    Annotated[MerchantSignUp, Tag(UserType.MERCHANT.value)]
    | Annotated[CustomerSignUp, Tag(UserType.CUSTOMER.value)]
    | Annotated[AdminSignUp, Tag(UserType.ADMIN.value)],
    Discriminator(
        _user_type_tag,
        custom_error_type="invalid_user_type",
        custom_error_message="userType must be one of: merchant, customer, admin",
    ),
]

USER_TYPE_TAGS = frozenset(member.value for member in UserType)


class CodeDeliveryDetails(BaseModel):
    """Where the identity directory sent the confirmation code."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    destination: str | None = Field(None, alias="Destination")
    delivery_medium: str | None = Field(None, alias="DeliveryMedium")
    attribute_name: str | None = Field(None, alias="AttributeName")


class SignUpResult(BaseModel):
    """Outcome of creating an identity account."""

    model_config = ConfigDict(frozen=True)

    user_sub: str = Field(..., min_length=1, description="Identity account id")
    user_confirmed: bool = False
    code_delivery_details: CodeDeliveryDetails | None = None


class UserProfile(BaseModel):
    """Profile record persisted for a registered user."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    user_type: UserType
    email: str
    created_at: str
    updated_at: str
    business_name: str | None = None
    registration_number: str | None = None
    year_of_registration: int | None = None
    website: str | None = None
    phone: str | None = None
    address: Address | None = None
    primary_contact: PrimaryContact | None = None
    product_categories: list[str] | None = None

    @property
    def key(self) -> str:
        """Primary key derived from the identity account id."""
        return f"USER#{self.user_id}"

    def to_item(self) -> dict[str, Any]:
        """Render the profile as a storage item with its key attributes."""
        item: dict[str, Any] = {
            "PK": self.key,
            "SK": self.key,
            "GSI1PK": f"USERTYPE#{self.user_type.value}",
            "GSI1SK": self.key,
            "userId": self.user_id,
            "userType": self.user_type.value,
            "email": self.email,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.user_type is UserType.MERCHANT:
            item.update(
                {
                    "businessName": self.business_name,
                    "registrationNumber": self.registration_number,
                    "yearOfRegistration": self.year_of_registration,
                    "phone": self.phone,
                    "address": self.address.model_dump(by_alias=True) if self.address else None,
                    "primaryContact": (
                        self.primary_contact.model_dump() if self.primary_contact else None
                    ),
                    "productCategories": self.product_categories,
                }
            )
            if self.website:
                item["website"] = self.website
        return {k: v for k, v in item.items() if v is not None}
