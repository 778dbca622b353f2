"""Mapping between the Merchant entity and its directory storage item.

Storage items use descriptive PascalCase attribute names and carry ``GSI1PK``,
the category index key. ``GSI1PK`` is derived from the primary category on
every write and is never set independently.
"""

from __future__ import annotations

from typing import Any

from ..domain.models import (
    Contact,
    Location,
    Merchant,
    MerchantPatch,
    MerchantService,
    OperatingHours,
    Rating,
)
from ..utils.timezone import to_iso

KEY_ATTRIBUTE = "MerchantId"
INDEX_ATTRIBUTE = "GSI1PK"


def _dump_list(values: list[Any] | None) -> list[dict[str, Any]] | None:
    if values is None:
        return None
    return [value.model_dump(by_alias=True) for value in values]


def _location_attributes(location: Location) -> dict[str, Any]:
    return {
        "PrimaryAddress": location.address,
        "City": location.city,
        "State": location.state,
        "PostalCode": location.postal_code,
        "Latitude": location.latitude,
        "Longitude": location.longitude,
    }


def _contact_attributes(contact: Contact) -> dict[str, Any]:
    attributes: dict[str, Any] = {
        "PhoneNumber": contact.phone_number,
        "Email": contact.email,
    }
    if contact.website_url is not None:
        attributes["WebsiteUrl"] = contact.website_url
    return attributes


def to_storage_item(merchant: Merchant) -> dict[str, Any]:
    """Map a merchant to its storage item.

    Absent optional attributes are omitted rather than stored as null.
    """
    item: dict[str, Any] = {
        KEY_ATTRIBUTE: merchant.merchant_id,
        INDEX_ATTRIBUTE: merchant.primary_category.value,
        "LegalName": merchant.legal_name,
        "TradingName": merchant.trading_name,
        "ShortDescription": merchant.short_description,
        "PrimaryCategory": merchant.primary_category.value,
        "VerificationStatus": merchant.verification_status.value,
        **_location_attributes(merchant.location),
        **_contact_attributes(merchant.contact),
        "Categories": list(merchant.categories),
        "Services": _dump_list(merchant.services),
        "RatingAverage": merchant.rating.average,
        "RatingCount": merchant.rating.count,
        "OperatingHours": _dump_list(merchant.operating_hours),
        "CreatedAt": to_iso(merchant.created_at),
        "UpdatedAt": to_iso(merchant.updated_at),
    }
    return {name: value for name, value in item.items() if value is not None}


def from_storage_item(item: dict[str, Any]) -> Merchant:
    """Rebuild a merchant from its storage item.

    Raises:
        pydantic.ValidationError: If the item does not describe a valid merchant
    """
    services = item.get("Services")
    hours = item.get("OperatingHours")
    return Merchant(
        merchant_id=item[KEY_ATTRIBUTE],
        legal_name=item["LegalName"],
        trading_name=item.get("TradingName"),
        short_description=item["ShortDescription"],
        primary_category=item["PrimaryCategory"],
        categories=list(item.get("Categories", [])),
        verification_status=item["VerificationStatus"],
        location=Location(
            address=item["PrimaryAddress"],
            city=item["City"],
            state=item["State"],
            postal_code=item["PostalCode"],
            latitude=item["Latitude"],
            longitude=item["Longitude"],
        ),
        contact=Contact(
            phone_number=item["PhoneNumber"],
            email=item["Email"],
            website_url=item.get("WebsiteUrl"),
        ),
        services=(
            [MerchantService.model_validate(service) for service in services]
            if services is not None
            else None
        ),
        rating=Rating(average=item.get("RatingAverage", 0), count=item.get("RatingCount", 0)),
        operating_hours=(
            [OperatingHours.model_validate(entry) for entry in hours] if hours is not None else None
        ),
        created_at=item["CreatedAt"],
        updated_at=item["UpdatedAt"],
    )


def to_storage_assignments(patch: MerchantPatch, updated_at: str) -> dict[str, Any]:
    """Translate the fields present in a patch into attribute assignments.

    ``UpdatedAt`` is always assigned. A None value removes the attribute.

    Args:
        patch: Typed partial update
        updated_at: ISO timestamp for the write

    Returns:
        Attribute name to new value
    """
    present = patch.present_fields()
    assignments: dict[str, Any] = {"UpdatedAt": updated_at}

    if "legal_name" in present:
        assignments["LegalName"] = patch.legal_name
    if "trading_name" in present:
        assignments["TradingName"] = patch.trading_name
    if "short_description" in present:
        assignments["ShortDescription"] = patch.short_description
    if "primary_category" in present and patch.primary_category is not None:
        assignments["PrimaryCategory"] = patch.primary_category.value
        assignments[INDEX_ATTRIBUTE] = patch.primary_category.value
    if "categories" in present and patch.categories is not None:
        assignments["Categories"] = list(patch.categories)
    if "verification_status" in present and patch.verification_status is not None:
        assignments["VerificationStatus"] = patch.verification_status.value
    if "location" in present and patch.location is not None:
        assignments.update(_location_attributes(patch.location))
    if "contact" in present and patch.contact is not None:
        # Website is only touched when the patch supplies one
        assignments.update(_contact_attributes(patch.contact))
    if "services" in present:
        assignments["Services"] = _dump_list(patch.services)
    if "rating" in present and patch.rating is not None:
        assignments["RatingAverage"] = patch.rating.average
        assignments["RatingCount"] = patch.rating.count
    if "operating_hours" in present:
        assignments["OperatingHours"] = _dump_list(patch.operating_hours)

    return assignments
