"""API routes for the merchant directory.

This module defines the category search and single-merchant lookup endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ...application.merchant_directory import MerchantDirectoryService
from ...domain.exceptions import InvalidCategoryException, MerchantNotFoundException
from ...domain.models import PrimaryCategory
from .dependencies import get_merchant_directory

router = APIRouter(prefix="/merchants", tags=["Merchants"])


def parse_category(category: str | None) -> PrimaryCategory:
    """Parse a case-sensitive primary category.

    Raises:
        InvalidCategoryException: If the value is missing or unknown
    """
    try:
        return PrimaryCategory(category)
    except ValueError as e:
        raise InvalidCategoryException(PrimaryCategory.values()) from e


@router.get("/search")
async def search_merchants(
    category: str | None = Query(None, description="Primary category to filter by"),
    directory: MerchantDirectoryService = Depends(get_merchant_directory),  # noqa: B008
) -> dict[str, Any]:
    """List every merchant in a primary category."""
    result = await directory.search_by_category(parse_category(category))
    return result.to_api_dict()


@router.get("/{merchant_id}")
async def get_merchant(
    merchant_id: str,
    directory: MerchantDirectoryService = Depends(get_merchant_directory),  # noqa: B008
) -> dict[str, Any]:
    """Get a specific merchant by id."""
    merchant = await directory.get_by_id(merchant_id)
    if merchant is None:
        raise MerchantNotFoundException(merchant_id)
    return merchant.to_api_dict()
