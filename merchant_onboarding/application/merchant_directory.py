"""Application service for the merchant directory.

This module implements create, read, update, delete and category search for
merchants on top of the profile store, using the item codec for the storage
representation.
"""

from __future__ import annotations

import logging
import time
import uuid

from pydantic import ValidationError

from ..domain.exceptions import (
    ConditionalCheckFailedException,
    MerchantAlreadyExistsException,
    MerchantNotFoundException,
    MerchantSearchException,
    ProfileStoreException,
)
from ..domain.models import (
    Merchant,
    MerchantCreate,
    MerchantPatch,
    MerchantSearchResult,
    MerchantStatus,
    PrimaryCategory,
    Rating,
)
from ..ports.profile_store import ProfileStorePort, WriteCondition
from ..utils.timezone import now_utc, to_iso
from .item_codec import from_storage_item, to_storage_assignments, to_storage_item

logger = logging.getLogger(__name__)


class MerchantDirectoryService:
    """Service for managing merchant records in the directory table."""

    def __init__(self, store: ProfileStorePort):
        """Initialize the merchant directory.

        Args:
            store: Profile store bound to the merchants table
        """
        self._store = store

    async def create(self, data: MerchantCreate, merchant_id: str | None = None) -> Merchant:
        """Create a new merchant with Pending status and an empty rating.

        Args:
            data: Merchant attributes supplied by the caller
            merchant_id: Explicit id, generated when omitted

        Returns:
            The created Merchant

        Raises:
            MerchantAlreadyExistsException: If the id is already stored
            ProfileStoreException: If storage fails
        """
        now = now_utc()
        merchant = Merchant(
            merchant_id=merchant_id or str(uuid.uuid4()),
            verification_status=MerchantStatus.PENDING,
            rating=Rating(average=0, count=0),
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )

        try:
            await self._store.put_item(
                to_storage_item(merchant), condition=WriteCondition.MUST_NOT_EXIST
            )
        except ConditionalCheckFailedException as e:
            raise MerchantAlreadyExistsException(merchant.merchant_id) from e

        logger.info(f"Created merchant: {merchant.merchant_id}")
        return merchant

    async def get_by_id(self, merchant_id: str) -> Merchant | None:
        """Get a merchant by id.

        Returns:
            Merchant if found, None otherwise
        """
        item = await self._store.get_item(merchant_id)
        if item is None:
            logger.debug(f"Merchant not found: {merchant_id}")
            return None
        return from_storage_item(item)

    async def update(self, merchant_id: str, patch: MerchantPatch) -> Merchant:
        """Apply a partial update and return the merchant as stored afterwards.

        ``updatedAt`` is always refreshed. Changing the primary category moves
        the record to the new category index in the same write.

        Raises:
            MerchantNotFoundException: If the merchant doesn't exist
            ProfileStoreException: If storage fails
        """
        assignments = to_storage_assignments(patch, to_iso(now_utc()))

        try:
            item = await self._store.update_item(
                merchant_id, assignments, condition=WriteCondition.MUST_EXIST
            )
        except ConditionalCheckFailedException as e:
            raise MerchantNotFoundException(merchant_id) from e

        logger.info(f"Updated merchant: {merchant_id} ({', '.join(sorted(assignments))})")
        return from_storage_item(item)

    async def delete(self, merchant_id: str) -> None:
        """Permanently delete a merchant.

        Raises:
            MerchantNotFoundException: If the merchant doesn't exist
            ProfileStoreException: If storage fails
        """
        try:
            await self._store.delete_item(merchant_id, condition=WriteCondition.MUST_EXIST)
        except ConditionalCheckFailedException as e:
            raise MerchantNotFoundException(merchant_id) from e

        logger.info(f"Deleted merchant: {merchant_id}")

    async def search_by_category(self, category: PrimaryCategory) -> MerchantSearchResult:
        """Return every merchant whose primary category matches.

        Raises:
            MerchantSearchException: If the index query fails
        """
        started = time.perf_counter()
        try:
            items = await self._store.query_index(category.value)
            merchants = [from_storage_item(item) for item in items]
        except ProfileStoreException as e:
            logger.error(f"Merchant search failed for category {category.value}: {e.message}")
            raise MerchantSearchException(e.message) from e
        except (KeyError, ValidationError) as e:
            logger.error(f"Merchant search returned an unreadable item for {category.value}: {e}")
            raise MerchantSearchException(str(e)) from e
        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Merchant search succeeded: category={category.value} "
            f"count={len(merchants)} duration_ms={duration_ms:.1f}"
        )
        return MerchantSearchResult(merchants=merchants, count=len(merchants), category=category)
