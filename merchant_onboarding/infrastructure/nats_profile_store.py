"""NATS JetStream KV profile store adapter.

Each table lives in its own KV bucket. Items are stored as JSON under
``item.<key>``; the secondary index is a set of marker entries under
``index.<value>.<key>`` whose payload is the original primary key.

Existence guards map onto KV primitives: ``create`` fails when the key is
live, and revision-checked ``update``/``delete`` fail when the entry changed
or vanished since it was read.

The marker for a new index value is written before the item and the old
marker is removed after it, so a failed write never hides an item from the
index. Markers whose item no longer carries the value are skipped on query.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any, ClassVar

from nats.js.api import KeyValueConfig
from nats.js.errors import (
    BucketNotFoundError,
    KeyNotFoundError,
    KeyWrongLastSequenceError,
    NoKeysError,
)

from ..domain.exceptions import ConditionalCheckFailedException, ProfileStoreException
from ..ports.profile_store import Item, ProfileStorePort, WriteCondition

if TYPE_CHECKING:
    from nats.js import JetStreamContext
    from nats.js.kv import KeyValue

logger = logging.getLogger(__name__)


class KeySanitizer:
    """Replaces characters NATS KV keys and bucket names cannot hold."""

    INVALID_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9_-]")
    REPLACEMENT_CHAR: ClassVar[str] = "_"

    @classmethod
    def sanitize(cls, key: str) -> str:
        """Sanitize one key segment.

        Raises:
            ValueError: If the key is empty or only whitespace
        """
        if not key.strip():
            raise ValueError("Key cannot be empty or contain only whitespace")
        return cls.INVALID_PATTERN.sub(cls.REPLACEMENT_CHAR, key)


class NATSProfileStore(ProfileStorePort):
    """Profile store backed by a NATS JetStream key-value bucket."""

    MAX_WRITE_ATTEMPTS: ClassVar[int] = 3

    def __init__(self, table_name: str, key_attribute: str, index_attribute: str):
        super().__init__(table_name, key_attribute, index_attribute)
        self.bucket_name = KeySanitizer.sanitize(table_name)
        self._kv: KeyValue | None = None

    async def connect(self, js: JetStreamContext) -> None:
        """Bind to the table's bucket, creating it when missing.

        Raises:
            ProfileStoreException: If the bucket cannot be opened
        """
        try:
            try:
                self._kv = await js.key_value(self.bucket_name)
                logger.info(f"Connected to existing KV bucket: {self.bucket_name}")
            except BucketNotFoundError:
                config = KeyValueConfig(
                    bucket=self.bucket_name,
                    description=f"Profile table {self.table_name}",
                    max_value_size=1024 * 1024,
                    history=1,
                )
                self._kv = await js.create_key_value(config)
                logger.info(f"Created new KV bucket: {self.bucket_name}")
        except Exception as e:
            logger.error(f"Failed to open KV bucket '{self.bucket_name}': {e}")
            raise ProfileStoreException(
                f"Failed to open KV bucket '{self.bucket_name}': {e}"
            ) from e

    def disconnect(self) -> None:
        """Release the bucket handle."""
        self._kv = None

    def _ensure_connected(self) -> KeyValue:
        if self._kv is None:
            raise ProfileStoreException(f"Profile store for {self.table_name} is not connected")
        return self._kv

    @staticmethod
    def _item_key(key: str) -> str:
        return f"item.{KeySanitizer.sanitize(key)}"

    @staticmethod
    def _index_key(value: str, key: str) -> str:
        return f"index.{KeySanitizer.sanitize(value)}.{KeySanitizer.sanitize(key)}"

    @staticmethod
    def _encode(item: Item) -> bytes:
        return json.dumps(item, separators=(",", ":")).encode()

    async def _read(self, kv: KeyValue, key: str) -> tuple[Item | None, int | None]:
        """Read an item with its revision; absent items yield (None, None)."""
        try:
            entry = await kv.get(self._item_key(key))
        except KeyNotFoundError:
            return None, None
        if not entry.value:
            return None, None
        item = json.loads(entry.value.decode())
        if item.get(self.key_attribute) != key:
            # Another key sanitized to the same subject
            return None, entry.revision
        return item, entry.revision

    async def _mark_index(self, kv: KeyValue, key: str, new: Item | None) -> None:
        """Write the marker for the item's new index value ahead of the item write."""
        new_value = new.get(self.index_attribute) if new else None
        if new_value is not None:
            await kv.put(self._index_key(str(new_value), key), key.encode())

    async def _clear_index(
        self, kv: KeyValue, key: str, old: Item | None, new: Item | None
    ) -> None:
        """Drop the marker for a replaced index value once the item write committed."""
        old_value = old.get(self.index_attribute) if old else None
        new_value = new.get(self.index_attribute) if new else None
        if old_value is None or old_value == new_value:
            return
        try:
            await kv.delete(self._index_key(str(old_value), key))
        except KeyNotFoundError:
            pass
        except Exception as e:
            # query_index filters stale markers, so the write still stands
            logger.warning(f"Failed to remove stale index marker {old_value} for {key}: {e}")

    async def put_item(self, item: Item, condition: WriteCondition = WriteCondition.NONE) -> None:
        kv = self._ensure_connected()
        key = item.get(self.key_attribute)
        if not isinstance(key, str) or not key:
            raise ProfileStoreException(
                f"Item is missing key attribute '{self.key_attribute}' in table {self.table_name}"
            )

        try:
            for _ in range(self.MAX_WRITE_ATTEMPTS):
                existing, revision = await self._read(kv, key)
                if condition is WriteCondition.MUST_EXIST and existing is None:
                    raise ConditionalCheckFailedException(key)
                if condition is WriteCondition.MUST_NOT_EXIST and revision is not None:
                    raise ConditionalCheckFailedException(key)

                await self._mark_index(kv, key, item)
                try:
                    if revision is None:
                        await kv.create(self._item_key(key), self._encode(item))
                    else:
                        await kv.update(self._item_key(key), self._encode(item), last=revision)
                except KeyWrongLastSequenceError:
                    if condition is WriteCondition.MUST_NOT_EXIST:
                        raise ConditionalCheckFailedException(key) from None
                    logger.debug(f"Revision changed while writing {key}, retrying")
                    continue
                await self._clear_index(kv, key, existing, item)
                logger.debug(f"Put item {key} into {self.table_name}")
                return
        except ConditionalCheckFailedException:
            raise
        except Exception as e:
            logger.error(f"Failed to put item '{key}' in {self.table_name}: {e}")
            raise ProfileStoreException(f"Failed to put item '{key}': {e}") from e

        raise ProfileStoreException(f"Too many concurrent writes to item '{key}'")

    async def get_item(self, key: str) -> Item | None:
        kv = self._ensure_connected()
        try:
            item, _ = await self._read(kv, key)
            return item
        except Exception as e:
            logger.error(f"Failed to get item '{key}' from {self.table_name}: {e}")
            raise ProfileStoreException(f"Failed to get item '{key}': {e}") from e

    async def update_item(
        self,
        key: str,
        assignments: dict[str, Any],
        condition: WriteCondition = WriteCondition.MUST_EXIST,
    ) -> Item:
        kv = self._ensure_connected()
        if self.key_attribute in assignments:
            raise ProfileStoreException(f"Cannot update key attribute '{self.key_attribute}'")

        try:
            for _ in range(self.MAX_WRITE_ATTEMPTS):
                existing, revision = await self._read(kv, key)
                if existing is None and condition is WriteCondition.MUST_EXIST:
                    raise ConditionalCheckFailedException(key)
                if existing is not None and condition is WriteCondition.MUST_NOT_EXIST:
                    raise ConditionalCheckFailedException(key)

                updated = dict(existing) if existing else {self.key_attribute: key}
                for name, value in assignments.items():
                    if value is None:
                        updated.pop(name, None)
                    else:
                        updated[name] = value

                await self._mark_index(kv, key, updated)
                try:
                    if revision is None:
                        await kv.create(self._item_key(key), self._encode(updated))
                    else:
                        await kv.update(self._item_key(key), self._encode(updated), last=revision)
                except KeyWrongLastSequenceError:
                    logger.debug(f"Revision changed while updating {key}, retrying")
                    continue
                await self._clear_index(kv, key, existing, updated)
                return updated
        except ConditionalCheckFailedException:
            raise
        except Exception as e:
            logger.error(f"Failed to update item '{key}' in {self.table_name}: {e}")
            raise ProfileStoreException(f"Failed to update item '{key}': {e}") from e

        raise ProfileStoreException(f"Too many concurrent writes to item '{key}'")

    async def delete_item(self, key: str, condition: WriteCondition = WriteCondition.NONE) -> None:
        kv = self._ensure_connected()
        try:
            for _ in range(self.MAX_WRITE_ATTEMPTS):
                existing, revision = await self._read(kv, key)
                if existing is None:
                    if condition is WriteCondition.MUST_EXIST:
                        raise ConditionalCheckFailedException(key)
                    return
                if condition is WriteCondition.MUST_NOT_EXIST:
                    raise ConditionalCheckFailedException(key)
                try:
                    await kv.delete(self._item_key(key), last=revision)
                except KeyWrongLastSequenceError:
                    logger.debug(f"Revision changed while deleting {key}, retrying")
                    continue
                await self._clear_index(kv, key, existing, None)
                logger.debug(f"Deleted item {key} from {self.table_name}")
                return
        except ConditionalCheckFailedException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete item '{key}' from {self.table_name}: {e}")
            raise ProfileStoreException(f"Failed to delete item '{key}': {e}") from e

        raise ProfileStoreException(f"Too many concurrent writes to item '{key}'")

    async def query_index(self, value: str) -> list[Item]:
        kv = self._ensure_connected()
        prefix = f"index.{KeySanitizer.sanitize(value)}."
        try:
            try:
                all_keys = await kv.keys()
            except NoKeysError:
                return []

            items: list[Item] = []
            for index_key in all_keys:
                if not index_key.startswith(prefix):
                    continue
                try:
                    marker = await kv.get(index_key)
                except KeyNotFoundError:
                    continue
                if not marker.value:
                    continue
                item, _ = await self._read(kv, marker.value.decode())
                # Skip markers left behind by a category change or delete
                if item is not None and item.get(self.index_attribute) == value:
                    items.append(item)
            return items
        except Exception as e:
            logger.error(f"Failed to query index {value} in {self.table_name}: {e}")
            raise ProfileStoreException(f"Failed to query index '{value}': {e}") from e
