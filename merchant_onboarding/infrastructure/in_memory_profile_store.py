"""In-memory profile store adapter.

Dict-backed implementation of ProfileStorePort used for local development
and tests. A per-store lock serializes writes so existence guards behave
atomically under concurrent requests.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any

from ..domain.exceptions import ConditionalCheckFailedException, ProfileStoreException
from ..ports.profile_store import Item, ProfileStorePort, WriteCondition

logger = logging.getLogger(__name__)


class InMemoryProfileStore(ProfileStorePort):
    """Profile store holding one table in process memory."""

    def __init__(self, table_name: str, key_attribute: str, index_attribute: str):
        super().__init__(table_name, key_attribute, index_attribute)
        self._items: dict[str, Item] = {}
        self._lock = asyncio.Lock()

    def _check(self, key: str, condition: WriteCondition) -> None:
        exists = key in self._items
        if condition is WriteCondition.MUST_EXIST and not exists:
            raise ConditionalCheckFailedException(key)
        if condition is WriteCondition.MUST_NOT_EXIST and exists:
            raise ConditionalCheckFailedException(key)

    async def put_item(self, item: Item, condition: WriteCondition = WriteCondition.NONE) -> None:
        key = item.get(self.key_attribute)
        if not isinstance(key, str) or not key:
            raise ProfileStoreException(
                f"Item is missing key attribute '{self.key_attribute}' in table {self.table_name}"
            )
        async with self._lock:
            self._check(key, condition)
            self._items[key] = copy.deepcopy(item)
        logger.debug(f"Put item {key} into {self.table_name}")

    async def get_item(self, key: str) -> Item | None:
        item = self._items.get(key)
        return copy.deepcopy(item) if item is not None else None

    async def update_item(
        self,
        key: str,
        assignments: dict[str, Any],
        condition: WriteCondition = WriteCondition.MUST_EXIST,
    ) -> Item:
        if self.key_attribute in assignments:
            raise ProfileStoreException(f"Cannot update key attribute '{self.key_attribute}'")
        async with self._lock:
            self._check(key, condition)
            item = copy.deepcopy(self._items.get(key, {self.key_attribute: key}))
            for name, value in assignments.items():
                if value is None:
                    item.pop(name, None)
                else:
                    item[name] = copy.deepcopy(value)
            self._items[key] = item
            return copy.deepcopy(item)

    async def delete_item(self, key: str, condition: WriteCondition = WriteCondition.NONE) -> None:
        async with self._lock:
            self._check(key, condition)
            self._items.pop(key, None)
        logger.debug(f"Deleted item {key} from {self.table_name}")

    async def query_index(self, value: str) -> list[Item]:
        return [
            copy.deepcopy(item)
            for item in self._items.values()
            if item.get(self.index_attribute) == value
        ]

    def __len__(self) -> int:
        return len(self._items)
