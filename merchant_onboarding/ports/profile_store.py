"""Port interface for the profile store.

The profile store is a key-value document store bound to one table. Each
table has a single primary-key attribute and a single equality secondary
index. Conditional existence guards on writes are its only concurrency
primitive.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

Item = dict[str, Any]


class WriteCondition(str, Enum):
    """Existence guard evaluated atomically with a write."""

    NONE = "none"
    MUST_EXIST = "must_exist"
    MUST_NOT_EXIST = "must_not_exist"


class ProfileStorePort(ABC):
    """Abstract interface for profile store operations."""

    def __init__(self, table_name: str, key_attribute: str, index_attribute: str):
        """Bind the store to a table layout.

        Args:
            table_name: Logical table name
            key_attribute: Item attribute holding the primary key
            index_attribute: Item attribute holding the secondary-index key
        """
        self.table_name = table_name
        self.key_attribute = key_attribute
        self.index_attribute = index_attribute

    @abstractmethod
    async def put_item(self, item: Item, condition: WriteCondition = WriteCondition.NONE) -> None:
        """Write a whole item.

        Args:
            item: Item including its key attribute
            condition: Existence guard on the item's key

        Raises:
            ConditionalCheckFailedException: If the guard does not hold
            ProfileStoreException: If the operation fails
        """
        pass

    @abstractmethod
    async def get_item(self, key: str) -> Item | None:
        """Fetch an item by primary key.

        Returns:
            A copy of the stored item, or None when absent

        Raises:
            ProfileStoreException: If the operation fails
        """
        pass

    @abstractmethod
    async def update_item(
        self,
        key: str,
        assignments: dict[str, Any],
        condition: WriteCondition = WriteCondition.MUST_EXIST,
    ) -> Item:
        """Apply attribute assignments to an item in one write.

        An assignment whose value is None removes the attribute.

        Args:
            key: Primary key of the item
            assignments: Attribute name to new value
            condition: Existence guard on the key

        Returns:
            The full item after the update

        Raises:
            ConditionalCheckFailedException: If the guard does not hold
            ProfileStoreException: If the operation fails
        """
        pass

    @abstractmethod
    async def delete_item(self, key: str, condition: WriteCondition = WriteCondition.NONE) -> None:
        """Delete an item by primary key.

        Raises:
            ConditionalCheckFailedException: If the guard does not hold
            ProfileStoreException: If the operation fails
        """
        pass

    @abstractmethod
    async def query_index(self, value: str) -> list[Item]:
        """Return every item whose index attribute equals ``value``.

        No ordering is guaranteed.

        Raises:
            ProfileStoreException: If the operation fails
        """
        pass
