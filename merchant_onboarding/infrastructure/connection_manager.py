"""Connection manager for infrastructure resources.

This module manages the lifecycle of infrastructure connections,
providing a clean separation between connection management and business logic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import nats

from ..domain.exceptions import ConfigurationException, ProfileStoreException
from ..ports.identity_directory import IdentityDirectoryPort
from ..ports.profile_store import ProfileStorePort
from .factory import InfrastructureFactory
from .nats_profile_store import NATSProfileStore

if TYPE_CHECKING:
    from nats.aio.client import Client as NATSClient

    from ..domain.models import ServiceConfiguration

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages infrastructure connections lifecycle."""

    def __init__(self, config: ServiceConfiguration):
        """Initialize the connection manager.

        Args:
            config: Service configuration
        """
        self.config = config
        self._nc: NATSClient | None = None
        self._users_store: ProfileStorePort | None = None
        self._merchants_store: ProfileStorePort | None = None
        self._identity_directory: IdentityDirectoryPort | None = None

    async def startup(self) -> None:
        """Initialize all connections during application startup.

        Stores are only created for configured tables. A missing identity
        setting does not stop startup; registration requests report it.
        """
        try:
            stores: list[ProfileStorePort] = []
            if self.config.users_table_name:
                self._users_store = InfrastructureFactory.create_users_store(
                    self.config, self.config.users_table_name
                )
                stores.append(self._users_store)
            if self.config.merchants_table_name:
                self._merchants_store = InfrastructureFactory.create_merchants_store(
                    self.config, self.config.merchants_table_name
                )
                stores.append(self._merchants_store)

            nats_stores = [store for store in stores if isinstance(store, NATSProfileStore)]
            if nats_stores:
                logger.info(f"Connecting to NATS at {self.config.nats_url}")
                self._nc = await nats.connect(servers=[self.config.nats_url])
                js = self._nc.jetstream()
                for store in nats_stores:
                    await store.connect(js)

            logger.info(
                f"Profile stores initialized ({self.config.profile_store_backend}): "
                f"{', '.join(store.table_name for store in stores) or 'none'}"
            )
        except Exception as e:
            logger.error(f"Failed to initialize connections: {e}")
            raise ProfileStoreException(f"Failed to initialize connections: {e}") from e

        try:
            self._identity_directory = InfrastructureFactory.create_identity_directory(self.config)
            logger.info(f"Identity directory initialized ({self.config.identity_backend})")
        except ConfigurationException as e:
            logger.warning(f"Identity directory unavailable: {e.message} {e.details}")

    async def shutdown(self) -> None:
        """Clean up all connections during application shutdown."""
        for store in (self._users_store, self._merchants_store):
            if isinstance(store, NATSProfileStore):
                store.disconnect()
        try:
            if self._nc is not None:
                await self._nc.drain()
                logger.info("Disconnected from NATS")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
        finally:
            self._nc = None

    @property
    def users_store(self) -> ProfileStorePort | None:
        """Profile store for user records, None when the table is not configured."""
        return self._users_store

    @property
    def merchants_store(self) -> ProfileStorePort | None:
        """Profile store for the merchant directory, None when not configured."""
        return self._merchants_store

    @property
    def identity_directory(self) -> IdentityDirectoryPort | None:
        """Identity directory adapter, None when its settings are incomplete."""
        return self._identity_directory


# Global instance managed by the application lifecycle
_connection_manager: ConnectionManager | None = None


def get_connection_manager() -> ConnectionManager:
    """Get the global connection manager instance.

    Raises:
        RuntimeError: If not initialized
    """
    if not _connection_manager:
        raise RuntimeError("Connection manager not initialized")
    return _connection_manager


def set_connection_manager(manager: ConnectionManager | None) -> None:
    """Set the global connection manager instance.

    Args:
        manager: The connection manager to set, or None to clear it
    """
    global _connection_manager
    _connection_manager = manager
