"""Infrastructure factory for creating adapters and dependencies.

This module follows the Factory pattern to centralize the creation of
infrastructure components, promoting loose coupling and testability.
"""

from __future__ import annotations

from ..application import item_codec
from ..domain.exceptions import ConfigurationException
from ..domain.models import ServiceConfiguration
from ..ports.configuration import ConfigurationPort
from ..ports.identity_directory import IdentityDirectoryPort
from ..ports.profile_store import ProfileStorePort
from .cognito_identity_directory import CognitoIdentityDirectory
from .configuration_adapter import EnvironmentConfigurationAdapter
from .in_memory_identity_directory import InMemoryIdentityDirectory
from .in_memory_profile_store import InMemoryProfileStore
from .nats_profile_store import NATSProfileStore

USERS_KEY_ATTRIBUTE = "PK"
USERS_INDEX_ATTRIBUTE = "GSI1PK"


class InfrastructureFactory:
    """Factory for creating infrastructure adapters following hexagonal architecture.

    This factory encapsulates the creation logic for all infrastructure components,
    making it easy to swap implementations and configure dependencies.
    """

    @staticmethod
    def create_configuration_port() -> ConfigurationPort:
        """Create a configuration port adapter.

        Returns:
            ConfigurationPort implementation
        """
        return EnvironmentConfigurationAdapter()

    @staticmethod
    def create_identity_directory(config: ServiceConfiguration) -> IdentityDirectoryPort:
        """Create the identity directory adapter selected by configuration.

        Raises:
            ConfigurationException: If the cognito backend lacks pool settings
        """
        if config.identity_backend == "cognito":
            if not config.user_pool_id or not config.user_pool_client_id:
                raise ConfigurationException(
                    "Server configuration error",
                    {"missing": config.missing_registration_settings()},
                )
            return CognitoIdentityDirectory(
                user_pool_id=config.user_pool_id,
                client_id=config.user_pool_client_id,
                region=config.aws_region,
            )
        return InMemoryIdentityDirectory()

    @staticmethod
    def create_profile_store(
        config: ServiceConfiguration,
        table_name: str,
        key_attribute: str,
        index_attribute: str,
    ) -> ProfileStorePort:
        """Create an unconnected profile store adapter for one table.

        NATS-backed stores must be connected before use.
        """
        if config.profile_store_backend == "nats":
            return NATSProfileStore(table_name, key_attribute, index_attribute)
        return InMemoryProfileStore(table_name, key_attribute, index_attribute)

    @classmethod
    def create_users_store(cls, config: ServiceConfiguration, table_name: str) -> ProfileStorePort:
        """Create the store for user profile records."""
        return cls.create_profile_store(
            config, table_name, USERS_KEY_ATTRIBUTE, USERS_INDEX_ATTRIBUTE
        )

    @classmethod
    def create_merchants_store(
        cls, config: ServiceConfiguration, table_name: str
    ) -> ProfileStorePort:
        """Create the store for the merchant directory."""
        return cls.create_profile_store(
            config, table_name, item_codec.KEY_ATTRIBUTE, item_codec.INDEX_ATTRIBUTE
        )
