"""FastAPI dependency injection setup.

This module configures dependency injection for the FastAPI application,
providing a clean separation between the framework and the application logic.
Collaborators come from the connection manager and are passed to application
services through their constructors.
"""

from __future__ import annotations

from functools import lru_cache

from ...application.merchant_directory import MerchantDirectoryService
from ...application.registration import RegistrationOrchestrator
from ...domain.exceptions import ConfigurationException
from ...domain.models import ServiceConfiguration
from ...ports.configuration import ConfigurationPort
from ..connection_manager import ConnectionManager, get_connection_manager
from ..factory import InfrastructureFactory


@lru_cache
def get_configuration_port() -> ConfigurationPort:
    """Get the configuration port instance using factory.

    Returns:
        ConfigurationPort: Configuration port implementation
    """
    return InfrastructureFactory.create_configuration_port()


@lru_cache
def get_service_configuration() -> ServiceConfiguration:
    """Get the service configuration.

    Returns:
        ServiceConfiguration: Loaded service configuration
    """
    config_port = get_configuration_port()
    return config_port.load_configuration()


def get_manager() -> ConnectionManager:
    """Get the connection manager created during application startup."""
    return get_connection_manager()


def get_registration_orchestrator() -> RegistrationOrchestrator:
    """Build the registration orchestrator for a request.

    Raises:
        ConfigurationException: If registration settings are missing
    """
    manager = get_manager()
    missing = manager.config.missing_registration_settings()
    identity_directory = manager.identity_directory
    users_store = manager.users_store
    if any(missing.values()) or identity_directory is None or users_store is None:
        raise ConfigurationException("Server configuration error", {"missing": missing})
    return RegistrationOrchestrator(identity_directory, users_store)


def get_merchant_directory() -> MerchantDirectoryService:
    """Build the merchant directory service for a request.

    Raises:
        ConfigurationException: If the merchants table is not configured
    """
    manager = get_manager()
    store = manager.merchants_store
    if store is None:
        raise ConfigurationException(
            "Internal server error",
            {"code": "CONFIG_ERROR", "message": "MERCHANTS_TABLE_NAME is not configured"},
        )
    return MerchantDirectoryService(store)
