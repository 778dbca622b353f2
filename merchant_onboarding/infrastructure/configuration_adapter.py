"""Configuration adapter implementation.

Concrete implementation of the ConfigurationPort interface.
Loads configuration from environment variables.
"""

from __future__ import annotations

import os
from typing import Literal, cast

from pydantic import ValidationError

from ..domain.exceptions import ConfigurationException
from ..domain.models import ServiceConfiguration
from ..ports.configuration import ConfigurationPort

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_ENVIRONMENTS = ["development", "staging", "production"]
_IDENTITY_BACKENDS = ["memory", "cognito"]
_PROFILE_STORE_BACKENDS = ["memory", "nats"]


def _optional(name: str, default: str | None = None) -> str | None:
    """Read a variable, treating an empty value as unset."""
    value = os.getenv(name, default)
    if value is None:
        return None
    return value.strip() or None


class EnvironmentConfigurationAdapter(ConfigurationPort):
    """Adapter that loads configuration from environment variables."""

    def load_configuration(self) -> ServiceConfiguration:
        """Load service configuration from environment variables.

        Returns:
            ServiceConfiguration: Validated configuration

        Raises:
            ConfigurationException: If configuration is invalid
        """
        try:
            log_level = os.getenv("LOG_LEVEL", "INFO").upper()
            environment = os.getenv("ENVIRONMENT", "development").lower()
            api_port = int(os.getenv("API_PORT", "8000"))
            identity_backend = os.getenv("IDENTITY_BACKEND", "memory").lower()
            profile_store_backend = os.getenv("PROFILE_STORE_BACKEND", "memory").lower()

            if log_level not in _LOG_LEVELS:
                raise ValueError(f"Invalid log level: {log_level}")

            if environment not in _ENVIRONMENTS:
                raise ValueError(f"Invalid environment: {environment}")

            if identity_backend not in _IDENTITY_BACKENDS:
                raise ValueError(f"Invalid identity backend: {identity_backend}")

            if profile_store_backend not in _PROFILE_STORE_BACKENDS:
                raise ValueError(f"Invalid profile store backend: {profile_store_backend}")

            return ServiceConfiguration(
                service_name=os.getenv("SERVICE_NAME", "merchant-onboarding"),
                environment=cast(Literal["development", "staging", "production"], environment),
                log_level=cast(Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], log_level),
                api_port=api_port,
                aws_region=os.getenv("AWS_REGION", "us-east-1"),
                api_base_url=_optional("API_BASE_URL"),
                identity_backend=cast(Literal["memory", "cognito"], identity_backend),
                user_pool_id=_optional("USER_POOL_ID"),
                user_pool_client_id=_optional("USER_POOL_CLIENT_ID"),
                profile_store_backend=cast(Literal["memory", "nats"], profile_store_backend),
                nats_url=os.getenv("NATS_URL", "nats://localhost:4222"),
                users_table_name=_optional("USERS_TABLE_NAME", "users"),
                merchants_table_name=_optional("MERCHANTS_TABLE_NAME", "merchants"),
            )

        except (ValueError, ValidationError) as e:
            raise ConfigurationException(f"Failed to load configuration: {str(e)}") from e
