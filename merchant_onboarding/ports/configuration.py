"""Port through which the service reads its deployment settings.

Settings cover the identity directory (backend, user pool and app client),
the users and merchants tables, the profile store backend, and the values
published by the bindings document. Where they come from is up to the
adapter; the environment adapter reads process variables after a local
``.env`` file has been loaded.
"""

from __future__ import annotations

from typing import Protocol

from ..domain.models import ServiceConfiguration


class ConfigurationPort(Protocol):
    """Source of the service's deployment settings."""

    def load_configuration(self) -> ServiceConfiguration:
        """Read and validate the settings once at startup.

        Missing registration settings are not an error here. They are reported
        per request so the rest of the API keeps serving.

        Raises:
            ConfigurationException: If a present value is malformed
        """
        ...
