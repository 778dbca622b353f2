"""Port interface for the identity directory.

The identity directory is the system of record for login credentials and
group membership.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..domain.users import SignUpResult


class IdentityDirectoryPort(ABC):
    """Abstract interface for identity directory operations."""

    @abstractmethod
    async def create_account(
        self, email: str, password: str, attributes: dict[str, str]
    ) -> SignUpResult:
        """Create an unconfirmed account with the e-mail as username.

        Args:
            email: Username and contact e-mail
            password: Initial password
            attributes: Account attributes, e.g. ``custom:userType``

        Returns:
            SignUpResult carrying the new account id

        Raises:
            AccountAlreadyExistsException: If the username is taken
            IdentityDirectoryException: If the operation fails
        """
        pass

    @abstractmethod
    async def add_account_to_group(self, account: str, group_name: str) -> None:
        """Add an account, identified by username, to a named group.

        Raises:
            IdentityDirectoryException: If the operation fails
        """
        pass
