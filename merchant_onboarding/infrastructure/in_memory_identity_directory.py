"""In-memory identity directory adapter for local development and tests."""

from __future__ import annotations

import asyncio
import logging
import uuid

from ..domain.exceptions import AccountAlreadyExistsException, IdentityDirectoryException
from ..domain.users import CodeDeliveryDetails, SignUpResult
from ..ports.identity_directory import IdentityDirectoryPort

logger = logging.getLogger(__name__)


class InMemoryIdentityDirectory(IdentityDirectoryPort):
    """Identity directory holding accounts and group membership in memory.

    Accounts are keyed by username (the e-mail address). Passwords are kept
    only so tests can assert what was submitted; nothing else reads them.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, object]] = {}
        self.groups: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    async def create_account(
        self, email: str, password: str, attributes: dict[str, str]
    ) -> SignUpResult:
        async with self._lock:
            if email in self.accounts:
                raise AccountAlreadyExistsException(email)
            user_sub = str(uuid.uuid4())
            self.accounts[email] = {
                "sub": user_sub,
                "password": password,
                "attributes": dict(attributes),
                "confirmed": False,
            }
        logger.info(f"Created identity account {user_sub}")
        return SignUpResult(
            user_sub=user_sub,
            user_confirmed=False,
            code_delivery_details=CodeDeliveryDetails(
                destination=email, delivery_medium="EMAIL", attribute_name="email"
            ),
        )

    async def add_account_to_group(self, account: str, group_name: str) -> None:
        if account not in self.accounts:
            raise IdentityDirectoryException(f"Account '{account}' not found", "USER_NOT_FOUND")
        self.groups.setdefault(group_name, set()).add(account)
        logger.debug(f"Added {account} to group {group_name}")
