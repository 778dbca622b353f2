"""Amazon Cognito identity directory adapter.

Uses the boto3 ``cognito-idp`` client. boto3 is synchronous, so each call
runs in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..domain.exceptions import AccountAlreadyExistsException, IdentityDirectoryException
from ..domain.users import CodeDeliveryDetails, SignUpResult
from ..ports.identity_directory import IdentityDirectoryPort

logger = logging.getLogger(__name__)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", "Unknown"))


class CognitoIdentityDirectory(IdentityDirectoryPort):
    """Identity directory backed by a Cognito user pool."""

    def __init__(
        self,
        user_pool_id: str,
        client_id: str,
        region: str,
        client: Any | None = None,
    ):
        """Initialize the adapter.

        Args:
            user_pool_id: Cognito user pool id
            client_id: App client id used for sign-up
            region: AWS region of the pool
            client: Pre-built ``cognito-idp`` client, created lazily when omitted
        """
        self._user_pool_id = user_pool_id
        self._client_id = client_id
        self._region = region
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = boto3.client("cognito-idp", region_name=self._region)
        return self._client

    async def create_account(
        self, email: str, password: str, attributes: dict[str, str]
    ) -> SignUpResult:
        client = self._get_client()
        try:
            response = await asyncio.to_thread(
                client.sign_up,
                ClientId=self._client_id,
                Username=email,
                Password=password,
                UserAttributes=[
                    {"Name": name, "Value": value} for name, value in attributes.items()
                ],
            )
        except ClientError as e:
            code = _error_code(e)
            if code == "UsernameExistsException":
                raise AccountAlreadyExistsException(email) from e
            logger.error(f"Cognito sign_up failed with {code}: {e}")
            raise IdentityDirectoryException(str(e), code) from e
        except BotoCoreError as e:
            logger.error(f"Cognito sign_up failed: {e}")
            raise IdentityDirectoryException(str(e)) from e

        delivery = response.get("CodeDeliveryDetails")
        return SignUpResult(
            user_sub=response["UserSub"],
            user_confirmed=bool(response.get("UserConfirmed", False)),
            code_delivery_details=(
                CodeDeliveryDetails.model_validate(delivery) if delivery else None
            ),
        )

    async def add_account_to_group(self, account: str, group_name: str) -> None:
        client = self._get_client()
        try:
            await asyncio.to_thread(
                client.admin_add_user_to_group,
                UserPoolId=self._user_pool_id,
                Username=account,
                GroupName=group_name,
            )
        except ClientError as e:
            code = _error_code(e)
            logger.error(f"Cognito admin_add_user_to_group failed with {code}: {e}")
            raise IdentityDirectoryException(str(e), code) from e
        except BotoCoreError as e:
            logger.error(f"Cognito admin_add_user_to_group failed: {e}")
            raise IdentityDirectoryException(str(e)) from e
