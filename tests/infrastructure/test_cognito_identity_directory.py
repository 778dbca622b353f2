"""Unit tests for CognitoIdentityDirectory."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from merchant_onboarding.domain.exceptions import (
    AccountAlreadyExistsException,
    IdentityDirectoryException,
)
from merchant_onboarding.infrastructure.cognito_identity_directory import (
    CognitoIdentityDirectory,
)


def client_error(code: str, operation: str) -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


class TestCognitoIdentityDirectory:
    """Test the Cognito adapter against a mocked client."""

    @pytest.fixture
    def client(self):
        """Create a mocked cognito-idp client."""
        client = MagicMock()
        client.sign_up.return_value = {
            "UserSub": "sub-123",
            "UserConfirmed": False,
            "CodeDeliveryDetails": {
                "Destination": "a***@x.com",
                "DeliveryMedium": "EMAIL",
                "AttributeName": "email",
            },
        }
        return client

    @pytest.fixture
    def directory(self, client):
        """Create the adapter with the mocked client."""
        return CognitoIdentityDirectory("pool-1", "client-1", "eu-west-2", client=client)

    @pytest.mark.asyncio
    async def test_create_account(self, directory, client):
        """Test that sign_up is called with the pool client and attributes."""
        result = await directory.create_account(
            "a@x.com", "Test123!@#", {"email": "a@x.com", "custom:userType": "merchant"}
        )

        client.sign_up.assert_called_once_with(
            ClientId="client-1",
            Username="a@x.com",
            Password="Test123!@#",
            UserAttributes=[
                {"Name": "email", "Value": "a@x.com"},
                {"Name": "custom:userType", "Value": "merchant"},
            ],
        )
        assert result.user_sub == "sub-123"
        assert result.user_confirmed is False
        assert result.code_delivery_details is not None
        assert result.code_delivery_details.delivery_medium == "EMAIL"

    @pytest.mark.asyncio
    async def test_create_account_without_delivery_details(self, directory, client):
        """Test responses that omit code delivery details."""
        client.sign_up.return_value = {"UserSub": "sub-9", "UserConfirmed": True}

        result = await directory.create_account("a@x.com", "p", {})

        assert result.user_confirmed is True
        assert result.code_delivery_details is None

    @pytest.mark.asyncio
    async def test_existing_username(self, directory, client):
        """Test that a duplicate username maps to AccountAlreadyExistsException."""
        client.sign_up.side_effect = client_error("UsernameExistsException", "SignUp")

        with pytest.raises(AccountAlreadyExistsException) as exc_info:
            await directory.create_account("a@x.com", "p", {})

        assert exc_info.value.error_code == "USERNAME_EXISTS"

    @pytest.mark.asyncio
    async def test_other_client_error(self, directory, client):
        """Test that other service errors keep their code."""
        client.sign_up.side_effect = client_error("InvalidPasswordException", "SignUp")

        with pytest.raises(IdentityDirectoryException) as exc_info:
            await directory.create_account("a@x.com", "p", {})

        assert exc_info.value.error_code == "InvalidPasswordException"

    @pytest.mark.asyncio
    async def test_transport_error(self, directory, client):
        """Test that botocore transport errors are wrapped."""
        client.sign_up.side_effect = EndpointConnectionError(endpoint_url="https://cognito")

        with pytest.raises(IdentityDirectoryException):
            await directory.create_account("a@x.com", "p", {})

    @pytest.mark.asyncio
    async def test_add_account_to_group(self, directory, client):
        """Test that group assignment targets the configured pool."""
        await directory.add_account_to_group("a@x.com", "merchant")

        client.admin_add_user_to_group.assert_called_once_with(
            UserPoolId="pool-1", Username="a@x.com", GroupName="merchant"
        )

    @pytest.mark.asyncio
    async def test_add_account_to_missing_group(self, directory, client):
        """Test that group errors are wrapped with their code."""
        client.admin_add_user_to_group.side_effect = client_error(
            "ResourceNotFoundException", "AdminAddUserToGroup"
        )

        with pytest.raises(IdentityDirectoryException) as exc_info:
            await directory.add_account_to_group("a@x.com", "merchant")

        assert exc_info.value.error_code == "ResourceNotFoundException"

    def test_client_is_created_lazily(self):
        """Test that the boto3 client is built on first use in the pool region."""
        directory = CognitoIdentityDirectory("pool-1", "client-1", "eu-west-2")

        with patch(
            "merchant_onboarding.infrastructure.cognito_identity_directory.boto3.client"
        ) as mock_client:
            first = directory._get_client()
            second = directory._get_client()

        mock_client.assert_called_once_with("cognito-idp", region_name="eu-west-2")
        assert first is second
