"""Tests for the registration orchestrator."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from merchant_onboarding.application.registration import (
    MERCHANT_REGISTERED_MESSAGE,
    NotImplementedOutcome,
    RegistrationOrchestrator,
    RegistrationResponse,
)
from merchant_onboarding.domain.exceptions import (
    ConflictException,
    IdentityDirectoryException,
    ProfileStoreException,
    UpstreamException,
    ValidationException,
)
from merchant_onboarding.domain.users import SignUpResult, UserType
from merchant_onboarding.infrastructure.in_memory_identity_directory import (
    InMemoryIdentityDirectory,
)
from merchant_onboarding.infrastructure.in_memory_profile_store import InMemoryProfileStore
from merchant_onboarding.ports.profile_store import WriteCondition
from merchant_onboarding.utils.timezone import current_year
from tests.mocks import build_merchant_payload, spy_identity_directory, spy_profile_store


class TestRegistrationOrchestrator:
    """Test cases for RegistrationOrchestrator."""

    @pytest.fixture
    def identity_directory(self) -> InMemoryIdentityDirectory:
        """Create a spied identity directory."""
        return spy_identity_directory()

    @pytest.fixture
    def profile_store(self) -> InMemoryProfileStore:
        """Create a spied users store."""
        return spy_profile_store()

    @pytest.fixture
    def orchestrator(
        self, identity_directory: InMemoryIdentityDirectory, profile_store: InMemoryProfileStore
    ) -> RegistrationOrchestrator:
        """Create the orchestrator under test."""
        return RegistrationOrchestrator(identity_directory, profile_store)

    @pytest.mark.asyncio
    async def test_registers_merchant(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """Test the full merchant pipeline."""
        # Act
        outcome = await orchestrator.register(build_merchant_payload())

        # Assert
        assert isinstance(outcome, RegistrationResponse)
        assert outcome.message == MERCHANT_REGISTERED_MESSAGE
        assert outcome.user_type == UserType.MERCHANT
        assert outcome.merchant_id == outcome.user_id
        assert outcome.user_confirmed is False

        account = identity_directory.accounts["a@x.com"]
        assert account["sub"] == outcome.user_id
        assert account["attributes"] == {"email": "a@x.com", "custom:userType": "merchant"}
        assert identity_directory.groups["merchant"] == {"a@x.com"}

        profile = await profile_store.get_item(f"USER#{outcome.user_id}")
        assert profile is not None
        assert profile["businessName"] == "Acme"
        assert profile["GSI1PK"] == "USERTYPE#merchant"

    @pytest.mark.asyncio
    async def test_profile_write_is_guarded(
        self, orchestrator: RegistrationOrchestrator, profile_store: InMemoryProfileStore
    ) -> None:
        """Test that the profile is written only if absent."""
        await orchestrator.register(build_merchant_payload())

        _, kwargs = profile_store.put_item.call_args
        assert kwargs["condition"] is WriteCondition.MUST_NOT_EXIST

    @pytest.mark.asyncio
    async def test_response_body_is_camel_case(
        self, orchestrator: RegistrationOrchestrator
    ) -> None:
        """Test the success response shape."""
        outcome = await orchestrator.register(build_merchant_payload())

        assert isinstance(outcome, RegistrationResponse)
        body = outcome.to_api_dict()
        assert body["userType"] == "merchant"
        assert body["userId"] == body["merchantId"]
        assert body["codeDeliveryDetails"]["DeliveryMedium"] == "EMAIL"

    @pytest.mark.asyncio
    async def test_normalizes_before_calling_collaborators(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
    ) -> None:
        """Test that the identity account uses the normalized e-mail."""
        await orchestrator.register(build_merchant_payload(email="  A@X.COM "))

        args, _ = identity_directory.create_account.call_args
        assert args[0] == "a@x.com"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts_without_profile_write(
        self,
        orchestrator: RegistrationOrchestrator,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """Test that an existing account stops the saga before persistence."""
        await orchestrator.register(build_merchant_payload())
        profile_store.put_item.reset_mock()

        with pytest.raises(ConflictException) as exc_info:
            await orchestrator.register(build_merchant_payload(email="A@x.com"))

        assert exc_info.value.message == "User already exists"
        assert exc_info.value.details["name"] == "AccountAlreadyExistsException"
        assert profile_store.put_item.await_count == 0

    @pytest.mark.asyncio
    async def test_future_year_fails_before_collaborators(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """Test that semantic validation precedes any collaborator call."""
        with pytest.raises(ValidationException) as exc_info:
            await orchestrator.register(
                build_merchant_payload(yearOfRegistration=current_year() + 1)
            )

        assert exc_info.value.message == "Year of registration cannot be in the future"
        identity_directory.create_account.assert_not_awaited()
        profile_store.put_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_structural_failure_fails_before_collaborators(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
    ) -> None:
        """Test that an invalid body never reaches the identity directory."""
        with pytest.raises(ValidationException):
            await orchestrator.register({"userType": "merchant"})

        identity_directory.create_account.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("user_type", "message"),
        [
            ("customer", "Customer sign-up not implemented"),
            ("ADMIN", "Admin sign-up not implemented"),
        ],
    )
    async def test_unimplemented_user_types(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        user_type: str,
        message: str,
    ) -> None:
        """Test that customer and admin return a not-implemented outcome."""
        outcome = await orchestrator.register(
            {"userType": user_type, "email": "c@x.com", "password": "Test123!@#"}
        )

        assert isinstance(outcome, NotImplementedOutcome)
        assert outcome.message == message
        identity_directory.create_account.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_identity_failure_is_upstream_error(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """Test that unexpected sign-up failures map to an upstream error."""
        identity_directory.create_account = AsyncMock(
            side_effect=IdentityDirectoryException("throttled", "TooManyRequestsException")
        )

        with pytest.raises(UpstreamException) as exc_info:
            await orchestrator.register(build_merchant_payload())

        assert exc_info.value.message == "Error during sign-up"
        assert exc_info.value.details == {
            "name": "IdentityDirectoryException",
            "message": "throttled",
            "code": "TooManyRequestsException",
        }
        profile_store.put_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_group_failure_leaves_orphan_and_logs(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        profile_store: InMemoryProfileStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that a role assignment failure is reported and not compensated."""
        identity_directory.add_account_to_group = AsyncMock(
            side_effect=IdentityDirectoryException("no such group")
        )

        with caplog.at_level(logging.WARNING), pytest.raises(UpstreamException) as exc_info:
            await orchestrator.register(build_merchant_payload())

        assert exc_info.value.message == "Error assigning user group"
        assert "a@x.com" in identity_directory.accounts
        assert "orphaned" in caplog.text
        profile_store.put_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_profile_conflicts(
        self,
        orchestrator: RegistrationOrchestrator,
        identity_directory: InMemoryIdentityDirectory,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """Test that a profile collision is a conflict."""
        # Arrange
        identity_directory.create_account = AsyncMock(
            return_value=SignUpResult(user_sub="sub-1", user_confirmed=False)
        )
        await profile_store.put_item({"PK": "USER#sub-1", "SK": "USER#sub-1"})

        # Act
        with pytest.raises(ConflictException) as exc_info:
            await orchestrator.register(build_merchant_payload())

        # Assert
        assert exc_info.value.message == "Profile already exists"
        assert exc_info.value.details["name"] == "ConditionalCheckFailedException"

    @pytest.mark.asyncio
    async def test_store_failure_is_upstream_error(
        self,
        orchestrator: RegistrationOrchestrator,
        profile_store: InMemoryProfileStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test that unexpected persistence failures map to an upstream error."""
        profile_store.put_item = AsyncMock(side_effect=ProfileStoreException("disk full"))

        with caplog.at_level(logging.WARNING), pytest.raises(UpstreamException) as exc_info:
            await orchestrator.register(build_merchant_payload())

        assert exc_info.value.message == "Error saving profile"
        assert "stack" not in exc_info.value.details
        assert "orphaned" in caplog.text
