"""Registration orchestrator.

Registers a user across two independent systems: an identity account is
created and added to its role group, then a profile record is persisted.
The steps are not transactional. A failure after the identity account exists
leaves that account in place; it is logged as orphaned so it can be repaired.

Each step maps an immutable ``RegistrationContext`` to the next one.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, assert_never

from pydantic import BaseModel, ConfigDict, Field

from ..domain.exceptions import (
    AccountAlreadyExistsException,
    ConditionalCheckFailedException,
    ConflictException,
    DomainException,
    IdentityDirectoryException,
    ProfileStoreException,
    UpstreamException,
    serialize_error,
)
from ..domain.users import (
    AdminSignUp,
    CodeDeliveryDetails,
    CustomerSignUp,
    MerchantSignUp,
    SignUpResult,
    UserProfile,
    UserType,
)
from ..domain.validation import normalize, validate_semantics, validate_structure
from ..ports.identity_directory import IdentityDirectoryPort
from ..ports.profile_store import ProfileStorePort, WriteCondition
from ..utils.timezone import now_utc_iso

logger = logging.getLogger(__name__)

MERCHANT_REGISTERED_MESSAGE = "Merchant registered. Needs to submit OTP to complete sign-up"


class RegistrationState(str, Enum):
    """Steps of the registration saga, in order."""

    VALIDATED = "Validated"
    NORMALIZED = "Normalized"
    ATTRIBUTES_BUILT = "AttributesBuilt"
    IDENTITY_ACCOUNT_CREATED = "IdentityAccountCreated"
    ROLE_ASSIGNED = "RoleAssigned"
    PROFILE_BUILT = "ProfileBuilt"
    PROFILE_PERSISTED = "ProfilePersisted"
    RESPONSE_BUILT = "ResponseBuilt"
    FAILED = "Failed"


class RegistrationResponse(BaseModel):
    """Successful registration outcome."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    message: str
    user_confirmed: bool = Field(..., alias="userConfirmed")
    user_type: UserType = Field(..., alias="userType")
    user_id: str = Field(..., alias="userId")
    merchant_id: str | None = Field(None, alias="merchantId")
    code_delivery_details: CodeDeliveryDetails | None = Field(None, alias="codeDeliveryDetails")

    def to_api_dict(self) -> dict[str, Any]:
        """Render the response body with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NotImplementedOutcome(BaseModel):
    """Outcome for user types that have no registration pipeline yet."""

    model_config = ConfigDict(frozen=True)

    user_type: UserType
    message: str


RegistrationOutcome = RegistrationResponse | NotImplementedOutcome


class RegistrationContext(BaseModel):
    """Accumulated state of one merchant registration."""

    model_config = ConfigDict(frozen=True)

    state: RegistrationState
    request: MerchantSignUp
    attributes: dict[str, str] = Field(default_factory=dict)
    sign_up: SignUpResult | None = None
    profile: UserProfile | None = None
    response: RegistrationResponse | None = None

    def advance(self, state: RegistrationState, **updates: Any) -> RegistrationContext:
        """Return a copy moved to ``state`` with ``updates`` applied."""
        return self.model_copy(update={"state": state, **updates})


class RegistrationOrchestrator:
    """Coordinates identity account creation, role assignment and profile persistence."""

    def __init__(self, identity_directory: IdentityDirectoryPort, profile_store: ProfileStorePort):
        """Initialize the orchestrator.

        Args:
            identity_directory: Identity directory adapter
            profile_store: Profile store bound to the users table
        """
        self._identity_directory = identity_directory
        self._profile_store = profile_store

    async def register(self, body: Any) -> RegistrationOutcome:
        """Validate a decoded sign-up body and register the user.

        Validation fails before any collaborator is called.

        Raises:
            ValidationException: If the body is structurally or semantically invalid
            ConflictException: If the user or profile already exists
            UpstreamException: If a collaborator fails
        """
        return await self.register_request(validate_structure(body))

    async def register_request(
        self, request: MerchantSignUp | CustomerSignUp | AdminSignUp
    ) -> RegistrationOutcome:
        """Normalize a structurally valid request, apply business rules and dispatch it.

        Raises:
            ValidationException: If a business rule is violated
        """
        request = normalize(request)
        validate_semantics(request)
        return await self.dispatch(request)

    async def dispatch(
        self, request: MerchantSignUp | CustomerSignUp | AdminSignUp
    ) -> RegistrationOutcome:
        """Route a normalized request to the pipeline for its user type."""
        if isinstance(request, MerchantSignUp):
            return await self._register_merchant(request)
        if isinstance(request, CustomerSignUp):
            return NotImplementedOutcome(
                user_type=UserType.CUSTOMER, message="Customer sign-up not implemented"
            )
        if isinstance(request, AdminSignUp):
            return NotImplementedOutcome(
                user_type=UserType.ADMIN, message="Admin sign-up not implemented"
            )
        assert_never(request)

    async def _register_merchant(self, request: MerchantSignUp) -> RegistrationResponse:
        ctx = RegistrationContext(state=RegistrationState.NORMALIZED, request=request)
        try:
            ctx = self._build_attributes(ctx)
            ctx = await self._create_identity_account(ctx)
            ctx = await self._assign_role(ctx)
            ctx = self._build_profile(ctx)
            ctx = await self._persist_profile(ctx)
            ctx = self._build_response(ctx)
        except DomainException as e:
            self._report_failure(ctx, e)
            raise

        assert ctx.response is not None
        logger.info(f"Registered merchant {ctx.response.user_id}")
        return ctx.response

    def _build_attributes(self, ctx: RegistrationContext) -> RegistrationContext:
        attributes = {
            "email": ctx.request.email,
            "custom:userType": ctx.request.user_type,
        }
        return ctx.advance(RegistrationState.ATTRIBUTES_BUILT, attributes=attributes)

    async def _create_identity_account(self, ctx: RegistrationContext) -> RegistrationContext:
        try:
            sign_up = await self._identity_directory.create_account(
                ctx.request.email, ctx.request.password, ctx.attributes
            )
        except AccountAlreadyExistsException as e:
            raise ConflictException("User already exists", serialize_error(e)) from e
        except IdentityDirectoryException as e:
            raise UpstreamException("Error during sign-up", serialize_error(e)) from e

        logger.info(f"Created identity account {sign_up.user_sub} for {ctx.request.email}")
        return ctx.advance(RegistrationState.IDENTITY_ACCOUNT_CREATED, sign_up=sign_up)

    async def _assign_role(self, ctx: RegistrationContext) -> RegistrationContext:
        group_name = ctx.request.user_type
        try:
            # Username is the e-mail address
            await self._identity_directory.add_account_to_group(ctx.request.email, group_name)
        except IdentityDirectoryException as e:
            raise UpstreamException("Error assigning user group", serialize_error(e)) from e

        return ctx.advance(RegistrationState.ROLE_ASSIGNED)

    def _build_profile(self, ctx: RegistrationContext) -> RegistrationContext:
        assert ctx.sign_up is not None
        request = ctx.request
        now = now_utc_iso()
        profile = UserProfile(
            user_id=ctx.sign_up.user_sub,
            user_type=UserType.MERCHANT,
            email=request.email,
            created_at=now,
            updated_at=now,
            business_name=request.business_name,
            registration_number=request.registration_number,
            year_of_registration=request.year_of_registration,
            website=request.website,
            phone=request.phone,
            address=request.address,
            primary_contact=request.primary_contact,
            product_categories=list(request.product_categories),
        )
        return ctx.advance(RegistrationState.PROFILE_BUILT, profile=profile)

    async def _persist_profile(self, ctx: RegistrationContext) -> RegistrationContext:
        assert ctx.profile is not None
        try:
            await self._profile_store.put_item(
                ctx.profile.to_item(), condition=WriteCondition.MUST_NOT_EXIST
            )
        except ConditionalCheckFailedException as e:
            raise ConflictException("Profile already exists", serialize_error(e)) from e
        except ProfileStoreException as e:
            raise UpstreamException("Error saving profile", serialize_error(e)) from e

        return ctx.advance(RegistrationState.PROFILE_PERSISTED)

    def _build_response(self, ctx: RegistrationContext) -> RegistrationContext:
        assert ctx.sign_up is not None
        user_id = ctx.sign_up.user_sub
        response = RegistrationResponse(
            message=MERCHANT_REGISTERED_MESSAGE,
            user_confirmed=ctx.sign_up.user_confirmed,
            user_type=UserType.MERCHANT,
            user_id=user_id,
            merchant_id=user_id,
            code_delivery_details=ctx.sign_up.code_delivery_details,
        )
        return ctx.advance(RegistrationState.RESPONSE_BUILT, response=response)

    def _report_failure(self, ctx: RegistrationContext, error: DomainException) -> None:
        failed = ctx.advance(RegistrationState.FAILED)
        if ctx.sign_up is not None:
            # No compensation: the identity account stays without a profile
            logger.warning(
                f"Registration failed after {ctx.state.value}; identity account "
                f"{ctx.sign_up.user_sub} ({ctx.request.email}) is orphaned: {error.message}"
            )
        else:
            logger.info(
                f"Registration {failed.state.value} at {ctx.state.value}: {error.message}"
            )
