"""API routes for user registration."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ...application.registration import NotImplementedOutcome
from ...domain.validation import decode_body, validate_structure
from .dependencies import get_registration_orchestrator
from .error_handlers import create_error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request body"},
        409: {"description": "User or profile already exists"},
        500: {"description": "Server configuration error"},
        501: {"description": "User type not supported yet"},
        502: {"description": "Identity directory or profile store failure"},
    },
)
async def register_user(request: Request) -> JSONResponse:
    """Register a user account and its profile.

    The raw body is decoded here so empty and malformed JSON are reported
    with their own messages. A body that fails the schema is rejected before
    the registration settings are checked.
    """
    sign_up = validate_structure(decode_body(await request.body()))
    orchestrator = get_registration_orchestrator()
    outcome = await orchestrator.register_request(sign_up)

    if isinstance(outcome, NotImplementedOutcome):
        logger.info(f"Rejected {outcome.user_type.value} sign-up: not implemented")
        return create_error_response(status.HTTP_501_NOT_IMPLEMENTED, outcome.message)

    return JSONResponse(status_code=status.HTTP_201_CREATED, content=outcome.to_api_dict())
