"""API routes for the merchant onboarding service.

This module assembles the routers and defines the operational endpoints,
keeping the web framework concerns separate from the business logic.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ... import __version__
from ...domain.models import HealthStatus, ServiceConfiguration
from .dependencies import get_service_configuration
from .merchant_routes import router as merchant_router
from .user_routes import router as user_router

logger = logging.getLogger(__name__)

BINDINGS_CACHE_CONTROL = "max-age=300"


class ApiBinding(BaseModel):
    """Public API location."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    base_url: str | None = Field(None, alias="baseUrl")


class ServiceBindings(BaseModel):
    """Service-discovery document for clients of this API."""

    model_config = ConfigDict(frozen=True)

    service: str
    env: str
    region: str
    api: ApiBinding


router = APIRouter()
router.include_router(user_router)
router.include_router(merchant_router)


@router.get("/health", response_model=HealthStatus)
async def health_check(
    config: ServiceConfiguration = Depends(get_service_configuration),  # noqa: B008
) -> HealthStatus:
    """Health check endpoint with service status."""
    return HealthStatus(
        status="healthy",
        service_name=config.service_name,
        version=__version__,
        environment=config.environment,
        profile_store_backend=config.profile_store_backend,
        identity_backend=config.identity_backend,
    )


@router.get("/.well-known/bindings")
async def get_bindings(
    config: ServiceConfiguration = Depends(get_service_configuration),  # noqa: B008
) -> JSONResponse:
    """Describe where this service runs so clients can discover it."""
    bindings = ServiceBindings(
        service=config.service_name,
        env=config.environment,
        region=config.aws_region,
        api=ApiBinding(base_url=config.api_base_url),
    )
    return JSONResponse(
        content=bindings.model_dump(by_alias=True),
        headers={"cache-control": BINDINGS_CACHE_CONTROL},
    )
