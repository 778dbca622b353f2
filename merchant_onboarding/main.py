"""Main entry point for the merchant onboarding API.

This module sets up the FastAPI application using hexagonal architecture,
with clear separation between framework concerns and business logic.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from . import __version__
from .infrastructure.api.dependencies import get_service_configuration
from .infrastructure.api.error_handlers import register_error_handlers
from .infrastructure.api.routes import router
from .infrastructure.connection_manager import (
    ConnectionManager,
    get_connection_manager,
    set_connection_manager,
)
from .logging_config import setup_logging

load_dotenv()
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks for the application.
    """
    logger.info("Starting merchant onboarding service")

    try:
        config = get_service_configuration()
        setup_logging(config.log_level)

        # Log configuration (without sensitive data)
        logger.info(f"Service configured for environment: {config.environment}")
        logger.info(f"API Port: {config.api_port}")
        logger.info(f"Identity backend: {config.identity_backend}")
        logger.info(f"Profile store backend: {config.profile_store_backend}")

        connection_manager = ConnectionManager(config)
        await connection_manager.startup()
        set_connection_manager(connection_manager)

        logger.info("Service is ready to handle requests")

        yield

    except Exception as e:
        logger.error(f"Failed to start service: {e}")
        raise
    finally:
        logger.info("Shutting down merchant onboarding service")
        try:
            manager = get_connection_manager()
        except RuntimeError:
            manager = None
        if manager is not None:
            await manager.shutdown()
            set_connection_manager(None)


app = FastAPI(
    title="Merchant Onboarding Service",
    description="Merchant registration and category directory API",
    version=__version__,
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "merchant_onboarding.main:app",
        host="0.0.0.0",  # nosec B104
        port=get_service_configuration().api_port,
    )
