from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dishka import AsyncContainer, make_async_container
from sqlalchemy.ext.asyncio import AsyncEngine
from techvault_service_libs.logging_utils import (
    configure_service_logging,
    create_service_logger,
)

from services.auth_service.config import Settings, settings
from services.auth_service.di import (
    AuthImplementationsProvider,
    CoreProvider,
    DomainHandlerProvider,
)
from services.auth_service.identity_service import IdentityService
from services.auth_service.implementations.background_notification_dispatcher import (
    BackgroundNotificationDispatcher,
)
from services.auth_service.models_db import Base

logger = create_service_logger("auth_service.startup")


async def initialize_services(service_settings: Settings | None = None) -> AsyncContainer:
    service_settings = service_settings or settings
    configure_service_logging(
        service_settings.SERVICE_NAME,
        environment=service_settings.ENVIRONMENT.value,
        log_level=service_settings.LOG_LEVEL,
    )
    logger.info("Auth Service initializing", extra={"settings": str(service_settings)})

    container = make_async_container(
        CoreProvider(service_settings),
        AuthImplementationsProvider(),
        DomainHandlerProvider(),
    )

    # Create any tables missing from the database
    database_engine = await container.get(AsyncEngine)
    async with database_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Auth Service initialized")
    return container


async def shutdown_services(container: AsyncContainer) -> None:
    dispatcher = await container.get(BackgroundNotificationDispatcher)
    if dispatcher.pending_count:
        logger.info(
            "Draining pending notifications", extra={"pending": dispatcher.pending_count}
        )
    await dispatcher.drain()

    # Disposes the database engine
    await container.close()
    logger.info("Auth Service shutdown complete")


@asynccontextmanager
async def auth_service_lifespan(
    service_settings: Settings | None = None,
) -> AsyncIterator[IdentityService]:
    """Run the Auth Service for the duration of the ``async with`` block."""
    container = await initialize_services(service_settings)
    try:
        yield await container.get(IdentityService)
    finally:
        await shutdown_services(container)
