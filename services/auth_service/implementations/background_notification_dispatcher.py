from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.metrics import NOTIFICATION_FAILURES
from services.auth_service.protocols import NotificationDispatcher

logger = create_service_logger("auth_service.notifications.background")


class BackgroundNotificationDispatcher(NotificationDispatcher):
    """Fire-and-forget wrapper around another dispatcher.

    ``send_*`` schedule delivery and return immediately. Delivery failures are
    logged and counted, never raised to the caller. ``drain()`` waits for every
    pending delivery and is called on shutdown.
    """

    def __init__(self, delegate: NotificationDispatcher) -> None:
        self._delegate = delegate
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send_verification_code(self, email: str, name: str, code: str) -> None:
        self._schedule(
            "verification_code", self._delegate.send_verification_code(email, name, code)
        )

    async def send_password_reset_link(self, email: str, name: str, url: str) -> None:
        self._schedule(
            "password_reset", self._delegate.send_password_reset_link(email, name, url)
        )

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _schedule(self, kind: str, delivery: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(self._deliver(kind, delivery))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, kind: str, delivery: Coroutine[Any, Any, None]) -> None:
        try:
            await delivery
        except Exception as e:
            NOTIFICATION_FAILURES.labels(kind=kind).inc()
            logger.error(
                "Background notification delivery failed",
                extra={"kind": kind, "error": str(e)},
                exc_info=True,
            )
