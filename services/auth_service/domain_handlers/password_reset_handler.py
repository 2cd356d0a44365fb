"""Password reset domain handler for Auth Service.

Reset links carry a token signed with a secret derived from the account's
current credential hash. Every failure on the reset path produces the same
message, and requesting a link never reveals whether the email exists.
"""

from __future__ import annotations

import asyncio
from typing import NoReturn
from urllib.parse import urlencode
from uuid import UUID

from techvault_service_libs.error_handling import raise_reset_link_invalid
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.api.schemas import MessageResponse
from services.auth_service.domain_models import normalize_email
from services.auth_service.metrics import PASSWORD_RESET_REQUESTS
from services.auth_service.protocols import (
    AccountRepository,
    NotificationDispatcher,
    PasswordHasher,
    TokenIssuer,
    TokenVerificationError,
)

logger = create_service_logger("auth_service.domain_handlers.password_reset")

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists for this email, a password reset link has been sent."
)
PASSWORD_RESET_MESSAGE = "Password has been reset successfully"


class PasswordResetHandler:
    def __init__(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        notifications: NotificationDispatcher,
        frontend_url: str,
    ) -> None:
        self._repository = repository
        self._password_hasher = password_hasher
        self._token_issuer = token_issuer
        self._notifications = notifications
        self._frontend_url = frontend_url.rstrip("/")

    async def forgot_password(self, email: str, correlation_id: UUID) -> MessageResponse:
        account = await self._repository.find_by_email(normalize_email(email))
        if account is None or account.credential_hash is None:
            PASSWORD_RESET_REQUESTS.labels(stage="request", status="ignored").inc()
            return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

        token = self._token_issuer.issue_reset_token(account)
        reset_url = (
            f"{self._frontend_url}/reset-password?"
            f"{urlencode({'token': token, 'email': account.email})}"
        )

        try:
            await self._notifications.send_password_reset_link(
                account.email, account.display_name, reset_url
            )
        except Exception as e:
            logger.warning(
                "Failed to dispatch password reset link",
                extra={
                    "account_id": account.id,
                    "correlation_id": str(correlation_id),
                    "error": str(e),
                },
                exc_info=True,
            )

        PASSWORD_RESET_REQUESTS.labels(stage="request", status="sent").inc()
        logger.info(
            "Password reset link issued",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    async def reset_password(
        self, email: str, token: str, new_password: str, correlation_id: UUID
    ) -> MessageResponse:
        """Replace the credential if ``token`` was minted against the current one.

        Raises:
            TechVaultError: RESET_LINK_INVALID for any unknown account, bad, expired
                or stale token
        """
        account = await self._repository.find_by_email(normalize_email(email))
        if account is None or account.credential_hash is None:
            self._reject("unknown_account", correlation_id)

        try:
            claims = self._token_issuer.verify_reset_token(token, account.credential_hash)
        except TokenVerificationError as e:
            self._reject(type(e).__name__, correlation_id)

        if claims.sub != account.id:
            self._reject("account_mismatch", correlation_id)

        new_hash = await asyncio.to_thread(self._password_hasher.hash, new_password)
        updated = await self._repository.update(
            account.id,
            {"credential_hash": new_hash},
            expected={"credential_hash": account.credential_hash},
        )
        if updated is None:
            # Credential changed after the token was checked
            self._reject("credential_changed", correlation_id)

        PASSWORD_RESET_REQUESTS.labels(stage="reset", status="success").inc()
        logger.info(
            "Password reset completed",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return MessageResponse(message=PASSWORD_RESET_MESSAGE)

    def _reject(self, reason: str, correlation_id: UUID) -> NoReturn:
        PASSWORD_RESET_REQUESTS.labels(stage="reset", status="rejected").inc()
        logger.info(
            "Password reset rejected",
            extra={"reason": reason, "correlation_id": str(correlation_id)},
        )
        raise_reset_link_invalid(
            service="auth_service",
            operation="reset_password",
            correlation_id=correlation_id,
        )
