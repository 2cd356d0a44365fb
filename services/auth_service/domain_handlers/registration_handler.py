"""Registration domain handler for Auth Service.

Registration never issues tokens. A second registration against an
unverified email replaces the name, credential and verification code so a
user who lost their first code can start over; against a verified email it
is a conflict.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from uuid import UUID

from techvault_common.identity_enums import AccountRole, IdentityProvider
from techvault_service_libs.error_handling import (
    raise_email_already_registered,
    raise_processing_error,
)
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.api.schemas import RegisterResponse
from services.auth_service.domain_models import Account, AccountCreate, normalize_email
from services.auth_service.protocols import (
    AccountConflictError,
    AccountRepository,
    NotificationDispatcher,
    OtpGenerator,
    PasswordHasher,
)

logger = create_service_logger("auth_service.domain_handlers.registration")

REGISTRATION_MESSAGE = "Registration successful. Please check your email for the verification code."


class RegistrationHandler:
    def __init__(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        otp_generator: OtpGenerator,
        notifications: NotificationDispatcher,
    ) -> None:
        self._repository = repository
        self._password_hasher = password_hasher
        self._otp_generator = otp_generator
        self._notifications = notifications

    async def register(
        self, name: str, email: str, password: str, correlation_id: UUID
    ) -> RegisterResponse:
        """Create or refresh an unverified account and send it a verification code.

        Raises:
            TechVaultError: EMAIL_ALREADY_REGISTERED if a verified account owns the email
        """
        email = normalize_email(email)
        credential_hash = await asyncio.to_thread(self._password_hasher.hash, password)
        code, expiry = self._otp_generator.generate()

        existing = await self._repository.find_by_email(email)
        if existing is None:
            try:
                account = await self._repository.insert(
                    AccountCreate(
                        display_name=name,
                        email=email,
                        credential_hash=credential_hash,
                        role=AccountRole.USER,
                        identity_provider=IdentityProvider.NATIVE,
                        email_verified=False,
                        pending_verification_code=code,
                        pending_verification_expiry=expiry,
                    )
                )
                logger.info(
                    "Account registered",
                    extra={"account_id": account.id, "correlation_id": str(correlation_id)},
                )
            except AccountConflictError:
                # Lost a race with a concurrent registration for the same email
                existing = await self._repository.find_by_email(email)
                if existing is None:
                    raise_processing_error(
                        service="auth_service",
                        operation="register",
                        message="Account disappeared after a unique constraint conflict",
                        correlation_id=correlation_id,
                    )
                account = await self._reregister(
                    existing, name, credential_hash, code, expiry, correlation_id
                )
        else:
            account = await self._reregister(
                existing, name, credential_hash, code, expiry, correlation_id
            )

        try:
            await self._notifications.send_verification_code(
                account.email, account.display_name, code
            )
        except Exception as e:
            # Registration stands even if the code could not be dispatched
            logger.warning(
                "Failed to dispatch verification code after registration",
                extra={
                    "account_id": account.id,
                    "correlation_id": str(correlation_id),
                    "error": str(e),
                },
                exc_info=True,
            )

        return RegisterResponse(account=account.to_response(), message=REGISTRATION_MESSAGE)

    async def _reregister(
        self,
        existing: Account,
        name: str,
        credential_hash: str,
        code: str,
        expiry: datetime,
        correlation_id: UUID,
    ) -> Account:
        if existing.email_verified:
            raise_email_already_registered(
                service="auth_service",
                operation="register",
                correlation_id=correlation_id,
            )

        updated = await self._repository.update(
            existing.id,
            {
                "display_name": name,
                "credential_hash": credential_hash,
                "pending_verification_code": code,
                "pending_verification_expiry": expiry,
            },
            expected={"email_verified": False},
        )
        if updated is None:
            # Verified in the meantime
            raise_email_already_registered(
                service="auth_service",
                operation="register",
                correlation_id=correlation_id,
            )

        logger.info(
            "Unverified account re-registered",
            extra={"account_id": updated.id, "correlation_id": str(correlation_id)},
        )
        return updated
