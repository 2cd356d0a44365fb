"""Email verification domain handler for Auth Service.

Verification uses a six-digit code stored on the account. A code is
accepted while ``now <= expiry``; an account without an expiry is treated
as expired.
"""

from __future__ import annotations

import hmac
from datetime import UTC, datetime
from uuid import UUID

from techvault_service_libs.error_handling import raise_otp_expired, raise_otp_invalid
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.api.schemas import MessageResponse
from services.auth_service.domain_models import normalize_email
from services.auth_service.metrics import EMAIL_VERIFICATIONS
from services.auth_service.protocols import (
    AccountRepository,
    NotificationDispatcher,
    OtpGenerator,
)

logger = create_service_logger("auth_service.domain_handlers.verification")

EMAIL_VERIFIED_MESSAGE = "Email verified successfully"
ALREADY_VERIFIED_MESSAGE = "Email is already verified"
RESEND_VERIFICATION_MESSAGE = (
    "If the account exists and is not yet verified, a new verification code has been sent."
)


class VerificationHandler:
    def __init__(
        self,
        repository: AccountRepository,
        otp_generator: OtpGenerator,
        notifications: NotificationDispatcher,
    ) -> None:
        self._repository = repository
        self._otp_generator = otp_generator
        self._notifications = notifications

    async def verify_email(self, email: str, otp: str, correlation_id: UUID) -> MessageResponse:
        """Mark the account verified if ``otp`` matches its pending, unexpired code.

        Raises:
            TechVaultError: OTP_INVALID for unknown email or wrong code,
                OTP_EXPIRED for a matching code past its expiry
        """
        account = await self._repository.find_by_email(normalize_email(email))
        if account is None:
            EMAIL_VERIFICATIONS.labels(status="unknown_email").inc()
            raise_otp_invalid(
                service="auth_service",
                operation="verify_email",
                message="Invalid email or OTP code",
                correlation_id=correlation_id,
            )

        if account.email_verified:
            EMAIL_VERIFICATIONS.labels(status="already_verified").inc()
            return MessageResponse(message=ALREADY_VERIFIED_MESSAGE)

        pending_code = account.pending_verification_code
        if pending_code is None or not hmac.compare_digest(
            pending_code.encode("utf-8"), otp.encode("utf-8")
        ):
            EMAIL_VERIFICATIONS.labels(status="invalid_code").inc()
            raise_otp_invalid(
                service="auth_service",
                operation="verify_email",
                message="Invalid OTP code",
                correlation_id=correlation_id,
            )

        expiry = account.pending_verification_expiry
        if expiry is None or datetime.now(UTC) > expiry:
            EMAIL_VERIFICATIONS.labels(status="expired").inc()
            raise_otp_expired(
                service="auth_service",
                operation="verify_email",
                correlation_id=correlation_id,
            )

        updated = await self._repository.update(
            account.id,
            {
                "email_verified": True,
                "pending_verification_code": None,
                "pending_verification_expiry": None,
            },
            expected={"pending_verification_code": pending_code},
        )
        if updated is None:
            # Verified or re-issued concurrently
            current = await self._repository.find_by_id(account.id)
            if current is not None and current.email_verified:
                return MessageResponse(message=ALREADY_VERIFIED_MESSAGE)
            raise_otp_invalid(
                service="auth_service",
                operation="verify_email",
                message="Invalid OTP code",
                correlation_id=correlation_id,
            )

        EMAIL_VERIFICATIONS.labels(status="verified").inc()
        logger.info(
            "Email verified",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return MessageResponse(message=EMAIL_VERIFIED_MESSAGE)

    async def resend_verification(self, email: str, correlation_id: UUID) -> MessageResponse:
        account = await self._repository.find_by_email(normalize_email(email))
        if account is None or account.email_verified:
            return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)

        code, expiry = self._otp_generator.generate()
        updated = await self._repository.update(
            account.id,
            {"pending_verification_code": code, "pending_verification_expiry": expiry},
            expected={"email_verified": False},
        )
        if updated is None:
            return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)

        try:
            await self._notifications.send_verification_code(
                updated.email, updated.display_name, code
            )
        except Exception as e:
            logger.warning(
                "Failed to dispatch resent verification code",
                extra={
                    "account_id": updated.id,
                    "correlation_id": str(correlation_id),
                    "error": str(e),
                },
                exc_info=True,
            )

        logger.info(
            "Verification code re-issued",
            extra={"account_id": updated.id, "correlation_id": str(correlation_id)},
        )
        return MessageResponse(message=RESEND_VERIFICATION_MESSAGE)
