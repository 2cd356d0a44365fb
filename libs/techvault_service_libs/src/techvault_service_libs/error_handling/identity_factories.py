"""
Identity service specific error factories.

Messages on enumeration-sensitive paths are chosen by the caller and must
stay generic; these factories only attach the code and context.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from techvault_common.error_enums import IdentityErrorCode

from .error_detail_factory import create_error_detail_with_context
from .techvault_error import TechVaultError


def _raise_identity(
    error_code: IdentityErrorCode,
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None,
    details: dict[str, Any],
) -> NoReturn:
    error_detail = create_error_detail_with_context(
        error_code=error_code,
        message=message,
        service=service,
        operation=operation,
        correlation_id=correlation_id,
        details=details,
    )
    raise TechVaultError(error_detail)


def raise_email_already_registered(
    service: str,
    operation: str,
    message: str = "Email is already registered",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.EMAIL_ALREADY_REGISTERED,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_invalid_credentials(
    service: str,
    operation: str,
    message: str = "Invalid email or password",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.INVALID_CREDENTIALS,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_email_not_verified(
    service: str,
    operation: str,
    message: str = "Please verify your email before logging in",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.EMAIL_NOT_VERIFIED,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_invalid_token(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.INVALID_TOKEN,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_account_not_found(
    service: str,
    operation: str,
    message: str = "User not found",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.ACCOUNT_NOT_FOUND,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_insufficient_role(
    service: str,
    operation: str,
    message: str = "You do not have permission to access this resource",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.INSUFFICIENT_ROLE,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_federated_identity_invalid(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.FEDERATED_IDENTITY_INVALID,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_federated_identity_conflict(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.FEDERATED_IDENTITY_CONFLICT,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_federated_link_requires_confirmation(
    service: str,
    operation: str,
    message: str = "An account with this email already exists; sign in with your password first",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.FEDERATED_LINK_REQUIRES_CONFIRMATION,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_reset_link_invalid(
    service: str,
    operation: str,
    message: str = "Invalid or expired reset link",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.RESET_LINK_INVALID,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_otp_invalid(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.OTP_INVALID,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )


def raise_otp_expired(
    service: str,
    operation: str,
    message: str = "OTP code has expired",
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise_identity(
        IdentityErrorCode.OTP_EXPIRED,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )
