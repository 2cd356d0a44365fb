"""
techvault_common.error_enums - Centralized error code definitions.
"""

from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    """
    Closed taxonomy of failure kinds surfaced to the transport layer.

    Every error code maps to exactly one kind, and every kind to exactly one
    HTTP status code.
    """

    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND: dict[FailureKind, int] = {
    FailureKind.CONFLICT: 409,
    FailureKind.UNAUTHORIZED: 401,
    FailureKind.FORBIDDEN: 403,
    FailureKind.NOT_FOUND: 404,
    FailureKind.BAD_REQUEST: 400,
    FailureKind.INTERNAL: 500,
}


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"  # Internal processing failures

    # Dependency did not respond in time
    TIMEOUT = "TIMEOUT"


class IdentityErrorCode(str, Enum):
    """
    Specific error codes for the Identity Service.
    """

    EMAIL_ALREADY_REGISTERED = "IDENTITY_EMAIL_ALREADY_REGISTERED"
    INVALID_CREDENTIALS = "IDENTITY_INVALID_CREDENTIALS"
    EMAIL_NOT_VERIFIED = "IDENTITY_EMAIL_NOT_VERIFIED"
    INVALID_TOKEN = "IDENTITY_INVALID_TOKEN"
    ACCOUNT_NOT_FOUND = "IDENTITY_ACCOUNT_NOT_FOUND"
    INSUFFICIENT_ROLE = "IDENTITY_INSUFFICIENT_ROLE"

    # Federated identity
    FEDERATED_IDENTITY_INVALID = "IDENTITY_FEDERATED_IDENTITY_INVALID"
    FEDERATED_IDENTITY_CONFLICT = "IDENTITY_FEDERATED_IDENTITY_CONFLICT"
    FEDERATED_LINK_REQUIRES_CONFIRMATION = "IDENTITY_FEDERATED_LINK_REQUIRES_CONFIRMATION"

    # One-time codes and reset links
    RESET_LINK_INVALID = "IDENTITY_RESET_LINK_INVALID"
    OTP_INVALID = "IDENTITY_OTP_INVALID"
    OTP_EXPIRED = "IDENTITY_OTP_EXPIRED"


FAILURE_KIND_BY_CODE: dict[ErrorCode | IdentityErrorCode, FailureKind] = {
    ErrorCode.VALIDATION_ERROR: FailureKind.BAD_REQUEST,
    ErrorCode.CONFIGURATION_ERROR: FailureKind.INTERNAL,
    ErrorCode.EXTERNAL_SERVICE_ERROR: FailureKind.INTERNAL,
    ErrorCode.PROCESSING_ERROR: FailureKind.INTERNAL,
    ErrorCode.TIMEOUT: FailureKind.INTERNAL,
    IdentityErrorCode.EMAIL_ALREADY_REGISTERED: FailureKind.CONFLICT,
    IdentityErrorCode.INVALID_CREDENTIALS: FailureKind.UNAUTHORIZED,
    IdentityErrorCode.EMAIL_NOT_VERIFIED: FailureKind.FORBIDDEN,
    IdentityErrorCode.INVALID_TOKEN: FailureKind.UNAUTHORIZED,
    IdentityErrorCode.ACCOUNT_NOT_FOUND: FailureKind.NOT_FOUND,
    IdentityErrorCode.INSUFFICIENT_ROLE: FailureKind.FORBIDDEN,
    IdentityErrorCode.FEDERATED_IDENTITY_INVALID: FailureKind.UNAUTHORIZED,
    IdentityErrorCode.FEDERATED_IDENTITY_CONFLICT: FailureKind.CONFLICT,
    IdentityErrorCode.FEDERATED_LINK_REQUIRES_CONFIRMATION: FailureKind.CONFLICT,
    IdentityErrorCode.RESET_LINK_INVALID: FailureKind.BAD_REQUEST,
    IdentityErrorCode.OTP_INVALID: FailureKind.BAD_REQUEST,
    IdentityErrorCode.OTP_EXPIRED: FailureKind.BAD_REQUEST,
}
