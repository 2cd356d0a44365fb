"""
Generic error factory functions.

Each factory builds an ErrorDetail and raises TechVaultError. They are
annotated ``NoReturn`` so type checkers treat them like ``raise``.
"""

from __future__ import annotations

from typing import Any, NoReturn
from uuid import UUID

from techvault_common.error_enums import ErrorCode

from .error_detail_factory import create_error_detail_with_context
from .techvault_error import TechVaultError


def _raise(
    error_code: ErrorCode,
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


def raise_validation_error(
    service: str,
    operation: str,
    field: str,
    message: str,
    correlation_id: UUID | None = None,
    value: Any = None,
    **additional_context: Any,
) -> NoReturn:
    details = {"field": field, **additional_context}
    if value is not None:
        details["value"] = value
    _raise(ErrorCode.VALIDATION_ERROR, service, operation, message, correlation_id, details)


def raise_configuration_error(
    service: str,
    operation: str,
    config_key: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    details = {"config_key": config_key, **additional_context}
    _raise(ErrorCode.CONFIGURATION_ERROR, service, operation, message, correlation_id, details)


def raise_external_service_error(
    service: str,
    operation: str,
    external_service: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    details = {"external_service": external_service, **additional_context}
    _raise(ErrorCode.EXTERNAL_SERVICE_ERROR, service, operation, message, correlation_id, details)


def raise_timeout_error(
    service: str,
    operation: str,
    timeout_seconds: float | None,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    details = {"timeout_seconds": timeout_seconds, **additional_context}
    _raise(ErrorCode.TIMEOUT, service, operation, message, correlation_id, details)


def raise_processing_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID | None = None,
    **additional_context: Any,
) -> NoReturn:
    _raise(
        ErrorCode.PROCESSING_ERROR,
        service,
        operation,
        message,
        correlation_id,
        additional_context,
    )
