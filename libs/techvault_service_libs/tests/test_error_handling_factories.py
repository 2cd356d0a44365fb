"""
Unit tests for error handling factory functions.

Validates ErrorDetail creation, TechVaultError raising and correlation ID
propagation for the generic and identity factories.
"""

from __future__ import annotations

import uuid
from uuid import UUID

import pytest
from techvault_common.error_enums import ErrorCode, FailureKind, IdentityErrorCode
from techvault_service_libs.error_handling import (
    TechVaultError,
    create_error_detail_with_context,
    raise_account_not_found,
    raise_configuration_error,
    raise_email_already_registered,
    raise_email_not_verified,
    raise_external_service_error,
    raise_federated_identity_invalid,
    raise_insufficient_role,
    raise_invalid_credentials,
    raise_otp_expired,
    raise_processing_error,
    raise_reset_link_invalid,
    raise_timeout_error,
    raise_validation_error,
)


@pytest.fixture
def test_correlation_id() -> UUID:
    return uuid.uuid4()


class TestErrorDetailFactory:
    def test_generates_correlation_id_when_missing(self) -> None:
        detail = create_error_detail_with_context(
            error_code=ErrorCode.PROCESSING_ERROR,
            message="boom",
            service="test_service",
            operation="test_operation",
        )

        assert isinstance(detail.correlation_id, UUID)
        assert detail.details == {}
        assert detail.timestamp.tzinfo is not None

    def test_stack_capture_can_be_disabled(self, test_correlation_id: UUID) -> None:
        detail = create_error_detail_with_context(
            error_code=ErrorCode.PROCESSING_ERROR,
            message="boom",
            service="test_service",
            operation="test_operation",
            correlation_id=test_correlation_id,
            capture_stack=False,
        )

        assert detail.stack_trace is None
        assert detail.correlation_id == test_correlation_id

    def test_stack_capture_includes_caller(self) -> None:
        detail = create_error_detail_with_context(
            error_code=ErrorCode.PROCESSING_ERROR,
            message="boom",
            service="test_service",
            operation="test_operation",
        )

        assert detail.stack_trace is not None
        assert "test_stack_capture_includes_caller" in detail.stack_trace


class TestGenericErrorFactories:
    def test_raise_processing_error(self, test_correlation_id: UUID) -> None:
        with pytest.raises(TechVaultError) as exc_info:
            raise_processing_error(
                service="test_service",
                operation="test_operation",
                message="Test error message",
                correlation_id=test_correlation_id,
                extra_info="test_value",
            )

        error = exc_info.value
        assert error.error_code == ErrorCode.PROCESSING_ERROR.value
        assert error.correlation_id == str(test_correlation_id)
        assert str(error) == "[PROCESSING_ERROR] Test error message"
        assert error.error_detail.details == {"extra_info": "test_value"}

    def test_raise_validation_error_with_value(self, test_correlation_id: UUID) -> None:
        with pytest.raises(TechVaultError) as exc_info:
            raise_validation_error(
                service="test_service",
                operation="validate",
                field="email",
                message="Invalid email format",
                correlation_id=test_correlation_id,
                value="invalid-email",
            )

        details = exc_info.value.error_detail.details
        assert details == {"field": "email", "value": "invalid-email"}
        assert exc_info.value.failure_kind is FailureKind.BAD_REQUEST

    def test_raise_configuration_error(self) -> None:
        with pytest.raises(TechVaultError) as exc_info:
            raise_configuration_error(
                service="test_service",
                operation="init",
                config_key="GOOGLE_CLIENT_ID",
                message="Not configured",
            )

        assert exc_info.value.error_detail.details["config_key"] == "GOOGLE_CLIENT_ID"
        assert exc_info.value.failure_kind is FailureKind.INTERNAL

    def test_raise_timeout_and_external_errors_are_internal(self) -> None:
        with pytest.raises(TechVaultError) as timeout_info:
            raise_timeout_error(
                service="test_service",
                operation="op",
                timeout_seconds=5.0,
                message="timed out",
            )
        with pytest.raises(TechVaultError) as external_info:
            raise_external_service_error(
                service="test_service",
                operation="op",
                external_service="smtp",
                message="down",
            )

        assert timeout_info.value.error_code == ErrorCode.TIMEOUT.value
        assert timeout_info.value.status_code == 500
        assert external_info.value.error_code == ErrorCode.EXTERNAL_SERVICE_ERROR.value
        assert external_info.value.error_detail.details["external_service"] == "smtp"


class TestIdentityErrorFactories:
    @pytest.mark.parametrize(
        "factory, code, message, status",
        [
            (
                raise_email_already_registered,
                IdentityErrorCode.EMAIL_ALREADY_REGISTERED,
                "Email is already registered",
                409,
            ),
            (
                raise_invalid_credentials,
                IdentityErrorCode.INVALID_CREDENTIALS,
                "Invalid email or password",
                401,
            ),
            (
                raise_email_not_verified,
                IdentityErrorCode.EMAIL_NOT_VERIFIED,
                "Please verify your email before logging in",
                403,
            ),
            (raise_account_not_found, IdentityErrorCode.ACCOUNT_NOT_FOUND, "User not found", 404),
            (
                raise_insufficient_role,
                IdentityErrorCode.INSUFFICIENT_ROLE,
                "You do not have permission to access this resource",
                403,
            ),
            (
                raise_reset_link_invalid,
                IdentityErrorCode.RESET_LINK_INVALID,
                "Invalid or expired reset link",
                400,
            ),
            (raise_otp_expired, IdentityErrorCode.OTP_EXPIRED, "OTP code has expired", 400),
        ],
    )
    def test_default_messages(
        self, factory, code: IdentityErrorCode, message: str, status: int, test_correlation_id: UUID
    ) -> None:
        with pytest.raises(TechVaultError) as exc_info:
            factory(
                service="auth_service",
                operation="op",
                correlation_id=test_correlation_id,
            )

        error = exc_info.value
        assert error.error_code == code.value
        assert error.message == message
        assert error.status_code == status
        assert error.correlation_id == str(test_correlation_id)

    def test_federated_identity_invalid_carries_context(self) -> None:
        with pytest.raises(TechVaultError) as exc_info:
            raise_federated_identity_invalid(
                service="auth_service",
                operation="login_with_federated_identity",
                message="Invalid Google token",
                verifier_code="invalid_token",
            )

        assert exc_info.value.failure_kind is FailureKind.UNAUTHORIZED
        assert exc_info.value.error_detail.details == {"verifier_code": "invalid_token"}
