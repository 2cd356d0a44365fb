"""Structured error handling for TechVault services."""

from .error_detail_factory import create_error_detail_with_context
from .factories import (
    raise_configuration_error,
    raise_external_service_error,
    raise_processing_error,
    raise_timeout_error,
    raise_validation_error,
)
from .identity_factories import (
    raise_account_not_found,
    raise_email_already_registered,
    raise_email_not_verified,
    raise_federated_identity_conflict,
    raise_federated_identity_invalid,
    raise_federated_link_requires_confirmation,
    raise_insufficient_role,
    raise_invalid_credentials,
    raise_invalid_token,
    raise_otp_expired,
    raise_otp_invalid,
    raise_reset_link_invalid,
)
from .techvault_error import TechVaultError

__all__ = [
    "TechVaultError",
    "create_error_detail_with_context",
    "raise_account_not_found",
    "raise_configuration_error",
    "raise_email_already_registered",
    "raise_email_not_verified",
    "raise_external_service_error",
    "raise_federated_identity_conflict",
    "raise_federated_identity_invalid",
    "raise_federated_link_requires_confirmation",
    "raise_insufficient_role",
    "raise_invalid_credentials",
    "raise_invalid_token",
    "raise_otp_expired",
    "raise_otp_invalid",
    "raise_processing_error",
    "raise_reset_link_invalid",
    "raise_timeout_error",
    "raise_validation_error",
]
