"""
Identity service specific enums.

Follows the established pattern of using str, Enum inheritance for all enums
(config_enums.py, error_enums.py, etc.).
"""

from enum import Enum


class AccountRole(str, Enum):
    """Authorization levels, lowest privilege first."""

    USER = "USER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class IdentityProvider(str, Enum):
    """Credential origin that created or last linked an account."""

    NATIVE = "native"
    FEDERATED = "federated"


class LoginFailureReason(str, Enum):
    """
    Standardized reasons for login failure.

    Used for logging and metrics labels only; never surfaced to callers.
    """

    USER_NOT_FOUND = "user_not_found"
    NO_CREDENTIAL = "no_credential"
    INVALID_PASSWORD = "invalid_password"
    EMAIL_UNVERIFIED = "email_unverified"
