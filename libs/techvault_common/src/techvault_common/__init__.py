"""
TechVault Common Core Package.
"""

from .config_enums import Environment
from .error_enums import ErrorCode, FailureKind, IdentityErrorCode
from .identity_enums import AccountRole, IdentityProvider, LoginFailureReason

__all__ = [
    "AccountRole",
    "Environment",
    "ErrorCode",
    "FailureKind",
    "IdentityErrorCode",
    "IdentityProvider",
    "LoginFailureReason",
]
