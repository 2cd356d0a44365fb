"""Domain models for the Auth Service.

``Account`` is the full persisted record and never leaves the service;
callers receive ``AccountResponse`` which carries no credential or OTP data.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from techvault_common.identity_enums import AccountRole, IdentityProvider


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address before any lookup or insert."""
    return email.strip().lower()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class _AccountFields(BaseModel):
    display_name: str
    email: str
    credential_hash: Optional[str] = None
    role: AccountRole = AccountRole.USER
    identity_provider: IdentityProvider = IdentityProvider.NATIVE
    federated_subject_id: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False
    pending_verification_code: Optional[str] = None
    pending_verification_expiry: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("pending_verification_expiry")
    @classmethod
    def _expiry_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @model_validator(mode="after")
    def _check_verification_state(self):
        if (self.pending_verification_code is None) != (self.pending_verification_expiry is None):
            raise ValueError("pending verification code and expiry must be set or cleared together")
        if self.email_verified and self.pending_verification_code is not None:
            raise ValueError("a verified account cannot hold a pending verification code")
        return self


class AccountCreate(_AccountFields):
    """Fields for inserting a new account; id and timestamps are assigned by storage."""


class Account(_AccountFields):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_as_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_response(self) -> "AccountResponse":
        return AccountResponse.model_validate(self.model_dump())


class AccountResponse(BaseModel):
    """Sanitized account as returned by every public operation."""

    id: str
    display_name: str
    email: str
    role: AccountRole
    identity_provider: IdentityProvider
    avatar_url: Optional[str] = None
    email_verified: bool
    created_at: datetime
    updated_at: datetime


class TokenClaims(BaseModel):
    sub: str
    email: str
    role: AccountRole
    typ: Literal["access", "refresh"]
    iss: str
    iat: int
    exp: int
    jti: str


class ResetTokenClaims(BaseModel):
    sub: str
    email: str
    purpose: Literal["password-reset"]


class FederatedClaims(BaseModel):
    """Identity asserted by an external provider after signature verification."""

    subject_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
