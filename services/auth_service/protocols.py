from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from services.auth_service.api.schemas import TokenPair
from services.auth_service.domain_models import (
    Account,
    AccountCreate,
    FederatedClaims,
    ResetTokenClaims,
    TokenClaims,
)


class AccountConflictError(Exception):
    """A write would violate a unique constraint (email or federated subject id)."""

    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Account with {field}={value!r} already exists")


class TokenVerificationError(Exception):
    """Token signature, type, purpose or claim shape is invalid."""


class TokenExpiredError(TokenVerificationError):
    """Token was valid but its exp has passed."""


class FederatedVerificationError(Exception):
    """External identity token was rejected by the verifier."""

    def __init__(self, reason: str, code: str) -> None:
        self.reason = reason
        self.code = code
        super().__init__(reason)


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, hash: str, password: str) -> bool: ...


class TokenIssuer(Protocol):
    def issue_token_pair(self, account: Account) -> TokenPair: ...
    def verify_access_token(self, token: str) -> TokenClaims: ...
    def verify_refresh_token(self, token: str) -> TokenClaims: ...
    def issue_reset_token(self, account: Account) -> str: ...
    def verify_reset_token(self, token: str, credential_hash: str) -> ResetTokenClaims: ...


class OtpGenerator(Protocol):
    def generate(self) -> tuple[str, datetime]: ...  # code, expiry


class AccountRepository(Protocol):
    async def find_by_email(self, email: str) -> Optional[Account]: ...
    async def find_by_id(self, account_id: str) -> Optional[Account]: ...

    async def insert(self, account: AccountCreate) -> Account:
        """Insert a new account.

        Raises:
            AccountConflictError: If the email or federated subject id is taken
        """
        ...

    async def update(
        self,
        account_id: str,
        fields: dict[str, Any],
        expected: Optional[dict[str, Any]] = None,
    ) -> Optional[Account]:
        """Apply ``fields`` to an account and bump ``updated_at``.

        When ``expected`` is given the write only happens if every listed
        column still holds the given value.

        Returns:
            The updated account, or None if it does not exist or the
            precondition no longer holds

        Raises:
            AccountConflictError: If the update would violate a unique constraint
        """
        ...


class NotificationDispatcher(Protocol):
    async def send_verification_code(self, email: str, name: str, code: str) -> None: ...
    async def send_password_reset_link(self, email: str, name: str, url: str) -> None: ...


class FederatedIdentityVerifier(Protocol):
    async def verify(self, external_token: str) -> FederatedClaims:
        """Verify an external identity token.

        Raises:
            FederatedVerificationError: With a human-readable reason and a machine code
        """
        ...


class RenderedTemplate(BaseModel):
    subject: str
    html_content: str
    text_content: str


class TemplateRenderer(Protocol):
    async def render(self, template_id: str, variables: dict[str, str]) -> RenderedTemplate: ...
