"""Authentication domain handler for Auth Service.

Covers password login, refresh-token rotation, access-token verification
and role authorization. Login failures for unknown emails and wrong
passwords share one message so callers cannot probe for accounts.
"""

from __future__ import annotations

import asyncio
from uuid import UUID

from techvault_common.identity_enums import AccountRole, LoginFailureReason
from techvault_service_libs.error_handling import (
    raise_email_not_verified,
    raise_insufficient_role,
    raise_invalid_credentials,
    raise_invalid_token,
)
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.api.schemas import LoginResponse, TokenPair
from services.auth_service.domain_models import TokenClaims, normalize_email
from services.auth_service.metrics import AUTHENTICATION_ATTEMPTS
from services.auth_service.protocols import (
    AccountRepository,
    PasswordHasher,
    TokenIssuer,
    TokenVerificationError,
)

logger = create_service_logger("auth_service.domain_handlers.authentication")


class AuthenticationHandler:
    def __init__(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
    ) -> None:
        self._repository = repository
        self._password_hasher = password_hasher
        self._token_issuer = token_issuer

    async def login(self, email: str, password: str, correlation_id: UUID) -> LoginResponse:
        """Exchange email and password for an access/refresh pair.

        Raises:
            TechVaultError: INVALID_CREDENTIALS for unknown email or wrong password,
                EMAIL_NOT_VERIFIED when the password is right but the email is unverified
        """
        account = await self._repository.find_by_email(normalize_email(email))
        if account is None or account.credential_hash is None:
            reason = (
                LoginFailureReason.USER_NOT_FOUND
                if account is None
                else LoginFailureReason.NO_CREDENTIAL
            )
            self._record_failure(reason, correlation_id)
            raise_invalid_credentials(
                service="auth_service",
                operation="login",
                correlation_id=correlation_id,
            )

        password_ok = await asyncio.to_thread(
            self._password_hasher.verify, account.credential_hash, password
        )
        if not password_ok:
            self._record_failure(LoginFailureReason.INVALID_PASSWORD, correlation_id)
            raise_invalid_credentials(
                service="auth_service",
                operation="login",
                correlation_id=correlation_id,
            )

        if not account.email_verified:
            self._record_failure(LoginFailureReason.EMAIL_UNVERIFIED, correlation_id)
            raise_email_not_verified(
                service="auth_service",
                operation="login",
                correlation_id=correlation_id,
            )

        tokens = self._token_issuer.issue_token_pair(account)
        AUTHENTICATION_ATTEMPTS.labels(
            method="password", status="success", failure_reason=""
        ).inc()
        logger.info(
            "Login succeeded",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return LoginResponse(account=account.to_response(), tokens=tokens)

    async def refresh(self, refresh_token: str, correlation_id: UUID) -> TokenPair:
        """Mint a new pair from the live account record, not from the old token's claims."""
        try:
            claims = self._token_issuer.verify_refresh_token(refresh_token)
        except TokenVerificationError as e:
            logger.info(
                "Refresh token rejected",
                extra={"reason": str(e), "correlation_id": str(correlation_id)},
            )
            raise_invalid_token(
                service="auth_service",
                operation="refresh",
                message="Invalid refresh token",
                correlation_id=correlation_id,
            )

        account = await self._repository.find_by_id(claims.sub)
        if account is None:
            raise_invalid_token(
                service="auth_service",
                operation="refresh",
                message="User no longer exists",
                correlation_id=correlation_id,
                account_id=claims.sub,
            )

        return self._token_issuer.issue_token_pair(account)

    def authenticate(self, access_token: str | None, correlation_id: UUID) -> TokenClaims:
        if not access_token:
            raise_invalid_token(
                service="auth_service",
                operation="authenticate",
                message="No token provided",
                correlation_id=correlation_id,
            )
        try:
            return self._token_issuer.verify_access_token(access_token)
        except TokenVerificationError:
            raise_invalid_token(
                service="auth_service",
                operation="authenticate",
                message="Invalid or expired token",
                correlation_id=correlation_id,
            )

    def authorize(
        self, claims: TokenClaims, roles: tuple[AccountRole, ...], correlation_id: UUID
    ) -> None:
        """Allow the call only if the caller's role is one of ``roles``."""
        if claims.role not in roles:
            logger.info(
                "Authorization denied",
                extra={
                    "account_id": claims.sub,
                    "role": claims.role.value,
                    "required": [role.value for role in roles],
                    "correlation_id": str(correlation_id),
                },
            )
            raise_insufficient_role(
                service="auth_service",
                operation="authorize",
                correlation_id=correlation_id,
                role=claims.role.value,
            )

    def _record_failure(self, reason: LoginFailureReason, correlation_id: UUID) -> None:
        AUTHENTICATION_ATTEMPTS.labels(
            method="password", status="failure", failure_reason=reason.value
        ).inc()
        logger.info(
            "Login failed",
            extra={"failure_reason": reason.value, "correlation_id": str(correlation_id)},
        )
