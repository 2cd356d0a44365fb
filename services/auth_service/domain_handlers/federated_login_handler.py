"""Federated (third-party identity) login domain handler for Auth Service.

A verified external identity is trusted to prove control of its email.
Unknown emails are provisioned as verified accounts. An existing account
that is not yet linked is linked silently when auto-linking is enabled;
linking never changes the credential, role or display name.
"""

from __future__ import annotations

import asyncio
import secrets
from typing import Optional
from uuid import UUID

from techvault_common.identity_enums import AccountRole, IdentityProvider
from techvault_service_libs.error_handling import (
    raise_configuration_error,
    raise_federated_identity_conflict,
    raise_federated_identity_invalid,
    raise_federated_link_requires_confirmation,
)
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.api.schemas import LoginResponse
from services.auth_service.domain_models import (
    Account,
    AccountCreate,
    FederatedClaims,
    normalize_email,
)
from services.auth_service.metrics import AUTHENTICATION_ATTEMPTS, FEDERATED_LOGINS
from services.auth_service.protocols import (
    AccountConflictError,
    AccountRepository,
    FederatedIdentityVerifier,
    FederatedVerificationError,
    PasswordHasher,
    TokenIssuer,
)

logger = create_service_logger("auth_service.domain_handlers.federated_login")

DEFAULT_FEDERATED_NAME = "Federated User"


class FederatedLoginHandler:
    def __init__(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        verifier: Optional[FederatedIdentityVerifier],
        auto_link: bool = True,
    ) -> None:
        self._repository = repository
        self._password_hasher = password_hasher
        self._token_issuer = token_issuer
        self._verifier = verifier
        self._auto_link = auto_link

    async def login(self, external_token: str, correlation_id: UUID) -> LoginResponse:
        """Sign in with an external identity token, provisioning or linking as needed.

        Raises:
            TechVaultError: CONFIGURATION_ERROR when no verifier is configured,
                FEDERATED_IDENTITY_INVALID when the token is rejected or has no email,
                FEDERATED_LINK_REQUIRES_CONFIRMATION when auto-linking is disabled,
                FEDERATED_IDENTITY_CONFLICT when the identity is bound to another account
        """
        if self._verifier is None:
            raise_configuration_error(
                service="auth_service",
                operation="login_with_federated_identity",
                config_key="GOOGLE_CLIENT_ID",
                message="Federated sign-in is not configured",
                correlation_id=correlation_id,
            )

        try:
            claims = await self._verifier.verify(external_token)
        except FederatedVerificationError as e:
            AUTHENTICATION_ATTEMPTS.labels(
                method="federated", status="failure", failure_reason=e.code
            ).inc()
            raise_federated_identity_invalid(
                service="auth_service",
                operation="login_with_federated_identity",
                message=e.reason,
                correlation_id=correlation_id,
                verifier_code=e.code,
            )

        if not claims.email:
            AUTHENTICATION_ATTEMPTS.labels(
                method="federated", status="failure", failure_reason="missing_email"
            ).inc()
            raise_federated_identity_invalid(
                service="auth_service",
                operation="login_with_federated_identity",
                message="Invalid federated token payload",
                correlation_id=correlation_id,
                verifier_code="missing_email",
            )

        email = normalize_email(claims.email)
        account = await self._repository.find_by_email(email)
        if account is None:
            account = await self._provision(email, claims, correlation_id)
        elif account.federated_subject_id is None:
            account = await self._link(account, claims, correlation_id)
        else:
            if account.federated_subject_id != claims.subject_id:
                logger.warning(
                    "Federated subject differs from the one linked to this account",
                    extra={"account_id": account.id, "correlation_id": str(correlation_id)},
                )
            FEDERATED_LOGINS.labels(branch="existing").inc()

        tokens = self._token_issuer.issue_token_pair(account)
        AUTHENTICATION_ATTEMPTS.labels(
            method="federated", status="success", failure_reason=""
        ).inc()
        logger.info(
            "Federated login succeeded",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return LoginResponse(account=account.to_response(), tokens=tokens)

    async def _provision(
        self, email: str, claims: FederatedClaims, correlation_id: UUID
    ) -> Account:
        # Federated accounts still hold a random, never disclosed credential hash
        credential_hash = await asyncio.to_thread(
            self._password_hasher.hash, secrets.token_urlsafe(32)
        )
        try:
            account = await self._repository.insert(
                AccountCreate(
                    display_name=claims.name or DEFAULT_FEDERATED_NAME,
                    email=email,
                    credential_hash=credential_hash,
                    role=AccountRole.USER,
                    identity_provider=IdentityProvider.FEDERATED,
                    federated_subject_id=claims.subject_id,
                    avatar_url=claims.avatar_url,
                    email_verified=True,
                )
            )
        except AccountConflictError as e:
            existing = await self._repository.find_by_email(email)
            if e.field == "federated_subject_id" or existing is None:
                raise_federated_identity_conflict(
                    service="auth_service",
                    operation="login_with_federated_identity",
                    message="This federated identity is already linked to another account",
                    correlation_id=correlation_id,
                )
            if existing.federated_subject_id is None:
                return await self._link(existing, claims, correlation_id)
            FEDERATED_LOGINS.labels(branch="existing").inc()
            return existing

        FEDERATED_LOGINS.labels(branch="provisioned").inc()
        logger.info(
            "Account provisioned from federated identity",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return account

    async def _link(
        self, account: Account, claims: FederatedClaims, correlation_id: UUID
    ) -> Account:
        if not self._auto_link:
            raise_federated_link_requires_confirmation(
                service="auth_service",
                operation="login_with_federated_identity",
                correlation_id=correlation_id,
            )

        fields = {
            "federated_subject_id": claims.subject_id,
            "identity_provider": IdentityProvider.FEDERATED,
            "email_verified": True,
            "pending_verification_code": None,
            "pending_verification_expiry": None,
        }
        if claims.avatar_url:
            fields["avatar_url"] = claims.avatar_url

        try:
            linked = await self._repository.update(
                account.id, fields, expected={"federated_subject_id": None}
            )
        except AccountConflictError:
            raise_federated_identity_conflict(
                service="auth_service",
                operation="login_with_federated_identity",
                message="This federated identity is already linked to another account",
                correlation_id=correlation_id,
            )

        if linked is None:
            # Linked concurrently; log in with whatever is stored now
            current = await self._repository.find_by_id(account.id)
            FEDERATED_LOGINS.labels(branch="existing").inc()
            return current or account

        FEDERATED_LOGINS.labels(branch="linked").inc()
        logger.info(
            "Existing account linked to federated identity",
            extra={"account_id": account.id, "correlation_id": str(correlation_id)},
        )
        return linked
