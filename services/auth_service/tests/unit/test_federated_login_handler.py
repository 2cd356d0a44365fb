"""Unit tests for FederatedLoginHandler provisioning, linking and failure paths."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from techvault_common.error_enums import ErrorCode, IdentityErrorCode
from techvault_common.identity_enums import AccountRole, IdentityProvider
from techvault_service_libs.error_handling import TechVaultError

from services.auth_service.domain_handlers.federated_login_handler import (
    DEFAULT_FEDERATED_NAME,
    FederatedLoginHandler,
)
from services.auth_service.domain_models import AccountCreate, FederatedClaims
from services.auth_service.implementations.mock_account_repository import MockAccountRepository
from services.auth_service.implementations.password_hasher_impl import Argon2idPasswordHasher
from services.auth_service.implementations.token_issuer_impl import JwtTokenIssuer
from services.auth_service.protocols import (
    AccountConflictError,
    AccountRepository,
    FederatedVerificationError,
)

SUBJECT = "google-sub-123"


@pytest.fixture
def handler(
    repository: MockAccountRepository,
    password_hasher: Argon2idPasswordHasher,
    token_issuer: JwtTokenIssuer,
    federated_verifier: AsyncMock,
) -> FederatedLoginHandler:
    return FederatedLoginHandler(repository, password_hasher, token_issuer, federated_verifier)


def _claims(**overrides) -> FederatedClaims:
    values = {
        "subject_id": SUBJECT,
        "email": "Ana@X.com",
        "name": "Ana Google",
        "avatar_url": "https://img.example/ana.png",
    }
    values.update(overrides)
    return FederatedClaims(**values)


class TestProvisioning:
    async def test_unknown_email_creates_verified_federated_account(
        self,
        handler: FederatedLoginHandler,
        repository: MockAccountRepository,
        federated_verifier: AsyncMock,
        token_issuer: JwtTokenIssuer,
        correlation_id: UUID,
    ) -> None:
        federated_verifier.verify.return_value = _claims()

        response = await handler.login("google-id-token", correlation_id)

        federated_verifier.verify.assert_awaited_once_with("google-id-token")
        stored = await repository.find_by_email("ana@x.com")
        assert stored is not None
        assert stored.email_verified is True
        assert stored.identity_provider is IdentityProvider.FEDERATED
        assert stored.federated_subject_id == SUBJECT
        assert stored.display_name == "Ana Google"
        assert stored.avatar_url == "https://img.example/ana.png"
        assert stored.role is AccountRole.USER
        assert stored.credential_hash is not None
        assert response.account.id == stored.id
        assert token_issuer.verify_access_token(response.tokens.access_token).sub == stored.id

    async def test_missing_name_uses_default(
        self,
        handler: FederatedLoginHandler,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        federated_verifier.verify.return_value = _claims(name=None)

        response = await handler.login("token", correlation_id)

        assert response.account.display_name == DEFAULT_FEDERATED_NAME

    async def test_subject_bound_elsewhere_is_conflict(
        self,
        password_hasher: Argon2idPasswordHasher,
        token_issuer: JwtTokenIssuer,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        federated_verifier.verify.return_value = _claims()
        repository = AsyncMock(spec=AccountRepository)
        repository.find_by_email.return_value = None
        repository.insert.side_effect = AccountConflictError("federated_subject_id", SUBJECT)
        handler = FederatedLoginHandler(
            repository, password_hasher, token_issuer, federated_verifier
        )

        with pytest.raises(TechVaultError) as exc_info:
            await handler.login("token", correlation_id)

        assert exc_info.value.error_code == IdentityErrorCode.FEDERATED_IDENTITY_CONFLICT.value
        assert exc_info.value.status_code == 409


class TestLinking:
    async def test_existing_account_is_linked_without_touching_credential(
        self,
        handler: FederatedLoginHandler,
        repository: MockAccountRepository,
        password_hasher: Argon2idPasswordHasher,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        existing = await repository.insert(
            AccountCreate(
                display_name="Ana",
                email="ana@x.com",
                credential_hash=password_hasher.hash("Secret1!"),
                role=AccountRole.SELLER,
                pending_verification_code="111111",
                pending_verification_expiry=datetime.now(UTC) + timedelta(minutes=10),
            )
        )
        federated_verifier.verify.return_value = _claims()

        response = await handler.login("token", correlation_id)

        stored = await repository.find_by_id(existing.id)
        assert stored is not None
        assert stored.credential_hash == existing.credential_hash
        assert stored.display_name == "Ana"
        assert stored.role is AccountRole.SELLER
        assert stored.federated_subject_id == SUBJECT
        assert stored.identity_provider is IdentityProvider.FEDERATED
        assert stored.email_verified is True
        assert stored.pending_verification_code is None
        assert stored.avatar_url == "https://img.example/ana.png"
        assert response.account.id == existing.id

    async def test_linking_disabled_requires_confirmation(
        self,
        repository: MockAccountRepository,
        password_hasher: Argon2idPasswordHasher,
        token_issuer: JwtTokenIssuer,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        existing = await repository.insert(
            AccountCreate(display_name="Ana", email="ana@x.com", credential_hash="hash")
        )
        federated_verifier.verify.return_value = _claims()
        handler = FederatedLoginHandler(
            repository, password_hasher, token_issuer, federated_verifier, auto_link=False
        )

        with pytest.raises(TechVaultError) as exc_info:
            await handler.login("token", correlation_id)

        assert (
            exc_info.value.error_code
            == IdentityErrorCode.FEDERATED_LINK_REQUIRES_CONFIRMATION.value
        )
        stored = await repository.find_by_id(existing.id)
        assert stored is not None
        assert stored.federated_subject_id is None

    async def test_already_linked_account_logs_in_unchanged(
        self,
        handler: FederatedLoginHandler,
        repository: MockAccountRepository,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        existing = await repository.insert(
            AccountCreate(
                display_name="Ana",
                email="ana@x.com",
                credential_hash="hash",
                identity_provider=IdentityProvider.FEDERATED,
                federated_subject_id="other-subject",
                email_verified=True,
            )
        )
        federated_verifier.verify.return_value = _claims()

        response = await handler.login("token", correlation_id)

        assert response.account.id == existing.id
        stored = await repository.find_by_id(existing.id)
        assert stored == existing


class TestVerifierFailures:
    async def test_rejected_token(
        self,
        handler: FederatedLoginHandler,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        federated_verifier.verify.side_effect = FederatedVerificationError(
            "Invalid Google token", "invalid_token"
        )

        with pytest.raises(TechVaultError) as exc_info:
            await handler.login("bad", correlation_id)

        assert exc_info.value.error_code == IdentityErrorCode.FEDERATED_IDENTITY_INVALID.value
        assert exc_info.value.message == "Invalid Google token"
        assert exc_info.value.status_code == 401

    async def test_payload_without_email(
        self,
        handler: FederatedLoginHandler,
        repository: MockAccountRepository,
        federated_verifier: AsyncMock,
        correlation_id: UUID,
    ) -> None:
        federated_verifier.verify.return_value = _claims(email=None)

        with pytest.raises(TechVaultError) as exc_info:
            await handler.login("token", correlation_id)

        assert exc_info.value.message == "Invalid federated token payload"
        assert await repository.find_by_email("ana@x.com") is None

    async def test_no_verifier_configured(
        self,
        repository: MockAccountRepository,
        password_hasher: Argon2idPasswordHasher,
        token_issuer: JwtTokenIssuer,
        correlation_id: UUID,
    ) -> None:
        handler = FederatedLoginHandler(repository, password_hasher, token_issuer, None)

        with pytest.raises(TechVaultError) as exc_info:
            await handler.login("token", correlation_id)

        assert exc_info.value.error_code == ErrorCode.CONFIGURATION_ERROR.value
        assert exc_info.value.status_code == 500
