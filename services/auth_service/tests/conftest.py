"""Shared fixtures for Auth Service tests."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from pydantic import SecretStr

from services.auth_service.config import Settings
from services.auth_service.domain_handlers.authentication_handler import AuthenticationHandler
from services.auth_service.domain_handlers.federated_login_handler import FederatedLoginHandler
from services.auth_service.domain_handlers.password_reset_handler import PasswordResetHandler
from services.auth_service.domain_handlers.profile_handler import ProfileHandler
from services.auth_service.domain_handlers.registration_handler import RegistrationHandler
from services.auth_service.domain_handlers.verification_handler import VerificationHandler
from services.auth_service.identity_service import IdentityService
from services.auth_service.implementations.mock_account_repository import MockAccountRepository
from services.auth_service.implementations.otp_generator_impl import SecretsOtpGenerator
from services.auth_service.implementations.password_hasher_impl import Argon2idPasswordHasher
from services.auth_service.implementations.token_issuer_impl import JwtTokenIssuer
from services.auth_service.protocols import FederatedIdentityVerifier, NotificationDispatcher

FRONTEND_URL = "https://shop.example.test"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        JWT_ACCESS_SECRET=SecretStr("test-access-secret-0123456789abcdefghij"),
        JWT_REFRESH_SECRET=SecretStr("test-refresh-secret-0123456789abcdefghij"),
        JWT_ISSUER="techvault-auth-tests",
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        FRONTEND_URL=FRONTEND_URL,
        PASSWORD_HASH_TIME_COST=1,
        PASSWORD_HASH_MEMORY_COST=1024,
        PASSWORD_HASH_PARALLELISM=1,
    )


@pytest.fixture
def correlation_id() -> UUID:
    return uuid4()


@pytest.fixture
def password_hasher() -> Argon2idPasswordHasher:
    # Minimal cost keeps the suite fast
    return Argon2idPasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def token_issuer(settings: Settings) -> JwtTokenIssuer:
    return JwtTokenIssuer(settings)


@pytest.fixture
def otp_generator() -> SecretsOtpGenerator:
    return SecretsOtpGenerator()


@pytest.fixture
def repository() -> MockAccountRepository:
    return MockAccountRepository()


@pytest.fixture
def notifications() -> AsyncMock:
    return AsyncMock(spec=NotificationDispatcher)


@pytest.fixture
def federated_verifier() -> AsyncMock:
    return AsyncMock(spec=FederatedIdentityVerifier)


@pytest.fixture
def identity_service(
    repository: MockAccountRepository,
    password_hasher: Argon2idPasswordHasher,
    token_issuer: JwtTokenIssuer,
    otp_generator: SecretsOtpGenerator,
    notifications: AsyncMock,
    federated_verifier: AsyncMock,
) -> IdentityService:
    """IdentityService over the in-memory repository with a mocked email dispatcher."""
    return IdentityService(
        registration=RegistrationHandler(repository, password_hasher, otp_generator, notifications),
        authentication=AuthenticationHandler(repository, password_hasher, token_issuer),
        verification=VerificationHandler(repository, otp_generator, notifications),
        password_reset=PasswordResetHandler(
            repository, password_hasher, token_issuer, notifications, frontend_url=FRONTEND_URL
        ),
        federated_login=FederatedLoginHandler(
            repository, password_hasher, token_issuer, federated_verifier
        ),
        profile=ProfileHandler(repository, password_hasher),
    )


@pytest.fixture
def last_sent_code(notifications: AsyncMock) -> Callable[[], str]:
    """Return the OTP passed to the most recent send_verification_code call."""

    def _last_code() -> str:
        return notifications.send_verification_code.call_args.args[2]

    return _last_code
