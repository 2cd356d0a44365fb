"""Public entry point of the Auth Service.

``IdentityService`` composes the domain handlers and exposes one coroutine per
operation. Every operation binds its correlation id into the log context and
either returns a response model or raises ``TechVaultError``. Failures from
collaborators that are not already typed surface as internal errors.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar
from uuid import UUID, uuid4

from techvault_common.identity_enums import AccountRole
from techvault_service_libs.error_handling import (
    TechVaultError,
    raise_external_service_error,
    raise_timeout_error,
)
from techvault_service_libs.logging_utils import bind_operation_context, create_service_logger

from services.auth_service.api.schemas import (
    LoginResponse,
    MessageResponse,
    RegisterResponse,
    TokenPair,
)
from services.auth_service.domain_handlers.authentication_handler import AuthenticationHandler
from services.auth_service.domain_handlers.federated_login_handler import FederatedLoginHandler
from services.auth_service.domain_handlers.password_reset_handler import PasswordResetHandler
from services.auth_service.domain_handlers.profile_handler import ProfileHandler
from services.auth_service.domain_handlers.registration_handler import RegistrationHandler
from services.auth_service.domain_handlers.verification_handler import VerificationHandler
from services.auth_service.domain_models import AccountResponse, TokenClaims

logger = create_service_logger("auth_service.identity_service")

T = TypeVar("T")


class IdentityService:
    def __init__(
        self,
        registration: RegistrationHandler,
        authentication: AuthenticationHandler,
        verification: VerificationHandler,
        password_reset: PasswordResetHandler,
        federated_login: FederatedLoginHandler,
        profile: ProfileHandler,
    ) -> None:
        self._registration = registration
        self._authentication = authentication
        self._verification = verification
        self._password_reset = password_reset
        self._federated_login = federated_login
        self._profile = profile

    async def register(
        self, name: str, email: str, password: str, correlation_id: Optional[UUID] = None
    ) -> RegisterResponse:
        return await self._run(
            "register",
            correlation_id,
            lambda cid: self._registration.register(name, email, password, cid),
        )

    async def login(
        self, email: str, password: str, correlation_id: Optional[UUID] = None
    ) -> LoginResponse:
        return await self._run(
            "login", correlation_id, lambda cid: self._authentication.login(email, password, cid)
        )

    async def refresh(self, refresh_token: str, correlation_id: Optional[UUID] = None) -> TokenPair:
        return await self._run(
            "refresh", correlation_id, lambda cid: self._authentication.refresh(refresh_token, cid)
        )

    async def get_profile(
        self, account_id: str, correlation_id: Optional[UUID] = None
    ) -> AccountResponse:
        return await self._run(
            "get_profile", correlation_id, lambda cid: self._profile.get_profile(account_id, cid)
        )

    async def update_profile(
        self,
        account_id: str,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        password: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AccountResponse:
        return await self._run(
            "update_profile",
            correlation_id,
            lambda cid: self._profile.update_profile(
                account_id,
                cid,
                display_name=display_name,
                avatar_url=avatar_url,
                password=password,
            ),
        )

    async def login_with_federated_identity(
        self, external_token: str, correlation_id: Optional[UUID] = None
    ) -> LoginResponse:
        return await self._run(
            "login_with_federated_identity",
            correlation_id,
            lambda cid: self._federated_login.login(external_token, cid),
        )

    async def forgot_password(
        self, email: str, correlation_id: Optional[UUID] = None
    ) -> MessageResponse:
        return await self._run(
            "forgot_password",
            correlation_id,
            lambda cid: self._password_reset.forgot_password(email, cid),
        )

    async def reset_password(
        self, email: str, token: str, new_password: str, correlation_id: Optional[UUID] = None
    ) -> MessageResponse:
        return await self._run(
            "reset_password",
            correlation_id,
            lambda cid: self._password_reset.reset_password(email, token, new_password, cid),
        )

    async def verify_email(
        self, email: str, otp: str, correlation_id: Optional[UUID] = None
    ) -> MessageResponse:
        return await self._run(
            "verify_email",
            correlation_id,
            lambda cid: self._verification.verify_email(email, otp, cid),
        )

    async def resend_verification(
        self, email: str, correlation_id: Optional[UUID] = None
    ) -> MessageResponse:
        return await self._run(
            "resend_verification",
            correlation_id,
            lambda cid: self._verification.resend_verification(email, cid),
        )

    def authenticate(
        self, access_token: Optional[str], correlation_id: Optional[UUID] = None
    ) -> TokenClaims:
        correlation_id = correlation_id or uuid4()
        bind_operation_context("authenticate", correlation_id)
        return self._authentication.authenticate(access_token, correlation_id)

    def authorize(
        self,
        claims: TokenClaims,
        *roles: AccountRole,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or uuid4()
        bind_operation_context("authorize", correlation_id, account_id=claims.sub)
        self._authentication.authorize(claims, roles, correlation_id)

    async def _run(
        self,
        operation: str,
        correlation_id: Optional[UUID],
        call: Callable[[UUID], Awaitable[T]],
    ) -> T:
        correlation_id = correlation_id or uuid4()
        bind_operation_context(operation, correlation_id)
        try:
            return await call(correlation_id)
        except TechVaultError:
            raise
        except (TimeoutError, asyncio.TimeoutError) as e:
            logger.error("Collaborator timed out", extra={"error": str(e)}, exc_info=True)
            raise_timeout_error(
                service="auth_service",
                operation=operation,
                timeout_seconds=None,
                message="A dependency did not respond in time",
                correlation_id=correlation_id,
            )
        except Exception as e:
            logger.error(
                "Collaborator failed",
                extra={"error_type": type(e).__name__, "error": str(e)},
                exc_info=True,
            )
            raise_external_service_error(
                service="auth_service",
                operation=operation,
                external_service=type(e).__module__.split(".")[0],
                message="A dependency failed while processing the request",
                correlation_id=correlation_id,
                error_type=type(e).__name__,
            )
