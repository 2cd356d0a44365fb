"""Dishka DI configuration for Auth Service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Optional

from dishka import Provider, Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from services.auth_service.config import Settings, settings
from services.auth_service.domain_handlers.authentication_handler import AuthenticationHandler
from services.auth_service.domain_handlers.federated_login_handler import FederatedLoginHandler
from services.auth_service.domain_handlers.password_reset_handler import PasswordResetHandler
from services.auth_service.domain_handlers.profile_handler import ProfileHandler
from services.auth_service.domain_handlers.registration_handler import RegistrationHandler
from services.auth_service.domain_handlers.verification_handler import VerificationHandler
from services.auth_service.identity_service import IdentityService
from services.auth_service.implementations.account_repository_sqlalchemy_impl import (
    SqlAlchemyAccountRepository,
)
from services.auth_service.implementations.background_notification_dispatcher import (
    BackgroundNotificationDispatcher,
)
from services.auth_service.implementations.federated_verifier_google_impl import (
    GoogleIdentityVerifier,
)
from services.auth_service.implementations.notification_dispatcher_impl import (
    LoggingNotificationDispatcher,
    SmtpNotificationDispatcher,
)
from services.auth_service.implementations.otp_generator_impl import SecretsOtpGenerator
from services.auth_service.implementations.password_hasher_impl import Argon2idPasswordHasher
from services.auth_service.implementations.template_renderer_impl import JinjaTemplateRenderer
from services.auth_service.implementations.token_issuer_impl import JwtTokenIssuer
from services.auth_service.protocols import (
    AccountRepository,
    FederatedIdentityVerifier,
    NotificationDispatcher,
    OtpGenerator,
    PasswordHasher,
    TemplateRenderer,
    TokenIssuer,
)


def build_federated_verifier(settings: Settings) -> Optional[FederatedIdentityVerifier]:
    """Google verifier when a client id is configured, otherwise None."""
    if not settings.GOOGLE_CLIENT_ID:
        return None
    return GoogleIdentityVerifier(
        client_id=settings.GOOGLE_CLIENT_ID,
        clock_skew_seconds=settings.GOOGLE_CLOCK_SKEW_SECONDS,
    )


class CoreProvider(Provider):
    def __init__(self, service_settings: Settings | None = None) -> None:
        super().__init__()
        self._settings = service_settings or settings

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        return self._settings

    @provide(scope=Scope.APP)
    async def provide_database_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        engine = create_async_engine(settings.DATABASE_URL, echo=False)
        yield engine
        await engine.dispose()


class AuthImplementationsProvider(Provider):
    @provide(scope=Scope.APP)
    def provide_password_hasher(self, settings: Settings) -> PasswordHasher:
        return Argon2idPasswordHasher(
            time_cost=settings.PASSWORD_HASH_TIME_COST,
            memory_cost=settings.PASSWORD_HASH_MEMORY_COST,
            parallelism=settings.PASSWORD_HASH_PARALLELISM,
        )

    @provide(scope=Scope.APP)
    def provide_token_issuer(self, settings: Settings) -> TokenIssuer:
        return JwtTokenIssuer(settings)

    @provide(scope=Scope.APP)
    def provide_otp_generator(self) -> OtpGenerator:
        return SecretsOtpGenerator()

    @provide(scope=Scope.APP)
    def provide_account_repository(self, engine: AsyncEngine) -> AccountRepository:
        return SqlAlchemyAccountRepository(engine)

    @provide(scope=Scope.APP)
    def provide_template_renderer(self) -> TemplateRenderer:
        return JinjaTemplateRenderer()

    @provide(scope=Scope.APP)
    def provide_background_dispatcher(
        self, settings: Settings, renderer: TemplateRenderer
    ) -> BackgroundNotificationDispatcher:
        delegate: NotificationDispatcher
        if settings.EMAIL_PROVIDER == "smtp":
            delegate = SmtpNotificationDispatcher(settings, renderer)
        else:
            delegate = LoggingNotificationDispatcher()
        return BackgroundNotificationDispatcher(delegate)

    @provide(scope=Scope.APP)
    def provide_notification_dispatcher(
        self, dispatcher: BackgroundNotificationDispatcher
    ) -> NotificationDispatcher:
        return dispatcher


class DomainHandlerProvider(Provider):
    """Provider for domain handlers and the IdentityService facade.

    Handlers are stateless, so one instance per application is enough.
    """

    @provide(scope=Scope.APP)
    def provide_registration_handler(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        otp_generator: OtpGenerator,
        notifications: NotificationDispatcher,
    ) -> RegistrationHandler:
        return RegistrationHandler(repository, password_hasher, otp_generator, notifications)

    @provide(scope=Scope.APP)
    def provide_authentication_handler(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
    ) -> AuthenticationHandler:
        return AuthenticationHandler(repository, password_hasher, token_issuer)

    @provide(scope=Scope.APP)
    def provide_verification_handler(
        self,
        repository: AccountRepository,
        otp_generator: OtpGenerator,
        notifications: NotificationDispatcher,
    ) -> VerificationHandler:
        return VerificationHandler(repository, otp_generator, notifications)

    @provide(scope=Scope.APP)
    def provide_password_reset_handler(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        notifications: NotificationDispatcher,
        settings: Settings,
    ) -> PasswordResetHandler:
        return PasswordResetHandler(
            repository,
            password_hasher,
            token_issuer,
            notifications,
            frontend_url=settings.FRONTEND_URL,
        )

    @provide(scope=Scope.APP)
    def provide_federated_login_handler(
        self,
        repository: AccountRepository,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
        settings: Settings,
    ) -> FederatedLoginHandler:
        return FederatedLoginHandler(
            repository,
            password_hasher,
            token_issuer,
            verifier=build_federated_verifier(settings),
            auto_link=settings.FEDERATED_AUTO_LINK,
        )

    @provide(scope=Scope.APP)
    def provide_profile_handler(
        self, repository: AccountRepository, password_hasher: PasswordHasher
    ) -> ProfileHandler:
        return ProfileHandler(repository, password_hasher)

    @provide(scope=Scope.APP)
    def provide_identity_service(
        self,
        registration: RegistrationHandler,
        authentication: AuthenticationHandler,
        verification: VerificationHandler,
        password_reset: PasswordResetHandler,
        federated_login: FederatedLoginHandler,
        profile: ProfileHandler,
    ) -> IdentityService:
        return IdentityService(
            registration=registration,
            authentication=authentication,
            verification=verification,
            password_reset=password_reset,
            federated_login=federated_login,
            profile=profile,
        )
