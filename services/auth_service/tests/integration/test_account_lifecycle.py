"""
End-to-end account lifecycle through IdentityService.

Runs every handler against the in-memory repository and real hashing,
token and OTP implementations; only email delivery is mocked.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest
from techvault_common.error_enums import IdentityErrorCode
from techvault_common.identity_enums import IdentityProvider
from techvault_service_libs.error_handling import TechVaultError

from services.auth_service.domain_models import FederatedClaims
from services.auth_service.identity_service import IdentityService
from services.auth_service.implementations.mock_account_repository import MockAccountRepository


async def test_reregistration_before_verification_overwrites_pending_account(
    identity_service: IdentityService,
    repository: MockAccountRepository,
    last_sent_code: Callable[[], str],
) -> None:
    first = await identity_service.register("Ana", "ana@x.com", "Secret1!")

    second = await identity_service.register("Ana Maria", "ana@x.com", "Secret2!")

    assert second.account.id == first.account.id
    assert second.account.display_name == "Ana Maria"
    assert second.account.email_verified is False
    stored = await repository.find_by_email("ana@x.com")
    assert stored is not None
    assert stored.pending_verification_code == last_sent_code()
    assert stored.id == first.account.id
    assert stored.email_verified is False


async def test_login_requires_verified_email(
    identity_service: IdentityService, last_sent_code: Callable[[], str]
) -> None:
    await identity_service.register("Ana", "ana@x.com", "Secret1!")

    with pytest.raises(TechVaultError) as exc_info:
        await identity_service.login("ana@x.com", "Secret1!")
    assert exc_info.value.status_code == 403

    verified = await identity_service.verify_email("ana@x.com", last_sent_code())
    assert verified.message == "Email verified successfully"

    login = await identity_service.login("ana@x.com", "Secret1!")
    assert login.account.email_verified is True
    assert "credential_hash" not in login.account.model_dump()
    refreshed = await identity_service.refresh(login.tokens.refresh_token)
    assert identity_service.authenticate(refreshed.access_token).sub == login.account.id


async def test_reset_link_dies_when_password_changes_first(
    identity_service: IdentityService,
    notifications: AsyncMock,
    last_sent_code: Callable[[], str],
) -> None:
    registered = await identity_service.register("Ana", "ana@x.com", "Secret1!")
    await identity_service.verify_email("ana@x.com", last_sent_code())

    forgot = await identity_service.forgot_password("ana@x.com")
    assert forgot.message == (
        "If an account exists for this email, a password reset link has been sent."
    )
    url = notifications.send_password_reset_link.await_args.args[2]
    stale_token = parse_qs(urlparse(url).query)["token"][0]

    await identity_service.update_profile(registered.account.id, password="Other3!")

    with pytest.raises(TechVaultError) as exc_info:
        await identity_service.reset_password("ana@x.com", stale_token, "New1!")
    assert exc_info.value.error_code == IdentityErrorCode.RESET_LINK_INVALID.value
    assert exc_info.value.status_code == 400

    login = await identity_service.login("ana@x.com", "Other3!")
    assert login.account.id == registered.account.id


async def test_federated_login_links_native_account_and_keeps_password(
    identity_service: IdentityService,
    repository: MockAccountRepository,
    federated_verifier: AsyncMock,
) -> None:
    registered = await identity_service.register("Ana", "ana@x.com", "Secret1!")
    before = await repository.find_by_id(registered.account.id)
    assert before is not None
    assert before.identity_provider is IdentityProvider.NATIVE
    federated_verifier.verify.return_value = FederatedClaims(
        subject_id="google-1", email="ana@x.com", name="Ana G"
    )

    federated = await identity_service.login_with_federated_identity("google-id-token")

    after = await repository.find_by_id(registered.account.id)
    assert after is not None
    assert after.federated_subject_id == "google-1"
    assert after.email_verified is True
    assert after.credential_hash == before.credential_hash
    assert federated.account.id == registered.account.id

    native = await identity_service.login("ana@x.com", "Secret1!")
    assert native.account.id == registered.account.id
