from __future__ import annotations

import asyncio
from typing import Any, Optional
from uuid import UUID

from techvault_service_libs.error_handling import raise_account_not_found
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.domain_models import AccountResponse
from services.auth_service.protocols import AccountRepository, PasswordHasher

logger = create_service_logger("auth_service.domain_handlers.profile")


class ProfileHandler:
    def __init__(self, repository: AccountRepository, password_hasher: PasswordHasher) -> None:
        self._repository = repository
        self._password_hasher = password_hasher

    async def get_profile(self, account_id: str, correlation_id: UUID) -> AccountResponse:
        account = await self._repository.find_by_id(account_id)
        if account is None:
            raise_account_not_found(
                service="auth_service",
                operation="get_profile",
                correlation_id=correlation_id,
                account_id=account_id,
            )
        return account.to_response()

    async def update_profile(
        self,
        account_id: str,
        correlation_id: UUID,
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        password: Optional[str] = None,
    ) -> AccountResponse:
        """Update display name, avatar and/or password.

        A password change replaces the credential hash, which also invalidates
        any outstanding reset links.
        """
        fields: dict[str, Any] = {}
        if display_name is not None:
            fields["display_name"] = display_name
        if avatar_url is not None:
            fields["avatar_url"] = avatar_url
        if password:
            fields["credential_hash"] = await asyncio.to_thread(
                self._password_hasher.hash, password
            )

        if not fields:
            return await self.get_profile(account_id, correlation_id)

        updated = await self._repository.update(account_id, fields)
        if updated is None:
            raise_account_not_found(
                service="auth_service",
                operation="update_profile",
                correlation_id=correlation_id,
                account_id=account_id,
            )

        logger.info(
            "Profile updated",
            extra={
                "account_id": account_id,
                "fields": sorted(fields.keys()),
                "correlation_id": str(correlation_id),
            },
        )
        return updated.to_response()
