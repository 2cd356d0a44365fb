"""In-memory implementation of AccountRepository for tests and local development."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from services.auth_service.domain_models import Account, AccountCreate, normalize_email
from services.auth_service.protocols import AccountConflictError, AccountRepository


class MockAccountRepository(AccountRepository):
    """Dict-backed repository that enforces the same unique constraints as the database."""

    def __init__(self) -> None:
        self._store: Dict[str, Account] = {}
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> Optional[Account]:
        email = normalize_email(email)
        for account in self._store.values():
            if account.email == email:
                return account.model_copy()
        return None

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        account = self._store.get(account_id)
        return account.model_copy() if account else None

    async def insert(self, account: AccountCreate) -> Account:
        async with self._lock:
            self._check_unique(None, account.email, account.federated_subject_id)
            now = datetime.now(UTC)
            created = Account(
                id=str(uuid4()), created_at=now, updated_at=now, **account.model_dump()
            )
            self._store[created.id] = created
            return created.model_copy()

    async def update(
        self,
        account_id: str,
        fields: dict[str, Any],
        expected: Optional[dict[str, Any]] = None,
    ) -> Optional[Account]:
        async with self._lock:
            current = self._store.get(account_id)
            if current is None:
                return None
            for column, value in (expected or {}).items():
                if getattr(current, column) != value:
                    return None
            merged = {**current.model_dump(), **fields, "updated_at": datetime.now(UTC)}
            updated = Account.model_validate(merged)
            self._check_unique(account_id, updated.email, updated.federated_subject_id)
            self._store[account_id] = updated
            return updated.model_copy()

    def _check_unique(
        self, account_id: Optional[str], email: str, federated_subject_id: Optional[str]
    ) -> None:
        for other in self._store.values():
            if other.id == account_id:
                continue
            if other.email == email:
                raise AccountConflictError("email", email)
            if federated_subject_id and other.federated_subject_id == federated_subject_id:
                raise AccountConflictError("federated_subject_id", federated_subject_id)
