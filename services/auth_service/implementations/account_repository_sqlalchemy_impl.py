from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from techvault_service_libs.logging_utils import create_service_logger

from services.auth_service.domain_models import Account, AccountCreate, normalize_email
from services.auth_service.models_db import AccountRecord
from services.auth_service.protocols import AccountConflictError, AccountRepository

logger = create_service_logger("auth_service.repository")


class SqlAlchemyAccountRepository(AccountRepository):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def find_by_email(self, email: str) -> Optional[Account]:
        async with self._session_factory() as session:
            stmt = select(AccountRecord).where(AccountRecord.email == normalize_email(email))
            res = await session.execute(stmt)
            record = res.scalar_one_or_none()
            return Account.model_validate(record) if record else None

    async def find_by_id(self, account_id: str) -> Optional[Account]:
        async with self._session_factory() as session:
            record = await session.get(AccountRecord, account_id)
            return Account.model_validate(record) if record else None

    async def insert(self, account: AccountCreate) -> Account:
        now = datetime.now(UTC)
        async with self._session_factory() as session:
            record = AccountRecord(**account.model_dump(), created_at=now, updated_at=now)
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _conflict_from(e, account.email, account.federated_subject_id) from e
            return Account.model_validate(record)

    async def update(
        self,
        account_id: str,
        fields: dict[str, Any],
        expected: Optional[dict[str, Any]] = None,
    ) -> Optional[Account]:
        stmt = update(AccountRecord).where(AccountRecord.id == account_id)
        for column_name, value in (expected or {}).items():
            column = getattr(AccountRecord, column_name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        stmt = stmt.values(**fields, updated_at=datetime.now(UTC)).execution_options(
            synchronize_session=False
        )

        async with self._session_factory() as session:
            try:
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    await session.rollback()
                    logger.debug(
                        "Conditional account update matched no rows",
                        extra={"account_id": account_id, "expected": list((expected or {}).keys())},
                    )
                    return None
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise _conflict_from(
                    e, fields.get("email", ""), fields.get("federated_subject_id")
                ) from e

            record = await session.get(AccountRecord, account_id)
            return Account.model_validate(record) if record else None


def _conflict_from(
    error: IntegrityError, email: str, federated_subject_id: Optional[str]
) -> AccountConflictError:
    if federated_subject_id and "federated_subject_id" in str(error.orig):
        return AccountConflictError("federated_subject_id", federated_subject_id)
    return AccountConflictError("email", email)
