"""SQLAlchemy models for Auth Service."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, String, func, text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from techvault_common.identity_enums import AccountRole, IdentityProvider


class Base(AsyncAttrs, DeclarativeBase):
    """Base class for all SQLAlchemy models in Auth Service."""

    pass


class AccountRecord(Base):
    """Accounts for authentication and authorization."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    credential_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[AccountRole] = mapped_column(
        SQLAlchemyEnum(
            AccountRole,
            name="account_role_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=AccountRole.USER,
    )
    identity_provider: Mapped[IdentityProvider] = mapped_column(
        SQLAlchemyEnum(
            IdentityProvider,
            name="identity_provider_enum",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=IdentityProvider.NATIVE,
    )
    federated_subject_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, nullable=True
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    pending_verification_code: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)
    pending_verification_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return (
            f"<AccountRecord id={self.id} email={self.email} role={self.role} "
            f"verified={self.email_verified}>"
        )
