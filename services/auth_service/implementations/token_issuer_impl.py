from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError
from pydantic import ValidationError

from services.auth_service.api.schemas import TokenPair
from services.auth_service.config import RESET_TOKEN_LIFETIME, Settings
from services.auth_service.domain_models import Account, ResetTokenClaims, TokenClaims
from services.auth_service.metrics import TOKEN_ISSUANCE
from services.auth_service.protocols import (
    TokenExpiredError,
    TokenIssuer,
    TokenVerificationError,
)

_ALGORITHM = "HS256"
_RESET_PURPOSE = "password-reset"


class JwtTokenIssuer(TokenIssuer):
    """HS256 issuer for access, refresh and password-reset tokens.

    Reset tokens are signed with the access secret concatenated with the
    account's current credential hash, so any password change invalidates
    every outstanding reset token for that account.
    """

    def __init__(self, settings: Settings) -> None:
        self._access_secret = settings.JWT_ACCESS_SECRET.get_secret_value()
        self._refresh_secret = settings.JWT_REFRESH_SECRET.get_secret_value()
        self._access_ttl = settings.JWT_ACCESS_TOKEN_EXPIRES_SECONDS
        self._refresh_ttl = settings.JWT_REFRESH_TOKEN_EXPIRES_SECONDS
        self._issuer = settings.JWT_ISSUER

    def issue_token_pair(self, account: Account) -> TokenPair:
        access_token = self._issue(account, "access", self._access_secret, self._access_ttl)
        refresh_token = self._issue(account, "refresh", self._refresh_secret, self._refresh_ttl)
        TOKEN_ISSUANCE.labels(token_type="access").inc()
        TOKEN_ISSUANCE.labels(token_type="refresh").inc()
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._access_ttl,
        )

    def verify_access_token(self, token: str) -> TokenClaims:
        return self._verify(token, self._access_secret, "access")

    def verify_refresh_token(self, token: str) -> TokenClaims:
        return self._verify(token, self._refresh_secret, "refresh")

    def issue_reset_token(self, account: Account) -> str:
        if account.credential_hash is None:
            raise ValueError("Cannot issue a reset token for an account without a credential")
        now = int(time.time())
        payload = {
            "sub": account.id,
            "email": account.email,
            "purpose": _RESET_PURPOSE,
            "iat": now,
            "exp": now + int(RESET_TOKEN_LIFETIME.total_seconds()),
        }
        TOKEN_ISSUANCE.labels(token_type="reset").inc()
        secret = self._reset_secret(account.credential_hash)
        return jwt.encode(payload, secret, algorithm=_ALGORITHM)

    def verify_reset_token(self, token: str, credential_hash: str) -> ResetTokenClaims:
        payload = self._decode(token, self._reset_secret(credential_hash), issuer=None)
        try:
            return ResetTokenClaims.model_validate(payload)
        except ValidationError as e:
            raise TokenVerificationError("Reset token claims are invalid") from e

    def _reset_secret(self, credential_hash: str) -> str:
        return self._access_secret + credential_hash

    def _issue(self, account: Account, typ: str, secret: str, ttl: int) -> str:
        now = int(time.time())
        payload = {
            "sub": account.id,
            "email": account.email,
            "role": account.role.value,
            "typ": typ,
            "iss": self._issuer,
            "iat": now,
            "exp": now + ttl,
            "jti": str(uuid4()),
        }
        return jwt.encode(payload, secret, algorithm=_ALGORITHM)

    def _verify(self, token: str, secret: str, typ: str) -> TokenClaims:
        payload = self._decode(token, secret, issuer=self._issuer)
        if payload.get("typ") != typ:
            raise TokenVerificationError(f"Expected a {typ} token")
        try:
            return TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise TokenVerificationError("Token claims are invalid") from e

    def _decode(self, token: str, secret: str, issuer: str | None) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[_ALGORITHM],
                issuer=issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except InvalidTokenError as e:
            raise TokenVerificationError(str(e)) from e
