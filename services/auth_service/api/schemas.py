from __future__ import annotations

from pydantic import BaseModel

from services.auth_service.domain_models import AccountResponse


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int


class RegisterResponse(BaseModel):
    account: AccountResponse
    message: str


class LoginResponse(BaseModel):
    account: AccountResponse
    tokens: TokenPair


class MessageResponse(BaseModel):
    message: str
