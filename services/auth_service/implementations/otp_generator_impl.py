from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta

from services.auth_service.config import OTP_LIFETIME
from services.auth_service.protocols import OtpGenerator


class SecretsOtpGenerator(OtpGenerator):
    """Six-digit verification codes from the OS CSPRNG."""

    def __init__(self, lifetime: timedelta = OTP_LIFETIME) -> None:
        self._lifetime = lifetime

    def generate(self) -> tuple[str, datetime]:
        code = str(100000 + secrets.randbelow(900000))
        return code, datetime.now(UTC) + self._lifetime
