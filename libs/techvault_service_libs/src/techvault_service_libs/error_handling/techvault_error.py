"""
Core exception type for the TechVault platform.

TechVaultError wraps an immutable ErrorDetail and is the single exception
type raised across service boundaries.
"""

from __future__ import annotations

from typing import Any

from techvault_common.error_enums import FAILURE_KIND_BY_CODE, FailureKind
from techvault_common.models.error_models import ErrorDetail


class TechVaultError(Exception):
    """Exception carrying a structured ErrorDetail."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        self.error_detail = error_detail
        super().__init__(f"[{error_detail.error_code.value}] {error_detail.message}")

    @property
    def error_code(self) -> str:
        return self.error_detail.error_code.value

    @property
    def message(self) -> str:
        return self.error_detail.message

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    @property
    def service(self) -> str:
        return self.error_detail.service

    @property
    def operation(self) -> str:
        return self.error_detail.operation

    @property
    def failure_kind(self) -> FailureKind:
        return FAILURE_KIND_BY_CODE[self.error_detail.error_code]

    @property
    def status_code(self) -> int:
        return self.failure_kind.status_code

    def add_detail(self, key: str, value: Any) -> TechVaultError:
        """Return a new error whose details include ``key``; the original is unchanged."""
        new_details = {**self.error_detail.details, key: value}
        return TechVaultError(self.error_detail.model_copy(update={"details": new_details}))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "error_detail": self.error_detail.model_dump(mode="json"),
        }

    def to_response(self) -> tuple[dict[str, Any], int]:
        """
        Build the client-facing error body and its HTTP status code.

        Stack traces and internal details never leave the service.
        """
        body = {
            "error": {
                "code": self.error_code,
                "kind": self.failure_kind.value,
                "message": self.message,
                "correlation_id": self.correlation_id,
            }
        }
        return body, self.status_code
