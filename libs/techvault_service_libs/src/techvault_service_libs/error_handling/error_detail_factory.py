"""
Factory for ErrorDetail instances with automatic context capture.
"""

from __future__ import annotations

import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import UUID

from techvault_common.error_enums import ErrorCode, IdentityErrorCode
from techvault_common.models.error_models import ErrorDetail


def create_error_detail_with_context(
    error_code: Union[ErrorCode, IdentityErrorCode],
    message: str,
    service: str,
    operation: str,
    correlation_id: Optional[UUID] = None,
    details: Optional[dict[str, Any]] = None,
    capture_stack: bool = True,
) -> ErrorDetail:
    """
    Create an ErrorDetail, generating a correlation ID when none is supplied.

    Args:
        error_code: Platform or service specific error code
        message: Human readable message
        service: Name of the service raising the error
        operation: Operation that failed
        correlation_id: Request correlation ID
        details: Additional structured context
        capture_stack: Record the current stack in ``stack_trace``
    """
    stack_trace = None
    if capture_stack:
        stack_trace = "".join(traceback.format_stack()[:-1])

    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id or uuid.uuid4(),
        timestamp=datetime.now(timezone.utc),
        service=service,
        operation=operation,
        details=details or {},
        stack_trace=stack_trace,
    )
