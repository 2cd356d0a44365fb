"""Shared service utilities for TechVault services."""

from .logging_utils import bind_operation_context, configure_service_logging, create_service_logger

__all__ = ["bind_operation_context", "configure_service_logging", "create_service_logger"]
