"""Logging configuration and utilities."""

from voyagermate.shared.logging.config import setup_logging, log_workflow_event, StructuredFormatter
from voyagermate.shared.logging.debug_logger import (
    DebugLogger,
    get_or_create_logger,
    remove_logger,
    calculate_cost,
)

__all__ = [
    "setup_logging",
    "log_workflow_event",
    "StructuredFormatter",
    "DebugLogger",
    "get_or_create_logger",
    "remove_logger",
    "calculate_cost",
]
