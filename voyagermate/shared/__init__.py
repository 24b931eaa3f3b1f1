"""
Shared infrastructure for all workflows.

Modules:
- llm: OpenAI client with retry logic and the completion port
- logging: Structured JSON logging and per-run debug logs
- contracts: Trip context and workflow result models
- error_report: Operator-facing translation of errors
"""

from voyagermate.shared.llm.client import get_cached_client
from voyagermate.shared.logging.config import setup_logging, log_workflow_event

__all__ = [
    "get_cached_client",
    "setup_logging",
    "log_workflow_event",
]
