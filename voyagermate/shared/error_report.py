"""
Operator-facing error reports.

Translates errors raised by workflows into a message, technical details and
suggested actions for the CLI and HTTP surfaces. Workflows never format
errors themselves.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from voyagermate.shared.llm.errors import (
    ConfigurationError,
    DecodeError,
    RefusalError,
    ToolLoopError,
    TransportError,
)


@dataclass(frozen=True)
class ErrorReport:
    """What went wrong, for the person running VoyagerMate."""

    kind: str
    user_message: str
    technical_details: str
    suggested_actions: str
    status_code: int = 500

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _transport_report(error: TransportError) -> ErrorReport:
    status = error.status_code
    details = str(error)

    if status is None:
        return ErrorReport(
            kind="network",
            user_message="Network Error: Unable to reach the OpenAI service",
            technical_details=details,
            suggested_actions="Check your internet connection and API endpoint configuration",
            status_code=502,
        )
    if status == 401:
        return ErrorReport(
            kind="authentication",
            user_message="Authentication Error: Invalid API key or credentials",
            technical_details=details,
            suggested_actions="Verify AZURE_OPENAI_API_KEY or OPENAI_API_KEY is set correctly",
            status_code=502,
        )
    if status == 403:
        return ErrorReport(
            kind="authorization",
            user_message="Authorization Error: Access forbidden",
            technical_details=details,
            suggested_actions="Check your deployment permissions and quotas",
            status_code=502,
        )
    if status == 404:
        return ErrorReport(
            kind="not_found",
            user_message="Resource Not Found: model deployment not found",
            technical_details=details,
            suggested_actions="Verify VOYAGERMATE_MODEL / AZURE_OPENAI_DEPLOYMENT and the endpoint",
            status_code=502,
        )
    if status == 429:
        if "quota" in details.lower():
            return ErrorReport(
                kind="quota_exceeded",
                user_message="Quota Exceeded: API quota has been reached",
                technical_details=details,
                suggested_actions="Check your usage and consider upgrading your tier",
                status_code=429,
            )
        return ErrorReport(
            kind="rate_limit",
            user_message="Rate Limit Exceeded: Too many API requests",
            technical_details=details,
            suggested_actions="Please wait a moment and try again",
            status_code=429,
        )
    if status == 400:
        return ErrorReport(
            kind="bad_request",
            user_message="Bad Request: The service rejected the request",
            technical_details=details,
            suggested_actions="Check the request parameters and prompt size",
            status_code=502,
        )
    if status in (502, 504):
        return ErrorReport(
            kind="gateway",
            user_message="Gateway Error: Connection issue with the OpenAI service",
            technical_details=details,
            suggested_actions="The service may be temporarily unavailable. Please retry",
            status_code=502,
        )
    if status == 503:
        return ErrorReport(
            kind="service_unavailable",
            user_message="Service Unavailable: The OpenAI service is temporarily down",
            technical_details=details,
            suggested_actions="Please wait and try again later",
            status_code=503,
        )
    return ErrorReport(
        kind="server",
        user_message="Server Error: The OpenAI service is experiencing issues",
        technical_details=details,
        suggested_actions="This is usually temporary. Please try again in a few moments",
        status_code=502,
    )


def describe_error(error: BaseException) -> ErrorReport:
    """
    Map an exception to an operator-facing report.

    Args:
        error: Exception raised by a workflow or surface

    Returns:
        ErrorReport describing the failure
    """
    # Imported here to keep shared free of workflow imports at module load
    from voyagermate.tools.experts import DelegationLimitError
    from voyagermate.workflows.fanout import FanOutTimeoutError

    if isinstance(error, TransportError):
        return _transport_report(error)
    if isinstance(error, RefusalError):
        return ErrorReport(
            kind="content_filter",
            user_message="Content Filtered: The request or reply was blocked",
            technical_details=str(error),
            suggested_actions="Rephrase the request and avoid sensitive content",
            status_code=422,
        )
    if isinstance(error, DecodeError):
        return ErrorReport(
            kind="response_format",
            user_message="Response Format Error: The model reply could not be understood",
            technical_details=str(error),
            suggested_actions="Try again; if it keeps happening, simplify the request",
            status_code=502,
        )
    if isinstance(error, (ToolLoopError, DelegationLimitError)):
        return ErrorReport(
            kind="model",
            user_message="Model Error: The agent did not finish delegating",
            technical_details=str(error),
            suggested_actions="Narrow the request so fewer expert consultations are needed",
            status_code=502,
        )
    if isinstance(error, (FanOutTimeoutError, TimeoutError)):
        return ErrorReport(
            kind="timeout",
            user_message="Timeout: The workflow took too long to complete",
            technical_details=str(error),
            suggested_actions="Try reducing your request size or raise VOYAGERMATE_FANOUT_TIMEOUT",
            status_code=504,
        )
    if isinstance(error, ConfigurationError):
        return ErrorReport(
            kind="configuration",
            user_message="Configuration Error: VoyagerMate is not configured",
            technical_details=str(error),
            suggested_actions="Set the Azure OpenAI or OpenAI environment variables (see .env)",
            status_code=500,
        )
    if isinstance(error, FileNotFoundError):
        return ErrorReport(
            kind="file",
            user_message="File Error: File not found",
            technical_details=str(error),
            suggested_actions="Check the path and try again",
            status_code=400,
        )
    if isinstance(error, OSError):
        return ErrorReport(
            kind="file",
            user_message="File Error: Unable to access file",
            technical_details=str(error),
            suggested_actions="Check file permissions and free disk space",
            status_code=500,
        )
    if isinstance(error, (ValidationError, ValueError)):
        return ErrorReport(
            kind="validation",
            user_message="Validation Error: Invalid input",
            technical_details=str(error),
            suggested_actions="Check the values provided (dates use YYYY-MM-DD)",
            status_code=400,
        )
    return ErrorReport(
        kind="unknown",
        user_message="Unexpected Error: Something went wrong",
        technical_details=f"{type(error).__name__}: {error}",
        suggested_actions="Re-run with --verbose and check the logs",
        status_code=500,
    )


def _value_or_fallback(value: Optional[str], fallback: str) -> str:
    return fallback if value is None or not value.strip() else value


def format_error_report(report: ErrorReport) -> str:
    """Render a report as 'message / Details / Guidance' lines."""
    return (
        f"{_value_or_fallback(report.user_message, 'Unhandled error')}\n"
        f"Details: {_value_or_fallback(report.technical_details, 'Not specified')}\n"
        f"Guidance: {_value_or_fallback(report.suggested_actions, 'Not specified')}"
    )
