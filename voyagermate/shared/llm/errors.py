"""
Error taxonomy for completion calls.

Every failure of the completion port is one of these types so callers can
tell a transport problem from a malformed reply or a refusal.
"""

from typing import Optional


class CompletionError(Exception):
    """Base class for failures of a single completion call."""

    pass


class TransportError(CompletionError):
    """The completion call could not be completed (network or service failure)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(CompletionError):
    """A reply was returned but did not conform to the requested schema."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class RefusalError(CompletionError):
    """The service declined to answer (refusal or content filter)."""

    pass


class ToolLoopError(CompletionError):
    """The model kept requesting tools past the allowed number of round-trips."""

    pass


class ConfigurationError(ValueError):
    """Required client configuration (endpoint, credentials) is missing."""

    pass
