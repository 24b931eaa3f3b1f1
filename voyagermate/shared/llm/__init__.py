"""LLM client utilities and the completion port."""

from voyagermate.shared.llm.client import get_cached_client
from voyagermate.shared.llm.completion import CompletionPort, OpenAICompletion, Tool
from voyagermate.shared.llm.errors import (
    CompletionError,
    ConfigurationError,
    DecodeError,
    RefusalError,
    ToolLoopError,
    TransportError,
)

__all__ = [
    "get_cached_client",
    "CompletionPort",
    "OpenAICompletion",
    "Tool",
    "CompletionError",
    "ConfigurationError",
    "DecodeError",
    "RefusalError",
    "ToolLoopError",
    "TransportError",
]
