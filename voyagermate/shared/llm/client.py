"""
OpenAI / Azure OpenAI client with retry logic.

Provides a cached client instance and wrappers for chat completion calls
with automatic retries on transient failures using tenacity. SDK errors are
translated into the completion error taxonomy.
"""

import os
import threading
from typing import Any, Dict, List, Optional

import openai
from openai import AzureOpenAI, OpenAI
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from dotenv import load_dotenv

from voyagermate.shared.llm.errors import (
    ConfigurationError,
    DecodeError,
    RefusalError,
    TransportError,
)

load_dotenv()

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_AZURE_API_VERSION = "2024-10-21"

# Errors worth another attempt; everything else fails immediately
TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)

# Module-level cache for the client
_client: Optional[OpenAI] = None
_client_lock = threading.Lock()


def get_cached_client() -> OpenAI:
    """
    Returns a cached instance of the OpenAI client.

    Uses Azure OpenAI when AZURE_OPENAI_ENDPOINT is set (with
    AZURE_OPENAI_API_KEY and optional OPENAI_API_VERSION), otherwise the
    public OpenAI API with OPENAI_API_KEY. The client is created once and
    reused for all subsequent calls, including calls from worker threads.
    """
    global _client
    with _client_lock:
        if _client is None:
            endpoint = os.environ.get("AZURE_OPENAI_ENDPOINT")
            if endpoint:
                api_key = os.environ.get("AZURE_OPENAI_API_KEY")
                if not api_key:
                    raise ConfigurationError(
                        "AZURE_OPENAI_API_KEY environment variable is not set. "
                        "Please set it to your Azure OpenAI key."
                    )
                _client = AzureOpenAI(
                    api_key=api_key,
                    azure_endpoint=endpoint,
                    api_version=os.environ.get(
                        "OPENAI_API_VERSION", DEFAULT_AZURE_API_VERSION
                    ),
                )
            else:
                api_key = os.environ.get("OPENAI_API_KEY")
                if not api_key:
                    raise ConfigurationError(
                        "Neither AZURE_OPENAI_ENDPOINT nor OPENAI_API_KEY is set. "
                        "Please configure Azure OpenAI or OpenAI credentials."
                    )
                _client = OpenAI(api_key=api_key)
    return _client


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
)
def _create_with_retry(client: OpenAI, **kwargs: Any) -> Any:
    return client.chat.completions.create(**kwargs)


def create_chat_completion(
    messages: List[Dict[str, Any]],
    model: str = DEFAULT_MODEL,
    client: Optional[OpenAI] = None,
    tools: Optional[List[Dict[str, Any]]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """
    Call the Chat Completion API with automatic retries.

    Args:
        messages: List of message dicts with 'role' and 'content' keys
        model: Model (or Azure deployment) identifier
        client: Optional client instance. If not provided, uses cached client.
        tools: Optional function tool definitions in OpenAI format
        timeout: Optional per-request timeout in seconds

    Returns:
        The raw ChatCompletion response.

    Raises:
        TransportError: If the request fails after all retry attempts.
        RefusalError: If the request was rejected by a content filter.
    """
    if client is None:
        client = get_cached_client()

    kwargs: Dict[str, Any] = {"model": model, "messages": messages}
    if tools:
        kwargs["tools"] = tools
    if timeout is not None:
        kwargs["timeout"] = timeout

    try:
        return _create_with_retry(client, **kwargs)
    except openai.BadRequestError as e:
        if e.code == "content_filter":
            raise RefusalError(f"Request blocked by content filter: {e.message}") from e
        raise TransportError(
            f"Chat completion rejected with HTTP {e.status_code}: {e.message}",
            status_code=e.status_code,
        ) from e
    except openai.APIStatusError as e:
        raise TransportError(
            f"Chat completion failed with HTTP {e.status_code}: {e.message}",
            status_code=e.status_code,
        ) from e
    except openai.APIError as e:
        raise TransportError(f"Chat completion request failed: {e}") from e


def extract_reply(response: Any) -> str:
    """
    Extract the assistant's text from a ChatCompletion response.

    Raises:
        RefusalError: If the model refused or the reply was filtered.
        DecodeError: If the reply carries no text content.
    """
    choice = response.choices[0]
    message = choice.message

    refusal = getattr(message, "refusal", None)
    if refusal:
        raise RefusalError(f"Model declined to answer: {refusal}")
    if choice.finish_reason == "content_filter":
        raise RefusalError("Reply was withheld by the content filter")
    if message.content is None:
        raise DecodeError("Completion returned no message content")

    return message.content.strip()


def usage_of(response: Any) -> Dict[str, int]:
    """Token usage of a response, zeroed when the service did not report it."""
    usage = getattr(response, "usage", None)
    if usage is None:
        return {"input_tokens": 0, "output_tokens": 0, "total_tokens": 0}
    return {
        "input_tokens": usage.prompt_tokens,
        "output_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }
