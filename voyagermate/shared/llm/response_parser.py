"""
Structured output decoding.

Handles turning a model reply into a validated pydantic model, including
JSON extraction from various formats (raw JSON, markdown code blocks, etc.).
"""

import json
import re
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from voyagermate.shared.llm.errors import DecodeError


T = TypeVar("T", bound=BaseModel)


def extract_json_from_response(raw_response: str) -> str:
    """
    Extract JSON content from an LLM response.

    Handles multiple formats:
    - Raw JSON
    - JSON in markdown code blocks (```json ... ```)
    - JSON with leading/trailing prose or whitespace

    Args:
        raw_response: Raw LLM response string

    Returns:
        Cleaned JSON string ready for parsing
    """
    content = raw_response.strip()

    # Try to extract from markdown code block
    code_block_pattern = r"```(?:json)?\s*([\s\S]*?)```"
    match = re.search(code_block_pattern, content)
    if match:
        content = match.group(1).strip()

    # Skip any prose before the first JSON object
    if not content.startswith(("{", "[")):
        start = content.find("{")
        if start != -1:
            content = content[start:]

    if content.startswith("{"):
        return _balanced_prefix(content, "{", "}")
    if content.startswith("["):
        return _balanced_prefix(content, "[", "]")

    # No clear boundaries, let the JSON parser report it
    return content


def _balanced_prefix(content: str, opener: str, closer: str) -> str:
    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(content):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return content[: i + 1]
    return content


def format_instructions(schema: Type[BaseModel]) -> str:
    """Instructions appended to a system prompt asking for ``schema``-shaped JSON."""
    return (
        "Respond with a single JSON object and no other text. "
        "Use this JSON schema:\n"
        f"{json.dumps(schema.model_json_schema(), indent=2)}"
    )


def decode_structured(raw_response: str, schema: Type[T]) -> T:
    """
    Decode a model reply into ``schema``.

    Args:
        raw_response: Raw LLM response string
        schema: Pydantic model class the reply must conform to

    Returns:
        Validated instance of ``schema``

    Raises:
        DecodeError: If the reply is not JSON or fails validation
    """
    json_str = extract_json_from_response(raw_response)

    try:
        return schema.model_validate_json(json_str)
    except ValidationError as e:
        raise DecodeError(
            f"Reply does not match {schema.__name__}: {e.error_count()} validation error(s)\n{e}",
            raw=raw_response,
        ) from e
