"""
Scripted completion port for tests.

Records every call and answers through a responder callable; string
replies to structured calls are decoded with the real response parser so
malformed replies raise DecodeError exactly like production.
"""

import threading
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Type

from pydantic import BaseModel

from voyagermate.shared.llm.completion import Tool
from voyagermate.shared.llm.response_parser import decode_structured


class CompletionCall(NamedTuple):
    system_prompt: str
    user_prompt: str
    tools: Optional[Sequence[Tool]]
    schema: Optional[Type[BaseModel]]


class FakeCompletion:
    """Thread-safe completion port answering via ``responder(call)``."""

    def __init__(self, responder: Callable[[CompletionCall], Any]):
        self.responder = responder
        self.calls: List[CompletionCall] = []
        self._lock = threading.Lock()

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[Sequence[Tool]] = None,
        schema: Optional[Type[BaseModel]] = None,
    ) -> Any:
        call = CompletionCall(system_prompt, user_prompt, tools, schema)
        with self._lock:
            self.calls.append(call)

        reply = self.responder(call)
        if schema is not None and isinstance(reply, str):
            return decode_structured(reply, schema)
        return reply


def echo_responder(call: CompletionCall) -> str:
    """Reply with the first line of the user prompt."""
    return call.user_prompt.splitlines()[0]
