"""
Completion port.

The single capability every workflow consumes: given a system prompt, a user
prompt, optional callable tools and an optional output schema, return the
reply text or the decoded schema instance. ``OpenAICompletion`` is the
production adapter; tests inject scripted ports with the same signature.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Type,
    Union,
)

from openai import OpenAI
from pydantic import BaseModel

from voyagermate.shared.llm.client import (
    DEFAULT_MODEL,
    create_chat_completion,
    extract_reply,
    usage_of,
)
from voyagermate.shared.llm.errors import ToolLoopError
from voyagermate.shared.llm.response_parser import decode_structured, format_instructions
from voyagermate.shared.logging.debug_logger import DebugLogger


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tool:
    """
    A named sub-capability the model may invoke on its own.

    Attributes:
        name: Function name exposed to the model
        description: What the tool does, shown to the model
        args_model: Pydantic model describing and validating the arguments
        handler: Callable receiving the validated arguments as keyword args
    """

    name: str
    description: str
    args_model: Type[BaseModel]
    handler: Callable[..., Any]

    def to_openai(self) -> Dict[str, Any]:
        """Function tool definition in OpenAI format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.args_model.model_json_schema(),
            },
        }

    def invoke(self, arguments: Union[str, Mapping[str, Any], None]) -> str:
        """
        Validate ``arguments`` and run the handler.

        Non-string results are serialized as JSON so they can be handed
        back to the model verbatim.
        """
        if arguments is None or isinstance(arguments, str):
            args = self.args_model.model_validate_json(arguments or "{}")
        else:
            args = self.args_model.model_validate(arguments)

        result = self.handler(**args.model_dump())
        if isinstance(result, str):
            return result
        return json.dumps(result, default=str)


class CompletionPort(Protocol):
    """Anything that can answer a completion call."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[Sequence[Tool]] = None,
        schema: Optional[Type[BaseModel]] = None,
    ) -> Any:
        ...


class OpenAICompletion:
    """
    Completion port backed by the OpenAI / Azure OpenAI chat API.

    Structured calls append the schema's JSON schema to the system prompt and
    decode the reply with pydantic. Tool calls run a bounded request/tool
    loop; a tool that raises is reported back to the model as an ``ERROR:``
    tool result instead of aborting the call.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None,
        timeout: Optional[float] = None,
        max_tool_rounds: int = 8,
        debug_logger: Optional[DebugLogger] = None,
    ):
        self.model = model
        self.client = client
        self.timeout = timeout
        self.max_tool_rounds = max_tool_rounds
        self.debug_logger = debug_logger

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[Sequence[Tool]] = None,
        schema: Optional[Type[BaseModel]] = None,
    ) -> Any:
        if schema is not None:
            system_prompt = f"{system_prompt.rstrip()}\n\n{format_instructions(schema)}"

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        if tools:
            reply = self._run_tool_loop(messages, tools)
        else:
            response = self._send(messages, label="text" if schema is None else schema.__name__)
            reply = extract_reply(response)

        if schema is None:
            return reply
        return decode_structured(reply, schema)

    def _send(
        self,
        messages: List[Dict[str, Any]],
        label: str,
        tool_defs: Optional[List[Dict[str, Any]]] = None,
    ) -> Any:
        start_time = time.perf_counter()
        response = create_chat_completion(
            messages,
            model=self.model,
            client=self.client,
            tools=tool_defs,
            timeout=self.timeout,
        )
        duration_ms = (time.perf_counter() - start_time) * 1000

        usage = usage_of(response)
        logger.debug(
            f"Completion '{label}' answered | duration={duration_ms:.0f}ms, "
            f"tokens_in={usage['input_tokens']}, tokens_out={usage['output_tokens']}"
        )

        if self.debug_logger:
            self.debug_logger.log_llm_call(
                label=label,
                system_prompt=messages[0]["content"],
                user_prompt=messages[-1].get("content") or "",
                response=response.choices[0].message.content or "",
                duration_ms=duration_ms,
                input_tokens=usage["input_tokens"],
                output_tokens=usage["output_tokens"],
                model=self.model,
            )

        return response

    def _run_tool_loop(self, messages: List[Dict[str, Any]], tools: Sequence[Tool]) -> str:
        tools_by_name = {tool.name: tool for tool in tools}
        tool_defs = [tool.to_openai() for tool in tools]

        for round_num in range(1, self.max_tool_rounds + 1):
            response = self._send(messages, label=f"tools[{round_num}]", tool_defs=tool_defs)
            message = response.choices[0].message

            if not message.tool_calls:
                return extract_reply(response)

            messages.append(
                {
                    "role": "assistant",
                    "content": message.content,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.function.name,
                                "arguments": call.function.arguments,
                            },
                        }
                        for call in message.tool_calls
                    ],
                }
            )
            for call in message.tool_calls:
                logger.info(f"Model requested tool '{call.function.name}' (round {round_num})")
                messages.append(
                    {
                        "role": "tool",
                        "tool_call_id": call.id,
                        "content": self._invoke_tool(tools_by_name, call),
                    }
                )

        raise ToolLoopError(
            f"Model still requesting tools after {self.max_tool_rounds} round-trips"
        )

    def _invoke_tool(self, tools_by_name: Dict[str, Tool], call: Any) -> str:
        name = call.function.name
        tool = tools_by_name.get(name)
        if tool is None:
            logger.warning(f"Model requested unknown tool '{name}'")
            return f"ERROR: unknown tool '{name}'"

        try:
            return tool.invoke(call.function.arguments)
        except Exception as e:
            # Tool failures go back to the model as the tool result
            logger.warning(f"Tool '{name}' failed: {type(e).__name__}: {e}")
            return f"ERROR: {type(e).__name__}: {e}"
