"""
Debug logger for tracking completion calls, API timing, and costs.

Writes per-run JSON Lines log files to a logs directory.
"""

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


# Token pricing per 1M tokens
MODEL_COSTS = {
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-5-mini": {"input": 0.25, "output": 2.00},
}

# Run-based logger registry to ensure the same instance is reused
_logger_registry: Dict[str, "DebugLogger"] = {}
_registry_lock = threading.Lock()


def get_or_create_logger(run_id: str, logs_dir: str = "logs") -> "DebugLogger":
    """
    Get an existing logger for the run or create a new one.

    Args:
        run_id: Unique run identifier
        logs_dir: Directory to store log files (default: "logs")

    Returns:
        DebugLogger instance for this run
    """
    with _registry_lock:
        if run_id not in _logger_registry:
            _logger_registry[run_id] = DebugLogger(run_id, logs_dir)
        return _logger_registry[run_id]


def remove_logger(run_id: str) -> None:
    """Remove a logger from the registry (e.g., after the run ends)."""
    with _registry_lock:
        _logger_registry.pop(run_id, None)


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    Calculate the cost of a completion call based on token usage.

    Args:
        model: Model identifier (e.g., "gpt-4.1-mini")
        input_tokens: Number of input/prompt tokens
        output_tokens: Number of output/completion tokens

    Returns:
        Cost in USD (0.0 for models without known pricing)
    """
    costs = MODEL_COSTS.get(model, {"input": 0.0, "output": 0.0})
    input_cost = (input_tokens / 1_000_000) * costs["input"]
    output_cost = (output_tokens / 1_000_000) * costs["output"]
    return input_cost + output_cost


class DebugLogger:
    """
    Debug logger that writes per-run JSON log files.

    Tracks completion calls, API timing, token usage, and costs. Fan-out
    workflows call it from several threads, so writes and accumulators are
    guarded by a lock.
    """

    def __init__(self, run_id: str, logs_dir: str = "logs"):
        """
        Initialize the debug logger.

        Args:
            run_id: Unique run identifier
            logs_dir: Directory to store log files (default: "logs")
        """
        self.run_id = run_id
        self.base_logs_dir = Path(logs_dir)
        self.run_dir = self.base_logs_dir / run_id
        self.log_file = self.run_dir / "run_log.jsonl"

        self.run_dir.mkdir(parents=True, exist_ok=True)

        self._lock = threading.Lock()
        self._total_input_tokens = 0
        self._total_output_tokens = 0
        self._total_cost = 0.0
        self._total_llm_duration_ms = 0.0
        self._total_api_duration_ms = 0.0
        self._llm_call_count = 0

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _append_to_log(self, entry: Dict[str, Any]) -> None:
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def log_llm_call(
        self,
        label: str,
        system_prompt: str,
        user_prompt: str,
        response: str,
        duration_ms: float,
        input_tokens: int,
        output_tokens: int,
        model: str = "gpt-4.1-mini",
    ) -> None:
        """
        Log a completion call with prompts, response, timing, and token usage.

        Args:
            label: Kind of call (e.g., "text", "IntentDecision", "tools[1]")
            system_prompt: System prompt sent to the model
            user_prompt: Last user/tool message sent to the model
            response: Model's response text
            duration_ms: Time taken for the call in milliseconds
            input_tokens: Number of input tokens
            output_tokens: Number of output tokens
            model: Model identifier
        """
        cost = calculate_cost(model, input_tokens, output_tokens)

        entry = {
            "type": "llm_call",
            "timestamp": self._get_timestamp(),
            "run_id": self.run_id,
            "label": label,
            "model": model,
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "response": response,
            "duration_ms": round(duration_ms, 2),
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "cost_usd": round(cost, 6),
        }

        with self._lock:
            self._total_input_tokens += input_tokens
            self._total_output_tokens += output_tokens
            self._total_cost += cost
            self._total_llm_duration_ms += duration_ms
            self._llm_call_count += 1
            self._append_to_log(entry)

    def log_api_timing(
        self,
        endpoint: str,
        duration_ms: float,
        success: bool = True,
        error: str = "",
    ) -> None:
        """
        Log timing of a surface call (HTTP endpoint or CLI command).

        Args:
            endpoint: Endpoint path or command name
            duration_ms: Total time for the call in milliseconds
            success: Whether the call succeeded
            error: Error message if the call failed
        """
        entry = {
            "type": "api_timing",
            "timestamp": self._get_timestamp(),
            "run_id": self.run_id,
            "endpoint": endpoint,
            "duration_ms": round(duration_ms, 2),
            "success": success,
        }
        if error:
            entry["error"] = error

        with self._lock:
            self._total_api_duration_ms += duration_ms
            self._append_to_log(entry)

    def log_run_summary(self, workflow: str) -> Dict[str, Any]:
        """
        Log and return a run summary with totals.

        Args:
            workflow: Name of the workflow that ran

        Returns:
            Summary dictionary with all totals
        """
        with self._lock:
            summary = {
                "type": "run_summary",
                "timestamp": self._get_timestamp(),
                "run_id": self.run_id,
                "workflow": workflow,
                **self._stats(),
            }
            self._append_to_log(summary)
        return summary

    def get_accumulated_stats(self) -> Dict[str, Any]:
        """Current accumulated statistics without logging."""
        with self._lock:
            return self._stats()

    def _stats(self) -> Dict[str, Any]:
        return {
            "total_llm_calls": self._llm_call_count,
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
            "total_tokens": self._total_input_tokens + self._total_output_tokens,
            "total_cost_usd": round(self._total_cost, 6),
            "total_llm_duration_ms": round(self._total_llm_duration_ms, 2),
            "total_api_duration_ms": round(self._total_api_duration_ms, 2),
        }
