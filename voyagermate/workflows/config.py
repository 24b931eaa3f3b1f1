"""
Workflow configuration.

Centralizes configuration options shared by every VoyagerMate workflow.
Values can be overridden from the environment (a ``.env`` file is loaded by
the LLM client module).
"""

import os
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Iterator, Optional

from voyagermate.shared.llm.client import DEFAULT_MODEL
from voyagermate.shared.llm.completion import CompletionPort, OpenAICompletion
from voyagermate.shared.logging.debug_logger import get_or_create_logger, remove_logger


@dataclass(frozen=True)
class WorkflowConfig:
    """
    Configuration for the workflow graphs and fan-out runners.

    Attributes:
        model: Chat model (or Azure deployment) to use
        llm_timeout: Per-request completion timeout in seconds
        recursion_limit: Maximum number of graph steps
        max_refinement_rounds: Generate/evaluate rounds before giving up
        fanout_timeout: Deadline in seconds for a concurrent join
        max_workers: Upper bound on threads for a per-run executor
        max_delegations: Expert consultations allowed per delegate request
        max_tool_rounds: Tool round-trips allowed per completion call
        debug_log_dir: Directory for per-run JSONL debug logs (None disables)
    """

    model: str = DEFAULT_MODEL
    llm_timeout: int = 60
    recursion_limit: int = 25
    max_refinement_rounds: int = 3
    fanout_timeout: float = 120.0
    max_workers: int = 8
    max_delegations: int = 6
    max_tool_rounds: int = 8
    debug_log_dir: Optional[str] = None


# Default configuration instance
DEFAULT_CONFIG = WorkflowConfig()


def get_config(**overrides: Any) -> WorkflowConfig:
    """
    Build a configuration from defaults, the environment and overrides.

    Explicit keyword overrides win over environment variables.

    Raises:
        ValueError: If a numeric environment variable is not a number
    """
    env_values: dict = {}

    model = os.environ.get("VOYAGERMATE_MODEL") or os.environ.get("AZURE_OPENAI_DEPLOYMENT")
    if model:
        env_values["model"] = model
    if os.environ.get("VOYAGERMATE_LLM_TIMEOUT"):
        env_values["llm_timeout"] = int(os.environ["VOYAGERMATE_LLM_TIMEOUT"])
    if os.environ.get("VOYAGERMATE_FANOUT_TIMEOUT"):
        env_values["fanout_timeout"] = float(os.environ["VOYAGERMATE_FANOUT_TIMEOUT"])
    if os.environ.get("VOYAGERMATE_DEBUG_LOG_DIR"):
        env_values["debug_log_dir"] = os.environ["VOYAGERMATE_DEBUG_LOG_DIR"]

    env_values.update({k: v for k, v in overrides.items() if v is not None})
    return replace(DEFAULT_CONFIG, **env_values)


def build_completion(
    config: Optional[WorkflowConfig] = None,
    run_id: Optional[str] = None,
) -> OpenAICompletion:
    """
    Create the production completion port for a run.

    When ``config.debug_log_dir`` is set and a run id is given, every
    completion call of the run is also written to the run's debug log.
    """
    if config is None:
        config = DEFAULT_CONFIG

    debug_logger = None
    if config.debug_log_dir and run_id:
        debug_logger = get_or_create_logger(run_id, config.debug_log_dir)

    return OpenAICompletion(
        model=config.model,
        timeout=config.llm_timeout,
        max_tool_rounds=config.max_tool_rounds,
        debug_logger=debug_logger,
    )


@contextmanager
def completion_scope(
    completion: Optional[CompletionPort],
    config: WorkflowConfig,
    run_id: str,
    required: bool = True,
) -> Iterator[Optional[CompletionPort]]:
    """
    Yield the injected completion port, or one built for the run.

    A port built here is owned by the run: its debug logger is dropped from
    the registry when the scope exits. Injected ports belong to the caller
    (the CLI and API surfaces remove their run loggers themselves). Nothing
    is built when ``required`` is False.
    """
    if completion is not None or not required:
        yield completion
        return

    built = build_completion(config, run_id)
    try:
        yield built
    finally:
        if built.debug_logger is not None:
            remove_logger(run_id)
