"""
Multi-agent delegate workflow.

A lead travel orchestrator answers the request in a single completion call
equipped with expert tools (logistics, accommodation, activities). The model
decides which experts to consult and how often, within a per-request
delegation budget.
"""

import logging
import uuid
from typing import Optional

from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.tools.experts import DelegationBudget, build_expert_tools
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope


logger = logging.getLogger(__name__)

LEAD_PROMPT = (
    "You are the Lead Travel Orchestrator. "
    "Your goal is to create a comprehensive travel plan by consulting your team of experts. "
    "Break down the user's request and call the appropriate expert tools "
    "(Logistics, Accommodation, Activity) to get details. "
    "Synthesize their responses into a final cohesive itinerary."
)


class MultiAgentOrchestratorService:
    """Lead orchestrator delegating to expert tools."""

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._completion = completion

    def plan_trip(self, user_request: str, run_id: Optional[str] = None) -> str:
        """
        Produce a travel plan for a free-text request.

        Expert failures are not caught here; the completion port reports
        them to the lead model as tool errors.

        Raises:
            ValueError: If the request is blank
            ToolLoopError: If the lead keeps calling tools past the round limit
        """
        if not user_request or not user_request.strip():
            raise ValueError("user_request must not be blank")

        run_id = run_id or str(uuid.uuid4())
        _log = f"[run={run_id}] [workflow=multi_agent] "

        budget = DelegationBudget(self.config.max_delegations)
        log_workflow_event(
            "run_started", run_id, "multi_agent", {"max_delegations": budget.max_delegations}
        )

        with completion_scope(self._completion, self.config, run_id) as completion:
            tools = build_expert_tools(completion, budget)
            logger.info(f"{_log}Lead orchestrator planning | experts={[t.name for t in tools]}")
            plan = completion.complete(LEAD_PROMPT, user_request, tools=tools)

        logger.info(f"{_log}Plan ready | delegations={budget.used}")
        log_workflow_event("run_complete", run_id, "multi_agent", {"delegations": budget.used})
        return plan
