"""
Itinerary planner workflow.

Produces a structured day-by-day ItineraryPlan in one completion call; the
model may use the deterministic travel tools (attractions, budget estimate,
gap checker, calendar validator) before answering.
"""

import logging
import uuid
from typing import Optional

from voyagermate.shared.contracts import ItineraryPlan, TripContext, render_context
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.tools.travel_tools import build_travel_tools
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope


logger = logging.getLogger(__name__)

PLANNER_PROMPT = (
    "You are VoyagerMate creating a personalised travel itinerary. "
    "Use the tool outputs when helpful."
)


class ItineraryPlannerService:
    """Tool-assisted structured itinerary planner."""

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._completion = completion

    def plan(self, trip: Optional[TripContext] = None, run_id: Optional[str] = None) -> ItineraryPlan:
        """
        Plan an itinerary for a trip.

        Raises:
            DecodeError: If the reply does not match the ItineraryPlan schema
        """
        run_id = run_id or str(uuid.uuid4())
        _log = f"[run={run_id}] [workflow=itinerary] "

        log_workflow_event("run_started", run_id, "itinerary")

        user_prompt = f"Plan a journey based on these preferences:\n{render_context(trip)}"
        with completion_scope(self._completion, self.config, run_id) as completion:
            plan = completion.complete(
                PLANNER_PROMPT,
                user_prompt,
                tools=build_travel_tools(),
                schema=ItineraryPlan,
            )

        logger.info(
            f"{_log}Itinerary ready | days={len(plan.daily_schedule)}, "
            f"estimated_budget={plan.estimated_budget}"
        )
        log_workflow_event("run_complete", run_id, "itinerary", {"days": len(plan.daily_schedule)})
        return plan
