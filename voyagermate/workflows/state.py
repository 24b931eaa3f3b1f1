"""
Workflow state schemas.

Defines the TypedDict states that flow through the LangGraph workflows.
Every state carries the rendered trip context and the run id used in log
prefixes.
"""

from typing import Annotated, List, Optional, TypedDict
import operator

from voyagermate.shared.contracts import (
    IntentDecision,
    RefinementRound,
    WorkerFinding,
    WorkerPlan,
)


class SequentialState(TypedDict):
    """State for the four-step sequential chain."""

    context: str
    discovery: Optional[str]
    itinerary_draft: Optional[str]
    risk_review: Optional[str]
    next_steps: Optional[str]
    run_id: Optional[str]


class RoutingState(TypedDict):
    """State for the intent router."""

    prompt: str
    context: str
    decision: Optional[IntentDecision]
    response: Optional[str]
    run_id: Optional[str]


class RefinementState(TypedDict):
    """
    State for the generator/evaluator loop.

    ``rounds`` accumulates one entry per generate/evaluate cycle.
    """

    brief: str
    context: str
    iteration: int
    reviewer_notes: Optional[str]
    latest_draft: Optional[str]
    accepted: bool
    rounds: Annotated[List[RefinementRound], operator.add]
    run_id: Optional[str]


class WorkerState(TypedDict):
    """State for the orchestrator/workers planner."""

    brief: str
    context: str
    plan: Optional[WorkerPlan]
    findings: List[WorkerFinding]
    action_plan: Optional[str]
    run_id: Optional[str]
