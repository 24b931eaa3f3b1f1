"""
Workflow output contracts.

Defines the write-once results each workflow returns and the structured
values decoded from model replies along the way (intent decisions, reviewer
feedback, worker plans).
"""

from enum import Enum
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Sequential chain
# ============================================================================


class WorkflowSummary(BaseModel):
    """Outputs of the four-step sequential chain, in step order."""

    model_config = ConfigDict(frozen=True)

    discovery: str = Field(description="Traveller goals, constraints and open questions")
    itinerary_draft: str = Field(description="Three-part travel storyline")
    risk_review: str = Field(description="Major risks and mitigations")
    next_steps: str = Field(description="Next-step checklist")


# ============================================================================
# Parallel fan-out
# ============================================================================


class ParallelSummary(BaseModel):
    """Outputs of the four concurrent research tracks plus batch latency."""

    model_config = ConfigDict(frozen=True)

    lodging_insights: str
    dining_highlights: str
    logistics_advisory: str
    cultural_moments: str
    total_latency_ms: int = Field(ge=0, description="Wall-clock time of the whole fan-out")


# ============================================================================
# Routing
# ============================================================================


class Intent(str, Enum):
    """Closed set of request intents the router can dispatch on."""

    CONCIERGE = "CONCIERGE"
    BOOKING_CHANGE = "BOOKING_CHANGE"
    TRAVEL_RISK = "TRAVEL_RISK"


class IntentDecision(BaseModel):
    """Classifier output: one intent plus the reason for choosing it."""

    model_config = ConfigDict(frozen=True)

    intent: Intent = Field(description="One of CONCIERGE, BOOKING_CHANGE, TRAVEL_RISK")
    rationale: str = Field(description="Why this intent was chosen")


class RoutingResult(BaseModel):
    """Final routing output returned to the caller."""

    model_config = ConfigDict(frozen=True)

    intent: Intent
    rationale: str
    response: str


# ============================================================================
# Refinement loop
# ============================================================================


class EvaluationFeedback(BaseModel):
    """Reviewer decision for one draft."""

    model_config = ConfigDict(frozen=True)

    accepted: bool = Field(description="True when the draft is ready to ship")
    feedback: str = Field(description="Concrete notes for the next revision")


class RefinementRound(BaseModel):
    """One generate-then-evaluate cycle."""

    model_config = ConfigDict(frozen=True)

    iteration: int = Field(ge=1, description="1-based round number")
    draft: str
    feedback: str
    accepted: bool


class RefinementResult(BaseModel):
    """
    Final (accepted or last) draft plus every round that ran.

    ``accepted`` is False when the round limit was reached without the
    reviewer accepting a draft; callers must check it.
    """

    model_config = ConfigDict(frozen=True)

    final_proposal: str
    rounds: Tuple[RefinementRound, ...]

    @property
    def accepted(self) -> bool:
        return bool(self.rounds) and self.rounds[-1].accepted


# ============================================================================
# Orchestrator / workers
# ============================================================================


class WorkerTask(BaseModel):
    """A unit of work planned by the orchestrator for one worker."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Worker role name, e.g. 'Rail logistics scout'")
    focus: str = Field(description="Focus area the worker specialises in")
    instruction: str = Field(description="What the worker must produce")


class WorkerPlan(BaseModel):
    """Planner output: analysis of the brief and the worker tasks to run."""

    model_config = ConfigDict(frozen=True)

    analysis: str = Field(description="Orchestrator analysis of the traveller brief")
    tasks: List[WorkerTask] = Field(
        min_length=2, max_length=4, description="Between 2 and 4 worker tasks"
    )


class WorkerFinding(BaseModel):
    """Output of one worker, tagged with the task it came from."""

    model_config = ConfigDict(frozen=True)

    role: str
    focus: str
    output: str


class WorkerSummary(BaseModel):
    """Orchestrator/workers result, assembled after every worker returned."""

    model_config = ConfigDict(frozen=True)

    analysis: str
    worker_findings: Tuple[WorkerFinding, ...]
    action_plan: str
