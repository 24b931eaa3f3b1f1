"""Trip context and workflow output contracts."""

from voyagermate.shared.contracts.trip import TripContext, render_context
from voyagermate.shared.contracts.workflow_output import (
    EvaluationFeedback,
    Intent,
    IntentDecision,
    ParallelSummary,
    RefinementResult,
    RefinementRound,
    RoutingResult,
    WorkerFinding,
    WorkerPlan,
    WorkerSummary,
    WorkerTask,
    WorkflowSummary,
)
from voyagermate.shared.contracts.itinerary_output import ItineraryDay, ItineraryPlan

__all__ = [
    "TripContext",
    "render_context",
    "EvaluationFeedback",
    "Intent",
    "IntentDecision",
    "ParallelSummary",
    "RefinementResult",
    "RefinementRound",
    "RoutingResult",
    "WorkerFinding",
    "WorkerPlan",
    "WorkerSummary",
    "WorkerTask",
    "WorkflowSummary",
    "ItineraryDay",
    "ItineraryPlan",
]
