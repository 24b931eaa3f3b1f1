"""
Sequential chain workflow.

Runs four fixed planning steps in order against the rendered trip context:
discovery -> itinerary draft -> risk review -> next steps. Each step is one
completion call; a failing step aborts the run and no partial summary is
returned.
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

from langgraph.graph import StateGraph, END

from voyagermate.shared.contracts import TripContext, WorkflowSummary, render_context
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope
from voyagermate.workflows.state import SequentialState


logger = logging.getLogger(__name__)

# (instruction, context) -> step output
StepRunner = Callable[[str, str], str]

SYSTEM_PROMPT = (
    "You are orchestrating a travel-planning workflow. Complete the requested step succinctly."
)

# Executed in this order; each name is also the WorkflowSummary field it fills
STEPS: Tuple[Tuple[str, str], ...] = (
    (
        "discovery",
        "Summarise the traveller's key goals, constraints, and any clarifications needed.",
    ),
    (
        "itinerary_draft",
        "Propose a three-part travel storyline (arrival, middle, farewell) with bullet itineraries.",
    ),
    (
        "risk_review",
        "List major risks (weather, visas, health, budget) and mitigations.",
    ),
    (
        "next_steps",
        "Provide a concise next-step checklist for the traveller and the agent.",
    ),
)


def completion_step_runner(completion: CompletionPort) -> StepRunner:
    """Step runner sending each instruction plus context as one completion call."""

    def run_step(instruction: str, context: str) -> str:
        return completion.complete(SYSTEM_PROMPT, f"{instruction}\n---\n{context}")

    return run_step


def _make_step_node(field: str, instruction: str, step_runner: StepRunner):
    def step_node(state: SequentialState) -> Dict[str, Any]:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=sequential] [node={field}] "

        logger.info(f"{_log}Entering node")
        output = step_runner(instruction, state["context"])
        logger.info(f"{_log}Step complete | chars={len(output)}")

        return {field: output}

    step_node.__name__ = f"{field}_node"
    return step_node


def create_sequential_graph(step_runner: StepRunner):
    """
    Create and compile the sequential chain graph.

    The graph structure is:
        Entry -> discovery_step -> itinerary_draft_step -> risk_review_step
              -> next_steps_step -> END

    Node names carry a "_step" suffix; LangGraph rejects nodes named after
    state keys.

    Args:
        step_runner: Callable executing one (instruction, context) step

    Returns:
        Compiled LangGraph application ready for execution.
    """
    graph = StateGraph(SequentialState)

    node_names = [f"{field}_step" for field, _ in STEPS]
    for name, (field, instruction) in zip(node_names, STEPS):
        graph.add_node(name, _make_step_node(field, instruction, step_runner))

    graph.set_entry_point(node_names[0])
    for current, following in zip(node_names, node_names[1:]):
        graph.add_edge(current, following)
    graph.add_edge(node_names[-1], END)

    return graph.compile()


class ItineraryWorkflowService:
    """
    Four-step sequential planning chain.

    Either a completion port or a custom step runner may be injected; with
    neither, the production OpenAI completion is used.
    """

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        step_runner: Optional[StepRunner] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._completion = completion
        self._step_runner = step_runner

    def run(self, trip: Optional[TripContext] = None, run_id: Optional[str] = None) -> WorkflowSummary:
        """
        Run the chain for a trip.

        Args:
            trip: Trip parameters (None renders the default context)
            run_id: Optional run identifier for logs

        Returns:
            WorkflowSummary with one output per step
        """
        run_id = run_id or str(uuid.uuid4())
        _log = f"[run={run_id}] [workflow=sequential] "

        log_workflow_event("run_started", run_id, "sequential")
        logger.info(f"{_log}Invoking sequential graph | steps={len(STEPS)}")

        initial_state: SequentialState = {
            "context": render_context(trip),
            "discovery": None,
            "itinerary_draft": None,
            "risk_review": None,
            "next_steps": None,
            "run_id": run_id,
        }
        with completion_scope(
            self._completion, self.config, run_id, required=self._step_runner is None
        ) as completion:
            step_runner = self._step_runner or completion_step_runner(completion)
            graph = create_sequential_graph(step_runner)
            final_state = graph.invoke(
                initial_state, config={"recursion_limit": self.config.recursion_limit}
            )

        summary = WorkflowSummary(**{field: final_state[field] for field, _ in STEPS})
        log_workflow_event("run_complete", run_id, "sequential")
        return summary
