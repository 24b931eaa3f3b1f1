"""
Generator/evaluator refinement workflow.

A copywriter drafts an itinerary proposal, an editorial reviewer accepts it
or returns notes, and the notes are threaded into the next draft. The loop
stops on acceptance or after ``max_refinement_rounds``; running out of
rounds is a normal result with ``accepted == False``.

The graph structure is:
    Entry -> generate -> evaluate -> should_continue
      -> "generate" (not accepted, rounds left)
      -> END        (accepted or round limit reached)
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional

from langgraph.graph import StateGraph, END

from voyagermate.shared.contracts import (
    EvaluationFeedback,
    RefinementResult,
    RefinementRound,
    TripContext,
    render_context,
)
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope
from voyagermate.workflows.state import RefinementState


logger = logging.getLogger(__name__)

# (brief, context, reviewer notes or None) -> draft
DraftGenerator = Callable[[str, str, Optional[str]], str]
# (draft, context, iteration) -> feedback
DraftEvaluator = Callable[[str, str, int], EvaluationFeedback]

GENERATOR_PROMPT = (
    "You are VoyagerMate's senior itinerary copywriter.\n"
    "Deliver two vivid paragraphs followed by a concise bullet list of booking moves.\n"
    "If reviewer notes are provided, address them before expanding."
)

EVALUATOR_PROMPT = (
    "You are VoyagerMate's editorial reviewer.\n"
    "Rate drafts for clarity, safety, and actionable guidance."
)


def build_generator_prompt(brief: str, context: str, reviewer_notes: Optional[str]) -> str:
    """User message for a draft; reviewer notes are appended only when present."""
    payload = f"Brief:\n{brief}\n\nContext:\n{context}"
    if reviewer_notes and reviewer_notes.strip():
        payload += f"\n\nReviewer notes to address:\n{reviewer_notes}"
    return payload


def completion_generator(completion: CompletionPort) -> DraftGenerator:
    def generate(brief: str, context: str, reviewer_notes: Optional[str]) -> str:
        return completion.complete(
            GENERATOR_PROMPT, build_generator_prompt(brief, context, reviewer_notes)
        )

    return generate


def completion_evaluator(completion: CompletionPort) -> DraftEvaluator:
    def evaluate(draft: str, context: str, iteration: int) -> EvaluationFeedback:
        return completion.complete(
            EVALUATOR_PROMPT,
            f"Iteration: {iteration}\nDraft:\n{draft}\n\nTraveller context:\n{context}\n",
            schema=EvaluationFeedback,
        )

    return evaluate


def create_refinement_graph(
    generator: DraftGenerator,
    evaluator: DraftEvaluator,
    max_rounds: int,
):
    """
    Create and compile the refinement loop graph.

    Args:
        generator: Callable producing a draft
        evaluator: Callable reviewing a draft
        max_rounds: Maximum generate/evaluate rounds

    Returns:
        Compiled LangGraph application ready for execution.
    """

    def generate_node(state: RefinementState) -> Dict[str, Any]:
        iteration = state["iteration"] + 1
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=refinement] [node=generate] "

        logger.info(
            f"{_log}Entering node | iteration={iteration}, "
            f"has_notes={bool(state.get('reviewer_notes'))}"
        )
        draft = generator(state["brief"], state["context"], state.get("reviewer_notes"))
        return {"iteration": iteration, "latest_draft": draft}

    def evaluate_node(state: RefinementState) -> Dict[str, Any]:
        iteration = state["iteration"]
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=refinement] [node=evaluate] "

        feedback = evaluator(state["latest_draft"], state["context"], iteration)
        logger.info(f"{_log}Draft reviewed | iteration={iteration}, accepted={feedback.accepted}")

        return {
            "accepted": feedback.accepted,
            "reviewer_notes": feedback.feedback,
            "rounds": [
                RefinementRound(
                    iteration=iteration,
                    draft=state["latest_draft"],
                    feedback=feedback.feedback,
                    accepted=feedback.accepted,
                )
            ],
        }

    def should_continue(state: RefinementState) -> str:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=refinement] [router=should_continue] "

        if state["accepted"]:
            logger.info(f"{_log}Draft accepted at iteration {state['iteration']} -> END")
            return "end"
        if state["iteration"] >= max_rounds:
            logger.warning(f"{_log}No draft accepted after {max_rounds} rounds -> END")
            return "end"

        logger.info(f"{_log}Revising | iteration={state['iteration']} of {max_rounds}")
        return "generate"

    graph = StateGraph(RefinementState)
    graph.add_node("generate", generate_node)
    graph.add_node("evaluate", evaluate_node)

    graph.set_entry_point("generate")
    graph.add_edge("generate", "evaluate")
    graph.add_conditional_edges(
        "evaluate",
        should_continue,
        {"generate": "generate", "end": END},
    )

    return graph.compile()


class ItineraryRefinementWorkflowService:
    """Bounded generate/evaluate loop over a traveller brief."""

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        generator: Optional[DraftGenerator] = None,
        evaluator: Optional[DraftEvaluator] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        if self.config.max_refinement_rounds < 1:
            raise ValueError("max_refinement_rounds must be at least 1")
        self._completion = completion
        self._generator = generator
        self._evaluator = evaluator

    def refine(
        self,
        brief: str,
        trip: Optional[TripContext] = None,
        run_id: Optional[str] = None,
    ) -> RefinementResult:
        """
        Refine a proposal for ``brief`` until accepted or out of rounds.

        Returns:
            RefinementResult; check ``accepted`` to tell acceptance from
            an exhausted round limit
        """
        run_id = run_id or str(uuid.uuid4())
        max_rounds = self.config.max_refinement_rounds

        log_workflow_event("run_started", run_id, "refinement", {"max_rounds": max_rounds})

        initial_state: RefinementState = {
            "brief": brief,
            "context": render_context(trip),
            "iteration": 0,
            "reviewer_notes": None,
            "latest_draft": None,
            "accepted": False,
            "rounds": [],
            "run_id": run_id,
        }
        # Two graph steps per round
        recursion_limit = max(self.config.recursion_limit, 2 * max_rounds + 2)
        needs_completion = self._generator is None or self._evaluator is None
        with completion_scope(
            self._completion, self.config, run_id, required=needs_completion
        ) as completion:
            generator = self._generator or completion_generator(completion)
            evaluator = self._evaluator or completion_evaluator(completion)
            graph = create_refinement_graph(generator, evaluator, max_rounds)
            final_state = graph.invoke(initial_state, config={"recursion_limit": recursion_limit})

        rounds = tuple(final_state["rounds"])
        result = RefinementResult(final_proposal=rounds[-1].draft, rounds=rounds)
        log_workflow_event(
            "run_complete",
            run_id,
            "refinement",
            {"rounds": len(rounds), "accepted": result.accepted},
        )
        return result
