"""
Intent routing workflow.

Classifies a traveller request into one of the closed set of intents, then
answers it with exactly one persona-specific completion.

The graph structure is:
    Entry -> classify -> route_by_intent
      -> respond_concierge      -> END
      -> respond_booking_change -> END
      -> respond_travel_risk    -> END
"""

import logging
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

from langgraph.graph import StateGraph, END

from voyagermate.shared.contracts import (
    Intent,
    IntentDecision,
    RoutingResult,
    TripContext,
    render_context,
)
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope
from voyagermate.workflows.state import RoutingState


logger = logging.getLogger(__name__)

# prompt -> decision
IntentClassifier = Callable[[str], IntentDecision]
# (persona system prompt, prompt, context) -> response
IntentResponder = Callable[[str, str, str], str]

CLASSIFIER_PROMPT = (
    "You classify travel support requests into intents.\n"
    "Allowed intents: CONCIERGE, BOOKING_CHANGE, TRAVEL_RISK."
)

PERSONAS: Dict[Intent, str] = {
    Intent.BOOKING_CHANGE: (
        "You are VoyagerMate handling booking changes. "
        "Return numbered remediation steps plus a short escalation note."
    ),
    Intent.TRAVEL_RISK: (
        "You are VoyagerMate acting as a travel risk analyst. "
        "Provide risk tiers, mitigation, and when to alert a human."
    ),
    Intent.CONCIERGE: (
        "You are VoyagerMate concierge. "
        "Offer creative ideas while confirming assumptions before acting."
    ),
}


def _node_name(intent: Intent) -> str:
    return f"respond_{intent.value.lower()}"


def completion_classifier(completion: CompletionPort) -> IntentClassifier:
    """Classifier decoding an IntentDecision from one structured completion."""

    def classify(prompt: str) -> IntentDecision:
        return completion.complete(CLASSIFIER_PROMPT, prompt, schema=IntentDecision)

    return classify


def completion_responder(completion: CompletionPort) -> IntentResponder:
    """Responder answering with the persona as system prompt."""

    def respond(persona: str, prompt: str, context: str) -> str:
        return completion.complete(persona, f"{prompt}\n---\n{context}")

    return respond


def route_by_intent(state: RoutingState) -> str:
    """Pick the responder node for the classified intent."""
    run_id = state.get("run_id", "unknown")
    decision = state["decision"]
    target = _node_name(decision.intent)
    logger.info(
        f"[run={run_id}] [workflow=routing] [router=route_by_intent] "
        f"Routing to '{target}' | intent={decision.intent.value}"
    )
    return target


def create_routing_graph(
    classifier: IntentClassifier,
    responder: IntentResponder,
    personas: Mapping[Intent, str],
):
    """
    Create and compile the routing graph.

    Args:
        classifier: Callable classifying the request
        responder: Callable answering with a persona
        personas: Total mapping from intent to persona system prompt

    Returns:
        Compiled LangGraph application ready for execution.
    """

    def classify_node(state: RoutingState) -> Dict[str, Any]:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=routing] [node=classify] "

        logger.info(f"{_log}Entering node | prompt_chars={len(state['prompt'])}")
        decision = classifier(state["prompt"])
        logger.info(f"{_log}Classified | intent={decision.intent.value}")
        return {"decision": decision}

    def make_respond_node(intent: Intent):
        persona = personas[intent]

        def respond_node(state: RoutingState) -> Dict[str, Any]:
            run_id = state.get("run_id", "unknown")
            logger.info(f"[run={run_id}] [workflow=routing] [node={_node_name(intent)}] Entering node")
            return {"response": responder(persona, state["prompt"], state["context"])}

        return respond_node

    graph = StateGraph(RoutingState)
    graph.add_node("classify", classify_node)
    for intent in Intent:
        graph.add_node(_node_name(intent), make_respond_node(intent))
        graph.add_edge(_node_name(intent), END)

    graph.set_entry_point("classify")
    graph.add_conditional_edges(
        "classify",
        route_by_intent,
        {_node_name(intent): _node_name(intent) for intent in Intent},
    )

    return graph.compile()


class VoyagerRoutingWorkflowService:
    """
    Two-stage intent router.

    Raises:
        ValueError: At construction, if ``personas`` does not cover every intent
    """

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        classifier: Optional[IntentClassifier] = None,
        responder: Optional[IntentResponder] = None,
        personas: Optional[Mapping[Intent, str]] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        personas = dict(PERSONAS if personas is None else personas)
        missing = [intent.value for intent in Intent if intent not in personas]
        if missing:
            raise ValueError(f"No persona configured for intent(s): {', '.join(missing)}")

        self.config = config or DEFAULT_CONFIG
        self.personas = personas
        self._completion = completion
        self._classifier = classifier
        self._responder = responder

    def route(
        self,
        prompt: str,
        trip: Optional[TripContext] = None,
        run_id: Optional[str] = None,
    ) -> RoutingResult:
        """
        Classify ``prompt`` and answer it with the matching persona.

        Raises:
            DecodeError: If the classifier reply is not a valid IntentDecision
        """
        run_id = run_id or str(uuid.uuid4())

        log_workflow_event("run_started", run_id, "routing")

        initial_state: RoutingState = {
            "prompt": prompt,
            "context": render_context(trip),
            "decision": None,
            "response": None,
            "run_id": run_id,
        }
        needs_completion = self._classifier is None or self._responder is None
        with completion_scope(
            self._completion, self.config, run_id, required=needs_completion
        ) as completion:
            classifier = self._classifier or completion_classifier(completion)
            responder = self._responder or completion_responder(completion)
            graph = create_routing_graph(classifier, responder, self.personas)
            final_state = graph.invoke(
                initial_state, config={"recursion_limit": self.config.recursion_limit}
            )

        decision = final_state["decision"]
        log_workflow_event(
            "run_complete", run_id, "routing", {"intent": decision.intent.value}
        )
        return RoutingResult(
            intent=decision.intent,
            rationale=decision.rationale,
            response=final_state["response"],
        )
