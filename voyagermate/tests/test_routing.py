"""
Tests for the intent routing workflow.
"""

import json
import random
import time

import pytest

from voyagermate.shared.contracts import Intent, IntentDecision, TripContext, render_context
from voyagermate.shared.llm.errors import DecodeError
from voyagermate.tests.fakes import FakeCompletion
from voyagermate.workflows.routing import (
    CLASSIFIER_PROMPT,
    PERSONAS,
    VoyagerRoutingWorkflowService,
)


def _make_trip():
    return TripContext(traveller_name="Ines", destination_city="Lisbon")


def _make_completion(intent_value: str, rationale: str = "because"):
    """Completion classifying every prompt as ``intent_value``."""

    def responder(call):
        if call.schema is IntentDecision:
            return json.dumps({"intent": intent_value, "rationale": rationale})
        return f"persona reply from: {call.system_prompt}"

    return FakeCompletion(responder)


class TestVoyagerRoutingWorkflowService:
    """Tests for classification and dispatch."""

    @pytest.mark.parametrize("intent", list(Intent))
    def test_dispatches_to_persona(self, intent):
        """Each intent is answered by its own persona with exactly one call."""
        completion = _make_completion(intent.value, rationale=f"looks like {intent.value}")

        result = VoyagerRoutingWorkflowService(completion).route("Help me", _make_trip())

        assert result.intent is intent
        assert result.rationale == f"looks like {intent.value}"
        assert result.response == f"persona reply from: {PERSONAS[intent]}"
        assert len(completion.calls) == 2

    def test_personas_are_distinct(self):
        assert len(set(PERSONAS.values())) == len(Intent)

    def test_classifier_sees_prompt_and_responder_sees_context(self):
        completion = _make_completion("TRAVEL_RISK")
        trip = _make_trip()

        VoyagerRoutingWorkflowService(completion).route("Is it safe to travel?", trip)

        classify_call, respond_call = completion.calls
        assert classify_call.system_prompt == CLASSIFIER_PROMPT
        assert classify_call.user_prompt == "Is it safe to travel?"
        assert respond_call.user_prompt == f"Is it safe to travel?\n---\n{render_context(trip)}"

    def test_unknown_intent_is_decode_error(self):
        """Out-of-set intents fail instead of defaulting; no responder runs."""
        completion = _make_completion("SIGHTSEEING")

        with pytest.raises(DecodeError):
            VoyagerRoutingWorkflowService(completion).route("Help me", _make_trip())

        assert len(completion.calls) == 1

    def test_malformed_classifier_reply_is_decode_error(self):
        completion = FakeCompletion(lambda call: "I think this is a booking change")

        with pytest.raises(DecodeError) as exc_info:
            VoyagerRoutingWorkflowService(completion).route("Change my flight")

        assert exc_info.value.raw == "I think this is a booking change"

    def test_injected_classifier_and_responder(self):
        def classifier(prompt):
            return IntentDecision(intent=Intent.BOOKING_CHANGE, rationale="stub")

        def responder(persona, prompt, context):
            return persona

        result = VoyagerRoutingWorkflowService(
            classifier=classifier, responder=responder
        ).route("Move my hotel", None)

        assert result.intent is Intent.BOOKING_CHANGE
        assert result.response == PERSONAS[Intent.BOOKING_CHANGE]

    def test_missing_persona_fails_construction(self):
        personas = {
            Intent.CONCIERGE: "concierge",
            Intent.BOOKING_CHANGE: "booking",
        }

        with pytest.raises(ValueError, match="TRAVEL_RISK"):
            VoyagerRoutingWorkflowService(FakeCompletion(lambda call: ""), personas=personas)

    def test_custom_personas(self):
        personas = {intent: f"custom {intent.value}" for intent in Intent}
        completion = _make_completion("CONCIERGE")

        result = VoyagerRoutingWorkflowService(completion, personas=personas).route("Ideas?")

        assert result.response == "persona reply from: custom CONCIERGE"

    def test_deterministic_under_random_delays(self):
        """Repeated runs with jittered stubs route and answer identically."""

        def classifier(prompt):
            time.sleep(random.uniform(0, 0.02))
            return IntentDecision(intent=Intent.TRAVEL_RISK, rationale="safety question")

        def responder(persona, prompt, context):
            time.sleep(random.uniform(0, 0.02))
            return f"{persona} | {prompt}"

        service = VoyagerRoutingWorkflowService(classifier=classifier, responder=responder)
        results = [service.route("Is it safe?", _make_trip()) for _ in range(5)]

        assert all(result == results[0] for result in results)
        assert results[0].intent is Intent.TRAVEL_RISK
