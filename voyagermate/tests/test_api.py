"""
Tests for the HTTP surface. Workflow endpoints run against a scripted
completion port injected through the dependency overrides.
"""

import json

import pytest
from fastapi.testclient import TestClient

from voyagermate.main import app
from voyagermate.shared.contracts import (
    EvaluationFeedback,
    IntentDecision,
    ItineraryPlan,
    WorkerPlan,
)
from voyagermate.shared.llm.errors import ConfigurationError, TransportError
from voyagermate.tests.fakes import FakeCompletion, echo_responder
from voyagermate.workflows.config import WorkflowConfig
from voyagermate.workflows.workflow_api import get_completion_factory, get_workflow_config


ITINERARY = {
    "destination_overview": "Osaka pairs street food with easy day trips.",
    "highlights": ["Dotonbori night walk"],
    "daily_schedule": [
        {
            "day": "Day 1 - 2025-04-03",
            "theme": "Arrival",
            "activities": ["Kuromon market"],
            "dining_recommendation": "Ramen in Namba",
        }
    ],
    "booking_reminders": ["Reserve a teamLab slot"],
    "estimated_budget": 1760.0,
}

WORKER_PLAN = {
    "analysis": "Osaka food trip",
    "tasks": [
        {"role": "Food scout", "focus": "dining", "instruction": "Find markets"},
        {"role": "Rail scout", "focus": "transit", "instruction": "Find passes"},
    ],
}


def _scripted_responder(call):
    if call.schema is IntentDecision:
        return json.dumps({"intent": "CONCIERGE", "rationale": "wants ideas"})
    if call.schema is EvaluationFeedback:
        return json.dumps({"accepted": True, "feedback": "Ship it"})
    if call.schema is WorkerPlan:
        return json.dumps(WORKER_PLAN)
    if call.schema is ItineraryPlan:
        return json.dumps(ITINERARY)
    return echo_responder(call)


def _rate_limited(call):
    raise TransportError("Rate limit reached for requests", status_code=429)


@pytest.fixture
def make_client():
    """Build a TestClient whose runs use ``responder`` and ``config``."""
    completions = []

    def factory(responder=_scripted_responder, config=None):
        config = config or WorkflowConfig()

        def completion_factory(run_id):
            completion = FakeCompletion(responder)
            completions.append(completion)
            return completion

        app.dependency_overrides[get_workflow_config] = lambda: config
        app.dependency_overrides[get_completion_factory] = lambda: completion_factory
        return TestClient(app), completions

    yield factory
    app.dependency_overrides.clear()


TRIP = {
    "traveller_name": "Kai",
    "origin_city": "Seattle",
    "destination_city": "Osaka",
    "departure_date": "2025-04-03",
    "return_date": "2025-04-12",
    "budget_focus": "balanced",
    "interests": ["food", "design"],
}


class TestAppEndpoints:
    def test_root_lists_workflows(self, make_client):
        client, _ = make_client()
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["workflows"]["routing"] == "/api/workflows/route"

    def test_health(self, make_client):
        client, _ = make_client()
        assert client.get("/health").json() == {"status": "healthy"}


class TestWorkflowEndpoints:
    """Happy paths for every workflow endpoint."""

    def test_sequential(self, make_client):
        client, completions = make_client()

        response = client.post("/api/workflows/sequential", json={"trip": TRIP})

        assert response.status_code == 200
        body = response.json()
        assert body["run_id"]
        assert set(body["summary"]) == {"discovery", "itinerary_draft", "risk_review", "next_steps"}
        assert len(completions[0].calls) == 4

    def test_sequential_without_trip_uses_defaults(self, make_client):
        client, completions = make_client()

        response = client.post("/api/workflows/sequential", json={})

        assert response.status_code == 200
        assert "Traveller: Guest Traveller" in completions[0].calls[0].user_prompt

    def test_parallel(self, make_client):
        client, completions = make_client()

        response = client.post("/api/workflows/parallel", json={"trip": TRIP})

        assert response.status_code == 200
        assert response.json()["summary"]["total_latency_ms"] >= 0
        assert len(completions[0].calls) == 4

    def test_route(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/api/workflows/route", json={"prompt": "Ideas for a rainy day?", "trip": TRIP}
        )

        assert response.status_code == 200
        result = response.json()["result"]
        assert result["intent"] == "CONCIERGE"
        assert result["rationale"] == "wants ideas"

    def test_refine(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/api/workflows/refine", json={"brief": "Food and design week", "trip": TRIP}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["accepted"] is True
        assert len(body["result"]["rounds"]) == 1

    def test_orchestrator_workers(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/api/workflows/orchestrator-workers", json={"brief": "Eat through Osaka"}
        )

        assert response.status_code == 200
        findings = response.json()["summary"]["worker_findings"]
        assert [f["role"] for f in findings] == ["Food scout", "Rail scout"]

    def test_multi_agent(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/api/workflows/multi-agent", json={"user_request": "Five days in Tokyo"}
        )

        assert response.status_code == 200
        assert response.json()["plan"] == "Five days in Tokyo"

    def test_itinerary(self, make_client):
        client, completions = make_client()

        response = client.post("/api/workflows/itinerary", json={"trip": TRIP})

        assert response.status_code == 200
        assert response.json()["plan"]["estimated_budget"] == 1760.0
        assert completions[0].calls[0].schema is ItineraryPlan

    def test_each_request_gets_its_own_run(self, make_client):
        client, completions = make_client()

        first = client.post("/api/workflows/sequential", json={}).json()
        second = client.post("/api/workflows/sequential", json={}).json()

        assert first["run_id"] != second["run_id"]
        assert len(completions) == 2


class TestErrorHandling:
    """Errors surface as HTTP errors carrying the error report."""

    def test_transport_error_maps_to_report(self, make_client):
        client, _ = make_client(responder=_rate_limited)

        response = client.post("/api/workflows/parallel", json={"trip": TRIP})

        assert response.status_code == 429
        detail = response.json()["detail"]
        assert detail["kind"] == "rate_limit"
        assert "Rate limit reached" in detail["technical_details"]

    def test_undecodable_reply_is_bad_gateway(self, make_client):
        client, _ = make_client(responder=lambda call: "not json at all")

        response = client.post("/api/workflows/route", json={"prompt": "Hello"})

        assert response.status_code == 502
        assert response.json()["detail"]["kind"] == "response_format"

    def test_blank_prompt_rejected(self, make_client):
        client, completions = make_client()

        response = client.post("/api/workflows/route", json={"prompt": ""})

        assert response.status_code == 422
        assert completions == []

    def test_invalid_trip_date_rejected(self, make_client):
        client, _ = make_client()

        response = client.post(
            "/api/workflows/sequential", json={"trip": {"departure_date": "next week"}}
        )

        assert response.status_code == 422

    def test_non_string_interests_rejected(self, make_client):
        client, completions = make_client()

        response = client.post(
            "/api/workflows/sequential", json={"trip": {"interests": ["ramen", 1]}}
        )

        assert response.status_code == 422
        assert completions == []

    def test_failing_completion_factory_maps_to_report(self, make_client):
        client, _ = make_client()

        def missing_credentials(run_id):
            raise ConfigurationError("OPENAI_API_KEY is not set")

        app.dependency_overrides[get_completion_factory] = lambda: missing_credentials

        response = client.post("/api/workflows/itinerary", json={"trip": TRIP})

        assert response.status_code == 500
        detail = response.json()["detail"]
        assert detail["kind"] == "configuration"
        assert "OPENAI_API_KEY" in detail["technical_details"]

    def test_debug_log_records_failed_request(self, make_client, tmp_path):
        client, _ = make_client(
            responder=_rate_limited, config=WorkflowConfig(debug_log_dir=str(tmp_path))
        )

        run_id_dirs_before = set(tmp_path.iterdir())
        response = client.post("/api/workflows/sequential", json={})
        assert response.status_code == 429

        (run_dir,) = set(tmp_path.iterdir()) - run_id_dirs_before
        entries = [json.loads(line) for line in (run_dir / "run_log.jsonl").read_text().splitlines()]
        assert entries[-1]["type"] == "api_timing"
        assert entries[-1]["success"] is False
