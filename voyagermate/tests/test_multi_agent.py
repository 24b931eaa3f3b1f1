"""
Tests for the multi-agent delegate and the expert tools.
"""

import pytest

from voyagermate.tests.fakes import FakeCompletion
from voyagermate.tools.experts import (
    EXPERTS,
    DelegationBudget,
    DelegationLimitError,
    build_expert_tools,
)
from voyagermate.workflows.config import WorkflowConfig
from voyagermate.workflows.multi_agent import LEAD_PROMPT, MultiAgentOrchestratorService


PERSONAS = {expert.persona: expert.tool_name for expert in EXPERTS}


def _make_completion(delegations):
    """
    Lead consults the experts named in ``delegations`` and joins their
    answers; experts answer with their tool name and the query.
    """
    outcomes = []

    def responder(call):
        if call.system_prompt == LEAD_PROMPT:
            tools = {tool.name: tool for tool in call.tools}
            for name in delegations:
                try:
                    outcomes.append(tools[name].invoke({"query": f"{name}?"}))
                except DelegationLimitError as e:
                    outcomes.append(f"ERROR: {e}")
            return " | ".join(outcomes)
        return f"{PERSONAS[call.system_prompt]} says: {call.user_prompt}"

    return FakeCompletion(responder), outcomes


class TestMultiAgentOrchestratorService:
    """Tests for plan_trip."""

    def test_lead_gets_three_expert_tools(self):
        completion, _ = _make_completion([])

        MultiAgentOrchestratorService(completion).plan_trip("Five days in Tokyo")

        lead_call = completion.calls[0]
        assert lead_call.user_prompt == "Five days in Tokyo"
        assert sorted(tool.name for tool in lead_call.tools) == [
            "ask_accommodation_expert",
            "ask_activity_expert",
            "ask_logistics_expert",
        ]

    def test_experts_are_fresh_persona_calls(self):
        completion, _ = _make_completion(["ask_logistics_expert", "ask_activity_expert"])

        plan = MultiAgentOrchestratorService(completion).plan_trip("Tokyo with kids")

        assert plan == (
            "ask_logistics_expert says: ask_logistics_expert? | "
            "ask_activity_expert says: ask_activity_expert?"
        )
        expert_calls = completion.calls[1:]
        assert [c.tools for c in expert_calls] == [None, None]
        assert {c.system_prompt for c in expert_calls} <= set(PERSONAS)

    def test_delegation_budget_enforced(self):
        """Consultations beyond max_delegations are refused inside the tool."""
        completion, outcomes = _make_completion(["ask_activity_expert"] * 3)
        service = MultiAgentOrchestratorService(
            completion, config=WorkflowConfig(max_delegations=2)
        )

        service.plan_trip("Lots of activities")

        assert outcomes[0].startswith("ask_activity_expert says")
        assert outcomes[1].startswith("ask_activity_expert says")
        assert outcomes[2].startswith("ERROR: Delegation budget of 2")
        # Lead call plus two expert calls
        assert len(completion.calls) == 3

    def test_budget_is_per_request(self):
        completion, outcomes = _make_completion(["ask_logistics_expert"] * 2)
        service = MultiAgentOrchestratorService(
            completion, config=WorkflowConfig(max_delegations=2)
        )

        service.plan_trip("first")
        service.plan_trip("second")

        assert not any(outcome.startswith("ERROR") for outcome in outcomes)

    def test_blank_request_rejected(self):
        completion, _ = _make_completion([])
        with pytest.raises(ValueError):
            MultiAgentOrchestratorService(completion).plan_trip("   ")
        assert completion.calls == []


class TestDelegationBudget:
    """Tests for DelegationBudget."""

    def test_spend_until_exhausted(self):
        budget = DelegationBudget(max_delegations=1)
        budget.spend("ask_logistics_expert")

        with pytest.raises(DelegationLimitError, match="ask_activity_expert"):
            budget.spend("ask_activity_expert")
        assert budget.used == 1

    def test_zero_budget(self):
        with pytest.raises(DelegationLimitError):
            DelegationBudget(max_delegations=0).spend("ask_logistics_expert")

    def test_negative_budget_rejected(self):
        with pytest.raises(ValueError):
            DelegationBudget(max_delegations=-1)


class TestBuildExpertTools:
    def test_tool_schema_requires_query(self):
        completion = FakeCompletion(lambda call: "ok")
        tools = build_expert_tools(completion, DelegationBudget())

        definition = tools[0].to_openai()
        assert definition["type"] == "function"
        assert definition["function"]["parameters"]["required"] == ["query"]

    def test_shared_budget_across_experts(self):
        completion = FakeCompletion(lambda call: "ok")
        budget = DelegationBudget(max_delegations=2)
        tools = build_expert_tools(completion, budget)

        tools[0].invoke({"query": "a"})
        tools[1].invoke({"query": "b"})
        with pytest.raises(DelegationLimitError):
            tools[2].invoke({"query": "c"})
