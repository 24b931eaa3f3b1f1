"""
Tests for the command line interface. The completion port is replaced by
a scripted fake; no network.
"""

import json

import pytest

from voyagermate import cli
from voyagermate.shared.contracts import EvaluationFeedback, IntentDecision, ItineraryPlan
from voyagermate.shared.llm.errors import ConfigurationError
from voyagermate.tests.fakes import FakeCompletion, echo_responder


TRIP_ARGS = ["-n", "Kai", "-o", "Seattle", "-d", "Osaka", "--depart", "2025-04-03", "--return", "2025-04-12"]


def _scripted_responder(call):
    if call.schema is IntentDecision:
        return json.dumps({"intent": "BOOKING_CHANGE", "rationale": "cancelled flight"})
    if call.schema is EvaluationFeedback:
        return json.dumps({"accepted": False, "feedback": "Add a rest day"})
    if call.schema is ItineraryPlan:
        return json.dumps(
            {
                "destination_overview": "Osaka",
                "daily_schedule": [],
                "estimated_budget": 900,
            }
        )
    return echo_responder(call)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "VOYAGERMATE_MODEL",
        "AZURE_OPENAI_DEPLOYMENT",
        "VOYAGERMATE_LLM_TIMEOUT",
        "VOYAGERMATE_FANOUT_TIMEOUT",
        "VOYAGERMATE_DEBUG_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def completions(monkeypatch):
    """Patch the CLI to build scripted completions and collect them."""
    built = []

    def build(config, run_id):
        completion = FakeCompletion(_scripted_responder)
        built.append((config, completion))
        return completion

    monkeypatch.setattr(cli, "build_completion", build)
    return built


class TestWorkflowCommands:
    """Commands print results as JSON (or text) and exit 0."""

    def test_workflow(self, completions, capsys):
        assert cli.main(["workflow", *TRIP_ARGS]) == 0

        output = json.loads(capsys.readouterr().out)
        assert set(output) == {"discovery", "itinerary_draft", "risk_review", "next_steps"}
        _, completion = completions[0]
        assert "Route: Seattle to Osaka" in completion.calls[0].user_prompt

    def test_parallel_insights(self, completions, capsys):
        assert cli.main(["parallel-insights", "-d", "Osaka"]) == 0
        assert "total_latency_ms" in json.loads(capsys.readouterr().out)

    def test_route_intent(self, completions, capsys):
        assert cli.main(["route-intent", "My flight was cancelled", "-d", "Lisbon"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["intent"] == "BOOKING_CHANGE"

    def test_refine_itinerary_not_accepted(self, completions, capsys):
        assert cli.main(["refine-itinerary", "Food week", "-d", "Osaka"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["accepted"] is False
        assert len(output["rounds"]) == 3

    def test_orchestrator_workers(self, monkeypatch, capsys):
        plan = {
            "analysis": "a",
            "tasks": [
                {"role": "r1", "focus": "f1", "instruction": "i1"},
                {"role": "r2", "focus": "f2", "instruction": "i2"},
            ],
        }

        def responder(call):
            return json.dumps(plan) if call.schema is not None else "tips"

        monkeypatch.setattr(cli, "build_completion", lambda config, run_id: FakeCompletion(responder))

        assert cli.main(["orchestrator-workers", "Tapas crawl", "-d", "Barcelona"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert len(output["worker_findings"]) == 2

    def test_multi_agent_plan_prints_text(self, completions, capsys):
        assert cli.main(["multi-agent-plan", "Five days in Tokyo"]) == 0
        assert capsys.readouterr().out == "Five days in Tokyo\n"

    def test_plan_itinerary(self, completions, capsys):
        assert cli.main(["plan-itinerary", *TRIP_ARGS]) == 0
        assert json.loads(capsys.readouterr().out)["estimated_budget"] == 900.0

    def test_env_overrides_model(self, completions, monkeypatch, capsys):
        monkeypatch.setenv("VOYAGERMATE_MODEL", "gpt-4o-mini")

        cli.main(["workflow"])

        config, _ = completions[0]
        assert config.model == "gpt-4o-mini"


class TestErrors:
    """Failures print an error report on stderr and exit 1."""

    def test_invalid_date(self, completions, capsys):
        assert cli.main(["workflow", "--depart", "04/03/2025"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Validation Error: Invalid input")
        assert "Guidance:" in err

    def test_missing_configuration(self, monkeypatch, capsys):
        def build(config, run_id):
            raise ConfigurationError("OPENAI_API_KEY is not set")

        monkeypatch.setattr(cli, "build_completion", build)

        assert cli.main(["plan-itinerary"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Configuration Error")
        assert "Details: OPENAI_API_KEY is not set" in err

    def test_blank_multi_agent_request(self, completions, capsys):
        assert cli.main(["multi-agent-plan", "  "]) == 1
        assert "Validation Error" in capsys.readouterr().err


class TestParser:
    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage: voyagermate" in capsys.readouterr().out

    def test_every_command_is_registered(self):
        parser = cli.build_parser()
        subparsers = next(a for a in parser._actions if a.dest == "command")
        assert set(subparsers.choices) == set(cli.COMMANDS)

    def test_serve_defaults(self):
        args = cli.build_parser().parse_args(["serve"])
        assert (args.host, args.port) == ("127.0.0.1", 8000)

    def test_debug_log_written(self, completions, tmp_path, capsys):
        assert cli.main(["--debug-log", str(tmp_path), "workflow"]) == 0

        (run_dir,) = list(tmp_path.iterdir())
        entries = [json.loads(line) for line in (run_dir / "run_log.jsonl").read_text().splitlines()]
        assert [e["type"] for e in entries] == ["api_timing", "run_summary"]
        assert entries[-1]["workflow"] == "workflow"
