"""
VoyagerMate CLI.

Commands:
    workflow              Four-step sequential planning chain
    parallel-insights     Concurrent lodging/dining/logistics/culture tracks
    route-intent          Classify a request and answer with the right persona
    refine-itinerary      Generator/evaluator refinement loop
    orchestrator-workers  Planned worker tasks run concurrently
    multi-agent-plan      Lead orchestrator consulting expert tools
    plan-itinerary        Structured day-by-day itinerary
    serve                 Run the HTTP API

Examples:
    voyagermate workflow -n Kai -o Seattle -d Osaka --depart 2025-04-03 --return 2025-04-10
    voyagermate route-intent "My flight was cancelled, can I rebook?" -d Lisbon
    voyagermate refine-itinerary "Food-focused week with one rest day" -d Osaka -b balanced
    voyagermate multi-agent-plan "Five days in Tokyo for a family of four in April"
"""

import argparse
import json
import logging
import sys
import time
import uuid
from typing import Any, Callable, List, Optional

from voyagermate.shared.contracts import TripContext
from voyagermate.shared.error_report import describe_error, format_error_report
from voyagermate.shared.logging.config import setup_logging
from voyagermate.shared.logging.debug_logger import get_or_create_logger, remove_logger
from voyagermate.workflows.config import WorkflowConfig, build_completion, get_config


logger = logging.getLogger("voyagermate.cli")


def _trip_from_args(args: argparse.Namespace) -> TripContext:
    return TripContext(
        traveller_name=args.name,
        origin_city=args.origin,
        destination_city=args.destination,
        departure_date=args.depart,
        return_date=args.return_date,
        budget_focus=args.budget,
        interests=args.interests,
    )


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


def _run(
    args: argparse.Namespace,
    command: str,
    call: Callable[[WorkflowConfig, str], Any],
) -> int:
    """
    Run one workflow command and print its result.

    Errors are printed as an error report on stderr with exit code 1.
    """
    run_id = str(uuid.uuid4())
    _log = f"[run={run_id}] [cli={command}] "
    start_time = time.perf_counter()

    config = None
    try:
        config = get_config(debug_log_dir=args.debug_log)
        output = call(config, run_id)
    except Exception as e:
        logger.debug(f"{_log}Command failed", exc_info=True)
        print(format_error_report(describe_error(e)), file=sys.stderr)
        _finish_debug_log(config, run_id, command, start_time, error=str(e))
        return 1

    if isinstance(output, str):
        print(output)
    else:
        _print_json(output)
    _finish_debug_log(config, run_id, command, start_time)
    return 0


def _finish_debug_log(
    config: Optional[WorkflowConfig],
    run_id: str,
    command: str,
    start_time: float,
    error: str = "",
) -> None:
    if config is None or not config.debug_log_dir:
        return
    debug_logger = get_or_create_logger(run_id, config.debug_log_dir)
    duration_ms = (time.perf_counter() - start_time) * 1000
    debug_logger.log_api_timing(command, duration_ms, success=not error, error=error)
    debug_logger.log_run_summary(command)
    remove_logger(run_id)
    logger.info(f"Debug log written to {debug_logger.log_file}")


# ============================================================================
# Commands
# ============================================================================


def cmd_workflow(args: argparse.Namespace) -> int:
    """Handle workflow command."""
    from voyagermate.workflows.sequential import ItineraryWorkflowService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = ItineraryWorkflowService(build_completion(config, run_id), config=config)
        return service.run(_trip_from_args(args), run_id).model_dump(mode="json")

    return _run(args, "workflow", call)


def cmd_parallel_insights(args: argparse.Namespace) -> int:
    """Handle parallel-insights command."""
    from voyagermate.workflows.parallel import ParallelItineraryWorkflowService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = ParallelItineraryWorkflowService(build_completion(config, run_id), config=config)
        return service.run(_trip_from_args(args), run_id).model_dump(mode="json")

    return _run(args, "parallel-insights", call)


def cmd_route_intent(args: argparse.Namespace) -> int:
    """Handle route-intent command."""
    from voyagermate.workflows.routing import VoyagerRoutingWorkflowService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = VoyagerRoutingWorkflowService(build_completion(config, run_id), config=config)
        return service.route(args.prompt, _trip_from_args(args), run_id).model_dump(mode="json")

    return _run(args, "route-intent", call)


def cmd_refine_itinerary(args: argparse.Namespace) -> int:
    """Handle refine-itinerary command."""
    from voyagermate.workflows.refinement import ItineraryRefinementWorkflowService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = ItineraryRefinementWorkflowService(
            build_completion(config, run_id), config=config
        )
        result = service.refine(args.brief, _trip_from_args(args), run_id)
        if not result.accepted:
            logger.warning(
                f"[run={run_id}] [cli=refine-itinerary] No draft accepted after "
                f"{len(result.rounds)} round(s); returning the last draft"
            )
        return {"accepted": result.accepted, **result.model_dump(mode="json")}

    return _run(args, "refine-itinerary", call)


def cmd_orchestrator_workers(args: argparse.Namespace) -> int:
    """Handle orchestrator-workers command."""
    from voyagermate.workflows.orchestrator_workers import OrchestratorWorkersWorkflowService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = OrchestratorWorkersWorkflowService(
            build_completion(config, run_id), config=config
        )
        return service.orchestrate(args.brief, _trip_from_args(args), run_id).model_dump(
            mode="json"
        )

    return _run(args, "orchestrator-workers", call)


def cmd_multi_agent_plan(args: argparse.Namespace) -> int:
    """Handle multi-agent-plan command."""
    from voyagermate.workflows.multi_agent import MultiAgentOrchestratorService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = MultiAgentOrchestratorService(build_completion(config, run_id), config=config)
        return service.plan_trip(args.request, run_id)

    return _run(args, "multi-agent-plan", call)


def cmd_plan_itinerary(args: argparse.Namespace) -> int:
    """Handle plan-itinerary command."""
    from voyagermate.workflows.itinerary import ItineraryPlannerService

    def call(config: WorkflowConfig, run_id: str) -> Any:
        service = ItineraryPlannerService(build_completion(config, run_id), config=config)
        return service.plan(_trip_from_args(args), run_id).model_dump(mode="json")

    return _run(args, "plan-itinerary", call)


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle serve command."""
    import uvicorn

    uvicorn.run("voyagermate.main:app", host=args.host, port=args.port)
    return 0


# ============================================================================
# Parser
# ============================================================================


def _trip_options() -> argparse.ArgumentParser:
    trip = argparse.ArgumentParser(add_help=False)
    group = trip.add_argument_group("trip")
    group.add_argument("-n", "--name", help="Traveller name")
    group.add_argument("-o", "--origin", help="Origin city")
    group.add_argument("-d", "--destination", help="Destination city")
    group.add_argument("--depart", help="Departure date (YYYY-MM-DD)")
    group.add_argument("--return", dest="return_date", help="Return date (YYYY-MM-DD)")
    group.add_argument("-b", "--budget", help="Budget focus (e.g. budget, balanced, premium)")
    group.add_argument("-i", "--interests", help="Comma separated interests")
    return trip


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voyagermate",
        description="Travel-planning workflows powered by OpenAI.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug details to stderr",
    )
    parser.add_argument(
        "--log-file",
        help="Also write JSON logs to this file",
    )
    parser.add_argument(
        "--debug-log",
        metavar="DIR",
        help="Write a per-run JSONL debug log (prompts, replies, tokens, cost) under DIR",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    trip = _trip_options()

    subparsers.add_parser(
        "workflow", parents=[trip], help="Four-step sequential planning chain"
    )
    subparsers.add_parser(
        "parallel-insights", parents=[trip], help="Concurrent research tracks"
    )

    route_parser = subparsers.add_parser(
        "route-intent", parents=[trip], help="Classify a request and answer it"
    )
    route_parser.add_argument("prompt", help="Traveller request")

    refine_parser = subparsers.add_parser(
        "refine-itinerary", parents=[trip], help="Generator/evaluator refinement loop"
    )
    refine_parser.add_argument("brief", help="Traveller brief")

    workers_parser = subparsers.add_parser(
        "orchestrator-workers", parents=[trip], help="Planned worker tasks run concurrently"
    )
    workers_parser.add_argument("brief", help="Traveller brief")

    multi_parser = subparsers.add_parser(
        "multi-agent-plan", help="Lead orchestrator consulting expert tools"
    )
    multi_parser.add_argument("request", help="Free-text trip request")

    subparsers.add_parser(
        "plan-itinerary", parents=[trip], help="Structured day-by-day itinerary"
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port")

    return parser


COMMANDS = {
    "workflow": cmd_workflow,
    "parallel-insights": cmd_parallel_insights,
    "route-intent": cmd_route_intent,
    "refine-itinerary": cmd_refine_itinerary,
    "orchestrator-workers": cmd_orchestrator_workers,
    "multi-agent-plan": cmd_multi_agent_plan,
    "plan-itinerary": cmd_plan_itinerary,
    "serve": cmd_serve,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file,
    )
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
