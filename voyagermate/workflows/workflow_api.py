"""
FastAPI endpoints for the VoyagerMate workflows.

One POST endpoint per workflow. Endpoints are synchronous so FastAPI runs
them in its threadpool; errors are translated with describe_error and
returned as HTTP errors carrying the report.
"""

import logging
import time
import uuid
from typing import Any, Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from voyagermate.shared.contracts import (
    ItineraryPlan,
    ParallelSummary,
    RefinementResult,
    RoutingResult,
    TripContext,
    WorkerSummary,
    WorkflowSummary,
)
from voyagermate.shared.error_report import describe_error
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.debug_logger import get_or_create_logger, remove_logger
from voyagermate.workflows.config import WorkflowConfig, build_completion, get_config
from voyagermate.workflows.itinerary import ItineraryPlannerService
from voyagermate.workflows.multi_agent import MultiAgentOrchestratorService
from voyagermate.workflows.orchestrator_workers import OrchestratorWorkersWorkflowService
from voyagermate.workflows.parallel import ParallelItineraryWorkflowService
from voyagermate.workflows.refinement import ItineraryRefinementWorkflowService
from voyagermate.workflows.routing import VoyagerRoutingWorkflowService
from voyagermate.workflows.sequential import ItineraryWorkflowService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/workflows", tags=["workflows"])

# run_id -> completion port for that run
CompletionFactory = Callable[[str], CompletionPort]


# ============================================================================
# Dependencies
# ============================================================================


def get_workflow_config() -> WorkflowConfig:
    """Configuration from the environment."""
    return get_config()


def get_completion_factory(
    config: WorkflowConfig = Depends(get_workflow_config),
) -> CompletionFactory:
    """Factory for the production completion port of a run."""
    return lambda run_id: build_completion(config, run_id)


# ============================================================================
# Request/Response Models
# ============================================================================


class TripRequest(BaseModel):
    """Request carrying only trip context."""

    trip: TripContext = Field(default_factory=TripContext, description="Trip parameters")


class RouteRequest(TripRequest):
    prompt: str = Field(min_length=1, description="Traveller request to classify and answer")


class BriefRequest(TripRequest):
    brief: str = Field(min_length=1, description="Traveller brief")


class MultiAgentRequest(BaseModel):
    user_request: str = Field(min_length=1, description="Free-text trip request")


class RunResponse(BaseModel):
    run_id: str = Field(description="Workflow run identifier")


class SequentialResponse(RunResponse):
    summary: WorkflowSummary


class ParallelResponse(RunResponse):
    summary: ParallelSummary


class RouteResponse(RunResponse):
    result: RoutingResult


class RefineResponse(RunResponse):
    accepted: bool = Field(description="False when the round limit was reached")
    result: RefinementResult


class WorkersResponse(RunResponse):
    summary: WorkerSummary


class MultiAgentResponse(RunResponse):
    plan: str


class ItineraryResponse(RunResponse):
    plan: ItineraryPlan


# ============================================================================
# Execution helper
# ============================================================================


def _execute(
    endpoint: str,
    run_id: str,
    config: WorkflowConfig,
    call: Callable[[], Any],
) -> Any:
    """
    Run a workflow call, logging timing and translating errors.

    Raises:
        HTTPException: With the error report's status and body
    """
    _log = f"[run={run_id}] [api={endpoint}] "
    debug_logger = None

    logger.info(f"{_log}Request received")
    start_time = time.perf_counter()
    try:
        if config.debug_log_dir:
            debug_logger = get_or_create_logger(run_id, config.debug_log_dir)
        result = call()
    except Exception as e:
        duration_ms = (time.perf_counter() - start_time) * 1000
        report = describe_error(e)
        logger.exception(f"{_log}Workflow failed | kind={report.kind}")
        if debug_logger:
            debug_logger.log_api_timing(endpoint, duration_ms, success=False, error=str(e))
            remove_logger(run_id)
        raise HTTPException(status_code=report.status_code, detail=report.as_dict()) from e

    duration_ms = (time.perf_counter() - start_time) * 1000
    logger.info(f"{_log}Request complete | duration={duration_ms:.0f}ms")
    if debug_logger:
        debug_logger.log_api_timing(endpoint, duration_ms)
        debug_logger.log_run_summary(endpoint)
        remove_logger(run_id)
    return result


def _new_run_id() -> str:
    return str(uuid.uuid4())


# ============================================================================
# Endpoints
#
# The completion port and service are built inside the executed call so a
# failing factory is reported like any other workflow error.
# ============================================================================


@router.post("/sequential", response_model=SequentialResponse)
def run_sequential(
    request: TripRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Run the four-step sequential planning chain."""
    run_id = _new_run_id()

    def call() -> WorkflowSummary:
        service = ItineraryWorkflowService(completion_factory(run_id), config=config)
        return service.run(request.trip, run_id)

    summary = _execute("sequential", run_id, config, call)
    return SequentialResponse(run_id=run_id, summary=summary)


@router.post("/parallel", response_model=ParallelResponse)
def run_parallel(
    request: TripRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Run the four research tracks concurrently."""
    run_id = _new_run_id()

    def call() -> ParallelSummary:
        service = ParallelItineraryWorkflowService(completion_factory(run_id), config=config)
        return service.run(request.trip, run_id)

    summary = _execute("parallel", run_id, config, call)
    return ParallelResponse(run_id=run_id, summary=summary)


@router.post("/route", response_model=RouteResponse)
def route_intent(
    request: RouteRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Classify a request and answer it with the matching persona."""
    run_id = _new_run_id()

    def call() -> RoutingResult:
        service = VoyagerRoutingWorkflowService(completion_factory(run_id), config=config)
        return service.route(request.prompt, request.trip, run_id)

    result = _execute("route", run_id, config, call)
    return RouteResponse(run_id=run_id, result=result)


@router.post("/refine", response_model=RefineResponse)
def refine_itinerary(
    request: BriefRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Refine a proposal until the reviewer accepts it or rounds run out."""
    run_id = _new_run_id()

    def call() -> RefinementResult:
        service = ItineraryRefinementWorkflowService(completion_factory(run_id), config=config)
        return service.refine(request.brief, request.trip, run_id)

    result = _execute("refine", run_id, config, call)
    return RefineResponse(run_id=run_id, accepted=result.accepted, result=result)


@router.post("/orchestrator-workers", response_model=WorkersResponse)
def orchestrate_workers(
    request: BriefRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Plan worker tasks, run them concurrently and synthesise an action plan."""
    run_id = _new_run_id()

    def call() -> WorkerSummary:
        service = OrchestratorWorkersWorkflowService(completion_factory(run_id), config=config)
        return service.orchestrate(request.brief, request.trip, run_id)

    summary = _execute("orchestrator-workers", run_id, config, call)
    return WorkersResponse(run_id=run_id, summary=summary)


@router.post("/multi-agent", response_model=MultiAgentResponse)
def plan_multi_agent(
    request: MultiAgentRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Let the lead orchestrator consult experts and write a plan."""
    run_id = _new_run_id()

    def call() -> str:
        service = MultiAgentOrchestratorService(completion_factory(run_id), config=config)
        return service.plan_trip(request.user_request, run_id)

    plan = _execute("multi-agent", run_id, config, call)
    return MultiAgentResponse(run_id=run_id, plan=plan)


@router.post("/itinerary", response_model=ItineraryResponse)
def plan_itinerary(
    request: TripRequest,
    config: WorkflowConfig = Depends(get_workflow_config),
    completion_factory: CompletionFactory = Depends(get_completion_factory),
):
    """Produce a structured day-by-day itinerary."""
    run_id = _new_run_id()

    def call() -> ItineraryPlan:
        service = ItineraryPlannerService(completion_factory(run_id), config=config)
        return service.plan(request.trip, run_id)

    plan = _execute("itinerary", run_id, config, call)
    return ItineraryResponse(run_id=run_id, plan=plan)
