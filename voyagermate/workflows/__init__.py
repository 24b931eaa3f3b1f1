"""
VoyagerMate workflows.

Each service runs one self-contained workflow per call:
- sequential: four-step planning chain
- parallel: concurrent four-track research fan-out
- routing: intent classification plus persona response
- refinement: bounded generator/evaluator loop
- orchestrator_workers: planned tasks run by concurrent workers
- multi_agent: lead orchestrator delegating to expert tools
- itinerary: tool-assisted structured itinerary planner
"""

from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, get_config
from voyagermate.workflows.sequential import ItineraryWorkflowService
from voyagermate.workflows.parallel import ParallelItineraryWorkflowService
from voyagermate.workflows.routing import VoyagerRoutingWorkflowService
from voyagermate.workflows.refinement import ItineraryRefinementWorkflowService
from voyagermate.workflows.orchestrator_workers import OrchestratorWorkersWorkflowService
from voyagermate.workflows.multi_agent import MultiAgentOrchestratorService
from voyagermate.workflows.itinerary import ItineraryPlannerService

__all__ = [
    "WorkflowConfig",
    "DEFAULT_CONFIG",
    "get_config",
    "ItineraryWorkflowService",
    "ParallelItineraryWorkflowService",
    "VoyagerRoutingWorkflowService",
    "ItineraryRefinementWorkflowService",
    "OrchestratorWorkersWorkflowService",
    "MultiAgentOrchestratorService",
    "ItineraryPlannerService",
]
