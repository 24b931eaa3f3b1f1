"""
Orchestrator/workers workflow.

An orchestrator analyses the traveller brief and plans 2-4 worker tasks,
the workers run concurrently, and the orchestrator synthesises their
findings (kept in task order) into an action plan.

The graph structure is:
    Entry -> plan_tasks -> execute -> synthesize -> END
"""

import logging
import uuid
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Optional, Sequence

from langgraph.graph import StateGraph, END

from voyagermate.shared.contracts import (
    TripContext,
    WorkerFinding,
    WorkerPlan,
    WorkerSummary,
    WorkerTask,
    render_context,
)
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope
from voyagermate.workflows.fanout import executor_scope, run_concurrently
from voyagermate.workflows.state import WorkerState


logger = logging.getLogger(__name__)

# (brief, context) -> plan
TaskPlanner = Callable[[str, str], WorkerPlan]
# (task, context) -> finding
WorkerExecutor = Callable[[WorkerTask, str], WorkerFinding]
# (analysis, findings, context) -> action plan
SynthesisAgent = Callable[[str, Sequence[WorkerFinding], str], str]

PLANNER_PROMPT = (
    "You are VoyagerMate's task orchestrator.\n"
    "Analyse the traveller brief and propose 2-4 worker tasks."
)

WORKER_PROMPT = (
    "You are a specialised VoyagerMate worker focused on {focus}.\n"
    "Return concise bullet points with concrete tips."
)

SYNTHESIS_PROMPT = (
    "You are VoyagerMate's orchestrator summarising worker results.\n"
    "Deliver a short action plan plus callouts for human follow-up."
)


def format_findings(findings: Sequence[WorkerFinding]) -> str:
    """One ``- role (focus): output`` line per finding, in order."""
    return "\n".join(
        f"- {finding.role} ({finding.focus}): {finding.output}" for finding in findings
    )


def completion_planner(completion: CompletionPort) -> TaskPlanner:
    def plan(brief: str, context: str) -> WorkerPlan:
        return completion.complete(
            PLANNER_PROMPT,
            f"Traveller brief:\n{brief}\n\nTrip context:\n{context}\n",
            schema=WorkerPlan,
        )

    return plan


def completion_worker(completion: CompletionPort) -> WorkerExecutor:
    def execute(task: WorkerTask, context: str) -> WorkerFinding:
        output = completion.complete(
            WORKER_PROMPT.format(focus=task.focus),
            f"Role: {task.role}\nInstruction: {task.instruction}\n\nTrip context:\n{context}\n",
        )
        return WorkerFinding(role=task.role, focus=task.focus, output=output)

    return execute


def completion_synthesis(completion: CompletionPort) -> SynthesisAgent:
    def synthesise(analysis: str, findings: Sequence[WorkerFinding], context: str) -> str:
        return completion.complete(
            SYNTHESIS_PROMPT,
            f"Orchestrator analysis:\n{analysis}\n\n"
            f"Worker findings:\n{format_findings(findings)}\n\n"
            f"Traveller context:\n{context}\n",
        )

    return synthesise


def create_workers_graph(
    planner: TaskPlanner,
    worker: WorkerExecutor,
    synthesis: SynthesisAgent,
    executor: Optional[Executor] = None,
    config: Optional[WorkflowConfig] = None,
):
    """
    Create and compile the orchestrator/workers graph.

    Args:
        planner: Callable planning worker tasks
        worker: Callable executing one task
        synthesis: Callable merging findings into an action plan
        executor: Executor for the workers (per-run pool when None)
        config: Optional configuration. Uses DEFAULT_CONFIG if not provided.

    Returns:
        Compiled LangGraph application ready for execution.
    """
    if config is None:
        config = DEFAULT_CONFIG

    def plan_node(state: WorkerState) -> Dict[str, Any]:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=orchestrator_workers] [node=plan_tasks] "

        logger.info(f"{_log}Entering node")
        plan = planner(state["brief"], state["context"])
        logger.info(
            f"{_log}Plan ready | tasks={len(plan.tasks)}, "
            f"roles={[task.role for task in plan.tasks]}"
        )
        return {"plan": plan}

    def execute_node(state: WorkerState) -> Dict[str, Any]:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=orchestrator_workers] [node=execute] "

        tasks = state["plan"].tasks
        context = state["context"]
        calls = [(lambda task=task: worker(task, context)) for task in tasks]

        logger.info(f"{_log}Dispatching {len(calls)} workers")
        with executor_scope(executor, len(calls), config.max_workers) as pool:
            outputs = run_concurrently(calls, pool, timeout=config.fanout_timeout)
        logger.info(f"{_log}All workers joined | findings={len(outputs)}")

        # Role and focus always come from the planned task
        findings = [
            WorkerFinding(role=task.role, focus=task.focus, output=finding.output)
            for task, finding in zip(tasks, outputs)
        ]
        return {"findings": findings}

    def synthesize_node(state: WorkerState) -> Dict[str, Any]:
        run_id = state.get("run_id", "unknown")
        _log = f"[run={run_id}] [workflow=orchestrator_workers] [node=synthesize] "

        logger.info(f"{_log}Entering node | findings={len(state['findings'])}")
        action_plan = synthesis(state["plan"].analysis, state["findings"], state["context"])
        return {"action_plan": action_plan}

    graph = StateGraph(WorkerState)
    graph.add_node("plan_tasks", plan_node)
    graph.add_node("execute", execute_node)
    graph.add_node("synthesize", synthesize_node)

    graph.set_entry_point("plan_tasks")
    graph.add_edge("plan_tasks", "execute")
    graph.add_edge("execute", "synthesize")
    graph.add_edge("synthesize", END)

    return graph.compile()


class OrchestratorWorkersWorkflowService:
    """Plan, run workers concurrently, synthesise."""

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        planner: Optional[TaskPlanner] = None,
        worker: Optional[WorkerExecutor] = None,
        synthesis: Optional[SynthesisAgent] = None,
        executor: Optional[Executor] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._completion = completion
        self._planner = planner
        self._worker = worker
        self._synthesis = synthesis
        self._executor = executor

    def orchestrate(
        self,
        brief: str,
        trip: Optional[TripContext] = None,
        run_id: Optional[str] = None,
    ) -> WorkerSummary:
        """
        Plan and run worker tasks for ``brief``.

        Raises:
            DecodeError: If the plan is malformed (no worker runs)
            The first worker failure, unchanged
        """
        run_id = run_id or str(uuid.uuid4())

        log_workflow_event("run_started", run_id, "orchestrator_workers")

        initial_state: WorkerState = {
            "brief": brief,
            "context": render_context(trip),
            "plan": None,
            "findings": [],
            "action_plan": None,
            "run_id": run_id,
        }
        needs_completion = self._planner is None or self._worker is None or self._synthesis is None
        with completion_scope(
            self._completion, self.config, run_id, required=needs_completion
        ) as completion:
            planner = self._planner or completion_planner(completion)
            worker = self._worker or completion_worker(completion)
            synthesis = self._synthesis or completion_synthesis(completion)
            graph = create_workers_graph(planner, worker, synthesis, self._executor, self.config)
            final_state = graph.invoke(
                initial_state, config={"recursion_limit": self.config.recursion_limit}
            )

        findings = tuple(final_state["findings"])
        log_workflow_event(
            "run_complete", run_id, "orchestrator_workers", {"findings": len(findings)}
        )
        return WorkerSummary(
            analysis=final_state["plan"].analysis,
            worker_findings=findings,
            action_plan=final_state["action_plan"],
        )
