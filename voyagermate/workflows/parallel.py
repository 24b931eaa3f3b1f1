"""
Parallel fan-out workflow.

Dispatches four research tracks (lodging, dining, logistics, culture)
concurrently against the same trip context and joins them into a
ParallelSummary. Results are assigned by track, not by completion order.
"""

import logging
import time
import uuid
from concurrent.futures import Executor
from typing import Optional, Tuple

from voyagermate.shared.contracts import ParallelSummary, TripContext, render_context
from voyagermate.shared.llm.completion import CompletionPort
from voyagermate.shared.logging.config import log_workflow_event
from voyagermate.workflows.config import WorkflowConfig, DEFAULT_CONFIG, completion_scope
from voyagermate.workflows.fanout import executor_scope, run_concurrently
from voyagermate.workflows.sequential import StepRunner


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are VoyagerMate running concurrent research tracks. "
    "Respond with concise bullet lists focused on actionable travel guidance."
)

# (ParallelSummary field, instruction), in dispatch order
TRACKS: Tuple[Tuple[str, str], ...] = (
    (
        "lodging_insights",
        "Produce 3 lodging strategies (boutique, mid-range, splurge) including "
        "neighbourhood pros/cons.",
    ),
    (
        "dining_highlights",
        "Highlight dining hits: breakfast staples, lunch-on-the-go, evening tasting experiences.",
    ),
    (
        "logistics_advisory",
        "Summarise transport + budget watchpoints (local transit, day-trip transfers, passes).",
    ),
    (
        "cultural_moments",
        "Suggest cultural immersion moves (festivals, community tours, mindful etiquette "
        "reminders).",
    ),
)


def completion_track_runner(completion: CompletionPort) -> StepRunner:
    """Track runner sending each instruction plus context as one completion call."""

    def run_track(instruction: str, context: str) -> str:
        return completion.complete(SYSTEM_PROMPT, f"{instruction}\n---\n{context}")

    return run_track


class ParallelItineraryWorkflowService:
    """
    Concurrent four-track research workflow.

    Tracks run on the injected executor, or on a per-run thread pool sized
    to the number of tracks. The join is all-or-nothing.
    """

    def __init__(
        self,
        completion: Optional[CompletionPort] = None,
        track_runner: Optional[StepRunner] = None,
        executor: Optional[Executor] = None,
        config: Optional[WorkflowConfig] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._completion = completion
        self._track_runner = track_runner
        self._executor = executor

    def run(self, trip: Optional[TripContext] = None, run_id: Optional[str] = None) -> ParallelSummary:
        """
        Run all tracks concurrently for a trip.

        Raises:
            The first track failure, unchanged
            FanOutTimeoutError: If tracks outlive the fan-out deadline
        """
        run_id = run_id or str(uuid.uuid4())
        _log = f"[run={run_id}] [workflow=parallel] "

        context = render_context(trip)

        log_workflow_event("run_started", run_id, "parallel", {"tracks": len(TRACKS)})
        logger.info(f"{_log}Dispatching {len(TRACKS)} tracks")

        start_time = time.perf_counter()
        with completion_scope(
            self._completion, self.config, run_id, required=self._track_runner is None
        ) as completion:
            track_runner = self._track_runner or completion_track_runner(completion)
            calls = [
                (lambda instruction=instruction: track_runner(instruction, context))
                for _, instruction in TRACKS
            ]
            with executor_scope(self._executor, len(calls), self.config.max_workers) as executor:
                outputs = run_concurrently(calls, executor, timeout=self.config.fanout_timeout)
        total_latency_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(f"{_log}All tracks joined | latency={total_latency_ms}ms")
        log_workflow_event(
            "run_complete", run_id, "parallel", {"total_latency_ms": total_latency_ms}
        )

        return ParallelSummary(
            **{field: output for (field, _), output in zip(TRACKS, outputs)},
            total_latency_ms=total_latency_ms,
        )
