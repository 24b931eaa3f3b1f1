"""
Concurrent fan-out helpers shared by the parallel and orchestrator/workers
workflows.

Branches are submitted to an executor together and joined with
``wait(return_when=FIRST_EXCEPTION)``. Results are assembled by branch
position, never by completion order. The join is all-or-nothing: the first
failure (lowest branch index among failed branches) is re-raised and
not-yet-started siblings are cancelled.
"""

import logging
from concurrent.futures import (
    FIRST_EXCEPTION,
    Executor,
    Future,
    ThreadPoolExecutor,
    wait,
)
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


class FanOutTimeoutError(TimeoutError):
    """Raised when branches are still running at the join deadline."""


@contextmanager
def executor_scope(
    executor: Optional[Executor],
    branches: int,
    max_workers: int = 8,
) -> Iterator[Executor]:
    """
    Yield the injected executor, or a per-run thread pool.

    The per-run pool is sized to the branch count (capped by max_workers) so
    branches do not serialise, and is shut down without waiting for
    stragglers once the join has returned or failed.
    """
    if executor is not None:
        yield executor
        return

    pool = ThreadPoolExecutor(
        max_workers=max(1, min(branches, max_workers)),
        thread_name_prefix="voyagermate-fanout",
    )
    try:
        yield pool
    finally:
        pool.shutdown(wait=False, cancel_futures=True)


def run_concurrently(
    calls: Sequence[Callable[[], T]],
    executor: Executor,
    timeout: Optional[float] = None,
) -> List[T]:
    """
    Run every call on the executor and return results in call order.

    Args:
        calls: Zero-argument callables, one per branch
        executor: Executor the branches are submitted to
        timeout: Join deadline in seconds (None waits indefinitely)

    Returns:
        List of results, positionally aligned with ``calls``

    Raises:
        The exception of the lowest-index failed branch
        FanOutTimeoutError: If branches are still pending at the deadline
    """
    if not calls:
        return []

    futures: List[Future] = [executor.submit(call) for call in calls]
    done, pending = wait(futures, timeout=timeout, return_when=FIRST_EXCEPTION)

    failed = [f for f in futures if f in done and f.exception() is not None]
    if failed:
        cancelled = sum(1 for f in pending if f.cancel())
        first = failed[0]
        logger.warning(
            f"Fan-out branch {futures.index(first)} failed "
            f"({type(first.exception()).__name__}); cancelled {cancelled} pending branch(es)"
        )
        raise first.exception()

    if pending:
        for future in pending:
            future.cancel()
        raise FanOutTimeoutError(
            f"{len(pending)} of {len(futures)} branch(es) still running after {timeout}s"
        )

    return [future.result() for future in futures]
