"""Runs parts serially on a single worker thread."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from enum import IntEnum
from typing import Callable, List, Optional, Sequence

from ..models.outcome import Outcome, PartResult, StepState
from .part import PartController, RunEnvironment

logger = logging.getLogger(__name__)

# How often the waiting thread wakes up so Ctrl+C is noticed
RESULT_POLL = 0.25


class ExitCode(IntEnum):
    """Process exit codes of a run."""
    PASS = 0
    FAIL = 1
    ABORTED = 2
    ERROR = 3


def exit_code_for(results: Sequence[PartResult]) -> ExitCode:
    """Worst condition across the part results; INCOMPLETE and WARN still pass."""
    if any(result.has_errors for result in results):
        return ExitCode.ERROR
    if any(result.state == StepState.ABORTED or result.worst == Outcome.ABORT for result in results):
        return ExitCode.ABORTED
    if any(result.worst == Outcome.FAIL for result in results):
        return ExitCode.FAIL
    return ExitCode.PASS


class TestRunner:
    """
    Executes parts one after another on one worker thread.

    All step work, bus traffic and repository updates happen on that
    thread; cancel() may be called from any other thread.
    """

    __test__ = False

    def __init__(
        self,
        env: RunEnvironment,
        parts: Sequence[PartController],
        prepare: Optional[Callable[[RunEnvironment], None]] = None,
    ):
        """
        Args:
            env: Values shared by every step
            parts: Parts to run, in order
            prepare: Called on the worker thread before the first part
        """
        self._env = env
        self._parts = list(parts)
        self._prepare = prepare
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def parts(self) -> List[PartController]:
        return list(self._parts)

    def _run_parts(self) -> List[PartResult]:
        if self._prepare:
            self._prepare(self._env)

        results = []
        for part in self._parts:
            result = part.execute(self._env)
            results.append(result)
            if result.state != StepState.COMPLETED:
                logger.warning(f"{part.display_name} ended {result.state.value}; skipping remaining parts")
                break
        return results

    def start(self) -> Future:
        """Submit the run to the worker thread."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="j1939-84")
        return self._executor.submit(self._run_parts)

    def run(self) -> List[PartResult]:
        """
        Run all parts and wait for them to finish.

        Ctrl+C while waiting cancels the run; the parts then end ABORTED.
        Exceptions raised outside a step (in prepare) are re-raised here.
        """
        future = self.start()
        try:
            while True:
                try:
                    return future.result(timeout=RESULT_POLL)
                except FutureTimeout:
                    continue
                except KeyboardInterrupt:
                    self.cancel()
        finally:
            self.shutdown()

    def cancel(self) -> None:
        logger.info("Cancel requested")
        self._env.listener.cancel()

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
