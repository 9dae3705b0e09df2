from datetime import datetime, timezone
from typing import Optional
import asyncio
import inspect
import logging
import time

from .models import Outcome, Scenario, ScenarioResult

logger = logging.getLogger(__name__)


def _drain(task: asyncio.Task):
    # retrieve the exception of an abandoned body so asyncio does not warn
    if not task.cancelled():
        task.exception()


class ScenarioRunner:
    """Runs one scenario body under a deadline and classifies how it ended.

    The body runs as its own task and is raced against the timeout. The
    first of the two to finish decides the outcome:

    * body returned: Passed
    * body raised AssertionError (ExpectationFailed included): Failed
    * body raised anything else: Errored
    * deadline elapsed: TimedOut, and the body task is cancelled

    Synchronous bodies run in a worker thread. A body that finishes but
    took longer than its deadline (one that blocked the event loop) is
    still TimedOut.

    Cancellation is best effort. Side effects of an action already in
    flight (a submitted request, a started navigation) are not undone.
    """

    def __init__(self, cancel_grace_s: float = 0.05):
        self.cancel_grace_s = cancel_grace_s

    async def run(self, scenario: Scenario, context, timeout_ms: Optional[int] = None) -> ScenarioResult:
        if timeout_ms is None:
            timeout_ms = scenario.timeout_ms
        logger.debug("Running scenario %s (timeout %dms)", scenario.name, timeout_ms)

        started_at = datetime.now(timezone.utc)
        start = time.monotonic()
        task = asyncio.ensure_future(self._invoke(scenario, context))

        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        duration_ms = (time.monotonic() - start) * 1000

        if task in done and duration_ms <= timeout_ms:
            outcome = self._classify(task)
        elif task in done:
            # body blocked the loop past its deadline
            outcome = Outcome.timed_out(timeout_ms)
            _drain(task)
        else:
            outcome = Outcome.timed_out(timeout_ms)
            await self._abandon(task)

        result = ScenarioResult(
            name=scenario.name,
            outcome=outcome,
            duration_ms=duration_ms,
            started_at=started_at
        )
        self._log(result)
        return result

    @staticmethod
    async def _invoke(scenario: Scenario, context):
        if inspect.iscoroutinefunction(scenario.body):
            result = scenario.body(context)
        else:
            # sync bodies run off the loop so the deadline can fire
            result = await asyncio.to_thread(scenario.body, context)
        if inspect.isawaitable(result):
            await result

    @staticmethod
    def _classify(task: asyncio.Task) -> Outcome:
        if task.cancelled():
            return Outcome.errored("CancelledError: scenario body was cancelled")
        exc = task.exception()
        if exc is None:
            return Outcome.passed()
        if isinstance(exc, AssertionError):
            return Outcome.failed(str(exc) or type(exc).__name__)
        return Outcome.errored(f"{type(exc).__name__}: {exc}")

    async def _abandon(self, task: asyncio.Task):
        """Signal the body to stop; give it a short grace period to unwind"""
        task.cancel()
        done, _ = await asyncio.wait({task}, timeout=self.cancel_grace_s)
        if task in done:
            _drain(task)
        else:
            logger.warning("Timed-out scenario body ignored cancellation")
            task.add_done_callback(_drain)

    @staticmethod
    def _log(result: ScenarioResult):
        outcome = result.outcome
        if outcome.is_passed:
            logger.info("%s passed in %.0fms", result.name, result.duration_ms)
        else:
            logger.warning(
                "%s %s in %.0fms: %s",
                result.name, outcome.kind.value, result.duration_ms, outcome.message
            )
