"""
Suite: an ordered group of scenarios sharing one action context.

Lifecycle::

    CREATED -> SETTING_UP -> RUNNING -> TEARING_DOWN -> COMPLETED

Setup and teardown each run once per suite run. A setup failure skips
straight to COMPLETED with an empty report carrying the setup fault.
Teardown runs whenever setup succeeded, however the scenarios ended.
Scenario faults are recorded in the report and never abort the suite.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterable, List, Optional
import inspect
import logging

from .action_context import ActionContext
from .aggregator import ResultAggregator
from .config import HarnessConfig
from .errors import DuplicateNameError, InvalidConfigError, SetupFailed, TeardownFailed
from .models import Outcome, OutcomeKind, Scenario, ScenarioResult, SuiteReport
from .runner import ScenarioRunner
from .sinks import ReportSink

logger = logging.getLogger(__name__)

ContextFactory = Callable[[], Awaitable[object]]
Hook = Callable[[object], object]


class SuiteState(str, Enum):
    CREATED = "created"
    SETTING_UP = "setting_up"
    RUNNING = "running"
    TEARING_DOWN = "tearing_down"
    COMPLETED = "completed"


def _valid_timeout(timeout_ms) -> bool:
    return isinstance(timeout_ms, int) and not isinstance(timeout_ms, bool) and timeout_ms > 0


async def _call(hook: Hook, context):
    result = hook(context)
    if inspect.isawaitable(result):
        await result


class Suite:
    def __init__(
            self,
            name: str,
            config: Optional[HarnessConfig] = None,
            context_factory: Optional[ContextFactory] = None,
            before_all: Optional[Hook] = None,
            after_all: Optional[Hook] = None,
            runner: Optional[ScenarioRunner] = None
    ):
        self.name = name
        self.config = config or HarnessConfig()
        self.context_factory = context_factory or (lambda: ActionContext.open(self.config))
        self.before_all = before_all
        self.after_all = after_all
        self.runner = runner or ScenarioRunner()
        self.state = SuiteState.CREATED
        self._scenarios: Dict[str, Scenario] = {}

    @property
    def scenarios(self) -> List[Scenario]:
        return list(self._scenarios.values())

    def register(self, name: str, timeout_ms: int, body: Callable) -> Scenario:
        """Add a scenario; registration order is execution order"""
        if self.state != SuiteState.CREATED:
            raise InvalidConfigError(f"Suite {self.name} is {self.state.value}; cannot register")
        if not isinstance(name, str) or not name:
            raise InvalidConfigError("Scenario name must be a non-empty string")
        if name in self._scenarios:
            raise DuplicateNameError(name)
        if not _valid_timeout(timeout_ms):
            raise InvalidConfigError(f"timeout_ms must be a positive integer, got {timeout_ms!r}")
        if not callable(body):
            raise InvalidConfigError(f"Scenario body for {name} is not callable")

        scenario = Scenario(name=name, timeout_ms=timeout_ms, body=body)
        self._scenarios[name] = scenario
        return scenario

    def scenario(self, name: str, timeout_ms: Optional[int] = None):
        """Decorator form of register()"""
        def decorator(body):
            if timeout_ms is None:
                timeout = self.config.default_timeout_ms
            else:
                timeout = timeout_ms
            self.register(name, timeout, body)
            return body
        return decorator

    def setup(self, hook: Hook) -> Hook:
        self.before_all = hook
        return hook

    def teardown(self, hook: Hook) -> Hook:
        self.after_all = hook
        return hook

    async def run(self, timeout_ms: Optional[int] = None) -> SuiteReport:
        """Run every scenario once, in order, and return the finalized report.

        timeout_ms, when given, replaces each scenario's own deadline.
        """
        if self.state != SuiteState.CREATED:
            raise InvalidConfigError(f"Suite {self.name} has already run")
        if timeout_ms is not None and not _valid_timeout(timeout_ms):
            raise InvalidConfigError(f"timeout_ms must be a positive integer, got {timeout_ms!r}")

        scenarios = self.scenarios
        aggregator = ResultAggregator(self.name, [s.name for s in scenarios])
        logger.info("Suite %s: %d scenarios", self.name, len(scenarios))

        self.state = SuiteState.SETTING_UP
        try:
            context = await self._setup()
        except SetupFailed as e:
            aggregator.mark_setup_failed(str(e))
            self.state = SuiteState.COMPLETED
            return aggregator.finalize()

        self.state = SuiteState.RUNNING
        try:
            context = await self._run_scenarios(scenarios, context, aggregator, timeout_ms)
        finally:
            self.state = SuiteState.TEARING_DOWN
            await self._teardown(context, aggregator)
            self.state = SuiteState.COMPLETED

        return aggregator.finalize()

    async def execute(self, sinks: Iterable[ReportSink] = (), timeout_ms: Optional[int] = None) -> SuiteReport:
        """run() then hand the report to each sink; SinkWriteError propagates"""
        report = await self.run(timeout_ms)
        for sink in sinks:
            sink.emit(report)
        return report

    async def _setup(self):
        try:
            context = await self.context_factory()
        except Exception as e:
            logger.error("Suite %s: could not acquire action context: %s", self.name, e)
            raise SetupFailed(f"{type(e).__name__}: {e}") from e

        if self.before_all is not None:
            try:
                await _call(self.before_all, context)
            except Exception as e:
                logger.error("Suite %s: setup hook failed: %s", self.name, e)
                await self._release(context)
                raise SetupFailed(f"{type(e).__name__}: {e}") from e
        return context

    async def _run_scenarios(self, scenarios, context, aggregator: ResultAggregator, timeout_ms):
        reset_fault = None
        for index, scenario in enumerate(scenarios):
            if context is None:
                result = ScenarioResult(
                    name=scenario.name,
                    outcome=Outcome.errored(reset_fault),
                    duration_ms=0.0,
                    started_at=datetime.now(timezone.utc)
                )
            else:
                result = await self.runner.run(scenario, context, timeout_ms)
            aggregator.record(result)

            timed_out = result.outcome.kind == OutcomeKind.TIMED_OUT
            remaining = index + 1 < len(scenarios)
            if timed_out and remaining and context is not None and self.config.reset_context_on_timeout:
                context, reset_fault = await self._reset(context)
        return context

    async def _reset(self, context):
        logger.info("Suite %s: resetting action context after timeout", self.name)
        await self._release(context)
        try:
            return await self.context_factory(), None
        except Exception as e:
            logger.error("Suite %s: context reset failed: %s", self.name, e)
            return None, f"context reset failed: {type(e).__name__}: {e}"

    async def _teardown(self, context, aggregator: ResultAggregator):
        fault = None
        if self.after_all is not None:
            try:
                await _call(self.after_all, context)
            except Exception as e:
                logger.exception("Suite %s: teardown hook failed", self.name)
                fault = TeardownFailed(f"{type(e).__name__}: {e}")

        if context is not None and not await self._release(context) and fault is None:
            fault = TeardownFailed("action context did not close cleanly")

        if fault is not None:
            aggregator.mark_teardown_failed(str(fault))

    async def _release(self, context) -> bool:
        close = getattr(context, "close", None)
        if close is None:
            return True
        try:
            result = close()
            if inspect.isawaitable(result):
                await result
            return True
        except Exception as e:
            logger.warning("Suite %s: error closing action context: %s", self.name, e)
            return False
