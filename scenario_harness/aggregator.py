from typing import Dict, Iterable, List, Optional
import logging
import time

from .errors import (
    DuplicateResultError,
    InvalidConfigError,
    NotAllScenariosCompleteError,
    UnknownScenarioError,
)
from .models import ScenarioResult, SuiteReport, Totals

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Collects scenario results into one suite report.

    Built with the suite's registered names so the report can be ordered
    by registration and so ``finalize`` can tell when something is missing.
    """

    def __init__(self, suite_name: str, scenario_names: Iterable[str]):
        self.suite_name = suite_name
        self.scenario_names: List[str] = list(scenario_names)
        self._order = {name: i for i, name in enumerate(self.scenario_names)}
        self._results: Dict[str, ScenarioResult] = {}
        self._counts = Totals()
        self._setup_fault: Optional[str] = None
        self._teardown_fault: Optional[str] = None
        self._started = time.monotonic()
        self._report: Optional[SuiteReport] = None

    @property
    def totals(self) -> Totals:
        return self._counts

    @property
    def recorded(self) -> List[ScenarioResult]:
        return list(self._results.values())

    def _check_open(self):
        if self._report is not None:
            raise InvalidConfigError("Report already finalized")

    def record(self, result: ScenarioResult):
        self._check_open()
        if result.name not in self._order:
            raise UnknownScenarioError(result.name)
        if result.name in self._results:
            raise DuplicateResultError(result.name)

        self._results[result.name] = result
        self._counts = Totals.count(self._results.values())

    def mark_setup_failed(self, cause: str):
        self._check_open()
        self._setup_fault = cause

    def mark_teardown_failed(self, cause: str):
        self._check_open()
        self._teardown_fault = cause

    def missing(self) -> List[str]:
        return [n for n in self.scenario_names if n not in self._results]

    def finalize(self) -> SuiteReport:
        """Freeze and return the report; later calls return the same report"""
        if self._report is not None:
            return self._report

        missing = self.missing()
        if missing and self._setup_fault is None:
            raise NotAllScenariosCompleteError(missing)

        results = sorted(self._results.values(), key=lambda r: self._order[r.name])
        self._report = SuiteReport(
            suite_name=self.suite_name,
            results=tuple(results),
            totals=Totals.count(results),
            overall_duration_ms=(time.monotonic() - self._started) * 1000,
            setup_fault=self._setup_fault,
            teardown_fault=self._teardown_fault
        )
        logger.debug("Report for %s finalized", self.suite_name)
        return self._report
