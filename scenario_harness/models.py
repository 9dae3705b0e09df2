from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class Scenario:
    name: str          # unique within a suite
    timeout_ms: int    # deadline for one execution of body
    body: Callable     # body(context), sync or async


class OutcomeKind(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"
    TIMED_OUT = "timed_out"


class Outcome(BaseModel):
    """Terminal classification of one scenario execution"""

    model_config = ConfigDict(frozen=True)

    kind: OutcomeKind
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> "Outcome":
        return cls(kind=OutcomeKind.PASSED)

    @classmethod
    def failed(cls, message: str) -> "Outcome":
        return cls(kind=OutcomeKind.FAILED, message=message)

    @classmethod
    def errored(cls, cause: str) -> "Outcome":
        return cls(kind=OutcomeKind.ERRORED, message=cause)

    @classmethod
    def timed_out(cls, timeout_ms: Optional[int] = None) -> "Outcome":
        message = f"exceeded {timeout_ms}ms" if timeout_ms is not None else None
        return cls(kind=OutcomeKind.TIMED_OUT, message=message)

    @property
    def is_passed(self) -> bool:
        return self.kind == OutcomeKind.PASSED


class ScenarioResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    outcome: Outcome
    duration_ms: float
    started_at: datetime

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "outcome": self.outcome.kind.value,
            "message": self.outcome.message,
            "durationMs": round(self.duration_ms, 2),
            "startedAt": self.started_at.isoformat(),
        }


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: int = 0
    failed: int = 0
    errored: int = 0
    timed_out: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.errored + self.timed_out

    @classmethod
    def count(cls, results) -> "Totals":
        counts = {kind: 0 for kind in OutcomeKind}
        for result in results:
            counts[result.outcome.kind] += 1
        return cls(
            passed=counts[OutcomeKind.PASSED],
            failed=counts[OutcomeKind.FAILED],
            errored=counts[OutcomeKind.ERRORED],
            timed_out=counts[OutcomeKind.TIMED_OUT],
        )


class SuiteReport(BaseModel):
    """Finalized, read-only outcome of one suite run.

    ``results`` is always in registration order. When ``setup_fault`` is
    set no scenario ran and ``results`` is empty.
    """

    model_config = ConfigDict(frozen=True)

    suite_name: str
    results: Tuple[ScenarioResult, ...] = ()
    totals: Totals = Totals()
    overall_duration_ms: float = 0.0
    setup_fault: Optional[str] = None
    teardown_fault: Optional[str] = None

    @property
    def all_passed(self) -> bool:
        return self.setup_fault is None and all(
            r.outcome.is_passed for r in self.results
        )

    @property
    def has_errors(self) -> bool:
        return self.setup_fault is not None or self.totals.errored > 0

    def result_for(self, name: str) -> Optional[ScenarioResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def names(self) -> List[str]:
        return [r.name for r in self.results]

    def to_document(self) -> Dict[str, Any]:
        """Report-file shape: camelCase keys, scenarios in run order"""
        return {
            "suiteName": self.suite_name,
            "totals": {
                "passed": self.totals.passed,
                "failed": self.totals.failed,
                "errored": self.totals.errored,
                "timedOut": self.totals.timed_out,
            },
            "overallDurationMs": round(self.overall_duration_ms, 2),
            "setupFault": self.setup_fault,
            "teardownFault": self.teardown_fault,
            "scenarios": [r.to_document() for r in self.results],
        }
