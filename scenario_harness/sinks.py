from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, TextIO
import json
import logging
import sys

from .errors import SinkWriteError
from .models import OutcomeKind, SuiteReport

logger = logging.getLogger(__name__)

TAGS = {
    OutcomeKind.PASSED: "PASS",
    OutcomeKind.FAILED: "FAIL",
    OutcomeKind.ERRORED: "ERROR",
    OutcomeKind.TIMED_OUT: "TIMEOUT",
}


class ReportSink(ABC):
    """Consumes a finalized report. Must not mutate it."""

    @abstractmethod
    def emit(self, report: SuiteReport):
        ...


class ConsoleSink(ReportSink):
    def __init__(self, stream: Optional[TextIO] = None, verbose: bool = True):
        self.stream = stream
        self.verbose = verbose

    def render(self, report: SuiteReport) -> str:
        lines = [f"Suite: {report.suite_name}"]
        if report.setup_fault:
            lines.append(f"  SETUP FAILED: {report.setup_fault}")

        for result in report.results:
            tag = TAGS[result.outcome.kind]
            lines.append(f"  {tag:<7} {result.name} ({result.duration_ms:.0f}ms)")
            if self.verbose and result.outcome.message and not result.outcome.is_passed:
                lines.append(f"          {result.outcome.message}")

        if report.teardown_fault:
            lines.append(f"  TEARDOWN FAILED: {report.teardown_fault}")

        totals = report.totals
        lines.append(
            f"{totals.total} scenarios: {totals.passed} passed, {totals.failed} failed, "
            f"{totals.errored} errored, {totals.timed_out} timed out "
            f"in {report.overall_duration_ms:.0f}ms"
        )
        return "\n".join(lines)

    def emit(self, report: SuiteReport):
        stream = self.stream or sys.stdout
        try:
            print(self.render(report), file=stream)
            stream.flush()
        except (OSError, ValueError) as e:
            raise SinkWriteError(f"Could not write report to console: {e}", report) from e


class FileSink(ReportSink):
    """Writes the report document as JSON to path"""

    def __init__(self, path):
        self.path = Path(path)

    def emit(self, report: SuiteReport):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(report.to_document(), indent=2, ensure_ascii=False),
                encoding="utf-8"
            )
        except OSError as e:
            raise SinkWriteError(f"Could not write report to {self.path}: {e}", report) from e
        logger.info("Report written to %s", self.path)
