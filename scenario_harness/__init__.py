"""
Scenario Harness

Runs named browser and API scenarios in order, each under its own timeout,
and reports a pass/fail/error/timeout outcome for every one of them.
"""

__version__ = "0.1.0"

from .action_context import ActionContext, HttpResponse
from .aggregator import ResultAggregator
from .config import HarnessConfig
from .errors import (
    DuplicateNameError,
    DuplicateResultError,
    ExpectationFailed,
    HarnessError,
    InvalidConfigError,
    NetworkError,
    NotAllScenariosCompleteError,
    SetupFailed,
    SinkWriteError,
    TeardownFailed,
    UnknownScenarioError,
)
from .expect import expect
from .models import Outcome, OutcomeKind, Scenario, ScenarioResult, SuiteReport, Totals
from .runner import ScenarioRunner
from .sinks import ConsoleSink, FileSink, ReportSink
from .suite import Suite, SuiteState

__all__ = [
    "ActionContext",
    "HttpResponse",
    "ResultAggregator",
    "HarnessConfig",
    "DuplicateNameError",
    "DuplicateResultError",
    "ExpectationFailed",
    "HarnessError",
    "InvalidConfigError",
    "NetworkError",
    "NotAllScenariosCompleteError",
    "SetupFailed",
    "SinkWriteError",
    "TeardownFailed",
    "UnknownScenarioError",
    "expect",
    "Outcome",
    "OutcomeKind",
    "Scenario",
    "ScenarioResult",
    "SuiteReport",
    "Totals",
    "ScenarioRunner",
    "ConsoleSink",
    "FileSink",
    "ReportSink",
    "Suite",
    "SuiteState"
]
