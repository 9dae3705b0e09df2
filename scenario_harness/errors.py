from typing import Optional


class HarnessError(Exception):
    """Base class for every error raised by the harness itself"""


class InvalidConfigError(HarnessError):
    """Bad registration argument or configuration value"""


class DuplicateNameError(HarnessError):
    """A scenario with the same name is already registered"""

    def __init__(self, name: str):
        super().__init__(f"Scenario already registered: {name}")
        self.name = name


class DuplicateResultError(HarnessError):
    """A result was recorded twice for one scenario"""

    def __init__(self, name: str):
        super().__init__(f"Result already recorded for scenario: {name}")
        self.name = name


class UnknownScenarioError(HarnessError):
    """A result was recorded for a scenario the suite does not know"""

    def __init__(self, name: str):
        super().__init__(f"Unknown scenario: {name}")
        self.name = name


class NotAllScenariosCompleteError(HarnessError):
    """finalize() was called before every scenario produced a result"""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            f"Scenarios without a result: {', '.join(self.missing)}"
        )


class SetupFailed(HarnessError):
    """Suite-level setup raised; no scenario runs"""


class TeardownFailed(HarnessError):
    """Suite-level teardown raised; logged and recorded only"""


class SinkWriteError(HarnessError):
    """A report sink could not write its output"""

    def __init__(self, message: str, report=None):
        super().__init__(message)
        self.report = report


class NetworkError(HarnessError):
    """The HTTP client could not complete a request"""

    def __init__(self, method: str, url: str, cause: Optional[BaseException] = None):
        detail = f"{type(cause).__name__}: {cause}" if cause else "request failed"
        super().__init__(f"{method} {url} failed: {detail}")
        self.method = method
        self.url = url
        self.cause = cause


class ExpectationFailed(HarnessError, AssertionError):
    """An expectation inside a scenario body was not met"""
