from typing import Any, Optional

from .errors import ExpectationFailed


class Expectation:
    """Matchers for a single actual value.

    Every failed match raises ExpectationFailed, which the runner records
    as a Failed outcome rather than an error.
    """

    def __init__(self, actual: Any, label: Optional[str] = None):
        self.actual = actual
        self.label = label

    def _fail(self, detail: str):
        prefix = f"{self.label} mismatch: " if self.label else ""
        raise ExpectationFailed(prefix + detail)

    def to_equal(self, expected: Any) -> "Expectation":
        if self.actual != expected:
            self._fail(f"expected {expected} got {self.actual}")
        return self

    def to_contain(self, expected: Any, ignore_case: bool = False) -> "Expectation":
        actual = self.actual
        if actual is None:
            self._fail(f"expected to contain {expected} got None")
        if ignore_case and isinstance(actual, str):
            found = str(expected).lower() in actual.lower()
        else:
            found = expected in actual
        if not found:
            self._fail(f"expected to contain {expected} got {actual}")
        return self

    def to_be_greater_than(self, bound: Any) -> "Expectation":
        if self.actual is None or not self.actual > bound:
            self._fail(f"expected greater than {bound} got {self.actual}")
        return self

    def not_to_be_none(self) -> "Expectation":
        if self.actual is None:
            self._fail("expected a value got None")
        return self

    def to_be_true(self) -> "Expectation":
        if self.actual is not True:
            self._fail(f"expected True got {self.actual}")
        return self

    def to_be_false(self) -> "Expectation":
        if self.actual is not False:
            self._fail(f"expected False got {self.actual}")
        return self

    def to_have_key(self, key: Any) -> "Expectation":
        if not isinstance(self.actual, dict) or key not in self.actual:
            self._fail(f"expected key {key!r} in {self.actual}")
        return self

    def to_be_instance(self, kind: type) -> "Expectation":
        if not isinstance(self.actual, kind):
            self._fail(
                f"expected {kind.__name__} got {type(self.actual).__name__}"
            )
        return self


def expect(actual: Any, label: Optional[str] = None) -> Expectation:
    return Expectation(actual, label)
