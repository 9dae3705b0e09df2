import asyncio

import pytest

from conftest import ContextPool
from scenario_harness import (
    DuplicateNameError,
    HarnessConfig,
    InvalidConfigError,
    OutcomeKind,
    SinkWriteError,
    Suite,
    SuiteState,
    expect,
)
from scenario_harness.sinks import ReportSink


async def passes(ctx):
    expect(await ctx.title(), "title").to_equal("Shop")


async def fails(ctx):
    expect(await ctx.title(), "title").to_equal("Other")


async def errors(ctx):
    raise RuntimeError("boom")


async def sleeps(ctx):
    await asyncio.sleep(0.5)


class RecordingSink(ReportSink):
    def __init__(self):
        self.reports = []

    def emit(self, report):
        self.reports.append(report)


class BrokenSink(ReportSink):
    def emit(self, report):
        raise SinkWriteError("disk full", report)


class TestRegistration:
    """Scenario registration rules"""

    def test_registration_order_preserved(self, pool):
        suite = Suite("shop", context_factory=pool)
        suite.register("b", 100, passes)
        suite.register("a", 100, passes)
        suite.register("c", 100, passes)

        assert [s.name for s in suite.scenarios] == ["b", "a", "c"]

    def test_duplicate_name_leaves_list_unchanged(self, pool):
        suite = Suite("shop", context_factory=pool)
        first = suite.register("loads-home", 5000, passes)

        with pytest.raises(DuplicateNameError):
            suite.register("loads-home", 100, fails)

        assert suite.scenarios == [first]
        assert suite.scenarios[0].body is passes

    @pytest.mark.parametrize("timeout", [0, -5, 1.5, "100", None, True])
    def test_invalid_timeout(self, pool, timeout):
        suite = Suite("shop", context_factory=pool)

        with pytest.raises(InvalidConfigError):
            suite.register("x", timeout, passes)

        assert suite.scenarios == []

    @pytest.mark.parametrize("timeout", [0, -5, 1.5, "100", True])
    def test_decorator_rejects_invalid_timeout(self, pool, timeout):
        suite = Suite("shop", context_factory=pool)

        with pytest.raises(InvalidConfigError):
            suite.scenario("x", timeout_ms=timeout)(passes)

        assert suite.scenarios == []

    def test_empty_name_and_non_callable_body(self, pool):
        suite = Suite("shop", context_factory=pool)

        with pytest.raises(InvalidConfigError):
            suite.register("", 100, passes)
        with pytest.raises(InvalidConfigError):
            suite.register("x", 100, "not callable")

    def test_decorator_uses_default_timeout(self, pool):
        suite = Suite("shop", config=HarnessConfig(default_timeout_ms=15000), context_factory=pool)

        @suite.scenario("loads-home")
        async def loads_home(ctx):
            pass

        @suite.scenario("search", timeout_ms=200)
        async def search(ctx):
            pass

        assert [(s.name, s.timeout_ms) for s in suite.scenarios] == [
            ("loads-home", 15000), ("search", 200)
        ]

    @pytest.mark.asyncio
    async def test_cannot_register_after_run(self, pool):
        suite = Suite("shop", context_factory=pool)
        await suite.run()

        with pytest.raises(InvalidConfigError):
            suite.register("late", 100, passes)


class TestSuiteRun:
    """Lifecycle, ordering and fault capture"""

    @pytest.mark.asyncio
    async def test_report_has_one_result_per_scenario_in_order(self, pool):
        suite = Suite("shop", context_factory=pool)
        suite.register("p1", 1000, passes)
        suite.register("f1", 1000, fails)
        suite.register("e1", 1000, errors)
        suite.register("t1", 50, sleeps)
        suite.register("p2", 1000, passes)

        report = await suite.run()

        assert report.names() == ["p1", "f1", "e1", "t1", "p2"]
        assert [r.outcome.kind for r in report.results] == [
            OutcomeKind.PASSED, OutcomeKind.FAILED, OutcomeKind.ERRORED,
            OutcomeKind.TIMED_OUT, OutcomeKind.PASSED
        ]
        totals = report.totals
        assert (totals.passed, totals.failed, totals.errored, totals.timed_out) == (2, 1, 1, 1)
        assert totals.total == 5
        assert suite.state == SuiteState.COMPLETED
        assert report.setup_fault is None

    @pytest.mark.asyncio
    async def test_scenarios_share_one_context(self, pool):
        seen = []

        async def remember(ctx):
            seen.append(ctx)

        suite = Suite("shop", context_factory=pool)
        suite.register("a", 1000, remember)
        suite.register("b", 1000, remember)
        await suite.run()

        assert len(pool.opened) == 1
        assert seen == [pool.opened[0], pool.opened[0]]
        assert pool.opened[0].closed

    @pytest.mark.asyncio
    async def test_scenarios_never_overlap(self, pool):
        active = []
        overlaps = []

        async def body(ctx):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            await asyncio.sleep(0.01)
            active.pop()

        suite = Suite("shop", context_factory=pool)
        for i in range(5):
            suite.register(f"s{i}", 1000, body)
        await suite.run()

        assert overlaps == []

    @pytest.mark.asyncio
    async def test_setup_failure_runs_nothing(self):
        ran = []
        teardowns = []

        async def broken_factory():
            raise ConnectionError("browser would not start")

        suite = Suite("shop", context_factory=broken_factory, after_all=teardowns.append)
        suite.register("a", 1000, lambda ctx: ran.append("a"))

        report = await suite.run()

        assert report.results == ()
        assert report.setup_fault == "ConnectionError: browser would not start"
        assert ran == []
        assert teardowns == []
        assert not report.all_passed
        assert report.has_errors
        assert suite.state == SuiteState.COMPLETED

    @pytest.mark.asyncio
    async def test_before_all_failure_releases_context(self, pool):
        teardowns = []

        def before_all(ctx):
            raise ValueError("login failed")

        suite = Suite("shop", context_factory=pool, before_all=before_all,
                      after_all=teardowns.append)
        suite.register("a", 1000, passes)

        report = await suite.run()

        assert report.results == ()
        assert "login failed" in report.setup_fault
        assert teardowns == []
        assert pool.opened[0].closed

    @pytest.mark.asyncio
    async def test_teardown_runs_once_when_everything_fails(self, pool):
        teardowns = []
        suite = Suite("shop", context_factory=pool)

        @suite.teardown
        async def after_all(ctx):
            teardowns.append(ctx)

        suite.register("f", 1000, fails)
        suite.register("e", 1000, errors)

        report = await suite.run()

        assert len(teardowns) == 1
        assert report.totals.failed == 1
        assert report.totals.errored == 1

    @pytest.mark.asyncio
    async def test_setup_hook_receives_context(self, pool):
        seen = []
        suite = Suite("shop", context_factory=pool)

        @suite.setup
        async def before_all(ctx):
            await ctx.navigate("https://example-shop.test/login")
            seen.append(ctx)

        suite.register("a", 1000, passes)
        await suite.run()

        assert seen == [pool.opened[0]]

    @pytest.mark.asyncio
    async def test_teardown_failure_recorded_not_raised(self, pool):
        def after_all(ctx):
            raise RuntimeError("logout failed")

        suite = Suite("shop", context_factory=pool, after_all=after_all)
        suite.register("a", 1000, passes)

        report = await suite.run()

        assert report.teardown_fault == "RuntimeError: logout failed"
        assert report.totals.passed == 1
        assert pool.opened[0].closed

    @pytest.mark.asyncio
    async def test_context_reset_after_timeout(self, pool):
        seen = []

        async def remember(ctx):
            seen.append(ctx)

        suite = Suite("shop", context_factory=pool)
        suite.register("slow", 50, sleeps)
        suite.register("after", 1000, remember)

        report = await suite.run()

        assert report.result_for("slow").outcome.kind == OutcomeKind.TIMED_OUT
        assert len(pool.opened) == 2
        assert pool.opened[0].closed
        assert seen == [pool.opened[1]]

    @pytest.mark.asyncio
    async def test_no_reset_when_last_scenario_times_out(self, pool):
        teardowns = []
        suite = Suite("shop", context_factory=pool, after_all=teardowns.append)
        suite.register("first", 1000, passes)
        suite.register("last", 50, sleeps)

        report = await suite.run()

        assert report.result_for("last").outcome.kind == OutcomeKind.TIMED_OUT
        assert len(pool.opened) == 1
        assert teardowns == [pool.opened[0]]
        assert pool.opened[0].closed

    @pytest.mark.asyncio
    async def test_context_kept_when_reset_disabled(self, pool):
        seen = []

        async def remember(ctx):
            seen.append(ctx)

        suite = Suite("shop", config=HarnessConfig(reset_context_on_timeout=False),
                      context_factory=pool)
        suite.register("slow", 50, sleeps)
        suite.register("after", 1000, remember)

        await suite.run()

        assert len(pool.opened) == 1
        assert seen == [pool.opened[0]]

    @pytest.mark.asyncio
    async def test_failed_reset_errors_remaining_scenarios(self):
        pool = ContextPool(fail_on={2})
        teardowns = []
        suite = Suite("shop", context_factory=pool, after_all=teardowns.append)
        suite.register("slow", 50, sleeps)
        suite.register("next", 1000, passes)
        suite.register("last", 1000, passes)

        report = await suite.run()

        assert report.names() == ["slow", "next", "last"]
        assert report.result_for("next").outcome.kind == OutcomeKind.ERRORED
        assert "context reset failed" in report.result_for("last").outcome.message
        assert report.totals.total == 3
        assert teardowns == [None]

    @pytest.mark.asyncio
    async def test_timeout_override(self, pool):
        suite = Suite("shop", context_factory=pool)
        suite.register("slow", 5000, sleeps)

        report = await suite.run(timeout_ms=50)

        assert report.totals.timed_out == 1

    @pytest.mark.asyncio
    async def test_invalid_timeout_override(self, pool):
        suite = Suite("shop", context_factory=pool)

        with pytest.raises(InvalidConfigError):
            await suite.run(timeout_ms=0)

    @pytest.mark.asyncio
    async def test_run_only_once(self, pool):
        suite = Suite("shop", context_factory=pool)
        await suite.run()

        with pytest.raises(InvalidConfigError):
            await suite.run()

    @pytest.mark.asyncio
    async def test_empty_suite(self, pool):
        report = await Suite("empty", context_factory=pool).run()

        assert report.results == ()
        assert report.all_passed
        assert pool.opened[0].closed

    @pytest.mark.asyncio
    async def test_independent_suites_in_parallel(self):
        pools = [ContextPool(), ContextPool()]
        suites = []
        for i, pool in enumerate(pools):
            suite = Suite(f"suite-{i}", context_factory=pool)
            suite.register("a", 1000, passes)
            suite.register("b", 1000, fails)
            suites.append(suite)

        reports = await asyncio.gather(*(s.run() for s in suites))

        assert [r.suite_name for r in reports] == ["suite-0", "suite-1"]
        for report in reports:
            assert report.totals.passed == 1
            assert report.totals.failed == 1


class TestSuiteExecute:
    """Sink emission after the run"""

    @pytest.mark.asyncio
    async def test_each_sink_gets_the_report_once(self, pool):
        sinks = [RecordingSink(), RecordingSink()]
        suite = Suite("shop", context_factory=pool)
        suite.register("a", 1000, passes)

        report = await suite.execute(sinks)

        assert [s.reports for s in sinks] == [[report], [report]]

    @pytest.mark.asyncio
    async def test_sink_error_surfaces_with_intact_report(self, pool):
        suite = Suite("shop", context_factory=pool)
        suite.register("a", 1000, passes)
        suite.register("b", 1000, fails)

        with pytest.raises(SinkWriteError) as excinfo:
            await suite.execute([BrokenSink()])

        report = excinfo.value.report
        assert report.totals.passed == 1
        assert report.totals.failed == 1
