import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import HarnessConfig
from .errors import HarnessError, SinkWriteError
from .loader import load_suite
from .models import SuiteReport
from .sinks import ConsoleSink, FileSink

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_ERRORS = 2
EXIT_SINK_ERROR = 3
EXIT_LOAD_ERROR = 4

logger = logging.getLogger(__name__)


def exit_code_for(report: SuiteReport) -> int:
    """0 all passed, 2 when errors or a setup fault exist, 1 otherwise"""
    if report.has_errors:
        return EXIT_ERRORS
    if not report.all_passed:
        return EXIT_FAILURES
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenario-harness",
        description="Run scenario suites and report the outcome of every scenario"
    )
    parser.add_argument("targets", nargs="+", metavar="target",
                        help="suite to run, as package.module:attribute; several run in order")
    parser.add_argument("--timeout", type=int, metavar="MS",
                        help="per-scenario timeout override in milliseconds")
    parser.add_argument("--report", metavar="PATH", help="write a JSON report to PATH")
    parser.add_argument("--base-url", help="base URL for page navigation")
    parser.add_argument("--api-url", help="base URL for HTTP requests")
    parser.add_argument("--headed", action="store_true", help="show the browser window")
    parser.add_argument("--slow-mo", type=int, metavar="MS", help="slow browser actions down")
    parser.add_argument("--quiet", action="store_true", help="omit failure messages on the console")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def report_path_for(path: str, suite_name: str, several: bool) -> str:
    """One file per suite when several targets share a --report path"""
    if not several:
        return path
    path = Path(path)
    return str(path.with_name(f"{path.stem}-{suite_name}{path.suffix}"))


def run_target(target: str, args, several: bool = False) -> int:
    try:
        base_config = HarnessConfig.from_env()
        suite = load_suite(target, config=base_config)
        suite.config = suite.config.with_overrides(
            base_url=args.base_url,
            api_base_url=args.api_url,
            headless=False if args.headed else None,
            slow_mo_ms=args.slow_mo,
            report_path=args.report
        )
    except HarnessError as e:
        logger.error("Could not load suite %s: %s", target, e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    sinks = [ConsoleSink(verbose=not args.quiet)]
    if suite.config.report_path:
        sinks.append(FileSink(report_path_for(suite.config.report_path, suite.name, several)))

    try:
        report = asyncio.run(suite.execute(sinks, timeout_ms=args.timeout))
    except SinkWriteError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_SINK_ERROR
    except HarnessError as e:
        # bad --timeout value
        print(f"error: {e}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    return exit_code_for(report)


def run(argv: Optional[List[str]] = None) -> int:
    """Run each target in order; the exit code is the worst of them"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    several = len(args.targets) > 1
    return max(run_target(target, args, several) for target in args.targets)


def main():
    """Entry point for the scenario-harness command"""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logging.info("Run stopped by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
