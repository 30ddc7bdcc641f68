from __future__ import annotations

import enum
import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .arguments import prepare_output_directory
from .classpath import assemble_classpath
from .cli import process_arguments
from .config import ProjectContext
from .errors import BuildFailure, HarnessError
from .launcher import (
    HarnessFailure,
    LaunchSpec,
    ProcessOutcome,
    UnitFailure,
    build_launch_spec,
    launch,
)
from .options import RunnerOptions
from .tests import TestUnit, discover

log = logging.getLogger(__name__)

Assembler = Callable[[RunnerOptions, ProjectContext], Sequence[Path]]
Launcher = Callable[[LaunchSpec], ProcessOutcome]


class Verdict(enum.Enum):
    PASSED = "passed"
    FAILED_BUILD = "failed-build"
    FAILED_HARNESS = "failed-harness"


@dataclass
class RunSummary:
    executed: int = 0
    failed: int = 0


@dataclass
class RunResult:
    verdict: Verdict
    summary: RunSummary
    message: Optional[str] = None
    error: Optional[BaseException] = None
    failures: List[Tuple[TestUnit, UnitFailure]] = field(default_factory=list)

    def raise_for_verdict(self) -> None:
        if self.verdict is Verdict.FAILED_BUILD:
            raise BuildFailure(self.message)
        if self.verdict is Verdict.FAILED_HARNESS:
            raise HarnessError(self.message) from self.error


def print_output(output: str) -> None:
    if not output:
        return
    max_output_length = 8 * 1024
    print(output[:max_output_length], end="")
    if len(output) > max_output_length:
        print("OUTPUT TOO LONG AND WAS CUT OFF...")


def print_run_details(failure: UnitFailure) -> None:
    print("#==== STDOUT")
    print_output(failure.stdout)
    print("#==== STDERR")
    print_output(failure.stderr)
    print(f"RUN: {failure.cmdline}")
    sys.stdout.flush()


def print_result(unit: TestUnit, outcome: ProcessOutcome, timeout: int) -> None:
    print(f"{unit.qualified_name} ... ", end="")
    if isinstance(outcome, UnitFailure):
        print(f"failed ({outcome.describe(timeout)})")
    else:
        print("ok")
    sys.stdout.flush()


def plural_tests(num: int) -> str:
    return "test" if num == 1 else "tests"


def run_unit(
    options: RunnerOptions,
    project: ProjectContext,
    unit: TestUnit,
    assemble: Assembler,
    launcher: Launcher,
) -> ProcessOutcome:
    try:
        prepare_output_directory(options.out, project.basedir)
        classpath = assemble(options, project)
        spec = build_launch_spec(options, project, unit, classpath)
    except (HarnessError, OSError, ValueError) as exc:
        return HarnessFailure(exc)
    return launcher(spec)


def _harness_failure(summary: RunSummary, error: BaseException) -> RunResult:
    return RunResult(
        Verdict.FAILED_HARNESS, summary, message="Failed to run GWT tests", error=error
    )


def run_tests(
    options: RunnerOptions,
    project: ProjectContext,
    assemble: Assembler = assemble_classpath,
    launcher: Launcher = launch,
) -> RunResult:
    summary = RunSummary()
    if options.skipped():
        print("Tests are skipped.")
        return RunResult(Verdict.PASSED, summary)

    try:
        units = discover(project.test_source_roots, options.includes, options.excludes)
    except HarnessError as exc:
        return _harness_failure(summary, exc)

    reports = project.resolve(options.reports_directory)
    failures: List[Tuple[TestUnit, UnitFailure]] = []
    start_time = time.time()

    for unit in units:
        outcome = run_unit(options, project, unit, assemble, launcher)
        if isinstance(outcome, HarnessFailure):
            return _harness_failure(summary, outcome.error)
        summary.executed += 1
        if isinstance(outcome, UnitFailure):
            summary.failed += 1
            failures.append((unit, outcome))
            if options.capture:
                print_run_details(outcome)
        print_result(unit, outcome, options.test_timeout)

    if failures:
        print("\nFailed Tests:")
        for unit, _ in failures:
            print(f"= {unit.qualified_name}")

    passed = summary.executed - summary.failed
    print(
        f"{passed} {plural_tests(passed)} passed; {summary.failed} {plural_tests(summary.failed)} failed"
    )
    print(f"Ran in {time.time() - start_time:.1f} seconds.")

    if summary.failed == 0:
        return RunResult(Verdict.PASSED, summary)

    message = (
        "There are test failures.\n\n"
        f"Please refer to {reports} for the individual test results."
    )
    if options.test_failure_ignore:
        log.warning("%s", message)
        return RunResult(Verdict.PASSED, summary, message=message, failures=failures)
    return RunResult(Verdict.FAILED_BUILD, summary, message=message, failures=failures)


def main(argv: Sequence[str]) -> int:
    options, project = process_arguments(list(argv))
    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    result = run_tests(options, project)
    try:
        result.raise_for_verdict()
    except BuildFailure as exc:
        log.error("%s", exc)
        return 1
    except HarnessError:
        log.exception("Build error, aborting the test run")
        return 2
    return 0


def cli() -> None:
    """Entry point for `[project.scripts]`."""
    raise SystemExit(main(sys.argv[1:]))
