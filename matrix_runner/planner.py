"""Planning which test cases a run executes, and in what order."""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter

from .config import TestCase, TestMatrix
from .models import current_arch, current_os


class PlanError(ValueError):
    """Raised when the runner options do not describe a valid plan."""


@dataclass
class ExecutionPlan:
    """The cases one runner executes, and what was left out of the matrix."""

    cases_to_run: list[TestCase] = field(default_factory=list)
    filtered_arch_count: int = 0
    flaky_cases_count: int = 0
    is_distributed: bool = False


def plan_execution(
    test_matrix: TestMatrix,
    total_runners: int | None = None,
    runner_index: int | None = None,
) -> ExecutionPlan:
    """Build the execution plan for ``test_matrix``.

    Cases restricted to other architectures are dropped. The remaining cases
    that may not fail on this OS come first, sorted by name; the cases allowed
    to fail here follow in their configured order. When both runner options
    are given, the cases are dealt round-robin and only this runner's share
    is kept.
    """
    arch = current_arch()
    os_name = current_os()

    arch_cases = [case for case in test_matrix.cases if not case.arch or arch in case.arch]
    filtered_arch_count = len(test_matrix.cases) - len(arch_cases)

    safe_cases = sorted(
        (case for case in arch_cases if os_name not in case.allow_failure),
        key=attrgetter("name"),
    )
    flaky_cases = [case for case in arch_cases if os_name in case.allow_failure]
    combined = safe_cases + flaky_cases

    if total_runners is not None and runner_index is not None:
        if total_runners < 0 or runner_index < 0:
            raise PlanError("Runner counts must not be negative.")
        if runner_index >= total_runners:
            raise PlanError("Runner index must be less than total runners.")
        cases_to_run = combined[runner_index::total_runners]
        is_distributed = True
    elif total_runners is not None or runner_index is not None:
        raise PlanError("Both --total-runners and --runner-index must be provided.")
    else:
        cases_to_run = combined
        is_distributed = False

    return ExecutionPlan(
        cases_to_run=cases_to_run,
        filtered_arch_count=filtered_arch_count,
        flaky_cases_count=len(flaky_cases),
        is_distributed=is_distributed,
    )