"""Console reports: the run summary and details of unexpected failures."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from termcolor import colored

from .command import format_build_error_output
from .i18n import t
from .models import FailureReason, Outcome, TestResult

_RULE = "-" * 80
_BUILD_REASONS = (FailureReason.BUILD, FailureReason.BUILD_FAILED)


def _format_duration(seconds: float) -> str:
    """Format a duration with two decimals in the largest fitting unit."""
    if seconds >= 1:
        return f"{seconds:.2f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.2f}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.2f}µs"
    return f"{seconds * 1e9:.2f}ns"


def _status_style(result: TestResult) -> dict[str, Any]:
    if result.outcome is Outcome.PASSED:
        return {"color": "green"}
    if result.outcome is Outcome.SKIPPED:
        return {"attrs": ["dark"]}
    if result.is_allowed_failure():
        return {"color": "yellow"}
    return {"color": "red"}


def _retries_note(result: TestResult) -> str:
    return f" ({result.retries - 1} retries)" if result.retries > 1 else ""


def print_summary(results: Iterable[TestResult], locale: str | None = None) -> None:
    """Print a table of every result's status, name, duration and retries."""
    print("\n" + colored(t("report.summary_banner", locale), attrs=["bold"]))
    for result in results:
        status = colored(f"{result.status_str(locale):<18}", **_status_style(result))
        duration = _format_duration(result.duration) if result.duration is not None else "N/A"
        print(
            f"  - {status} | {result.case_name():<40} | {duration:>10} {_retries_note(result)}"
        )


def print_unexpected_failure_details(
    unexpected_failures: Sequence[TestResult], locale: str | None = None
) -> None:
    """Print the full output of each unexpected failure; nothing if there are none."""
    if not unexpected_failures:
        return

    print("\n" + colored(t("report.unexpected_failure_banner", locale), "red", attrs=["bold"]))
    print(_RULE)

    total = len(unexpected_failures)
    for number, result in enumerate(unexpected_failures, start=1):
        name = result.case_name()
        header = colored(t("report.report_header_failure", locale, name=name), "red")
        print(f"[{number}/{total}] {header} '{colored(name, 'cyan')}'")

        if result.is_failure():
            log_key = "run.build_log" if result.reason in _BUILD_REASONS else "run.test_log"
            print(f"\n--- {colored(t(log_key, locale), 'yellow')} ---\n")
            print(result.output)
            print("\n" + _RULE)


def get_error_output_from_result(result: TestResult, locale: str | None = None) -> str:
    """Return the error output of a failed result, with build errors extracted."""
    if not result.is_failure():
        return t("run.no_error_output", locale)
    if result.reason in _BUILD_REASONS:
        return format_build_error_output(result.output)
    return result.output