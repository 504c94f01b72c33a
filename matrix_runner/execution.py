"""Running a single test case: build, execute, time out and retry."""

from __future__ import annotations

import asyncio
import dataclasses
import os
import re
import shlex
import sys
import tempfile
import time
from collections.abc import MutableSequence
from pathlib import Path

from termcolor import colored

from .command import format_build_error_output, spawn_and_capture
from .config import TestCase
from .fs import create_build_dir
from .i18n import t
from .models import BuildContext, BuiltTest, CargoMessage, FailureReason, TestResult

_VARIABLE = re.compile(r"\$(?:\{(?P<braced>[^}]*)\}|(?P<name>[A-Za-z_][A-Za-z0-9_]*))")

TempDirs = MutableSequence[tempfile.TemporaryDirectory]


class ExecutionError(RuntimeError):
    """Raised when a test case cannot be executed at all."""


class _BuildFailure(Exception):
    """Carries the failed result of a build out of the build step."""

    def __init__(self, result: TestResult) -> None:
        super().__init__(result.output)
        self.result = result


def _expand(command: str) -> str:
    """Expand a leading ``~`` and ``$VAR``/``${VAR}`` references."""
    if command == "~" or command.startswith(("~/", "~\\")):
        command = str(Path.home()) + command[1:]

    def substitute(match: re.Match[str]) -> str:
        name = match.group("braced") if match.group("braced") is not None else match.group("name")
        value = os.environ.get(name)
        if value is None:
            raise ExecutionError(
                f"Failed to expand command: {command}: environment variable `{name}` is not set"
            )
        return value

    return _VARIABLE.sub(substitute, command)


def _command_log(command: str) -> str:
    return f"{colored(t('run.command_prefix'), 'blue')} {command}\n"


def _print_output(output: str) -> None:
    trimmed = output.strip()
    if trimmed:
        print(trimmed)


async def _run_custom_command(case: TestCase, project_root: Path, custom_command: str) -> TestResult:
    print(colored(t("run.running_test", name=case.name), "blue"))
    start = time.monotonic()
    expanded = _expand(custom_command)
    try:
        parts = shlex.split(expanded)
    except ValueError as exc:
        raise ExecutionError(f"Failed to parse command: {expanded}") from exc
    if not parts:
        raise ExecutionError("Empty command after parsing.")

    try:
        finished = await spawn_and_capture(parts, cwd=project_root)
    except OSError as exc:
        raise ExecutionError(f"Failed to get process status: {exc}") from exc
    duration = time.monotonic() - start

    output = _command_log(expanded) + finished.output
    _print_output(output)

    if finished.success:
        print(colored(t("run.test_passed", name=case.name, duration=duration), "green"))
        return TestResult.passed(case, output, duration, 1)
    print(colored(t("run.test_failed", name=case.name, duration=duration), "red"))
    return TestResult.failed(case, output, FailureReason.CUSTOM_COMMAND, duration)


def _find_test_binary(output: str) -> Path | None:
    for line in output.splitlines():
        try:
            message = CargoMessage.from_json(line)
        except ValueError:
            continue
        artifact = message.into_artifact()
        if (
            artifact is not None
            and artifact.target is not None
            and artifact.executable is not None
            and artifact.target.test
        ):
            return artifact.executable
    return None


async def _build(
    case: TestCase, project_root: Path, crate_name: str, temp_dirs: TempDirs
) -> BuiltTest:
    build_path, handle = create_build_dir(project_root, case.name)
    temp_dirs.append(handle)
    context = BuildContext(build_path)
    start = time.monotonic()

    argv = [
        "cargo",
        "test",
        "--no-run",
        "--message-format=json",
        "--target-dir",
        str(context.path),
        "-p",
        crate_name,
    ]
    if case.no_default_features:
        argv.append("--no-default-features")
    if case.features:
        argv.extend(["--features", case.features])

    print(colored(t("run.building_test", name=case.name), "blue"))
    command_string = " ".join(argv)

    try:
        finished = await spawn_and_capture(argv, cwd=project_root)
    except OSError as exc:
        raise ExecutionError(f"Failed to get build process status: {exc}") from exc
    duration = time.monotonic() - start

    if not finished.success:
        print(colored(t("run.build_failed", duration=duration), "red"))
        full_output = _command_log(command_string) + format_build_error_output(finished.output)
        raise _BuildFailure(TestResult.failed(case, full_output, FailureReason.BUILD, duration))

    executable = _find_test_binary(finished.output)
    print(colored(t("run.build_success", duration=duration), "green"))
    return BuiltTest(case, executable, duration, context)


async def _run_built(built: BuiltTest, project_root: Path) -> TestResult:
    case = built.case
    if built.executable_path is None:
        print(colored(t("run.test_no_binaries", name=case.name), "yellow"))
        return TestResult.passed(case, t("run.test_no_binaries_message"), built.duration, 1)

    print(colored(t("run.running_test", name=case.name), "blue"))
    start = time.monotonic()
    try:
        finished = await spawn_and_capture([built.executable_path], cwd=project_root)
    except OSError as exc:
        raise ExecutionError(
            f"Failed to get test process status for executable: "
            f"'{built.executable_path}'. OS Error: {exc}"
        ) from exc
    total = built.duration + (time.monotonic() - start)

    output = _command_log(str(built.executable_path)) + finished.output
    _print_output(output)

    if finished.success:
        print(colored(t("run.test_passed", name=case.name, duration=total), "green"))
        return TestResult.passed(case, output, total, 1)
    print(colored(t("run.test_failed", name=case.name, duration=total), "red"))
    return TestResult.failed(case, output, FailureReason.TEST_FAILED, total)


async def _run_default_flow(
    case: TestCase, project_root: Path, crate_name: str, temp_dirs: TempDirs
) -> TestResult:
    try:
        built = await _build(case, project_root, crate_name, temp_dirs)
    except _BuildFailure as failure:
        return failure.result
    except Exception as exc:  # any other build problem is reported as a failed build
        print(colored(t("run.build_failed_unexpected"), "red"))
        print(f"  Error: {exc}")
        return TestResult.failed(case, str(exc), FailureReason.BUILD_FAILED, 0.0)
    return await _run_built(built, project_root)


async def _run_inner(
    case: TestCase, project_root: Path, crate_name: str, temp_dirs: TempDirs
) -> TestResult:
    if case.command is not None:
        return await _run_custom_command(case, project_root, case.command)
    return await _run_default_flow(case, project_root, crate_name, temp_dirs)


async def _attempt(
    case: TestCase, project_root: Path, crate_name: str, temp_dirs: TempDirs
) -> TestResult:
    if case.timeout_secs is None:
        return await _run_inner(case, project_root, crate_name, temp_dirs)
    limit = float(case.timeout_secs)
    try:
        async with asyncio.timeout(limit):
            return await _run_inner(case, project_root, crate_name, temp_dirs)
    except TimeoutError:
        print(colored(t("run.test_timeout", name=case.name, timeout=case.timeout_secs), "red"))
        return TestResult.failed(
            case, t("run.test_timeout_message"), FailureReason.TIMEOUT, limit
        )


async def run_test_case(
    case: TestCase,
    project_root: str | os.PathLike[str],
    crate_name: str,
    temp_dirs: TempDirs | None = None,
) -> TestResult:
    """Run one test case with its timeout and retries applied.

    Build directories are appended to ``temp_dirs`` so the caller decides when
    they are removed; without it they are removed before returning. Timeouts
    are never retried. A passed result records the attempt it passed on.
    Raises ExecutionError when the case cannot be executed at all.
    """
    root = Path(project_root)
    owned: list[tempfile.TemporaryDirectory] | None = None
    if temp_dirs is None:
        owned = []
        temp_dirs = owned
    retries = case.retries or 0
    max_attempts = 1 + retries
    last_result: TestResult | None = None

    try:
        for attempt in range(1, max_attempts + 1):
            try:
                result = await _attempt(case, root, crate_name, temp_dirs)
            except (ExecutionError, OSError) as exc:
                print(f"A critical error occurred during test execution: {exc}", file=sys.stderr)
                raise ExecutionError(f"Critical error in test case {case.name}: {exc}") from exc

            if result.outcome.value == "Passed":
                if attempt > 1:
                    print(
                        colored(
                            t("run.test_passed_on_retry", name=case.name, retries=attempt - 1),
                            "green",
                        )
                    )
                return dataclasses.replace(result, retries=attempt)

            if result.is_timeout():
                return result
            if attempt < max_attempts:
                print(
                    colored(
                        t(
                            "run.test_retrying",
                            name=case.name,
                            attempt=attempt,
                            retries=max_attempts - 1,
                        ),
                        "yellow",
                    )
                )
            else:
                print(
                    colored(
                        t("run.test_failed_after_retries", name=case.name, retries=retries),
                        "red",
                    )
                )
            last_result = result
    finally:
        for handle in owned or ():
            handle.cleanup()

    return last_result if last_result is not None else TestResult.skipped()