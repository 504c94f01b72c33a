from pathlib import Path

import pytest

from matrix_runner.config import TestCase
from matrix_runner.models import (
    BuildContext,
    BuiltTest,
    CargoDiagnostic,
    CargoMessage,
    CargoTarget,
    FailureReason,
    Manifest,
    Outcome,
    TestResult,
    current_os,
)


def make_case(name):
    return TestCase(name=name, features="", no_default_features=False)


def test_test_result_passed():
    result = TestResult.passed(make_case("passed-test"), "Test passed successfully", 1.0, 1)
    assert result.outcome is Outcome.PASSED
    assert result.case.name == "passed-test"
    assert result.output == "Test passed successfully"
    assert result.is_unexpected_failure() is False
    assert result.retries == 1


def test_test_result_failed_unexpected():
    result = TestResult.failed(make_case("failed-test"), "Test failed", FailureReason.TEST_FAILED, 1.0)
    assert result.outcome is Outcome.FAILED
    assert result.case.name == "failed-test"
    assert result.output == "Test failed"
    assert result.reason is FailureReason.TEST_FAILED
    assert result.is_unexpected_failure() is True
    assert result.is_allowed_failure() is False
    assert result.status_class() == "status-Failed"
    assert result.status_str("en") == "Failed"


def test_test_result_failed_allowed():
    case = make_case("allowed-failure-test")
    case.allow_failure = [current_os()]
    result = TestResult.failed(case, "Test failed but allowed", FailureReason.BUILD, 1.0)
    assert result.is_unexpected_failure() is False
    assert result.is_allowed_failure() is True
    assert result.status_class() == "status-Allowed-Failure"
    assert result.status_str("en") == "Allowed Failure"


def test_test_result_skipped():
    result = TestResult.skipped()
    assert result.outcome is Outcome.SKIPPED
    assert result.is_unexpected_failure() is False
    assert result.case_name() == "Skipped"
    assert result.features() == ""
    assert result.output == ""
    assert result.duration is None
    assert result.retries == 0
    assert result.status_class() == "status-Skipped"
    assert result.status_str("en") == "Skipped"


def test_timeout_result():
    result = TestResult.failed(make_case("slow"), "", FailureReason.TIMEOUT, 5.0)
    assert result.is_timeout() is True
    assert result.status_class() == "status-Timeout"
    assert result.status_str("en") == "Timeout"
    assert result.status_str("zh-CN") == "超时"


def test_timeout_label_wins_over_allowed_failure_in_status_str():
    case = make_case("slow")
    case.allow_failure = [current_os()]
    result = TestResult.failed(case, "", FailureReason.TIMEOUT, 5.0)
    assert result.status_str("en") == "Timeout"
    assert result.status_class() == "status-Allowed-Failure"


def test_passed_accessors():
    case = TestCase(name="p", features="a,b", no_default_features=False)
    result = TestResult.passed(case, "out", 2.5, 3)
    assert result.case_name() == "p"
    assert result.features() == "a,b"
    assert result.duration == 2.5
    assert result.is_failure() is False
    assert result.is_timeout() is False
    assert result.status_class() == "status-Passed"
    assert result.status_str("zh-CN") == "通过"


def test_failure_reason_variants():
    assert str(FailureReason.BUILD) == "Build"
    assert str(FailureReason.TEST_FAILED) == "TestFailed"
    assert FailureReason("Timeout") is FailureReason.TIMEOUT


def test_built_test_holds_context(tmp_path):
    context = BuildContext(tmp_path)
    built = BuiltTest(make_case("b"), tmp_path / "bin", 1.5, context)
    assert built.build_context.path == tmp_path
    assert built.executable_path == tmp_path / "bin"


def test_cargo_diagnostic_deserialization():
    diagnostic = CargoDiagnostic.from_dict(
        {
            "level": "error",
            "message": "cannot find function `test` in this scope",
            "rendered": "\x1b[0m\x1b[1m\x1b[38;5;9merror[E0425]\x1b[0m: cannot find function `test`",
        }
    )
    assert diagnostic.level == "error"
    assert diagnostic.message == "cannot find function `test` in this scope"
    assert "error[E0425]" in diagnostic.rendered


def test_cargo_diagnostic_without_rendered():
    diagnostic = CargoDiagnostic.from_dict({"level": "warning", "message": "unused variable: `x`"})
    assert diagnostic.level == "warning"
    assert diagnostic.message == "unused variable: `x`"
    assert diagnostic.rendered is None


def test_cargo_message_compiler_message():
    message = CargoMessage.from_json(
        r'{"reason": "compiler-message", "message": {"level": "error", '
        r'"message": "test error", "rendered": "rendered error"}}'
    )
    assert message.reason == "compiler-message"
    assert message.target is None
    assert message.executable is None
    assert message.message.level == "error"
    assert message.message.message == "test error"
    assert message.into_artifact() is None


def test_cargo_message_compiler_artifact():
    message = CargoMessage.from_json(
        '{"reason": "compiler-artifact", "target": {"name": "test-crate", '
        '"test": true, "kind": ["bin"]}, "executable": "/path/to/executable"}'
    )
    assert message.reason == "compiler-artifact"
    assert message.message is None
    assert message.target.name == "test-crate"
    assert message.target.test is True
    assert message.executable == Path("/path/to/executable")
    assert message.into_artifact() is message


def test_cargo_message_null_executable_and_filenames():
    message = CargoMessage.from_json(
        '{"reason": "compiler-artifact", "executable": null, "filenames": ["a.rlib"]}'
    )
    assert message.executable is None
    assert message.filenames == [Path("a.rlib")]


@pytest.mark.parametrize("line", ["not json", "[1, 2]", '{"target": null}'])
def test_cargo_message_invalid_lines(line):
    with pytest.raises(ValueError):
        CargoMessage.from_json(line)


def test_cargo_target_deserialization():
    target = CargoTarget.from_dict({"name": "my-crate", "test": True, "kind": ["bin"]})
    assert target.name == "my-crate"
    assert target.test is True
    assert target.kind == ["bin"]


def test_cargo_target_non_test():
    target = CargoTarget.from_dict({"name": "my-lib", "test": False, "kind": ["lib"]})
    assert target.name == "my-lib"
    assert target.test is False


def test_manifest_from_dict():
    manifest = Manifest.from_dict({"package": {"name": "sample_project", "version": "0.1.0"}})
    assert manifest.package.name == "sample_project"


def test_manifest_without_package():
    with pytest.raises(ValueError):
        Manifest.from_dict({"dependencies": {}})