"""Data models for test outcomes, builds and cargo's JSON messages."""

from __future__ import annotations

import json
import platform
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Self

from .config import TestCase
from .i18n import t

_OS_PREFIXES = (
    ("win", "windows"),
    ("darwin", "macos"),
    ("linux", "linux"),
    ("freebsd", "freebsd"),
    ("openbsd", "openbsd"),
    ("netbsd", "netbsd"),
    ("dragonfly", "dragonfly"),
    ("sunos", "solaris"),
    ("aix", "aix"),
    ("cygwin", "windows"),
)

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x86_64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "x86": "x86",
    "armv6l": "arm",
    "armv7l": "arm",
    "arm": "arm",
    "ppc64le": "powerpc64",
    "ppc64": "powerpc64",
    "riscv64": "riscv64",
    "s390x": "s390x",
}


def current_os() -> str:
    """Return the name of the running operating system, e.g. ``linux``."""
    for prefix, name in _OS_PREFIXES:
        if sys.platform.startswith(prefix):
            return name
    return sys.platform


def current_arch() -> str:
    """Return the name of the running CPU architecture, e.g. ``x86_64``."""
    machine = platform.machine().lower()
    return _ARCH_ALIASES.get(machine, machine)


class FailureReason(Enum):
    """Why a test case failed."""

    BUILD = "Build"
    TEST_FAILED = "TestFailed"
    TIMEOUT = "Timeout"
    CUSTOM_COMMAND = "CustomCommand"
    BUILD_FAILED = "BuildFailed"

    def __str__(self) -> str:
        return self.value


class Outcome(Enum):
    """The kind of result a test case ended with."""

    PASSED = "Passed"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class TestResult:
    """The final result of running one test case.

    ``duration`` is in seconds and is ``None`` for skipped cases; ``retries``
    is the number of attempts a passed case needed and 0 otherwise.
    """

    __test__ = False

    outcome: Outcome
    case: TestCase | None = None
    output: str = ""
    duration: float | None = None
    reason: FailureReason | None = None
    retries: int = 0

    @classmethod
    def passed(cls, case: TestCase, output: str, duration: float, retries: int = 1) -> Self:
        return cls(Outcome.PASSED, case=case, output=output, duration=duration, retries=retries)

    @classmethod
    def failed(cls, case: TestCase, output: str, reason: FailureReason, duration: float) -> Self:
        return cls(Outcome.FAILED, case=case, output=output, duration=duration, reason=reason)

    @classmethod
    def skipped(cls) -> Self:
        return cls(Outcome.SKIPPED)

    def _failure_allowed_here(self) -> bool:
        return self.case is not None and current_os() in self.case.allow_failure

    def is_failure(self) -> bool:
        return self.outcome is Outcome.FAILED

    def is_unexpected_failure(self) -> bool:
        """True for a failure the current OS is not allowed to have."""
        return self.is_failure() and not self._failure_allowed_here()

    def is_allowed_failure(self) -> bool:
        """True for a failure the current OS is allowed to have."""
        return self.is_failure() and self._failure_allowed_here()

    def is_timeout(self) -> bool:
        return self.is_failure() and self.reason is FailureReason.TIMEOUT

    def status_class(self) -> str:
        """Return the CSS class used for this status in reports."""
        if self.outcome is Outcome.PASSED:
            return "status-Passed"
        if self.outcome is Outcome.SKIPPED:
            return "status-Skipped"
        if self.is_allowed_failure():
            return "status-Allowed-Failure"
        if self.reason is FailureReason.TIMEOUT:
            return "status-Timeout"
        return "status-Failed"

    def case_name(self) -> str:
        """Return the case's name, or ``Skipped`` for a skipped result."""
        return self.case.name if self.case is not None else "Skipped"

    def status_str(self, locale: str | None = None) -> str:
        """Return the translated status label."""
        if self.outcome is Outcome.PASSED:
            return t("report.status_passed", locale)
        if self.outcome is Outcome.SKIPPED:
            return t("report.status_skipped", locale)
        if self.reason is FailureReason.TIMEOUT:
            return t("report.status_timeout", locale)
        if self._failure_allowed_here():
            return t("report.status_allowed_failure", locale)
        return t("report.status_failed", locale)

    def features(self) -> str:
        """Return the case's features, or an empty string when skipped."""
        return self.case.features if self.case is not None else ""


@dataclass(frozen=True)
class BuildContext:
    """The isolated target directory of a single build."""

    path: Path


@dataclass(frozen=True)
class BuiltTest:
    """A built test case ready to run; ``executable_path`` is None when no binary was produced."""

    case: TestCase
    executable_path: Path | None
    duration: float
    build_context: BuildContext


def _required(data: Mapping[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in data:
        raise ValueError(f"{where}: missing field `{key}`")
    value = data[key]
    if not isinstance(value, kind):
        raise ValueError(f"{where}: field `{key}` must be of type {kind.__name__}")
    return value


def _optional(data: Mapping[str, Any], key: str, kind: type, where: str) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ValueError(f"{where}: field `{key}` must be of type {kind.__name__}")
    return value


def _as_mapping(data: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{where} must be a JSON object")
    return data


@dataclass(frozen=True)
class CargoDiagnostic:
    """A compiler diagnostic from cargo's JSON output."""

    level: str
    message: str
    rendered: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        data = _as_mapping(data, "diagnostic")
        return cls(
            level=_required(data, "level", str, "diagnostic"),
            message=_required(data, "message", str, "diagnostic"),
            rendered=_optional(data, "rendered", str, "diagnostic"),
        )


@dataclass(frozen=True)
class CargoTarget:
    """The compilation target of a cargo artifact message."""

    name: str
    test: bool
    kind: list[str]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        data = _as_mapping(data, "target")
        kind = _required(data, "kind", list, "target")
        if not all(isinstance(item, str) for item in kind):
            raise ValueError("target: field `kind` must be a list of strings")
        return cls(
            name=_required(data, "name", str, "target"),
            test=_required(data, "test", bool, "target"),
            kind=list(kind),
        )


@dataclass(frozen=True)
class CargoMessage:
    """One line of cargo's ``--message-format=json`` output."""

    reason: str
    target: CargoTarget | None = None
    executable: Path | None = None
    message: CargoDiagnostic | None = None
    filenames: list[Path] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        data = _as_mapping(data, "cargo message")
        where = "cargo message"
        target = data.get("target")
        executable = _optional(data, "executable", str, where)
        message = data.get("message")
        filenames = _optional(data, "filenames", list, where) or []
        if not all(isinstance(item, str) for item in filenames):
            raise ValueError(f"{where}: field `filenames` must be a list of strings")
        return cls(
            reason=_required(data, "reason", str, where),
            target=CargoTarget.from_dict(target) if target is not None else None,
            executable=Path(executable) if executable is not None else None,
            message=CargoDiagnostic.from_dict(message) if message is not None else None,
            filenames=[Path(item) for item in filenames],
        )

    @classmethod
    def from_json(cls, line: str) -> Self:
        """Parse one JSON line; raises ValueError if it is not a cargo message."""
        return cls.from_dict(json.loads(line))

    def into_artifact(self) -> Self | None:
        """Return the message if it describes a compiler artifact, else None."""
        return self if self.reason == "compiler-artifact" else None


@dataclass(frozen=True)
class Package:
    """The ``[package]`` table of a Cargo manifest."""

    name: str


@dataclass(frozen=True)
class Manifest:
    """The parts of a Cargo manifest that are needed."""

    package: Package

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        data = _as_mapping(data, "manifest")
        package = _as_mapping(_required(data, "package", Mapping, "manifest"), "package")
        return cls(package=Package(name=_required(package, "name", str, "package")))