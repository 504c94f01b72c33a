"""Test matrix configuration: test cases and their TOML representation."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

import tomli_w

_MISSING = object()
_U8_MAX = 255


class ConfigError(ValueError):
    """Raised when a configuration cannot be read or is invalid."""


def _field(data: Mapping[str, Any], key: str, kind: type, where: str, default: Any = _MISSING) -> Any:
    if key not in data or (data[key] is None and default is not _MISSING):
        if default is _MISSING:
            raise ConfigError(f"{where}: missing field `{key}`")
        return default
    value = data[key]
    if kind is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, kind)
    if not valid:
        raise ConfigError(f"{where}: field `{key}` must be of type {kind.__name__}")
    return value


def _string_list(data: Mapping[str, Any], key: str, where: str) -> list[str]:
    values = _field(data, key, list, where, default=[])
    if not all(isinstance(item, str) for item in values):
        raise ConfigError(f"{where}: field `{key}` must be a list of strings")
    return list(values)


def _bounded(value: int | None, key: str, where: str, upper: int | None = None) -> int | None:
    if value is not None and (value < 0 or (upper is not None and value > upper)):
        raise ConfigError(f"{where}: field `{key}` is out of range")
    return value


@dataclass
class TestCase:
    """One build-and-test configuration of the matrix."""

    __test__ = False

    name: str = "unknown"
    features: str = ""
    no_default_features: bool = False
    command: str | None = None
    timeout_secs: int | None = None
    retries: int | None = None
    allow_failure: list[str] = field(default_factory=list)
    arch: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a test case from a parsed mapping, validating every field."""
        if not isinstance(data, Mapping):
            raise ConfigError("test case must be a table")
        where = "test case"
        name = _field(data, "name", str, where)
        where = f"test case '{name}'"
        return cls(
            name=name,
            features=_field(data, "features", str, where),
            no_default_features=_field(data, "no_default_features", bool, where),
            command=_field(data, "command", str, where, default=None),
            timeout_secs=_bounded(
                _field(data, "timeout_secs", int, where, default=None), "timeout_secs", where
            ),
            retries=_bounded(
                _field(data, "retries", int, where, default=None), "retries", where, _U8_MAX
            ),
            allow_failure=_string_list(data, "allow_failure", where),
            arch=_string_list(data, "arch", where),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the case as a mapping; unset optional fields are left out."""
        data: dict[str, Any] = {
            "name": self.name,
            "features": self.features,
            "no_default_features": self.no_default_features,
        }
        for key in ("command", "timeout_secs", "retries"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data["allow_failure"] = list(self.allow_failure)
        data["arch"] = list(self.arch)
        return data

    def to_toml(self) -> str:
        """Serialize the case as a TOML document."""
        return tomli_w.dumps(self.to_dict())


@dataclass
class TestMatrix:
    """The whole configuration: global settings and all test cases."""

    __test__ = False

    cases: list[TestCase]
    language: str = "en"
    fast_fail: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build a matrix from a parsed mapping, validating every field."""
        if not isinstance(data, Mapping):
            raise ConfigError("configuration must be a table")
        where = "configuration"
        raw_cases = _field(data, "cases", list, where)
        return cls(
            cases=[TestCase.from_dict(item) for item in raw_cases],
            language=_field(data, "language", str, where, default="en"),
            fast_fail=_field(data, "fast_fail", bool, where, default=False),
        )

    @classmethod
    def from_toml(cls, text: str) -> Self:
        """Parse a matrix from TOML text."""
        try:
            return cls.from_dict(tomllib.loads(text))
        except (tomllib.TOMLDecodeError, ConfigError) as exc:
            raise ConfigError(f"Failed to parse TOML configuration: {exc}") from exc

    def to_dict(self) -> dict[str, Any]:
        """Return the matrix as a mapping."""
        return {
            "language": self.language,
            "fast_fail": self.fast_fail,
            "cases": [case.to_dict() for case in self.cases],
        }

    def to_toml(self) -> str:
        """Serialize the matrix as a TOML document."""
        return tomli_w.dumps(self.to_dict())


def load_test_matrix(path: str | Path) -> TestMatrix:
    """Read and parse a test matrix configuration file."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read config file: {path}") from exc
    return TestMatrix.from_toml(content)