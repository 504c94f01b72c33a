"""Message catalogue and locale selection for user-facing output."""

from __future__ import annotations

import locale as _locale
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

DEFAULT_LOCALE = "en"

_PLACEHOLDER = re.compile(r"%\{(\w+)\}")

_CATALOG: dict[str, dict[str, str]] = {
    "en": {
        "cli.about": (
            "A configuration-driven test executor that runs tests across a "
            "matrix of feature flags and environments."
        ),
        "cli.lang.help": "Language for output messages (e.g. en, zh-CN)",
        "cli.init.about": "Create a new test matrix configuration file",
        "cli.init.output": "Path of the configuration file to create",
        "cli.init.force": "Overwrite the file if it already exists",
        "common.project_root_detected": "Project root detected at: %{path}",
        "common.testing_crate": "Testing crate: %{name}",
        "common.all_tests_passed": "All tests passed successfully!",
        "common.capture_stdout_failed": "Failed to capture stdout",
        "common.capture_stderr_failed": "Failed to capture stderr",
        "run.running_test": "Running test '%{name}'...",
        "run.building_test": "Building test '%{name}'...",
        "run.build_success": "Build succeeded in %{duration}s",
        "run.build_failed": "Build failed in %{duration}s",
        "run.build_failed_unexpected": "Build failed unexpectedly",
        "run.test_passed": "Test '%{name}' passed in %{duration}s",
        "run.test_failed": "Test '%{name}' failed in %{duration}s",
        "run.test_timeout": "Test '%{name}' timed out after %{timeout}s",
        "run.test_timeout_message": "The test exceeded its configured timeout.",
        "run.test_retrying": (
            "Test '%{name}' failed on attempt %{attempt}, retrying "
            "(up to %{retries} retries)..."
        ),
        "run.test_failed_after_retries": "Test '%{name}' failed after %{retries} retries",
        "run.test_passed_on_retry": "Test '%{name}' passed after %{retries} retries",
        "run.test_no_binaries": "No test binaries were produced for '%{name}'",
        "run.test_no_binaries_message": "No test binaries were produced; nothing to run.",
        "run.command_prefix": "Command:",
        "run.compiler_error_parse_failed": (
            "Could not parse compiler errors; showing raw output:"
        ),
        "run.build_log": "Build Log",
        "run.test_log": "Test Log",
        "run.no_error_output": "No error output available.",
        "report.summary_banner": "--- Test Summary ---",
        "report.unexpected_failure_banner": "!!! UNEXPECTED FAILURE DETECTED !!!",
        "report.report_header_failure": "Failure in test",
        "report.status_passed": "Passed",
        "report.status_failed": "Failed",
        "report.status_allowed_failure": "Allowed Failure",
        "report.status_timeout": "Timeout",
        "report.status_skipped": "Skipped",
        "html_report.title": "Test Matrix Report",
        "html_report.main_header": "Test Matrix Report",
        "html_report.summary.total": "Total",
        "html_report.summary.passed": "Passed",
        "html_report.summary.failed": "Failed",
        "html_report.summary.skipped": "Skipped",
        "html_report.table.header.name": "Test Case",
        "html_report.table.header.status": "Status",
        "html_report.table.header.duration": "Duration",
        "html_report.table.header.retries": "Retries",
        "html_report.toggle_output": "Show Output",
        "init.file_exists": "File already exists: %{path}",
        "init.use_force": "Use --force to overwrite it.",
        "init.create_parent_dir_failed": "Failed to create parent directory: %{path}",
        "init.write_failed": "Failed to write configuration file: %{path}",
        "init.success": "Created configuration file: %{path}",
        "init.next_steps": (
            "Edit the file to describe your test cases, then start a run with it."
        ),
    },
    "zh-CN": {
        "cli.about": "一个配置驱动的测试执行器，可在特性标志和环境组成的矩阵上运行测试。",
        "cli.lang.help": "输出消息的语言（例如 en, zh-CN）",
        "cli.init.about": "创建新的测试矩阵配置文件",
        "cli.init.output": "要创建的配置文件路径",
        "cli.init.force": "如果文件已存在则覆盖",
        "common.project_root_detected": "检测到项目根目录于: %{path}",
        "common.testing_crate": "正在测试的 Crate: %{name}",
        "common.all_tests_passed": "所有测试成功通过！",
        "common.capture_stdout_failed": "无法捕获 stdout",
        "common.capture_stderr_failed": "无法捕获 stderr",
        "run.running_test": "正在运行测试 '%{name}'...",
        "run.building_test": "正在构建测试 '%{name}'...",
        "run.build_success": "构建成功，耗时 %{duration}s",
        "run.build_failed": "构建失败，耗时 %{duration}s",
        "run.build_failed_unexpected": "构建意外失败",
        "run.test_passed": "测试 '%{name}' 通过，耗时 %{duration}s",
        "run.test_failed": "测试 '%{name}' 失败，耗时 %{duration}s",
        "run.test_timeout": "测试 '%{name}' 在 %{timeout}s 后超时",
        "run.test_timeout_message": "测试超出了配置的超时时间。",
        "run.test_retrying": "测试 '%{name}' 第 %{attempt} 次尝试失败，正在重试（最多 %{retries} 次重试）...",
        "run.test_failed_after_retries": "测试 '%{name}' 在 %{retries} 次重试后仍然失败",
        "run.test_passed_on_retry": "测试 '%{name}' 在 %{retries} 次重试后通过",
        "run.test_no_binaries": "'%{name}' 没有生成测试二进制文件",
        "run.test_no_binaries_message": "没有生成测试二进制文件；无可运行内容。",
        "run.command_prefix": "命令:",
        "run.compiler_error_parse_failed": "无法解析编译器错误；显示原始输出：",
        "run.build_log": "构建日志",
        "run.test_log": "测试日志",
        "run.no_error_output": "没有可用的错误输出。",
        "report.summary_banner": "--- 测试摘要 ---",
        "report.unexpected_failure_banner": "!!! 检测到意外失败 !!!",
        "report.report_header_failure": "测试失败",
        "report.status_passed": "通过",
        "report.status_failed": "失败",
        "report.status_allowed_failure": "允许失败",
        "report.status_timeout": "超时",
        "report.status_skipped": "跳过",
        "html_report.title": "测试矩阵报告",
        "html_report.main_header": "测试矩阵报告",
        "html_report.summary.total": "总计",
        "html_report.summary.passed": "通过",
        "html_report.summary.failed": "失败",
        "html_report.summary.skipped": "跳过",
        "html_report.table.header.name": "测试用例",
        "html_report.table.header.status": "状态",
        "html_report.table.header.duration": "耗时",
        "html_report.table.header.retries": "重试次数",
        "html_report.toggle_output": "显示输出",
        "init.file_exists": "文件已存在: %{path}",
        "init.use_force": "使用 --force 覆盖该文件。",
        "init.create_parent_dir_failed": "无法创建父目录: %{path}",
        "init.write_failed": "无法写入配置文件: %{path}",
        "init.success": "已创建配置文件: %{path}",
        "init.next_steps": "编辑该文件以描述测试用例，然后使用它开始运行。",
    },
}


@dataclass
class _Settings:
    locale: str = DEFAULT_LOCALE


_settings = _Settings()


def available_locales() -> tuple[str, ...]:
    """Return the locales that have a message catalogue."""
    return tuple(sorted(_CATALOG))


def set_locale(locale: str) -> None:
    """Make ``locale`` the default for translations."""
    _settings.locale = locale


def get_locale() -> str:
    """Return the current default locale."""
    return _settings.locale


def _lookup(key: str, locale: str) -> str:
    for candidate in (locale, locale.split("-")[0], DEFAULT_LOCALE):
        messages: Mapping[str, str] | None = _CATALOG.get(candidate)
        if messages is not None and key in messages:
            return messages[key]
    return key


def t(key: str, locale: str | None = None, **kwargs: object) -> str:
    """Translate ``key``, filling ``%{name}`` placeholders from ``kwargs``.

    Unknown locales fall back to English; unknown keys come back unchanged.
    """
    template = _lookup(key, locale if locale is not None else get_locale())
    if not kwargs:
        return template

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(kwargs[name]) if name in kwargs else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def _normalize(raw: str) -> str | None:
    tag = raw.split(".", 1)[0].split("@", 1)[0].strip()
    if not tag or tag in ("C", "POSIX"):
        return None
    return tag.replace("_", "-")


def _detect_system_locale() -> str:
    for variable in ("LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(variable)
        if value:
            return _normalize(value) or DEFAULT_LOCALE
    try:
        detected = _locale.getlocale()[0]
    except ValueError:
        detected = None
    return (_normalize(detected) if detected else None) or DEFAULT_LOCALE


def init() -> str:
    """Select the locale from the system settings and return it.

    The full tag is tried first, then its language part, then English.
    """
    detected = _detect_system_locale()
    available = available_locales()
    if detected in available:
        chosen = detected
    else:
        language = detected.split("-")[0]
        chosen = language if language in available else DEFAULT_LOCALE
    set_locale(chosen)
    return chosen