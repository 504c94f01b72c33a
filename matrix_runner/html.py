"""HTML report with summary counts and a table of all results."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path

from .console import get_error_output_from_result
from .i18n import t
from .models import Outcome, TestResult

_STYLE = """
body { font-family: sans-serif; margin: 2em; color: #222; }
.summary-container { display: flex; gap: 1.5em; margin-bottom: 1.5em; }
.summary-item { display: flex; flex-direction: column; align-items: center; }
.summary-item .count { font-size: 2em; font-weight: bold; }
.passed-text { color: #2e7d32; }
.failed-text { color: #c62828; }
.skipped-text { color: #757575; }
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #ddd; padding: 0.5em; text-align: left; }
.duration-cell, .retries-cell { text-align: right; }
.status-cell { display: inline-block; padding: 0.2em 0.6em; border-radius: 4px; }
.status-Passed { background: #c8e6c9; }
.status-Failed { background: #ffcdd2; }
.status-Timeout { background: #ffe0b2; }
.status-Allowed-Failure { background: #fff9c4; }
.status-Skipped { background: #eeeeee; }
.output-toggle { cursor: pointer; color: #1565c0; margin-top: 0.3em; }
.output-content { white-space: pre-wrap; margin: 0; }
"""

_SCRIPT = """
function toggleOutput(id) {
  var row = document.getElementById(id);
  if (row) {
    row.style.display = row.style.display === 'none' ? 'table-row' : 'none';
  }
}
"""


def escape_html(text: str) -> str:
    """Replace the characters that are special in HTML with entities."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def _summary(results: Sequence[TestResult], locale: str | None) -> str:
    items = [
        ("", len(results), "html_report.summary.total"),
        (" passed-text", sum(r.outcome is Outcome.PASSED for r in results), "html_report.summary.passed"),
        (" failed-text", sum(r.is_failure() for r in results), "html_report.summary.failed"),
        (" skipped-text", sum(r.outcome is Outcome.SKIPPED for r in results), "html_report.summary.skipped"),
    ]
    cells = "".join(
        f"<div class='summary-item'><span class='count{extra}'>{count}</span>"
        f"<span class='label'>{t(key, locale)}</span></div>"
        for extra, count, key in items
    )
    return f"<div class='summary-container'>{cells}</div>"


def _header(locale: str | None) -> str:
    return (
        "<table><thead><tr>"
        f"<th>{t('html_report.table.header.name', locale)}</th>"
        f"<th class='status-col'>{t('html_report.table.header.status', locale)}</th>"
        f"<th class='duration-cell'>{t('html_report.table.header.duration', locale)}</th>"
        f"<th class='retries-cell'>{t('html_report.table.header.retries', locale)}</th>"
        "</tr></thead><tbody>"
    )


def _rows(index: int, result: TestResult, locale: str | None) -> str:
    duration = f"{result.duration:.2f}s" if result.duration is not None else "N/A"
    retries = str(result.retries - 1) if result.retries > 1 else ""
    output_id = f"output-{index}"

    toggle = ""
    details = ""
    if result.is_failure():
        toggle = (
            f"<div class='output-toggle' onclick=\"toggleOutput('{output_id}')\">"
            f"{t('html_report.toggle_output', locale)}</div>"
        )
        escaped = escape_html(get_error_output_from_result(result, locale))
        details = (
            f"<tr id='{output_id}' style='display:none;'><td colspan='4'>"
            f"<pre class='output-content'>{escaped}</pre></td></tr>"
        )

    return (
        "<tr>"
        f"<td>{escape_html(result.case_name())}</td>"
        f"<td class='status-col'><div class='status-cell {result.status_class()}'>"
        f"{result.status_str(locale)}</div>{toggle}</td>"
        f"<td class='duration-cell'>{duration}</td>"
        f"<td class='retries-cell'>{retries}</td>"
        "</tr>"
        f"{details}"
    )


def render_html_report(results: Sequence[TestResult], locale: str | None = None) -> str:
    """Return the complete HTML report for ``results``."""
    parts = [
        f"<!DOCTYPE html><html><head><title>{t('html_report.title', locale)}</title>",
        f"<style>{_STYLE}</style>",
        "</head><body>",
        f"<h1>{t('html_report.main_header', locale)}</h1>",
        _summary(results, locale),
        _header(locale),
        *(_rows(index, result, locale) for index, result in enumerate(results)),
        "</tbody></table>",
        f"<script>{_SCRIPT}</script></body></html>",
    ]
    return "".join(parts)


def generate_html_report(
    results: Sequence[TestResult],
    output_path: str | os.PathLike[str],
    locale: str | None = None,
) -> Path:
    """Write the HTML report to ``output_path`` and return the path."""
    path = Path(output_path)
    path.write_text(render_html_report(results, locale), encoding="utf-8")
    return path