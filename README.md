# matrix_runner

A configuration-driven test executor for Cargo projects. You describe a
matrix of test cases in a TOML file. For each case you set the features to
enable, whether to turn off default features, an optional custom command, a
timeout, a retry count, the operating systems where a failure is tolerated
and the CPU architectures the case applies to. `matrix_runner` builds and
runs a case in its own temporary build directory. It then reports the results
on the console and, if you want, in an HTML file.

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Creating a configuration

The `matrix-runner-init` command writes a commented starter configuration:

```
matrix-runner-init                      # writes TestMatrix.toml
matrix-runner-init -o ci/matrix.toml    # choose another path
matrix-runner-init --force              # overwrite an existing file
matrix-runner-init --lang zh-CN         # messages in Chinese
```

If the file already exists and `--force` is not given, the command leaves the
file alone, prints a hint to use `--force` and exits with status 0. If the
file cannot be written, it prints the error and exits with status 1. Missing
parent directories are created. Without `--lang`, the message language comes
from the system locale.

From Python, `matrix_runner.init_command.execute(output, force, lang)` does
the same thing. It returns `True` when it wrote the file and `False` when it
left an existing file alone.

## Configuration format

```toml
language = "en"      # message locale; defaults to "en"
fast_fail = true     # defaults to false

[[cases]]
name = "no-features"
features = ""
no_default_features = false

[[cases]]
name = "no-default-features"
features = ""
no_default_features = true
timeout_secs = 60              # a timed-out case is not retried
retries = 1                    # extra attempts after a failure (0-255)
allow_failure = ["windows"]    # a failure on these systems is not unexpected
arch = ["x86_64", "aarch64"]   # run only on these architectures

[[cases]]
name = "custom-command"
features = ""
no_default_features = false
command = "cargo run --example demo"
```

Every case must set `name`, `features` and `no_default_features`.
`matrix_runner.config.load_test_matrix(path)` reads a file into a
`TestMatrix`. `TestMatrix.from_toml(text)` parses TOML text. Both raise
`ConfigError` if the TOML is malformed, a required field is missing or a
field has the wrong type. `TestMatrix.to_toml()` and `TestCase.to_toml()`
serialize back to TOML.

The operating system names used by `allow_failure` are the ones
`matrix_runner.models.current_os()` returns, for example `linux`, `macos` or
`windows`. The architecture names used by `arch` come from `current_arch()`,
for example `x86_64` or `aarch64`.

## How a case runs

`matrix_runner.execution.run_test_case(case, project_root, crate_name, temp_dirs)`
is a coroutine that returns a `TestResult`:

- With `command` set, the command gets a leading `~` and any `$VAR` or
  `${VAR}` references expanded. It is then split shell-style and run without
  a shell in the project root. A non-zero exit gives a failure with the
  `CUSTOM_COMMAND` reason.
- Otherwise the case is built with
  `cargo test --no-run --message-format=json --target-dir <temp dir> -p <crate_name>`,
  plus `--no-default-features` and `--features ...` as configured. The first
  test executable that cargo reports is then run in the project root. A
  failed build gives a `BUILD` failure that holds the extracted compiler
  errors. A failing test binary gives a `TEST_FAILED` failure. If the build
  produces no test binary, the case passes with a note.
- With `timeout_secs` set, an attempt that runs too long ends as a `TIMEOUT`
  failure and is not retried. Other failures are retried up to `retries`
  times. A passed result's `retries` field holds the attempt it passed on.
- Build directories are appended to `temp_dirs`, a list of
  `tempfile.TemporaryDirectory` objects, so you decide when to remove them.
  Without it, they are removed before the coroutine returns.
- `ExecutionError` is raised when a case cannot be run at all. Examples are
  an unset environment variable in the command, a command that cannot be
  parsed or a program that cannot be started.

`matrix_runner.command.spawn_and_capture(argv, cwd)` runs a process and
collects its stdout and stderr lines together. It kills the process if the
awaiting task is cancelled. `format_build_error_output(raw_output)` pulls the
error diagnostics out of cargo's JSON output.

## Using the library

```python
import asyncio
from pathlib import Path

from matrix_runner.config import load_test_matrix
from matrix_runner.planner import plan_execution
from matrix_runner.execution import run_test_case
from matrix_runner.console import print_summary, print_unexpected_failure_details
from matrix_runner.html import generate_html_report


async def main() -> None:
    matrix = load_test_matrix("TestMatrix.toml")
    locale = matrix.language
    plan = plan_execution(matrix, None, None)

    temp_dirs = []
    results = [
        await run_test_case(case, Path("."), "my_crate", temp_dirs)
        for case in plan.cases_to_run
    ]

    print_summary(results, locale)
    print_unexpected_failure_details(
        [r for r in results if r.is_unexpected_failure()], locale
    )
    generate_html_report(results, Path("report.html"), locale)

    for handle in temp_dirs:
        handle.cleanup()


asyncio.run(main())
```

`plan_execution` drops the cases whose `arch` list leaves out the current
machine. The plan puts the cases that must not fail on this OS first, sorted
by name. The cases allowed to fail here follow in their configured order. The
`ExecutionPlan` also records `filtered_arch_count`, `flaky_cases_count` and
`is_distributed`.

To split the matrix across several CI machines, give each one the total
number of runners and its own zero-based index:

```python
plan = plan_execution(matrix, 4, 0)
```

The cases are then dealt out in turn, and each runner keeps only its own
share. `PlanError` is raised if you give only one of the two values, or an
index that is not lower than the total.

`matrix_runner.html.render_html_report(results, locale)` returns the report
as a string. `generate_html_report` writes it to a file and returns the path.

## Messages

Console and report text is available in English (`en`) and Simplified
Chinese (`zh-CN`). `matrix_runner.i18n.init()` picks the language from
`LC_ALL`, `LC_MESSAGES`, `LANG` or the system locale. It tries the full tag
first, then the language part alone, then falls back to English.
`set_locale` selects a language explicitly. `t(key, locale, **kwargs)`
translates a message key. An unknown locale falls back to English.

## What this package does not do

There is no command that runs a whole matrix. The only command is
`matrix-runner-init`. You run the cases from Python, as shown above. The
package does not:

- read the crate name from `Cargo.toml`. You pass it to `run_test_case`
  yourself. `models.Manifest.from_dict` can parse an already-loaded manifest
  table.
- run cases in parallel or limit their concurrency.
- act on `fast_fail`. It is read into `TestMatrix.fast_fail`, and stopping
  early is up to the caller.