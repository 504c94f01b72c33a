"""The ``init`` command: write a starter test matrix configuration."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from termcolor import colored

from . import i18n
from .i18n import set_locale, t

DEFAULT_OUTPUT = "TestMatrix.toml"

DEFAULT_CONFIG = """\
# Starter configuration for a matrix test run.

# Locale used for messages printed during the run.
language = "en"

# Stop the whole run as soon as one case fails unexpectedly.
fast_fail = true

# Every [[cases]] table below describes one build-and-test combination.

[[cases]]
name = "no-features"          # label shown in logs and reports
features = ""                 # comma-separated list of features to enable
no_default_features = false   # pass --no-default-features when true

[[cases]]
name = "all-features"
features = "full,extra"
no_default_features = false

[[cases]]
name = "no-default-features"
features = ""
no_default_features = true
timeout_secs = 60             # give up after this many seconds
retries = 1                   # extra attempts for a flaky case
allow_failure = ["windows"]   # operating systems where failing is tolerated
arch = ["x86_64", "aarch64"]  # run only on these CPU architectures

[[cases]]
name = "custom-command"
features = ""
no_default_features = false
command = "cargo run --example demo"   # replaces the default build and test
"""


def execute(
    output: str | os.PathLike[str] = DEFAULT_OUTPUT,
    force: bool = False,
    lang: str | None = None,
) -> bool:
    """Write the default configuration to ``output``.

    An existing file is left alone unless ``force`` is set. Returns True if
    the file was written. Raises OSError if it cannot be written.
    """
    if lang:
        set_locale(lang)
    path = Path(output)

    if path.exists() and not force:
        print(colored(t("init.file_exists", path=path), "red"))
        print(colored(t("init.use_force"), "yellow"))
        return False

    parent = path.parent
    if not parent.exists():
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(t("init.create_parent_dir_failed", path=parent)) from exc

    try:
        path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    except OSError as exc:
        raise OSError(t("init.write_failed", path=path)) from exc

    print(colored(t("init.success", path=path), "green"))
    print(t("init.next_steps"))
    return True


def _lang_override(args: Sequence[str]) -> str | None:
    try:
        position = args.index("--lang")
    except ValueError:
        return None
    return args[position + 1] if position + 1 < len(args) else None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matrix-runner init", description=t("cli.init.about")
    )
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help=t("cli.init.output"))
    parser.add_argument("-f", "--force", action="store_true", help=t("cli.init.force"))
    parser.add_argument("--lang", help=t("cli.lang.help"))
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ``init`` command from the command line; return the exit code."""
    args = list(sys.argv[1:] if argv is None else argv)
    lang = _lang_override(args)
    if lang is not None:
        set_locale(lang)
    else:
        i18n.init()

    options = _build_parser().parse_args(args)
    try:
        execute(Path(options.output), options.force, options.lang)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0