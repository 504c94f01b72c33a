"""Running child processes and making sense of cargo's build output."""

from __future__ import annotations

import asyncio
import contextlib
import os
from collections.abc import AsyncIterator, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from termcolor import colored

from .i18n import t
from .models import CargoMessage

_SNIPPET_LINES = 50
_CHUNK_SIZE = 65536


def _text_lines(text: str) -> Iterator[str]:
    pieces = text.split("\n")
    if pieces and pieces[-1] == "":
        pieces.pop()
    for piece in pieces:
        yield piece.removesuffix("\r")


def _parse_messages(raw_output: str) -> Iterator[CargoMessage]:
    for line in _text_lines(raw_output):
        try:
            yield CargoMessage.from_json(line)
        except ValueError:
            continue


def format_build_error_output(raw_output: str) -> str:
    """Extract compiler errors from cargo's JSON output.

    Rendered diagnostics are preferred over plain messages. When no error can
    be found, a notice followed by the first lines of the raw output is
    returned instead.
    """
    errors = [
        msg.message.rendered if msg.message.rendered is not None else msg.message.message
        for msg in _parse_messages(raw_output)
        if msg.reason == "compiler-message"
        and msg.message is not None
        and msg.message.level == "error"
    ]
    if errors:
        return "\n".join(errors)
    snippet = "\n".join(line for _, line in zip(range(_SNIPPET_LINES), _text_lines(raw_output)))
    return f"{colored(t('run.compiler_error_parse_failed'), 'yellow')}\n\n{snippet}"


@dataclass(frozen=True)
class ProcessOutput:
    """Exit code and interleaved stdout/stderr lines of a finished process."""

    returncode: int
    output: str

    @property
    def success(self) -> bool:
        return self.returncode == 0


def _decode(raw: bytes) -> str:
    return raw.removesuffix(b"\r").decode("utf-8", errors="replace")


async def _read_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    pending = bytearray()
    while chunk := await stream.read(_CHUNK_SIZE):
        pending.extend(chunk)
        *complete, rest = bytes(pending).split(b"\n")
        pending = bytearray(rest)
        for raw in complete:
            yield _decode(raw)
    if pending:
        yield _decode(bytes(pending))


async def _pump(stream: asyncio.StreamReader, sink: list[str]) -> None:
    async for line in _read_lines(stream):
        sink.append(line + "\n")


async def spawn_and_capture(
    argv: Iterable[str | os.PathLike[str]],
    cwd: str | os.PathLike[str] | Path | None = None,
) -> ProcessOutput:
    """Run ``argv`` and capture stdout and stderr together, line by line.

    Raises OSError if the program cannot be started. If the awaiting task is
    cancelled, the child process is killed.
    """
    program, *args = (os.fspath(part) for part in argv)
    process = await asyncio.create_subprocess_exec(
        program,
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    collected: list[str] = []
    readers = [
        asyncio.create_task(_pump(process.stdout, collected)),
        asyncio.create_task(_pump(process.stderr, collected)),
    ]
    try:
        returncode = await process.wait()
        await asyncio.gather(*readers)
    finally:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            with contextlib.suppress(Exception):
                await process.wait()
        for reader in readers:
            reader.cancel()
    return ProcessOutput(returncode=returncode, output="".join(collected))