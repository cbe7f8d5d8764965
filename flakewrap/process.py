"""Asynchronous execution of external tools with live, tagged output."""

from __future__ import annotations

import asyncio
import contextlib
import shutil
import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .errors import (
    OutputStreamError,
    ProcessDidNotExitNormally,
    ProcessSpawnFailure,
    ToolNotFound,
)
from .logging import get_logger

_LOGGER = get_logger("process")

# `nix flake show --json` prints its whole document on one line.
_STREAM_LIMIT = 16 * 1024 * 1024


class StreamKind(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


@dataclass(frozen=True)
class OutputChunk:
    """A single line emitted by the child, tagged with its origin stream."""

    stream: StreamKind
    line: str


@dataclass
class ProcessResult:
    """Accumulated output and exit status of a finished child process."""

    stdout_lines: List[str] = field(default_factory=list)
    stderr_lines: List[str] = field(default_factory=list)
    exit_code: int = 0

    @property
    def stdout(self) -> str:
        return "\n".join(self.stdout_lines)


EchoHook = Callable[[OutputChunk], None]


def echo_chunk(chunk: OutputChunk) -> None:
    """Write ``chunk`` to the console stream it came from."""
    target = sys.stdout if chunk.stream is StreamKind.STDOUT else sys.stderr
    print(chunk.line, file=target, flush=True)


def prefixed_echo_chunk(chunk: OutputChunk) -> None:
    """Like :func:`echo_chunk`, with a visible ``[stdout]``/``[stderr]`` tag."""
    echo_chunk(OutputChunk(chunk.stream, f"[{chunk.stream.value}] {chunk.line}"))


def locate_executable(name: str) -> str:
    resolved = shutil.which(name)
    if not resolved:
        raise ToolNotFound(f"Unable to locate '{name}' on PATH")
    return resolved


_QueueItem = Union[OutputChunk, OutputStreamError, None]


async def _pump(
    reader: Optional[asyncio.StreamReader],
    kind: StreamKind,
    queue: "asyncio.Queue[_QueueItem]",
) -> None:
    try:
        if reader is None:
            return
        while True:
            try:
                raw = await reader.readline()
            except ValueError as exc:
                # readline reports asyncio.LimitOverrunError as ValueError.
                await queue.put(
                    OutputStreamError(f"Unable to read {kind.value} of child: {exc}")
                )
                return
            if not raw:
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            await queue.put(OutputChunk(kind, line))
    finally:
        await queue.put(None)


async def _reap(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    # communicate() drains both pipes so the transport can close.
    await process.communicate()


async def run_process_async(
    executable: str,
    args: Sequence[str],
    *,
    echo_stdout: bool = True,
    echo_stderr: bool = True,
    cwd: Path | None = None,
    echo: EchoHook | None = None,
) -> ProcessResult:
    """Run ``executable`` with ``args`` and collect its output line by line.

    Both pipes are drained concurrently into one queue, so chunks are seen
    in the order they arrive. Each chunk is echoed (when its stream's flag
    is set) before being appended to the result. A non-zero exit code is
    returned to the caller; termination by a signal raises
    :class:`ProcessDidNotExitNormally`. If output cannot be read or echoed
    the child is killed and :class:`OutputStreamError` is raised.
    """
    program = locate_executable(executable)
    echo = echo or echo_chunk
    _LOGGER.debug("Running command %s %s", program, list(args))

    try:
        process = await asyncio.create_subprocess_exec(
            program,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            limit=_STREAM_LIMIT,
        )
    except OSError as exc:
        raise ProcessSpawnFailure(f"Failed to start {program}: {exc}") from exc

    queue: "asyncio.Queue[_QueueItem]" = asyncio.Queue()
    readers = [
        asyncio.create_task(_pump(process.stdout, StreamKind.STDOUT, queue)),
        asyncio.create_task(_pump(process.stderr, StreamKind.STDERR, queue)),
    ]

    result = ProcessResult()
    finished = False
    try:
        open_streams = len(readers)
        while open_streams:
            chunk = await queue.get()
            if chunk is None:
                open_streams -= 1
                continue
            if isinstance(chunk, OutputStreamError):
                raise chunk
            enabled = echo_stdout if chunk.stream is StreamKind.STDOUT else echo_stderr
            if enabled:
                try:
                    echo(chunk)
                except OSError as exc:
                    raise OutputStreamError(f"Unable to echo child output: {exc}") from exc
            if chunk.stream is StreamKind.STDOUT:
                result.stdout_lines.append(chunk.line)
            else:
                result.stderr_lines.append(chunk.line)

        await asyncio.gather(*readers)
        returncode = await process.wait()
        finished = True
    finally:
        if not finished:
            for task in readers:
                task.cancel()
            await asyncio.gather(*readers, return_exceptions=True)
            await _reap(process)

    if returncode < 0:
        raise ProcessDidNotExitNormally(
            f"{Path(program).name} was terminated by signal {-returncode}"
        )
    result.exit_code = returncode
    return result


def run_process(
    executable: str,
    args: Sequence[str],
    *,
    echo_stdout: bool = True,
    echo_stderr: bool = True,
    cwd: Path | None = None,
    echo: EchoHook | None = None,
) -> ProcessResult:
    """Synchronous wrapper around :func:`run_process_async`."""
    return asyncio.run(
        run_process_async(
            executable,
            args,
            echo_stdout=echo_stdout,
            echo_stderr=echo_stderr,
            cwd=cwd,
            echo=echo,
        )
    )


__all__ = [
    "EchoHook",
    "OutputChunk",
    "ProcessResult",
    "StreamKind",
    "echo_chunk",
    "locate_executable",
    "prefixed_echo_chunk",
    "run_process",
    "run_process_async",
]
