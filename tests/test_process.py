"""Tests for flakewrap.process using a Python child as a stand-in for nix."""

from __future__ import annotations

import asyncio
import sys
import textwrap
import time
from pathlib import Path
from typing import List

import pytest

from flakewrap import process
from flakewrap.errors import (
    OutputStreamError,
    ProcessDidNotExitNormally,
    ProcessSpawnFailure,
    ToolNotFound,
)
from flakewrap.process import (
    OutputChunk,
    StreamKind,
    echo_chunk,
    prefixed_echo_chunk,
    run_process,
    run_process_async,
)

INTERLEAVED = textwrap.dedent(
    """
    import sys, time
    for stream, text in [
        (sys.stdout, "out-1"),
        (sys.stderr, "err-1"),
        (sys.stdout, "out-2"),
        (sys.stdout, "out-3"),
        (sys.stderr, "err-2"),
    ]:
        stream.write(text + "\\n")
        stream.flush()
        time.sleep(0.1)
    """
)


def _python(code: str) -> List[str]:
    return ["-c", code]


def test_run_process_preserves_order_per_stream_and_overall() -> None:
    seen: List[OutputChunk] = []

    result = run_process(sys.executable, _python(INTERLEAVED), echo=seen.append)

    assert result.exit_code == 0
    assert result.stdout_lines == ["out-1", "out-2", "out-3"]
    assert result.stderr_lines == ["err-1", "err-2"]
    assert [(chunk.stream, chunk.line) for chunk in seen] == [
        (StreamKind.STDOUT, "out-1"),
        (StreamKind.STDERR, "err-1"),
        (StreamKind.STDOUT, "out-2"),
        (StreamKind.STDOUT, "out-3"),
        (StreamKind.STDERR, "err-2"),
    ]


def test_run_process_echo_flags_filter_streams_but_not_accumulation() -> None:
    seen: List[OutputChunk] = []

    result = run_process(
        sys.executable,
        _python(INTERLEAVED),
        echo_stdout=False,
        echo_stderr=True,
        echo=seen.append,
    )

    assert [chunk.line for chunk in seen] == ["err-1", "err-2"]
    assert result.stdout_lines == ["out-1", "out-2", "out-3"]


def test_run_process_returns_nonzero_exit_code_without_raising() -> None:
    code = "import sys; print('partial'); sys.exit(3)"

    result = run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)

    assert result.exit_code == 3
    assert result.stdout_lines == ["partial"]


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals required")
def test_run_process_raises_when_child_is_killed_by_signal() -> None:
    code = "import os, signal; os.kill(os.getpid(), signal.SIGKILL)"

    with pytest.raises(ProcessDidNotExitNormally, match="signal 9"):
        run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)


def test_run_process_fails_fast_for_missing_tool() -> None:
    with pytest.raises(ToolNotFound):
        run_process("flakewrap-definitely-missing-tool", ["build"])


def test_run_process_uses_working_directory(tmp_path: Path) -> None:
    code = "import os; print(os.getcwd())"

    result = run_process(
        sys.executable, _python(code), cwd=tmp_path, echo_stdout=False, echo_stderr=False
    )

    assert Path(result.stdout_lines[0]).resolve() == tmp_path.resolve()


def test_run_process_captures_long_single_line_documents() -> None:
    code = "import json; print(json.dumps({'packages': {'x': 'y' * 200000}}))"

    result = run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)

    assert len(result.stdout_lines) == 1
    assert result.stdout.startswith('{"packages"')
    assert len(result.stdout) > 200000


def test_run_process_async_runs_inside_existing_loop() -> None:
    async def scenario() -> List[str]:
        result = await run_process_async(
            sys.executable, _python("print('a'); print('b')"), echo_stdout=False
        )
        return result.stdout_lines

    assert asyncio.run(scenario()) == ["a", "b"]


def test_echo_chunk_writes_to_matching_stream(capsys: pytest.CaptureFixture[str]) -> None:
    echo_chunk(OutputChunk(StreamKind.STDOUT, "building"))
    echo_chunk(OutputChunk(StreamKind.STDERR, "warning: dirty tree"))

    captured = capsys.readouterr()
    assert captured.out == "building\n"
    assert captured.err == "warning: dirty tree\n"


def test_default_echo_passes_output_through(capfd: pytest.CaptureFixture[str]) -> None:
    code = "import sys; print('to-out'); print('to-err', file=sys.stderr)"

    run_process(sys.executable, _python(code))

    captured = capfd.readouterr()
    assert "to-out" in captured.out
    assert "to-err" in captured.err


def test_run_process_reports_spawn_failure(tmp_path: Path) -> None:
    with pytest.raises(ProcessSpawnFailure):
        run_process(sys.executable, _python("print('x')"), cwd=tmp_path / "missing")


def test_run_process_does_not_stall_on_large_stderr() -> None:
    code = (
        "import sys\n"
        "sys.stderr.write(('e' * 1023 + '\\n') * 1024)\n"
        "sys.stderr.flush()\n"
        "print('done')\n"
    )

    result = run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)

    assert result.exit_code == 0
    assert result.stdout_lines == ["done"]
    assert len(result.stderr_lines) == 1024


def test_run_process_replaces_invalid_utf8() -> None:
    code = "import sys; sys.stdout.buffer.write(b'ok \\xff\\n'); sys.stdout.flush()"

    result = run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)

    assert result.stdout_lines == ["ok \ufffd"]


@pytest.mark.filterwarnings("error::pytest.PytestUnraisableExceptionWarning")
def test_run_process_rejects_lines_over_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(process, "_STREAM_LIMIT", 1024)
    code = "import time; print('x' * 5000, flush=True); time.sleep(30)"

    started = time.monotonic()
    with pytest.raises(OutputStreamError, match="stdout"):
        run_process(sys.executable, _python(code), echo_stdout=False, echo_stderr=False)

    assert time.monotonic() - started < 20


@pytest.mark.filterwarnings("error::pytest.PytestUnraisableExceptionWarning")
def test_run_process_kills_child_when_echo_fails() -> None:
    code = "import time; print('first', flush=True); time.sleep(30)"

    def broken_pipe(chunk: OutputChunk) -> None:
        raise BrokenPipeError("stdout closed")

    started = time.monotonic()
    with pytest.raises(OutputStreamError, match="stdout closed"):
        run_process(sys.executable, _python(code), echo=broken_pipe)

    assert time.monotonic() - started < 20


def test_prefixed_echo_chunk_tags_lines(capsys: pytest.CaptureFixture[str]) -> None:
    prefixed_echo_chunk(OutputChunk(StreamKind.STDOUT, "building"))
    prefixed_echo_chunk(OutputChunk(StreamKind.STDERR, "warning: dirty tree"))

    captured = capsys.readouterr()
    assert captured.out == "[stdout] building\n"
    assert captured.err == "[stderr] warning: dirty tree\n"
