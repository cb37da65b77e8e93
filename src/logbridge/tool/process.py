"""Process invocation - run a CLI command line and classify its outcome."""

from __future__ import annotations

import asyncio
import os
import signal
import time
from pathlib import Path

import structlog

from logbridge.config.constants import DEFAULT_MAX_BUFFER_BYTES
from logbridge.core.errors import CommandFailedError, CommandTimeoutError, OutputLimitError
from logbridge.tool.models import ProcessResult
from logbridge.tool.response import error_marker

log = structlog.get_logger(__name__)

_READ_CHUNK = 64 * 1024


class _LimitExceeded(Exception):
    pass


async def _read_bounded(stream: asyncio.StreamReader | None, limit: int) -> bytes:
    if stream is None:
        return b""
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise _LimitExceeded
        chunks.append(chunk)
    return b"".join(chunks)


def _kill(proc: asyncio.subprocess.Process) -> None:
    """Kill the shell and everything it started."""
    if proc.returncode is not None:
        return
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError, AttributeError):
        try:
            proc.kill()
        except ProcessLookupError:
            pass


async def run_process(
    command: str,
    *,
    max_buffer: int = DEFAULT_MAX_BUFFER_BYTES,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> ProcessResult:
    """Run *command* through the shell and capture its output.

    Each of stdout and stderr is capped at *max_buffer* bytes; a process
    that writes more is killed.

    Raises:
        CommandFailedError: The shell itself could not be started.
        OutputLimitError: Captured output exceeded *max_buffer*.
        CommandTimeoutError: The process ran longer than *timeout* seconds.
    """
    start = time.monotonic()
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
            start_new_session=True,
        )
    except OSError as e:
        raise CommandFailedError.not_launched(command, str(e)) from e

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            asyncio.gather(
                _read_bounded(proc.stdout, max_buffer),
                _read_bounded(proc.stderr, max_buffer),
            ),
            timeout=timeout,
        )
        returncode = await proc.wait()
    except _LimitExceeded:
        _kill(proc)
        await proc.wait()
        log.warning("command_output_limit", command=command, limit=max_buffer)
        raise OutputLimitError.exceeded(command, max_buffer) from None
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        log.warning("command_timeout", command=command, timeout=timeout)
        raise CommandTimeoutError.after(command, timeout or 0.0) from None

    result = ProcessResult(
        command=command,
        returncode=returncode,
        stdout=stdout_bytes.decode(errors="replace"),
        stderr=stderr_bytes.decode(errors="replace"),
        duration_seconds=time.monotonic() - start,
    )
    log.debug(
        "command_finished",
        command=command,
        returncode=returncode,
        stdout_bytes=len(stdout_bytes),
        duration=round(result.duration_seconds, 3),
    )
    return result


def classify(result: ProcessResult) -> str:
    """Apply the output policy to a finished process.

    - exit 0: stdout is the payload; stderr is advisory and ignored
    - non-zero exit with stdout: stdout is returned unless it carries the
      tool's own error marker
    - non-zero exit without stdout: failure

    Raises:
        CommandFailedError: The process failed with nothing usable.
    """
    if result.ok:
        if result.stderr.strip():
            log.debug("command_stderr_ignored", command=result.command, stderr=result.stderr[:500])
        return result.stdout

    if result.returncode == 127 or not result.has_output:
        raise CommandFailedError.from_process(
            result.command, result.returncode, result.stdout, result.stderr
        )

    reason = error_marker(result.stdout)
    if reason is not None:
        raise CommandFailedError.from_process(
            result.command, result.returncode, result.stdout, result.stderr, reason=reason
        )

    log.warning(
        "command_nonzero_exit_with_output",
        command=result.command,
        returncode=result.returncode,
    )
    return result.stdout


async def invoke(
    command: str,
    *,
    max_buffer: int = DEFAULT_MAX_BUFFER_BYTES,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> str:
    """Run *command* and return its usable output (see ``classify``)."""
    result = await run_process(command, max_buffer=max_buffer, cwd=cwd, env=env, timeout=timeout)
    return classify(result)
