"""
Process Tool - Runs external commands and streams their output

Every external tool the pipeline touches (git, npm, npx cap, gradlew, chmod)
goes through run_command(). Output is streamed line-by-line to a callback as
it is produced, rather than captured and returned at the end.

Ordering: lines from one stream reach the callback in the order they were
written. stdout and stderr are read concurrently, so their relative
interleaving is not guaranteed.
"""
import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Callback receives (line, stream) where stream is "stdout" or "stderr"
LineCallback = Callable[[str, str], None]

# Gradle and npm can print very long lines; StreamReader's default limit is 64 KiB
STREAM_LIMIT = 1024 * 1024

NON_INTERACTIVE_ENV = {
    "CI": "true",
    "TERM": "dumb",
    "NO_COLOR": "1",
    "FORCE_COLOR": "0",
}


class CommandError(Exception):
    """Raised when a command cannot be spawned or exits non-zero"""

    def __init__(self, command: str, exit_code: Optional[int], reason: Optional[str] = None):
        self.command = command
        self.exit_code = exit_code
        self.reason = reason
        if exit_code is None:
            message = f'Command "{command}" could not be started: {reason}'
        else:
            message = f'Command "{command}" failed with exit code {exit_code}'
        super().__init__(message)


def format_command(command: str, args: Sequence[str]) -> str:
    """Render a command and its arguments the way they are shown in logs"""
    return " ".join([command, *args])


async def _pump(stream: asyncio.StreamReader, kind: str, on_line: Optional[LineCallback]):
    while True:
        raw = await stream.readline()
        if not raw:
            break
        line = raw.decode("utf-8", errors="replace").strip()
        if line and on_line:
            on_line(line, kind)


def _kill_process_group(process: asyncio.subprocess.Process):
    """Kill the child and everything it spawned (npm and gradlew fork their own workers)"""
    if process.returncode is not None:
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # Exited between the returncode check and the kill
        pass


async def run_command(
    command: str,
    args: Sequence[str],
    cwd: Path,
    on_line: Optional[LineCallback] = None
) -> None:
    """
    Run an external command to completion

    The command runs in its own process group. If the awaiting task is
    cancelled, the whole group is killed before the cancellation propagates.

    Args:
        command: Executable name or path (resolved relative to cwd when it contains a slash)
        args: Command arguments
        cwd: Working directory
        on_line: Called for every non-blank output line with (line, "stdout"|"stderr")

    Raises:
        CommandError: On spawn failure or non-zero exit code
    """
    cmd_str = format_command(command, args)
    env = {**os.environ, **NON_INTERACTIVE_ENV}
    logger.info(f"[Process] Running: {cmd_str} (cwd={cwd})")

    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=str(cwd),
            env=env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            limit=STREAM_LIMIT,
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"[Process] Failed to start {cmd_str}: {e}")
        raise CommandError(cmd_str, None, e.strerror or str(e)) from e

    try:
        await asyncio.gather(
            _pump(process.stdout, "stdout", on_line),
            _pump(process.stderr, "stderr", on_line),
        )
        exit_code = await process.wait()
    except asyncio.CancelledError:
        logger.warning(f"[Process] Cancelled, killing {cmd_str} (pid={process.pid})")
        _kill_process_group(process)
        await process.wait()
        raise

    if exit_code != 0:
        logger.warning(f"[Process] {cmd_str} exited with {exit_code}")
        raise CommandError(cmd_str, exit_code)


__all__ = ["run_command", "format_command", "CommandError", "LineCallback", "NON_INTERACTIVE_ENV"]
