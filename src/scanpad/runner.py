from __future__ import annotations

import asyncio
import logging
import shlex
from typing import Callable

log = logging.getLogger(__name__)


type LineCallback = Callable[[str], None]
type ExitCallback = Callable[[int], None]
type ErrorCallback = Callable[[str], None]


UNKNOWN_EXIT_CODE = -1
"""Exit code reported when the output could not be read to the end."""

STREAM_LIMIT = 1024 * 1024
"""Longest line the runner will read."""


class RunnerError(Exception):
    """Base class for command runner errors."""


class ProcessLaunchError(RunnerError):
    """The process could not be started."""


class ProcessIOError(RunnerError):
    """Reading the process output failed."""


def split_command_line(command_line: str) -> list[str]:
    """Split a command line in to an executable and arguments.

    Args:
        command_line: Command line, as typed in a shell.

    Raises:
        ProcessLaunchError: If the command line is empty or can't be split.

    Returns:
        A list of the executable followed by its arguments.
    """
    try:
        arguments = shlex.split(command_line)
    except ValueError as error:
        raise ProcessLaunchError(f"Unable to parse command line; {error}") from None
    if not arguments:
        raise ProcessLaunchError("No command to run")
    return arguments


class CommandRunner:
    """Run a command, and deliver its output a line at a time.

    Callbacks are invoked on the event loop that called `run`, in the order the
    process wrote its output. `on_exit` follows the last line.

    Args:
        queue_size: Maximum lines buffered between the reader and the callbacks.
    """

    def __init__(self, queue_size: int = 256) -> None:
        self.queue_size = queue_size
        self.process: asyncio.subprocess.Process | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        """Is a command currently running?"""
        return self._task is not None and not self._task.done()

    def run(
        self,
        command_line: str,
        on_line: LineCallback,
        on_exit: ExitCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Start running a command in the background.

        Args:
            command_line: Command line to run.
            on_line: Called with each line of output (including a newline).
            on_exit: Called with the exit code when the process ends.
            on_error: Called with a message if the process couldn't be run.
        """
        self.terminate()
        self._task = asyncio.create_task(
            self._run(command_line, on_line, on_exit, on_error)
        )

    async def wait(self) -> None:
        """Wait for the current command to complete."""
        if self._task is not None:
            try:
                await asyncio.shield(self._task)
            except asyncio.CancelledError:
                if not self._task.cancelled():
                    raise

    def terminate(self) -> None:
        """Kill the running process (if any), and stop delivering output."""
        if self.process is not None and self.process.returncode is None:
            log.debug("killing process %s", self.process.pid)
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
        self.process = None
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _launch(self, arguments: list[str]) -> asyncio.subprocess.Process:
        try:
            process = await asyncio.create_subprocess_exec(
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                limit=STREAM_LIMIT,
            )
        except FileNotFoundError:
            raise ProcessLaunchError(
                f"Unable to run {arguments[0]!r}; executable not found"
            ) from None
        except PermissionError:
            raise ProcessLaunchError(
                f"Unable to run {arguments[0]!r}; permission denied"
            ) from None
        except OSError as error:
            raise ProcessLaunchError(f"Unable to run {arguments[0]!r}; {error}") from None
        return process

    async def _read_lines(
        self, reader: asyncio.StreamReader, queue: asyncio.Queue[str | None]
    ) -> None:
        """Read lines from the process, and put them on the queue.

        A `None` on the queue marks the end of the output. No `None` is queued
        if the reader is cancelled, as nothing is consuming the queue.

        Raises:
            ProcessIOError: If the output couldn't be read.
        """
        try:
            while line := await reader.readline():
                text = line.decode("utf-8", errors="replace")
                if text.endswith("\r\n"):
                    text = text[:-2]
                elif text.endswith("\n"):
                    text = text[:-1]
                await queue.put(f"{text}\n")
        except (OSError, ValueError) as error:
            await queue.put(None)
            raise ProcessIOError(f"Failed to read process output; {error}") from None
        await queue.put(None)

    async def _run(
        self,
        command_line: str,
        on_line: LineCallback,
        on_exit: ExitCallback,
        on_error: ErrorCallback,
    ) -> None:
        try:
            arguments = split_command_line(command_line)
            process = await self._launch(arguments)
        except ProcessLaunchError as error:
            log.error(str(error))
            on_error(str(error))
            return

        self.process = process
        log.debug("started %r (pid %s)", arguments, process.pid)
        assert process.stdout is not None

        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self.queue_size)
        read_task = asyncio.create_task(self._read_lines(process.stdout, queue))
        try:
            while (line := await queue.get()) is not None:
                on_line(line)
            try:
                await read_task
            except ProcessIOError as error:
                log.error(str(error))
                on_error(str(error))
                if process.returncode is None:
                    process.kill()
                await process.wait()
                on_exit(UNKNOWN_EXIT_CODE)
                return
            return_code = await process.wait()
        finally:
            if not read_task.done():
                read_task.cancel()
                await asyncio.wait([read_task])
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
            if self.process is process:
                self.process = None

        log.debug("process %s exited with %s", process.pid, return_code)
        on_exit(return_code)
