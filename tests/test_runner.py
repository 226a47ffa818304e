"""
Tests for running commands and streaming their output.
"""
import asyncio

import pytest

from scanpad.runner import (
    STREAM_LIMIT,
    UNKNOWN_EXIT_CODE,
    CommandRunner,
    ProcessLaunchError,
    split_command_line,
)


class Recorder:
    """Collects runner callbacks"""

    def __init__(self):
        self.lines: list[str] = []
        self.exit_codes: list[int] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, object]] = []

    def on_line(self, line: str) -> None:
        self.lines.append(line)
        self.events.append(("line", line))

    def on_exit(self, exit_code: int) -> None:
        self.exit_codes.append(exit_code)
        self.events.append(("exit", exit_code))

    def on_error(self, message: str) -> None:
        self.errors.append(message)
        self.events.append(("error", message))

    def run(self, runner: CommandRunner, command_line: str) -> None:
        runner.run(command_line, self.on_line, self.on_exit, self.on_error)


class TestSplitCommandLine:
    """Command line splitting"""

    def test_split(self):
        """Test quoted arguments are kept together"""
        assert split_command_line('nuclei -t "my template.yaml"') == [
            "nuclei",
            "-t",
            "my template.yaml",
        ]

    def test_empty(self):
        """Test an empty command line is an error"""
        with pytest.raises(ProcessLaunchError):
            split_command_line("   ")

    def test_bad_quoting(self):
        """Test unbalanced quotes are an error"""
        with pytest.raises(ProcessLaunchError):
            split_command_line('echo "unterminated')


class TestCommandRunner:
    """Running processes"""

    @pytest.mark.asyncio
    async def test_lines_in_order(self, python):
        """Test lines arrive in order, followed by the exit code"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, python("print(1); print(2); print(3)"))
        await runner.wait()
        assert recorder.lines == ["1\n", "2\n", "3\n"]
        assert recorder.exit_codes == [0]
        assert recorder.events[-1] == ("exit", 0)
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_exit_code(self, python):
        """Test a non-zero exit code is reported"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, python("import sys; sys.exit(3)"))
        await runner.wait()
        assert recorder.lines == []
        assert recorder.exit_codes == [3]
        assert recorder.errors == []

    @pytest.mark.asyncio
    async def test_stderr_is_merged(self, python):
        """Test standard error is delivered with standard output"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, python("import sys; sys.stderr.write('oops\\n')"))
        await runner.wait()
        assert recorder.lines == ["oops\n"]

    @pytest.mark.asyncio
    async def test_line_endings(self, python):
        """Test CRLF is normalized, and a final partial line gets a newline"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(
            runner, python("import sys; sys.stdout.write('a\\r\\nb\\nc'); sys.stdout.flush()")
        )
        await runner.wait()
        assert recorder.lines == ["a\n", "b\n", "c\n"]

    @pytest.mark.asyncio
    async def test_small_queue(self, python):
        """Test a bounded queue still delivers every line"""
        recorder = Recorder()
        runner = CommandRunner(queue_size=1)
        recorder.run(runner, python("for n in range(50): print(n)"))
        await runner.wait()
        assert recorder.lines == [f"{n}\n" for n in range(50)]
        assert recorder.exit_codes == [0]

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        """Test a missing executable reports an error and no exit code"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, "/nonexistent/scanner -v")
        await runner.wait()
        assert len(recorder.errors) == 1
        assert "/nonexistent/scanner" in recorder.errors[0]
        assert recorder.exit_codes == []
        assert recorder.lines == []

    @pytest.mark.asyncio
    async def test_empty_command_line(self):
        """Test an empty command line reports an error"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, "")
        await runner.wait()
        assert recorder.errors == ["No command to run"]
        assert recorder.exit_codes == []

    @pytest.mark.asyncio
    async def test_terminate(self, python):
        """Test terminate stops a long running process without an exit callback"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(runner, python("import time; print('started', flush=True); time.sleep(30)"))
        for _ in range(200):
            if recorder.lines:
                break
            await asyncio.sleep(0.05)
        assert recorder.lines == ["started\n"]
        assert runner.is_running
        runner.terminate()
        await runner.wait()
        assert not runner.is_running
        assert recorder.exit_codes == []

    @pytest.mark.asyncio
    async def test_new_run_replaces_previous(self, python):
        """Test starting a run terminates the previous one"""
        first = Recorder()
        second = Recorder()
        runner = CommandRunner()
        first.run(runner, python("import time; time.sleep(30)"))
        await asyncio.sleep(0.1)
        second.run(runner, python("print('second')"))
        await runner.wait()
        assert first.exit_codes == []
        assert second.lines == ["second\n"]
        assert second.exit_codes == [0]

    @pytest.mark.asyncio
    async def test_wait_without_run(self):
        """Test wait returns immediately if nothing was run"""
        runner = CommandRunner()
        await runner.wait()
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_line_too_long(self, python):
        """Test a read failure reports an error, then an unknown exit code"""
        recorder = Recorder()
        runner = CommandRunner()
        recorder.run(
            runner,
            python(f"print('a'); print('x' * {2 * STREAM_LIMIT}); print('b')"),
        )
        await runner.wait()
        assert [event for event, _ in recorder.events] == ["line", "error", "exit"]
        assert recorder.lines == ["a\n"]
        assert recorder.exit_codes == [UNKNOWN_EXIT_CODE]
        assert not runner.is_running

    @pytest.mark.asyncio
    async def test_terminate_with_full_queue(self, python):
        """Test terminate stops the output reader when the queue is full"""
        recorder = Recorder()
        runner = CommandRunner(queue_size=2)
        recorder.run(runner, python("for n in range(100000): print(n)"))
        for _ in range(200):
            if recorder.lines:
                break
            await asyncio.sleep(0.01)
        runner.terminate()
        await runner.wait()
        await asyncio.sleep(0.2)

        readers = [
            task
            for task in asyncio.all_tasks()
            if task.get_coro().__qualname__ == "CommandRunner._read_lines"
        ]
        assert readers == []
        assert recorder.exit_codes == []
