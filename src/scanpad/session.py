from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from scanpad.command import build_command_line, is_no_color
from scanpad.runner import CommandRunner, ErrorCallback, ExitCallback
from scanpad.template import TemplateError, TemplateFile

log = logging.getLogger(__name__)


def log_error(message: str) -> None:
    log.error(message)


@dataclass
class ScanSession:
    """State for one template window.

    Owns the temporary template file and the command runner, and reports
    errors to `on_error` rather than raising.
    """

    tool_path: str
    target_url: str
    template_file: TemplateFile = field(default_factory=TemplateFile)
    runner: CommandRunner = field(default_factory=CommandRunner)
    on_error: Callable[[str], None] = log_error
    closed: bool = False

    def build_command_line(self) -> str:
        """The default command line for this session.

        Returns:
            Command line, or an empty string if the template file couldn't be created.
        """
        try:
            template_path = self.template_file.path
        except TemplateError as error:
            self.on_error(str(error))
            return ""
        return build_command_line(self.tool_path, template_path, self.target_url)

    def execute(
        self,
        command_line: str,
        template: str,
        on_text: Callable[[str, bool], None],
        on_exit: ExitCallback,
        on_error: ErrorCallback | None = None,
    ) -> bool:
        """Write the template, and start running the command line.

        Args:
            command_line: Command line (possibly edited by the user).
            template: Template text.
            on_text: Called with each line of output, and a flag for plain rendering.
            on_exit: Called with the exit code.
            on_error: Called if the process couldn't be run, or `None` for the session error handler.

        Returns:
            `True` if the run was started, `False` if the template couldn't be written.
        """
        try:
            self.template_file.write(template)
        except TemplateError as error:
            self.on_error(str(error))
            return False

        plain = is_no_color(command_line)
        log.info("running %r (plain=%s)", command_line, plain)
        self.runner.run(
            command_line,
            lambda line: on_text(line, plain),
            on_exit,
            self.on_error if on_error is None else on_error,
        )
        return True

    def close(self) -> None:
        """Stop any running process, and delete the template file.

        May be called more than once.
        """
        self.runner.terminate()
        try:
            self.template_file.delete()
        except TemplateError as error:
            self.on_error(str(error))
        self.closed = True
