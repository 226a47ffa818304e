from textual import on
from textual.app import ComposeResult
from textual import containers
from textual.message import Message
from textual.widgets import Button, Input


class CommandBar(containers.HorizontalGroup):
    """The command line, and buttons to run it or copy the template."""

    DEFAULT_CSS = """
    CommandBar {
        height: auto;
        padding: 0 1;
        #command-line {
            width: 1fr;
        }
        Button {
            margin-left: 1;
        }
    }
    """

    class ExecuteRequested(Message):
        def __init__(self, command_line: str) -> None:
            self.command_line = command_line
            super().__init__()

    class CopyRequested(Message):
        pass

    def __init__(self, command_line: str, id: str | None = None) -> None:
        self._command_line = command_line
        super().__init__(id=id)

    def compose(self) -> ComposeResult:
        yield Input(self._command_line, id="command-line")
        yield Button("Execute", id="execute", variant="primary")
        yield Button("Copy Template to Clipboard", id="copy")

    @property
    def command_line(self) -> str:
        return self.query_one("#command-line", Input).value

    def focus(self, scroll_visible: bool = True) -> "CommandBar":
        self.query_one("#command-line", Input).focus(scroll_visible)
        return self

    def execute(self) -> None:
        self.post_message(self.ExecuteRequested(self.command_line))

    @on(Input.Submitted, "#command-line")
    def on_command_submitted(self) -> None:
        self.execute()

    @on(Button.Pressed, "#execute")
    def on_execute_pressed(self) -> None:
        self.execute()

    @on(Button.Pressed, "#copy")
    def on_copy_pressed(self) -> None:
        self.post_message(self.CopyRequested())
