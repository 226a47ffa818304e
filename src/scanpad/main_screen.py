from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual import containers
from textual.screen import Screen
from textual.reactive import var
from textual.widgets import Footer
from textual import getters

from scanpad import messages
from scanpad.completions import FieldCompletions
from scanpad.help import DOCUMENTATION_URL, HELP_LINKS, get_help_url
from scanpad.session import ScanSession
from scanpad.widgets.command_bar import CommandBar
from scanpad.widgets.menu import Menu
from scanpad.widgets.output_pane import OutputPane
from scanpad.widgets.template_editor import TemplateEditor


class MainScreen(Screen):
    """Edit a template, and run the scanner with it."""

    BINDING_GROUP_TITLE = "Screen"
    BINDINGS = [
        Binding("ctrl+enter,f5", "execute", "Execute"),
        Binding("ctrl+l", "focus_command", "Command line"),
        Binding("ctrl+e", "focus_editor", "Template"),
        Binding("f1", "documentation", "Documentation"),
        Binding("f2", "help_menu", "Help"),
    ]

    running = var(False, init=False)
    completions: var[FieldCompletions | None] = var(None)

    command_bar = getters.query_one(CommandBar)
    editor = getters.query_one(TemplateEditor)
    output = getters.query_one(OutputPane)

    def __init__(self, session: ScanSession, template: str) -> None:
        self.session = session
        self._template = template
        super().__init__()

    def compose(self) -> ComposeResult:
        yield CommandBar(self.session.build_command_line())
        with containers.Horizontal(id="panes"):
            yield TemplateEditor(self._template, id="template")
            yield OutputPane(id="output")
        yield Footer()

    def on_mount(self) -> None:
        self.editor.border_title = "Template"
        self.output.border_title = "Output"
        self.editor.focus()

    def on_unmount(self) -> None:
        self.session.close()

    def watch_running(self, running: bool) -> None:
        self.command_bar.set_class(running, "-running")
        self.sub_title = "Running" if running else ""

    def execute(self, command_line: str) -> None:
        """Write the template, and run the command line.

        Args:
            command_line: Command line to run.
        """
        output = self.output
        output.clear()
        if self.session.execute(
            command_line,
            self.editor.text,
            output.write,
            self._on_exit,
            self._on_run_error,
        ):
            self.post_message(messages.WorkStarted())

    def _on_exit(self, exit_code: int) -> None:
        self.output.write(f"\nThe process exited with code {exit_code}")
        self.post_message(messages.WorkFinished(exit_code))

    def _on_run_error(self, message: str) -> None:
        self.session.on_error(message)
        self.post_message(messages.WorkFinished(None))

    @on(messages.WorkStarted)
    def on_work_started(self) -> None:
        self.running = True

    @on(messages.WorkFinished)
    def on_work_finished(self, event: messages.WorkFinished) -> None:
        self.running = self.session.runner.is_running
        if not self.running and event.exit_code is not None:
            self.sub_title = f"Exit code {event.exit_code}"

    @on(CommandBar.ExecuteRequested)
    def on_execute_requested(self, event: CommandBar.ExecuteRequested) -> None:
        self.execute(event.command_line)

    @on(CommandBar.CopyRequested)
    def on_copy_requested(self) -> None:
        self.app.copy_to_clipboard(self.editor.text)
        self.notify("Copied template to clipboard")

    @on(TemplateEditor.CompletionRequested)
    async def on_completion_requested(
        self, event: TemplateEditor.CompletionRequested
    ) -> None:
        if self.completions is None:
            self.notify("Template completion is disabled")
            return
        matches = self.completions.match(event.prefix)
        if not matches:
            self.notify(f"No template fields match {event.prefix!r}")
            return
        await self.show_menu(
            Menu(
                [Menu.Item(key, description, key) for key, description in matches],
                id="completions",
            )
        )

    async def show_menu(self, menu: Menu) -> None:
        await self.query("Menu").remove()
        await self.mount(menu)
        menu.focus()

    @on(Menu.OptionSelected, "#completions")
    async def on_completion_selected(self, event: Menu.OptionSelected) -> None:
        await event.menu.remove()
        self.editor.insert_field(event.action)
        self.editor.focus()

    @on(Menu.OptionSelected, "#help-menu")
    async def on_help_selected(self, event: Menu.OptionSelected) -> None:
        await event.menu.remove()
        if (url := get_help_url(event.action)) is not None:
            self.app.open_url(url)

    @on(Menu.Dismissed)
    async def on_menu_dismissed(self, event: Menu.Dismissed) -> None:
        await event.menu.remove()
        self.editor.focus()

    def action_execute(self) -> None:
        self.command_bar.execute()

    def action_focus_command(self) -> None:
        self.command_bar.focus()

    def action_focus_editor(self) -> None:
        self.editor.focus()

    def action_documentation(self) -> None:
        self.app.open_url(DOCUMENTATION_URL)

    async def action_help_menu(self) -> None:
        await self.show_menu(
            Menu(
                [Menu.Item(link.action, link.title) for link in HELP_LINKS],
                id="help-menu",
            )
        )
