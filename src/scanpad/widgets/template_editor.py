import re

from textual.binding import Binding
from textual.message import Message
from textual.widgets import TextArea

FIELD_PREFIX = re.compile(r"[\w-]*$")


class TemplateEditor(TextArea):
    """YAML editor for the scan template."""

    BINDING_GROUP_TITLE = "Template"
    BINDINGS = [Binding("ctrl+space", "complete", "Complete field")]

    class CompletionRequested(Message):
        def __init__(self, editor: "TemplateEditor", prefix: str) -> None:
            self.editor = editor
            self.prefix = prefix
            super().__init__()

    def __init__(self, template: str = "", id: str | None = None) -> None:
        super().__init__(
            template,
            language="yaml",
            soft_wrap=False,
            tab_behavior="indent",
            show_line_numbers=True,
            id=id,
        )

    def on_mount(self) -> None:
        self.indent_width = 2

    @property
    def field_prefix(self) -> str:
        """The partial field name before the cursor."""
        row, column = self.cursor_location
        line = self.document.get_line(row)[:column]
        match = FIELD_PREFIX.search(line)
        return match.group(0) if match else ""

    def action_complete(self) -> None:
        self.post_message(self.CompletionRequested(self, self.field_prefix))

    def insert_field(self, key: str) -> None:
        """Replace the partial field before the cursor with a complete field.

        Args:
            key: Field name.
        """
        row, column = self.cursor_location
        start = (row, column - len(self.field_prefix))
        self.replace(f"{key}: ", start, (row, column), maintain_selection_offset=False)
