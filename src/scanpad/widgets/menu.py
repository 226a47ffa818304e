from typing import NamedTuple

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.message import Message
from textual.widgets import Label, ListItem, ListView
from textual._partition import partition


class MenuOption(ListItem):
    ALLOW_SELECT = False

    def __init__(self, action: str, description: str, key: str | None) -> None:
        self.action = action
        self.description = description
        self.key = key
        super().__init__(classes="-has-key" if key else "-no-key")

    def compose(self) -> ComposeResult:
        yield Label(self.key or " ", classes="option-key")
        yield Label(self.description, classes="option-description")


class Menu(ListView):
    """A popup list of options. Options with keys are listed first."""

    DEFAULT_CSS = """
    Menu {
        width: auto;
        max-width: 80%;
        height: auto;
        max-height: 16;
        margin: 2 4;
        overlay: screen;
        background: $panel-darken-1;
        border: tall $accent;

        & > MenuOption {
            layout: horizontal;
            width: 1fr;
            height: auto !important;
            padding: 0 1;
            expand: optimal;

            .option-key {
                padding-right: 1;
                color: $text-accent;
                text-style: bold;
            }
            .option-description {
                width: 1fr;
                color: $text-muted;
            }
            &.-highlight .option-description {
                color: $text;
            }
        }
    }
    """

    BINDINGS = [Binding("escape", "dismiss", "Dismiss")]

    class Item(NamedTuple):
        action: str
        description: str
        key: str | None = None

    class OptionSelected(Message):
        """An option was chosen."""

        def __init__(self, menu: "Menu", action: str) -> None:
            self.menu = menu
            self.action = action
            super().__init__()

        @property
        def control(self) -> "Menu":
            return self.menu

    class Dismissed(Message):
        """The menu was closed without choosing an option."""

        def __init__(self, menu: "Menu") -> None:
            self.menu = menu
            super().__init__()

        @property
        def control(self) -> "Menu":
            return self.menu

    def __init__(self, items: list[Item], id: str | None = None) -> None:
        without_keys, with_keys = partition(lambda item: item.key is not None, items)
        super().__init__(
            *[MenuOption(*item) for item in [*with_keys, *without_keys]], id=id
        )

    @on(ListView.Selected)
    def _on_option_selected(self, event: ListView.Selected) -> None:
        event.stop()
        assert isinstance(event.item, MenuOption)
        self.post_message(self.OptionSelected(self, event.item.action))

    def action_dismiss(self) -> None:
        self.post_message(self.Dismissed(self))
