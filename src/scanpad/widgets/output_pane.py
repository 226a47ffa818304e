from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Sequence

from textual.cache import LRUCache
from textual.content import Content
from textual.geometry import Size
from textual.scroll_view import ScrollView
from textual.selection import Selection
from textual.strip import Strip
from textual.visual import Visual

from scanpad.ansi import ANSIRenderer, StyledRun


class Row(NamedTuple):
    """A single screen row, which is all or part of an output line."""

    line_index: int
    """Index of the output line."""
    wrap_index: int
    """Index of this row within the wrapped line."""
    start: int
    """Character offset of the row within the output line."""
    content: Content


@dataclass
class OutputLine:
    content: Content = field(default_factory=Content)
    rows: list[Row] = field(default_factory=list)
    version: int = 0


def wrap_line(line_index: int, content: Content, width: int) -> list[Row]:
    """Split a line in to rows no wider than `width` cells.

    A row may be a cell short of `width` where a double width character would
    otherwise be divided.

    Args:
        line_index: Index of the line.
        content: Line content.
        width: Maximum row width, or 0 to not wrap.

    Returns:
        At least one row.
    """
    if width <= 0:
        return [Row(line_index, 0, 0, content)]
    rows: list[Row] = []
    start = 0
    for wrap_index, row_content in enumerate(content.fold(width)):
        rows.append(Row(line_index, wrap_index, start, row_content))
        start += len(row_content)
    return rows


class OutputPane(ScrollView, can_focus=True):
    """Displays process output, with ANSI colors.

    Output may only be appended, so only the last line ever changes. Long lines
    wrap at the width of the pane.
    """

    DEFAULT_CSS = """
    OutputPane {
        overflow: auto auto;
        scrollbar-gutter: stable;
        height: 1fr;
    }
    """

    def __init__(
        self,
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
        disabled: bool = False,
    ):
        self._output: list[OutputLine] = []
        # Screen rows for all lines
        self._rows: list[Row] = []
        # Index in _rows of each line's first row
        self._first_rows: list[int] = []
        self._strips: LRUCache[tuple, Strip] = LRUCache(1000)
        self.renderer = ANSIRenderer(self)
        super().__init__(name=name, id=id, classes=classes, disabled=disabled)

    @property
    def wrap_width(self) -> int:
        return self.scrollable_content_region.width

    @property
    def line_count(self) -> int:
        return len(self._output)

    @property
    def lines(self) -> list[Content]:
        """The (unwrapped) lines of output."""
        return [line.content for line in self._output]

    @property
    def text(self) -> str:
        """The output as plain text."""
        return "\n".join(line.content.plain for line in self._output)

    def allow_select(self) -> bool:
        return True

    def get_selection(self, selection: Selection) -> tuple[str, str] | None:
        return selection.extract(self.text), "\n"

    def notify_style_update(self) -> None:
        super().notify_style_update()
        self._strips.clear()

    def on_resize(self) -> None:
        self._strips.clear()
        self._rewrap()

    def clear(self) -> None:
        """Clear the output, and reset the ANSI state."""
        self._output.clear()
        self._rows.clear()
        self._first_rows.clear()
        self._strips.clear()
        self.renderer.reset()
        self.virtual_size = Size(self.wrap_width, 0)
        self.refresh()

    def write(self, text: str, plain: bool = False) -> None:
        """Write text which may contain ANSI escape sequences.

        Args:
            text: Text to write.
            plain: Ignore colors and styles.
        """
        if text:
            self.renderer.append_text(text, plain)

    def append_runs(self, runs: Sequence[StyledRun]) -> None:
        follow = self.is_mounted and self.is_vertical_scroll_end
        for run in runs:
            first, *rest = run.text.split("\n")
            if not self._output:
                self._new_line()
            if first:
                self._extend_last_line(run._replace(text=first).to_content())
            for text in rest:
                self._new_line()
                if text:
                    self._extend_last_line(run._replace(text=text).to_content())
        self.virtual_size = Size(self.wrap_width, len(self._rows))
        if follow:
            self.scroll_end(animate=False, immediate=True)

    def _new_line(self) -> None:
        line = OutputLine()
        line.rows[:] = wrap_line(len(self._output), line.content, self.wrap_width)
        self._output.append(line)
        self._first_rows.append(len(self._rows))
        self._rows.extend(line.rows)

    def _extend_last_line(self, content: Content) -> None:
        line_index = len(self._output) - 1
        line = self._output[line_index]
        line.content += content
        line.version += 1
        line.rows[:] = wrap_line(line_index, line.content, self.wrap_width)
        first_row = self._first_rows[line_index]
        del self._rows[first_row:]
        self._rows.extend(line.rows)
        self.refresh_lines(first_row, len(line.rows))

    def _rewrap(self) -> None:
        width = self.wrap_width
        self._rows.clear()
        self._first_rows.clear()
        for line_index, line in enumerate(self._output):
            line.rows[:] = wrap_line(line_index, line.content, width)
            self._first_rows.append(len(self._rows))
            self._rows.extend(line.rows)
        self.virtual_size = Size(width, len(self._rows))

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        width = self.wrap_width
        visual_style = self.visual_style
        background = visual_style.rich_style
        row_index = scroll_y + y
        if row_index >= len(self._rows):
            return Strip.blank(width, background)

        row = self._rows[row_index]
        selection = self.text_selection
        cache_key = (self._output[row.line_index].version, row_index, width, visual_style)
        if selection is None and (strip := self._strips.get(cache_key)) is not None:
            return strip.crop_extend(scroll_x, scroll_x + width, background)

        content = row.content
        if selection is not None and (span := selection.get_span(row.line_index)):
            content = self._select_row(row, span, width)

        strip = Visual.to_strips(
            self, content, width, 1, visual_style, apply_selection=False
        )[0].apply_offsets(scroll_x + row.start, row.line_index)
        if selection is None:
            self._strips[cache_key] = strip
        return strip.crop_extend(scroll_x, scroll_x + width, background)

    def _select_row(self, row: Row, span: tuple[int, int], width: int) -> Content:
        """Highlight the selected part of a row."""
        line = self._output[row.line_index].content
        start, end = span
        highlighted = line.stylize(
            self.screen.get_visual_style("screen--selection"),
            start,
            len(line) if end == -1 else end,
        )
        rows = wrap_line(row.line_index, highlighted, width)
        return rows[row.wrap_index].content if row.wrap_index < len(rows) else row.content
