from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Mapping, NamedTuple, Protocol, Sequence

import rich.repr
from rich.style import Style as RichStyle
from rich.text import Text
from textual.color import Color
from textual.content import Content
from textual.style import Style


def character_range(start: int, end: int) -> frozenset:
    """Build a set of characters between to code-points.

    Args:
        start: Start codepoint.
        end: End codepoint (inclusive)

    Returns:
        A frozenset of the characters..
    """
    return frozenset(map(chr, range(start, end + 1)))


ESCAPE = "\x1b"
BELL = "\x07"
STRING_TERMINATOR = "\\"

CSI_PARAMETER_BYTES = character_range(0x30, 0x3F)
CSI_INTERMEDIATE_BYTES = character_range(0x20, 0x2F)
CSI_FINAL_BYTES = character_range(0x40, 0x7E)
ESCAPE_FINAL_BYTES = character_range(0x30, 0x7E)

# OSC, DCS, SOS, PM and APC carry a string up to BEL or ST.
STRING_INTRODUCERS = frozenset("]PX^_")
# Character set designation and friends take one more character.
DESIGNATION_INTRODUCERS = frozenset("()*+-./# ")
PRIVATE_MARKERS = ("<", "=", ">", "?")

MAX_PENDING = 4096
"""A dangling escape sequence longer than this is dropped."""

STANDARD_COLORS: Sequence[Color] = (
    Color(0, 0, 0, ansi=0),
    Color(128, 0, 0, ansi=1),
    Color(0, 128, 0, ansi=2),
    Color(128, 128, 0, ansi=3),
    Color(0, 0, 128, ansi=4),
    Color(128, 0, 128, ansi=5),
    Color(0, 128, 128, ansi=6),
    Color(192, 192, 192, ansi=7),
)

BRIGHT_COLORS: Sequence[Color] = (
    Color(128, 128, 128, ansi=8),
    Color(255, 0, 0, ansi=9),
    Color(0, 255, 0, ansi=10),
    Color(255, 255, 0, ansi=11),
    Color(0, 0, 255, ansi=12),
    Color(255, 0, 255, ansi=13),
    Color(0, 255, 255, ansi=14),
    Color(255, 255, 255, ansi=15),
)

CUBE_LEVELS = (0, 95, 135, 175, 215, 255)


def palette_color(index: int) -> Color | None:
    """Get a color from the 256 color palette.

    Args:
        index: Palette index.

    Returns:
        The color, or `None` if the index is out of range.
    """
    if not 0 <= index <= 255:
        return None
    if index < 8:
        return STANDARD_COLORS[index]
    if index < 16:
        return BRIGHT_COLORS[index - 8]
    if index < 232:
        cube = index - 16
        return Color(
            CUBE_LEVELS[cube // 36],
            CUBE_LEVELS[(cube // 6) % 6],
            CUBE_LEVELS[cube % 6],
        )
    gray = 8 + (index - 232) * 10
    return Color(gray, gray, gray)


type SGRUpdate = tuple[str, object]

RESET: SGRUpdate = ("reset", None)

SGR_UPDATE_MAP: Mapping[int, SGRUpdate] = {
    1: ("bold", True),
    3: ("italic", True),
    4: ("underline", True),
    22: ("bold", False),
    23: ("italic", False),
    24: ("underline", False),
    39: ("foreground", None),
    49: ("background", None),
    **{30 + index: ("foreground", color) for index, color in enumerate(STANDARD_COLORS)},
    **{40 + index: ("background", color) for index, color in enumerate(STANDARD_COLORS)},
    **{90 + index: ("foreground", color) for index, color in enumerate(BRIGHT_COLORS)},
    **{100 + index: ("background", color) for index, color in enumerate(BRIGHT_COLORS)},
}


@rich.repr.auto
class StyledRun(NamedTuple):
    """A span of text with a single style."""

    text: str
    """The text (escape sequences removed)."""
    foreground: Color | None = None
    """Foreground color, or `None` for the default."""
    background: Color | None = None
    """Background color, or `None` for the default."""
    bold: bool = False
    italic: bool = False
    underline: bool = False

    def __rich_repr__(self) -> rich.repr.Result:
        yield self.text
        yield "foreground", self.foreground, None
        yield "background", self.background, None
        yield "bold", self.bold, False
        yield "italic", self.italic, False
        yield "underline", self.underline, False

    @property
    def is_default(self) -> bool:
        """Does the run use the default style?"""
        return self[1:] == DEFAULT_RUN_STYLE

    @property
    def style(self) -> Style:
        """The run's style as a Textual Style."""
        return Style(
            background=self.background,
            foreground=self.foreground,
            bold=self.bold or None,
            italic=self.italic or None,
            underline=self.underline or None,
        )

    @property
    def rich_style(self) -> RichStyle:
        """The run's style as a Rich Style."""
        return RichStyle(
            color=None if self.foreground is None else self.foreground.rich_color,
            bgcolor=None if self.background is None else self.background.rich_color,
            bold=self.bold or None,
            italic=self.italic or None,
            underline=self.underline or None,
        )

    def to_content(self) -> Content:
        return Content.styled(self.text, self.style)

    def to_text(self) -> Text:
        return Text(self.text, style=self.rich_style)


DEFAULT_RUN_STYLE = (None, None, False, False, False)


@dataclass
class ANSIState:
    """Style in effect between escape sequences."""

    foreground: Color | None = None
    background: Color | None = None
    bold: bool = False
    italic: bool = False
    underline: bool = False

    def reset(self) -> None:
        self.foreground = None
        self.background = None
        self.bold = False
        self.italic = False
        self.underline = False

    def update(self, updates: Iterable[SGRUpdate]) -> None:
        """Apply SGR updates in order.

        Args:
            updates: Updates from `ANSIRenderer.parse_sgr`.
        """
        for attribute, value in updates:
            if attribute == "reset":
                self.reset()
            else:
                setattr(self, attribute, value)

    def make_run(self, text: str) -> StyledRun:
        return StyledRun(
            text,
            self.foreground,
            self.background,
            self.bold,
            self.italic,
            self.underline,
        )


class DisplaySurface(Protocol):
    """Something that displays styled runs."""

    def append_runs(self, runs: Sequence[StyledRun]) -> None: ...


class ANSIRenderer:
    """Convert text containing ANSI escape sequences in to styled runs.

    The renderer is stateful: styles set in one call apply to text in the next,
    and an escape sequence split across calls is buffered until it is complete.

    Args:
        surface: Optional surface that receives runs from `append_text`.
    """

    def __init__(self, surface: DisplaySurface | None = None) -> None:
        self.surface = surface
        self.state = ANSIState()
        self._pending = ""

    @property
    def pending(self) -> str:
        """An incomplete escape sequence waiting for the next call."""
        return self._pending

    def reset(self) -> None:
        """Reset styles to defaults, and discard any incomplete sequence."""
        self.state.reset()
        self._pending = ""

    @classmethod
    @lru_cache(maxsize=1024)
    def parse_sgr(cls, sgr: str) -> tuple[SGRUpdate, ...]:
        """Parse SGR (Select Graphics Rendition) parameters in to updates.

        Unknown parameters are skipped. A malformed extended color stops
        parsing, so its components are never read as attributes.

        Args:
            sgr: SGR parameters (the part between `ESC [` and `m`).

        Returns:
            A tuple of (attribute, value) updates, applied left to right.
        """
        codes = [
            int(code) if code.isdigit() else (-1 if code else 0)
            for code in sgr.split(";")
        ]
        updates: list[SGRUpdate] = []
        while codes:
            match codes:
                case [38 | 48 as target, 5, index, *codes]:
                    if (color := palette_color(index)) is None:
                        break
                    updates.append(
                        ("foreground" if target == 38 else "background", color)
                    )
                case [38 | 48 as target, 2, red, green, blue, *codes]:
                    if not all(0 <= component <= 255 for component in (red, green, blue)):
                        break
                    updates.append(
                        (
                            "foreground" if target == 38 else "background",
                            Color(red, green, blue),
                        )
                    )
                case [38 | 48, *_]:
                    break
                case [0, *codes]:
                    updates.append(RESET)
                case [code, *codes]:
                    if (update := SGR_UPDATE_MAP.get(code)) is not None:
                        updates.append(update)
        return tuple(updates)

    @classmethod
    def scan_escape(cls, text: str, start: int) -> tuple[int, str | None] | None:
        """Scan an escape sequence.

        Args:
            text: Text to scan.
            start: Offset of the escape character.

        Returns:
            A tuple of the offset following the sequence, and the SGR parameters
                (or `None` if the sequence isn't SGR). `None` if the sequence is
                incomplete.
        """
        length = len(text)
        position = start + 1
        if position >= length:
            return None
        introducer = text[position]
        position += 1

        if introducer == "[":
            parameters_start = position
            while position < length and text[position] in CSI_PARAMETER_BYTES:
                position += 1
            parameters_end = position
            while position < length and text[position] in CSI_INTERMEDIATE_BYTES:
                position += 1
            if position >= length:
                return None
            final = text[position]
            if final not in CSI_FINAL_BYTES:
                # Interrupted sequence; resume at the offending character
                return position, None
            parameters = text[parameters_start:parameters_end]
            if (
                final == "m"
                and parameters_end == position
                and not parameters.startswith(PRIVATE_MARKERS)
            ):
                return position + 1, parameters
            return position + 1, None

        if introducer in STRING_INTRODUCERS:
            while position < length:
                character = text[position]
                if character == BELL:
                    return position + 1, None
                if character == ESCAPE:
                    if position + 1 >= length:
                        return None
                    if text[position + 1] == STRING_TERMINATOR:
                        return position + 2, None
                    # Aborted by a new sequence
                    return position, None
                position += 1
            return None

        if introducer in DESIGNATION_INTRODUCERS:
            if position >= length:
                return None
            return position + 1, None

        if introducer in ESCAPE_FINAL_BYTES:
            return position, None

        # Lone escape; keep what follows
        return start + 1, None

    def feed(self, text: str, plain: bool = False) -> list[StyledRun]:
        """Parse text in to styled runs.

        Args:
            text: Text potentially containing ANSI escape sequences.
            plain: Strip escape sequences without updating the style.

        Returns:
            Styled runs, one per segment of text between escape sequences.
        """
        if self._pending:
            text = f"{self._pending}{text}"
            self._pending = ""

        runs: list[StyledRun] = []
        state = self.state
        length = len(text)
        position = 0

        while position < length:
            escape = text.find(ESCAPE, position)
            if escape == -1:
                escape = length
            if escape > position:
                segment = text[position:escape]
                runs.append(StyledRun(segment) if plain else state.make_run(segment))
            if escape == length:
                break

            scanned = self.scan_escape(text, escape)
            if scanned is None:
                pending = text[escape:]
                if len(pending) <= MAX_PENDING:
                    self._pending = pending
                break
            position, sgr = scanned
            if sgr is not None and not plain:
                state.update(self.parse_sgr(sgr))

        return runs

    def append_text(self, text: str, plain: bool = False) -> list[StyledRun]:
        """Parse text and append the runs to the display surface.

        Args:
            text: Text potentially containing ANSI escape sequences.
            plain: Strip escape sequences without updating the style.

        Returns:
            The runs that were appended.
        """
        runs = self.feed(text, plain)
        if runs and self.surface is not None:
            self.surface.append_runs(runs)
        return runs


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text.

    Args:
        text: Text with escape sequences.

    Returns:
        Text without escape sequences.
    """
    return "".join(run.text for run in ANSIRenderer().feed(text, plain=True))


def runs_to_text(runs: Iterable[StyledRun]) -> Text:
    """Assemble runs in to a Rich Text instance."""
    return Text.assemble(*[(run.text, run.rich_style) for run in runs])
