"""Colour palette and text styles for the terminal interface."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

_ANSI = re.compile(r"\x1b\[[0-9;]*m")
_RESET = "\x1b[0m"
_BORDERS = {
    "normal": "┌┐└┘─│",
    "rounded": "╭╮╰╯─│",
    "thick": "┏┓┗┛━┃",
}

COLOR_PRIMARY = "#88C0D0"
COLOR_ACCENT = "#BF616A"
COLOR_SUCCESS = "#A3BE8C"
COLOR_WARNING = "#EBCB8B"
COLOR_ERROR = "#BF616A"
COLOR_TEXT = "#ECEFF4"
COLOR_DARK_GRAY = "#4C566A"
COLOR_MID_GRAY = "#D8DEE9"
COLOR_LIGHT_GRAY = "#ABB2BF"


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert a '#RRGGBB' colour to its red, green and blue components."""
    digits = color.removeprefix("#")
    if len(digits) != 6:
        raise ValueError(f"invalid colour: {color!r}")
    try:
        value = int(digits, 16)
    except ValueError:
        raise ValueError(f"invalid colour: {color!r}") from None
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def strip_ansi(text: str) -> str:
    """Remove colour and attribute escape sequences from text."""
    return _ANSI.sub("", text)


def _visible_width(text: str) -> int:
    return len(strip_ansi(text))


@dataclass(frozen=True)
class Style:
    """A reusable set of colours, attributes, padding and borders for rendering text."""

    foreground: str | None = None
    bold: bool = False
    italic: bool = False
    padding: tuple[int, int, int, int] = (0, 0, 0, 0)
    width: int = 0
    align: str = "left"
    border: str | None = None
    border_foreground: str | None = None

    def with_width(self, width: int) -> Style:
        return replace(self, width=width)

    def with_foreground(self, color: str) -> Style:
        return replace(self, foreground=color)

    def horizontal_padding(self) -> int:
        return self.padding[1] + self.padding[3]

    def vertical_padding(self) -> int:
        return self.padding[0] + self.padding[2]

    def _sgr(self) -> str:
        codes = []
        if self.bold:
            codes.append("1")
        if self.italic:
            codes.append("3")
        if self.foreground:
            r, g, b = hex_to_rgb(self.foreground)
            codes.append(f"38;2;{r};{g};{b}")
        return f"\x1b[{';'.join(codes)}m" if codes else ""

    def _align(self, line: str, width: int) -> str:
        gap = width - _visible_width(line)
        if gap <= 0:
            return line
        if self.align == "center":
            left = gap // 2
            return " " * left + line + " " * (gap - left)
        if self.align == "right":
            return " " * gap + line
        return line + " " * gap

    def render(self, text: str) -> str:
        """Return text laid out and coloured according to this style."""
        top, right, bottom, left = self.padding
        lines = text.split("\n")
        content = max(_visible_width(line) for line in lines)
        if self.width:
            content = max(content, self.width - left - right)
        sgr = self._sgr()
        full = content + left + right

        def paint(line: str) -> str:
            return f"{sgr}{line}{_RESET}" if sgr else line

        body = [paint(" " * left + self._align(line, content) + " " * right) for line in lines]
        blank = paint(" " * full)
        rows = [blank] * top + body + [blank] * bottom
        if self.border:
            tl, tr, bl, br, horizontal, vertical = _BORDERS[self.border]
            edge = Style(foreground=self.border_foreground)
            rows = (
                [edge.render(tl + horizontal * full + tr)]
                + [edge.render(vertical) + row + edge.render(vertical) for row in rows]
                + [edge.render(bl + horizontal * full + br)]
            )
        return "\n".join(rows)


def height(text: str) -> int:
    """Number of lines in rendered text."""
    return text.count("\n") + 1


APP_STYLE = Style(padding=(1, 2, 1, 2))
BORDER_STYLE = Style(border="rounded", border_foreground=COLOR_DARK_GRAY)
TITLE_STYLE = Style(foreground=COLOR_PRIMARY, padding=(0, 1, 0, 1), bold=True, align="center")
HELP_STYLE = Style(foreground=COLOR_LIGHT_GRAY, padding=(0, 1, 0, 1), italic=True)
STATUS_MESSAGE_STYLE = Style(foreground=COLOR_SUCCESS, padding=(0, 1, 0, 1))
ERROR_MESSAGE_STYLE = Style(foreground=COLOR_ERROR, padding=(0, 1, 0, 1))
PROMPT_STYLE = Style(foreground=COLOR_PRIMARY)
TEXT_INPUT_STYLE = Style(
    border="normal", border_foreground=COLOR_DARK_GRAY, padding=(0, 1, 0, 1), foreground=COLOR_TEXT
)
FOCUSED_TEXT_INPUT_STYLE = Style(
    border="thick", border_foreground=COLOR_ACCENT, padding=(0, 1, 0, 1), foreground=COLOR_TEXT
)
LIST_TITLE_STYLE = Style(foreground=COLOR_PRIMARY, bold=True, padding=(0, 1, 0, 1))
LIST_ITEM_STYLE = Style(padding=(0, 0, 0, 2), foreground=COLOR_TEXT)
SELECTED_ITEM_STYLE = Style(foreground=COLOR_ACCENT, bold=True)
TEXT_STYLE = Style(foreground=COLOR_TEXT)