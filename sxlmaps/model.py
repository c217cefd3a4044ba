"""State, message handling and rendering of the map manager's terminal interface."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Sequence

from . import styles
from .api import FetchError, Map, fetch_maps
from .config import Config, ConfigError, save_config
from .installer import InstallError, install_map

log = logging.getLogger(__name__)

PLACEHOLDER_DIR = (
    "~/.steam/steam/steamapps/compatdata/962730/pfx/drive_c/users/steamuser/Documents/SkaterXL/Maps/"
)
_EXCLUDED_WORDS = ("ps4", "playstation", "xbox")


class AppState(enum.Enum):
    LOADING_MAPS = enum.auto()
    PROMPT_DIR = enum.auto()
    MAP_LIST = enum.auto()
    INSTALLING = enum.auto()
    ERROR = enum.auto()
    EXITING = enum.auto()


class SortField(str, enum.Enum):
    NAME = "name"
    POPULARITY = "popularity"
    RECENT = "recent"


@dataclass(frozen=True)
class MapsFetched:
    maps: list[Map]


@dataclass(frozen=True)
class ErrorOccurred:
    error: Exception


@dataclass(frozen=True)
class InstallProgress:
    text: str


@dataclass(frozen=True)
class InstallDone:
    map_name: str
    error: Exception | None = None


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class WindowSize:
    width: int
    height: int


Message = MapsFetched | ErrorOccurred | InstallProgress | InstallDone | KeyPress | WindowSize
Command = Callable[[], Message]


@dataclass
class TextInput:
    """A single-line editable text field."""

    value: str = ""
    cursor: int = 0
    placeholder: str = ""
    char_limit: int = 250
    width: int = 80
    prompt: str = "> "

    def insert(self, text: str) -> None:
        room = self.char_limit - len(self.value) if self.char_limit else len(text)
        text = text[: max(0, room)]
        self.value = self.value[: self.cursor] + text + self.value[self.cursor :]
        self.cursor += len(text)

    def backspace(self) -> None:
        if self.cursor > 0:
            self.value = self.value[: self.cursor - 1] + self.value[self.cursor :]
            self.cursor -= 1

    def move_left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def move_right(self) -> None:
        self.cursor = min(len(self.value), self.cursor + 1)

    def view(self) -> str:
        prompt = styles.PROMPT_STYLE.render(self.prompt)
        if not self.value:
            return prompt + "\x1b[7m \x1b[0m" + styles.Style(foreground=styles.COLOR_DARK_GRAY).render(
                self.placeholder
            )
        start = max(0, self.cursor - self.width + 1) if self.width > 0 else 0
        before = self.value[start : self.cursor]
        at = self.value[self.cursor : self.cursor + 1] or " "
        after = self.value[self.cursor + 1 :]
        text = styles.TEXT_STYLE
        return prompt + text.render(before) + f"\x1b[7m{at}\x1b[0m" + (text.render(after) if after else "")


def describe_map(map_: Map) -> str:
    """One-line description of a map for the list."""
    return (
        f"Downloads: {map_.stats.downloads_total} | By: {map_.submitted_by.username}"
        f" | Summary: {map_.summary}"
    )


def filter_maps(maps: Sequence[Map]) -> list[Map]:
    """Drop console-only maps."""
    return [m for m in maps if not any(word in m.name.lower() for word in _EXCLUDED_WORDS)]


def sort_maps(maps: Sequence[Map], field: SortField, ascending: bool) -> list[Map]:
    """Return maps ordered by the given field and direction."""
    keys = {
        SortField.NAME: lambda m: m.name.lower(),
        SortField.POPULARITY: lambda m: m.stats.downloads_total,
        SortField.RECENT: lambda m: m.date_added,
    }
    return sorted(maps, key=keys[SortField(field)], reverse=not ascending)


_NEXT_SORT = {
    SortField.RECENT: (SortField.POPULARITY, False),
    SortField.POPULARITY: (SortField.NAME, True),
    SortField.NAME: (SortField.RECENT, False),
}


@dataclass
class Model:
    """The interface's whole state; update() applies a message and returns follow-up commands."""

    config: Config = field(default_factory=Config)
    fetch: Callable[[], list[Map]] = fetch_maps
    install: Callable[[Map, str], object] = install_map
    save: Callable[[Config], object] = save_config
    state: AppState = AppState.LOADING_MAPS
    maps: list[Map] = field(default_factory=list)
    index: int = 0
    list_width: int = 0
    list_height: int = 0
    text_input: TextInput = field(default_factory=TextInput)
    current_error: Exception | None = None
    status_message: str = ""
    status_style: styles.Style = styles.STATUS_MESSAGE_STYLE
    maps_dir: str = ""
    sort_field: SortField = SortField.RECENT
    sort_ascending: bool = False

    def __post_init__(self) -> None:
        self.text_input.placeholder = PLACEHOLDER_DIR
        if self.config.skater_xl_maps_dir:
            self.text_input.value = self.config.skater_xl_maps_dir
            self.text_input.cursor = len(self.text_input.value)

    def init(self) -> list[Command]:
        return [self._fetch_command]

    def _fetch_command(self) -> Message:
        try:
            return MapsFetched(self.fetch())
        except FetchError as exc:
            return ErrorOccurred(exc)

    def _install_command(self, map_: Map, maps_dir: str) -> Command:
        def command() -> Message:
            log.info("Installer: Starting install for map '%s' to '%s'", map_.name, maps_dir)
            try:
                self.install(map_, maps_dir)
            except (InstallError, OSError) as exc:
                log.error("Installer: Failed to install '%s': %s", map_.name, exc)
                return InstallDone(map_.name, exc)
            log.info("Installer: Successfully installed '%s'", map_.name)
            return InstallDone(map_.name)

        return command

    def sort_order(self) -> str:
        return "asc" if self.sort_ascending else "desc"

    def _status(self, text: str, error: bool = False) -> None:
        self.status_message = text
        self.status_style = styles.ERROR_MESSAGE_STYLE if error else styles.STATUS_MESSAGE_STYLE

    def _per_page(self) -> int:
        return max(1, self.list_height - 5) if self.list_height > 0 else 10

    def selected_map(self) -> Map | None:
        return self.maps[self.index] if self.maps else None

    def visible_items(self) -> list[tuple[int, Map]]:
        per_page = self._per_page()
        start = self.index // per_page * per_page
        return list(enumerate(self.maps))[start : start + per_page]

    def _resort(self) -> None:
        self.maps = sort_maps(self.maps, self.sort_field, self.sort_ascending)
        self.index = 0
        self._status(f"Sorted by {self.sort_field.value} ({self.sort_order()}).")

    def update(self, msg: Message) -> list[Command]:
        log.debug("Update: received %r in state %s", type(msg).__name__, self.state)
        if isinstance(msg, WindowSize):
            h_pad = styles.APP_STYLE.horizontal_padding()
            v_pad = styles.APP_STYLE.vertical_padding()
            chrome = (
                styles.height(styles.TITLE_STYLE.render("A"))
                + styles.height(styles.HELP_STYLE.render("A"))
                + styles.height(styles.STATUS_MESSAGE_STYLE.render("A"))
                + v_pad * 2
            )
            self.list_width = msg.width - h_pad * 2
            self.list_height = msg.height - chrome
            self.text_input.width = msg.width - h_pad * 2 - 4
        elif isinstance(msg, MapsFetched):
            self.maps = sort_maps(filter_maps(msg.maps), self.sort_field, self.sort_ascending)
            self.index = 0
            if self.config.skater_xl_maps_dir:
                self.maps_dir = self.config.skater_xl_maps_dir
                self._status("Using saved maps directory.")
                self.state = AppState.MAP_LIST
            else:
                self._status("Please enter your Skater XL Maps directory.")
                self.state = AppState.PROMPT_DIR
        elif isinstance(msg, ErrorOccurred):
            self.current_error = msg.error
            self.state = AppState.ERROR
        elif isinstance(msg, InstallProgress):
            self._status(msg.text)
        elif isinstance(msg, InstallDone):
            if msg.error is not None:
                self.current_error = msg.error
                self.state = AppState.ERROR
            else:
                self._status(f"Successfully installed {msg.map_name}!")
                self.state = AppState.MAP_LIST
        elif isinstance(msg, KeyPress):
            return self._on_key(msg.key)
        return []

    def _on_key(self, key: str) -> list[Command]:
        if key in ("ctrl+c", "q"):
            self.state = AppState.EXITING
            return []
        if self.state is AppState.PROMPT_DIR:
            self._on_prompt_key(key)
        elif self.state is AppState.MAP_LIST:
            return self._on_list_key(key)
        elif self.state is AppState.ERROR and key == "esc":
            self.state = AppState.EXITING
        return []

    def _on_prompt_key(self, key: str) -> None:
        field_ = self.text_input
        if key == "enter":
            path = field_.value.strip()
            if not path:
                self._status("Directory cannot be empty.", error=True)
                return
            try:
                os.stat(path)
            except FileNotFoundError:
                self._status(
                    f"Directory '{path}' does not exist. Please enter a valid path.", error=True
                )
                return
            except OSError as exc:
                self._status(f"Error accessing directory '{path}': {exc}", error=True)
                return
            self.maps_dir = path
            self.config.skater_xl_maps_dir = path
            try:
                self.save(self.config)
            except ConfigError as exc:
                self._status(f"Error saving config: {exc}", error=True)
            else:
                self._status("Maps directory saved! Press 'q' to quit.")
            self.state = AppState.MAP_LIST
        elif key == "backspace":
            field_.backspace()
        elif key == "left":
            field_.move_left()
        elif key == "right":
            field_.move_right()
        elif key == "home":
            field_.cursor = 0
        elif key == "end":
            field_.cursor = len(field_.value)
        elif key == "space":
            field_.insert(" ")
        elif len(key) == 1:
            field_.insert(key)

    def _on_list_key(self, key: str) -> list[Command]:
        if key == "enter":
            selected = self.selected_map()
            if selected is None:
                self._status("No map selected. Press up/down to select a map.", error=True)
                return []
            self._status(f"You selected: {selected.name}. Initiating install...")
            self.state = AppState.INSTALLING
            return [self._install_command(selected, self.maps_dir)]
        if key == "1":
            self.sort_field, self.sort_ascending = _NEXT_SORT[self.sort_field]
            self._resort()
            return []
        if key == "2":
            self.sort_ascending = not self.sort_ascending
            self._resort()
            return []
        if not self.maps:
            return []
        last = len(self.maps) - 1
        per_page = self._per_page()
        moves = {
            "up": self.index - 1, "k": self.index - 1,
            "down": self.index + 1, "j": self.index + 1,
            "left": self.index - per_page, "h": self.index - per_page, "pgup": self.index - per_page,
            "right": self.index + per_page, "l": self.index + per_page, "pgdown": self.index + per_page,
            "home": 0, "g": 0, "end": last, "G": last,
        }
        if key in moves:
            self.index = min(last, max(0, moves[key]))
        return []

    def _list_view(self) -> str:
        lines = [styles.LIST_TITLE_STYLE.render("Skater XL Maps"), ""]
        count = len(self.maps)
        lines.append(styles.Style(foreground=styles.COLOR_DARK_GRAY).render(
            f"{count} item" + ("" if count == 1 else "s")
        ))
        lines.append("")
        width = self.list_width - styles.SELECTED_ITEM_STYLE.horizontal_padding()
        for position, map_ in self.visible_items():
            text = f"{position + 1}. {map_.name}"
            padded = styles.Style(width=width).render(text) if width > 0 else text
            if position == self.index:
                lines.append(styles.SELECTED_ITEM_STYLE.render(">" + padded))
            else:
                lines.append(styles.LIST_ITEM_STYLE.render(" " + padded))
        if not self.maps:
            lines.append("No items.")
        per_page = self._per_page()
        pages = max(1, -(-count // per_page))
        lines.append("")
        lines.append(styles.HELP_STYLE.render(f"page {self.index // per_page + 1}/{pages}"))
        return "\n".join(lines)

    def view(self) -> str:
        if self.state is AppState.LOADING_MAPS:
            return "Loading Skater XL Maps..."
        parts: list[str] = []
        if self.state is AppState.PROMPT_DIR:
            parts += [
                styles.TEXT_STYLE.render("Enter your Skater XL 'Maps' directory:"), "\n",
                self.text_input.view(), "\n\n",
                styles.HELP_STYLE.render("Press Enter to confirm, Ctrl+C to quit."),
            ]
        elif self.state is AppState.MAP_LIST:
            parts += [
                styles.Style(foreground=styles.COLOR_PRIMARY).render(
                    f"Found {len(self.maps)} maps. Sorting by {self.sort_field.value} ({self.sort_order()})."
                ),
                "\n\n",
                styles.HELP_STYLE.render(
                    "Use ↑/↓ to navigate, Enter to install, q to quit. "
                    "Sort: (1) Cycle sort field, (2) Swap asc/desc."
                ),
                "\n",
                self._list_view(),
            ]
        elif self.state is AppState.INSTALLING:
            parts += [
                styles.Style(foreground=styles.COLOR_WARNING).render(
                    "Installing map... This might take a moment."
                ),
                "\n\n",
                self.status_style.render(self.status_message),
            ]
        elif self.state is AppState.ERROR:
            parts += [
                styles.ERROR_MESSAGE_STYLE.render(f"An error occurred: {self.current_error}"),
                "\n\n",
                styles.HELP_STYLE.render("Press Esc to quit."),
            ]
        elif self.state is AppState.EXITING:
            parts.append(styles.Style(foreground=styles.COLOR_PRIMARY).render("Exiting..."))
        if self.status_message and self.state is not AppState.INSTALLING:
            parts += ["\n\n", self.status_style.render(self.status_message)]
        return styles.APP_STYLE.render("".join(parts))