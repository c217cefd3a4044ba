"""Command-line entry point running the interface in the terminal."""

from __future__ import annotations

import argparse
import logging
import queue
import sys
from concurrent.futures import ThreadPoolExecutor

from .config import Config, ConfigError, load_config
from .model import AppState, ErrorOccurred, KeyPress, Model, WindowSize

log = logging.getLogger(__name__)

_SEQUENCE_NAMES = {
    "KEY_ENTER": "enter",
    "KEY_ESCAPE": "esc",
    "KEY_UP": "up",
    "KEY_DOWN": "down",
    "KEY_LEFT": "left",
    "KEY_RIGHT": "right",
    "KEY_BACKSPACE": "backspace",
    "KEY_PGUP": "pgup",
    "KEY_PGDOWN": "pgdown",
    "KEY_HOME": "home",
    "KEY_END": "end",
    "KEY_TAB": "tab",
}
_CHAR_NAMES = {
    "\r": "enter",
    "\n": "enter",
    "\x03": "ctrl+c",
    "\x1b": "esc",
    "\x7f": "backspace",
    "\x08": "backspace",
    "\t": "tab",
}


def key_name(keystroke) -> str | None:
    """Name a terminal keystroke the way the model expects, or None for no key."""
    if getattr(keystroke, "is_sequence", False):
        return _SEQUENCE_NAMES.get(keystroke.name)
    text = str(keystroke)
    if not text:
        return None
    return _CHAR_NAMES.get(text, text)


def run(model: Model, terminal) -> Model:
    """Drive the model with terminal input until it exits."""
    messages: queue.Queue = queue.Queue()
    pool = ThreadPoolExecutor(max_workers=4)

    def execute(command) -> None:
        try:
            messages.put(command())
        except Exception as exc:  # a command's failure is shown, not fatal
            log.exception("command failed")
            messages.put(ErrorOccurred(exc))

    def dispatch(commands) -> None:
        for command in commands:
            pool.submit(execute, command)

    try:
        with terminal.fullscreen(), terminal.raw(), terminal.hidden_cursor():
            dispatch(model.init())
            size = None
            while model.state is not AppState.EXITING:
                current = (terminal.width, terminal.height)
                if current != size:
                    size = current
                    dispatch(model.update(WindowSize(*current)))
                while True:
                    try:
                        message = messages.get_nowait()
                    except queue.Empty:
                        break
                    dispatch(model.update(message))
                if model.state is AppState.EXITING:
                    break
                out = terminal.stream
                out.write(terminal.home + terminal.clear + model.view().replace("\n", "\r\n"))
                out.flush()
                name = key_name(terminal.inkey(timeout=0.1))
                if name:
                    dispatch(model.update(KeyPress(name)))
    finally:
        pool.shutdown(wait=False, cancel_futures=True)
    return model


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="sxlmaps", description="Browse and install Skater XL maps.")
    parser.add_argument("--log-file", default="debug.log", help="where to write the debug log")
    args = parser.parse_args(argv)

    print("Launching Skater XL Map Manager...")
    try:
        logging.basicConfig(
            filename=args.log_file,
            level=logging.DEBUG,
            format="[APP] %(asctime)s %(filename)s:%(lineno)d: %(message)s",
        )
    except OSError as exc:
        print(f"fatal: could not setup logging: {exc}")
        return 1
    log.info("Logging enabled!")

    try:
        config = load_config()
    except ConfigError as exc:
        print(f"\x1b[31mError loading configuration: {exc}\x1b[0m")
        config = Config()

    import blessed

    try:
        run(Model(config=config), blessed.Terminal())
    except Exception as exc:
        log.critical("Alas, there's been an error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())