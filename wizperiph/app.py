"""Command-line argument handling, directory picking and span-file watching."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from typing import Callable, Sequence

from .utils import MarkedSpan, mtime_ms, parse_colored_spans

log = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "models/fx991cnx"
SPANS_POLL_INTERVAL = 1.0


class PickError(Exception):
    """Raised when a directory could not be picked."""


def parse_arguments(argv: Sequence[str]) -> tuple[dict[str, str], bool]:
    """Turn `key=value` and bare (model) arguments into a mapping.

    The first value for a key wins. Returns the mapping and whether a model
    was given on the command line.
    """
    options: dict[str, str] = {}
    model_from_cli = False
    for position, argument in enumerate(argv, start=1):
        key, sep, value = argument.partition("=")
        if not sep:
            key, value = "model", argument
        if key in options:
            log.info("[argv] #%d: key '%s' already set", position, key)
        else:
            options[key] = value
        if key == "model":
            model_from_cli = True
    return options, model_from_cli


def join_path(base: str, name: str) -> str:
    if not base:
        return name
    if base.endswith("/"):
        return base + name
    return f"{base}/{name}"


def run_pick_command(command: str) -> str:
    """Run a picker command through the shell and return its trimmed output."""
    try:
        result = subprocess.run(command, shell=True, stdout=subprocess.PIPE, text=True)
    except OSError as exc:
        raise PickError("popen failed") from exc
    output = (result.stdout or "").strip()
    if result.returncode != 0:
        raise PickError(output or f"command exited with code {result.returncode}")
    if not output:
        raise PickError("empty selection")
    return output


def pick_directory(title: str) -> str:
    """Ask a desktop dialog (zenity, then kdialog) for a directory."""
    if os.environ.get("DISPLAY") is None and os.environ.get("WAYLAND_DISPLAY") is None:
        raise PickError("No GUI display available")

    commands = (
        f'zenity --file-selection --directory --title="{title}"',
        f'kdialog --getexistingdirectory "$PWD" --title "{title}"',
    )
    last_error = ""
    for command in commands:
        try:
            return run_pick_command(command)
        except PickError as exc:
            last_error = str(exc)
    raise PickError(last_error or "No supported picker found")


class SpansWatcher:
    """Polls a span configuration file and reports its contents on change."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        on_update: Callable[[list[MarkedSpan]], None],
        interval: float = SPANS_POLL_INTERVAL,
    ) -> None:
        self.path = path
        self.on_update = on_update
        self.interval = interval
        self._last_mtime = 0
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll(self) -> None:
        """Check the file once, reporting new spans or an empty list if it is gone."""
        if os.path.exists(self.path):
            mtime = mtime_ms(self.path)
            if mtime != self._last_mtime:
                self.on_update(parse_colored_spans(self.path))
                self._last_mtime = mtime
        else:
            self.on_update([])
            self._last_mtime = 0

    def _run(self) -> None:
        while not self._stop.is_set():
            self.poll()
            self._stop.wait(self.interval)

    def start(self) -> None:
        self.stop()
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="spans-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> "SpansWatcher":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()