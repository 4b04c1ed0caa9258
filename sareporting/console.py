from __future__ import annotations

import threading
from typing import Dict, Optional

from rich.console import Console
from rich.text import Text

LEVEL_STYLES = {
    "INFO": "bold green",
    "WARN": "bold yellow",
    "ERROR": "bold red",
    "DEBUG": "bold blue",
    "DONE": "bold cyan",
}


class RichLogger:
    """Console logger shared by the CLI and its scan workers.

    Counts emitted warnings and errors so a command can pick its exit code.
    """

    def __init__(self, console: Optional[Console] = None, verbose: bool = False):
        self.console = console or Console(stderr=True)
        self.verbose = verbose
        self.counts: Dict[str, int] = {level: 0 for level in LEVEL_STYLES}
        self._lock = threading.Lock()

    @property
    def error_count(self) -> int:
        return self.counts["ERROR"]

    @property
    def warn_count(self) -> int:
        return self.counts["WARN"]

    def _emit(self, level: str, msg: str) -> None:
        with self._lock:
            self.counts[level] += 1
            tag = Text(level.ljust(5), style=LEVEL_STYLES[level])
            self.console.log(tag, Text(msg))

    def info(self, msg: str) -> None:
        self._emit("INFO", msg)

    def warn(self, msg: str) -> None:
        self._emit("WARN", msg)

    def error(self, msg: str) -> None:
        self._emit("ERROR", msg)

    def debug(self, msg: str) -> None:
        if not self.verbose:
            return
        self._emit("DEBUG", msg)

    def done(self, msg: str) -> None:
        self._emit("DONE", msg)
