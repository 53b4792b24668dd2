"""Leveled console output used as the reporting sink for packaging runs."""
from __future__ import annotations

from typing import TextIO
import sys

from core.archive import ArchiveConsole


class Console(ArchiveConsole):
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug
    Messages go to ``stream`` (stderr by default) so that stdout only carries
    the paths of produced artifacts.
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(self, level: str = "error", stream: TextIO | None = None):
        normalized = level.strip().lower()
        if normalized not in self.LEVELS:
            allowed = ", ".join(self.LEVELS)
            raise ValueError(f"Unknown log level '{level}' (allowed: {allowed})")
        self.level_name = normalized
        self.level = self.LEVELS[normalized]
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            print(f"[INFO] {message}", file=self.stream)

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            print(f"[ERROR] {message}", file=self.stream)

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            print(f"[DEBUG] {message}", file=self.stream)


class RecordingConsole(Console):
    """Console that keeps every message instead of printing it."""

    def __init__(self) -> None:
        super().__init__("debug")
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def debug(self, message: str) -> None:
        self.messages.append(("debug", message))

    def lines(self, level: str | None = None) -> list[str]:
        return [message for kind, message in self.messages if level is None or kind == level]
