"""Commands handled by the client without contacting the server."""

from __future__ import annotations

import enum


class LocalCommand(enum.Enum):
    EXIT = "exit"
    CLEAR = "clear"
    HELP = "help"
    STATUS = "status"
    SUPPORT = "support"
    SIGNATURE = "24/7"


LOCAL_KEYWORDS: dict[str, LocalCommand] = {
    "exit": LocalCommand.EXIT,
    "quit": LocalCommand.EXIT,
    "clear": LocalCommand.CLEAR,
    "help": LocalCommand.HELP,
    "status": LocalCommand.STATUS,
    "support": LocalCommand.SUPPORT,
    "24/7": LocalCommand.SIGNATURE,
}

HELP_ENTRIES: list[tuple[str, str]] = [
    ("help", "Show this help"),
    ("clear", "Clear the screen"),
    ("status", "Show connection status"),
    ("support", "Show support contact"),
    ("exit", "Leave the terminal"),
    ("quit", "Leave the terminal"),
]


def classify(line: str) -> LocalCommand | None:
    """Return the local command for a line, or None if it goes to the server."""
    return LOCAL_KEYWORDS.get(line.strip().lower())
