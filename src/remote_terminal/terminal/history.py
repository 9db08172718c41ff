"""In-memory command history for the current session."""

from __future__ import annotations

from typing import AsyncGenerator, Iterable

from prompt_toolkit.history import History


class CommandHistory:
    """Ordered list of submitted commands.

    A command is skipped only when it repeats the entry right before it.
    The cursor is moved past the last entry after every record.
    """

    def __init__(self) -> None:
        self._entries: list[str] = []
        self.cursor = 0

    def record(self, command: str) -> bool:
        """Append a command. Returns False if it repeats the last entry."""
        added = not self._entries or self._entries[-1] != command
        if added:
            self._entries.append(command)
        self.cursor = len(self._entries)
        return added

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class PromptHistory(History):
    """Line-editor view of a CommandHistory.

    The router records trimmed commands; up/down recall in the prompt reads
    them back from here, newest first. Lines accepted by the editor are not
    stored a second time.
    """

    def __init__(self, commands: CommandHistory) -> None:
        super().__init__()
        self.commands = commands

    async def load(self) -> AsyncGenerator[str, None]:
        # Called for every new prompt, so recall always sees the latest record.
        for entry in self.load_history_strings():
            yield entry

    def load_history_strings(self) -> Iterable[str]:
        return reversed(self.commands.entries)

    def get_strings(self) -> list[str]:
        return self.commands.entries

    def append_string(self, string: str) -> None:
        pass

    def store_string(self, string: str) -> None:
        pass
