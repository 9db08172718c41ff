"""Terminal I/O: rich output plus a prompt_toolkit line reader."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from remote_terminal import __version__
from remote_terminal.config import DEFAULT_PROMPT
from remote_terminal.terminal.history import CommandHistory, PromptHistory

logger = logging.getLogger(__name__)


class PromptState:
    """Tracks whether a prompt is owed to the operator.

    ``pending`` is set when a prompt was requested and the next read has
    not started yet. ``reading`` is set while a read is in progress, and a
    request made then is dropped: the line editor keeps its prompt on
    screen.
    """

    def __init__(self) -> None:
        self.pending = False
        self.reading = False

    def request(self) -> bool:
        if self.pending or self.reading:
            return False
        self.pending = True
        return True

    def begin_read(self) -> None:
        self.pending = False
        self.reading = True

    def end_read(self) -> None:
        self.reading = False


class Terminal:
    """Console output and line input for the interactive client."""

    def __init__(
        self,
        prompt: str = DEFAULT_PROMPT,
        console: Console | None = None,
        session: Any = None,
        patch_output: bool = True,
        history: CommandHistory | None = None,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.prompt_text = prompt
        self.history = history if history is not None else CommandHistory()
        self.state = PromptState()
        self.closed = False
        self._session = session
        self._patch_output = patch_output
        self._ready = asyncio.Event()

    @contextmanager
    def attached(self) -> Iterator[None]:
        """Keep printed output above the prompt while the client runs."""
        if not self._patch_output:
            yield
            return
        with patch_stdout(raw=True):
            yield

    def show_prompt(self) -> bool:
        """Request a prompt. Returns False if one is already pending or shown."""
        if self.closed or not self.state.request():
            return False
        self._ready.set()
        return True

    async def read_line(self) -> str:
        """Wait for a prompt request, then read one line.

        Raises KeyboardInterrupt on Ctrl+C and EOFError on Ctrl+D or once
        the terminal is closed.
        """
        await self._ready.wait()
        self._ready.clear()
        if self.closed:
            raise EOFError
        self.state.begin_read()
        try:
            # SIGINT and loop errors stay with the application's own handlers.
            return await self._prompt_session().prompt_async(
                FormattedText([("bold ansired", self.prompt_text)]),
                set_exception_handler=False,
                handle_sigint=False,
            )
        finally:
            self.state.end_read()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._ready.set()
        logger.debug("Terminal closed")

    def _prompt_session(self) -> Any:
        if self._session is None:
            self._session = PromptSession(history=PromptHistory(self.history))
        return self._session

    # --- Output ---

    def banner(self) -> None:
        self.console.clear()
        self.console.print(
            Panel.fit(
                f"[bold red]Remote Terminal[/bold red] [dim]v{__version__}[/dim]\n"
                "[cyan]Interactive client for a remote command server[/cyan]",
                border_style="yellow",
            )
        )

    def clear(self) -> None:
        self.console.clear()

    def output(self, data: str) -> None:
        """Write server output as received.

        The text bypasses rich and reaches the terminal unchanged. Only a
        missing final newline is added.
        """
        file = self.console.file
        file.write(data if data.endswith("\n") else data + "\n")
        file.flush()

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]{escape(message)}[/cyan]")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✅ {escape(message)}[/green]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]❌ {escape(message)}[/red]")

    def muted(self, message: str) -> None:
        self.console.print(f"[dim]{escape(message)}[/dim]")

    def rule(self) -> None:
        self.console.rule(style="yellow")
