"""Command router: local commands, remote dispatch, output rendering."""

from __future__ import annotations

import logging

from rich.markup import escape
from rich.table import Table

from remote_terminal.config import TerminalConfig
from remote_terminal.models import CONTINUE, Outcome, SubmitResult
from remote_terminal.services.session import SessionController
from remote_terminal.terminal.commands import HELP_ENTRIES, LocalCommand, classify
from remote_terminal.terminal.console import Terminal
from remote_terminal.terminal.history import CommandHistory
from remote_terminal.utils.formatting import status_label

logger = logging.getLogger(__name__)

INTERRUPT_EXIT_CODE = 130


class CommandRouter:
    """Route operator input to local handlers or to the session controller."""

    def __init__(
        self,
        controller: SessionController,
        terminal: Terminal,
        config: TerminalConfig | None = None,
        history: CommandHistory | None = None,
    ) -> None:
        self.controller = controller
        self.terminal = terminal
        self.config = config or TerminalConfig()
        self.history = history if history is not None else terminal.history
        self._interrupt_armed = False

    async def handle_line(self, line: str) -> Outcome:
        """Handle one line typed by the operator."""
        self._interrupt_armed = False
        command = line.strip()
        if not command:
            self.terminal.show_prompt()
            return CONTINUE

        self.history.record(command)

        local = classify(command)
        if local is not None:
            logger.debug("Local command: %s", local.value)
            return self._run_local(local)

        result = await self.controller.submit(command)
        if result is SubmitResult.SENT:
            self.terminal.muted("⏳ Executing command...")
        else:
            self.terminal.error("No connection to the server")
        # Replies print above the open prompt; a silent command must not block input.
        self.terminal.show_prompt()
        return CONTINUE

    def render_output(self, data: str) -> Outcome:
        """Print one unit of server output, then prompt."""
        if data and data.strip():
            self.terminal.output(data)
        self.terminal.show_prompt()
        return CONTINUE

    def handle_interrupt(self) -> Outcome:
        """First Ctrl+C asks for confirmation, a second one in a row exits."""
        if self._interrupt_armed:
            logger.info("Interrupt confirmed, exiting")
            self.terminal.warning("\n👋 Interrupted.")
            return Outcome.exit(INTERRUPT_EXIT_CODE)
        self._interrupt_armed = True
        self.terminal.warning("\n👋 Are you sure you want to quit? (press Ctrl+C again to confirm)")
        self.terminal.show_prompt()
        return CONTINUE

    # --- Local commands ---

    def _run_local(self, command: LocalCommand) -> Outcome:
        if command is LocalCommand.EXIT:
            self.terminal.warning("👋 Goodbye!")
            return Outcome.exit(0)

        if command is LocalCommand.CLEAR:
            self.terminal.clear()
        elif command is LocalCommand.HELP:
            self._show_help()
        elif command is LocalCommand.STATUS:
            self._show_status()
        elif command is LocalCommand.SUPPORT:
            self.terminal.info(f"📞 {self.config.support_contact}")
        elif command is LocalCommand.SIGNATURE:
            self.terminal.console.print("[green]♣ Always on ♣[/green]")

        self.terminal.show_prompt()
        return CONTINUE

    def _show_help(self) -> None:
        table = Table(title="📖 Available commands", title_justify="left")
        table.add_column("Command", style="cyan")
        table.add_column("Description")
        for name, description in HELP_ENTRIES:
            table.add_row(name, description)
        self.terminal.console.print(table)
        self.terminal.warning("💡 Any other command is sent to the remote server")

    def _show_status(self) -> None:
        session = self.controller.session
        table = Table(title="📊 Client status", title_justify="left", show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_row("URL", escape(session.url) or "(not set)")
        table.add_row("State", status_label(session.status))
        table.add_row("Session ID", escape(session.session_id or session.transport_id or "N/A"))
        table.add_row("User", escape(session.display_name or "N/A"))
        table.add_row("Commands in history", str(len(self.history)))
        self.terminal.console.print(table)
