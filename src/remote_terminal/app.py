"""Client application: event dispatch, input loop and shutdown."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

from rich.markup import escape

from remote_terminal.config import AppConfig
from remote_terminal.models import (
    CONTINUE,
    AuthenticationError,
    ConnectError,
    Connected,
    ConnectionStatus,
    Disconnected,
    Outcome,
    Output,
    ReconnectError,
    Reconnected,
    ReconnectExhausted,
    SessionAssigned,
    SessionEvent,
)
from remote_terminal.services.session import SessionController
from remote_terminal.terminal.console import Terminal
from remote_terminal.terminal.router import CommandRouter

logger = logging.getLogger(__name__)


class TerminalApp:
    """Wire the session controller, the router and the terminal together.

    ``run`` is the only place that decides the exit code and releases the
    connection and the terminal.
    """

    def __init__(
        self,
        config: AppConfig,
        terminal: Terminal,
        controller: SessionController | None = None,
    ) -> None:
        self.config = config
        self.terminal = terminal
        self.controller = controller or SessionController(config.reconnect)
        self.router = CommandRouter(self.controller, terminal, config.terminal)
        self._exit: asyncio.Future[int] | None = None
        self._input_task: asyncio.Task[None] | None = None

    async def run(self, url: str, token: str) -> int:
        """Connect, serve the operator until exit, and return the exit code."""
        loop = asyncio.get_running_loop()
        self._exit = loop.create_future()
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(self._on_loop_exception)
        signals_installed = False
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signal.SIGINT, self._on_sigint)
            signals_installed = True

        self.controller.set_listener(self._on_event)
        self.controller.configure(url, token)
        try:
            with self.terminal.attached():
                self.terminal.warning("🔄 Connecting to the server...")
                self.controller.connect()
                return await self._exit
        finally:
            await self._shutdown()
            if signals_installed:
                loop.remove_signal_handler(signal.SIGINT)
            loop.set_exception_handler(previous_handler)

    def dispatch(self, event: SessionEvent) -> Outcome:
        """Handle one session event."""
        match event:
            case Connected():
                self.terminal.success("Connected to the server")
                self.terminal.info('💡 Type "help" to list the available commands')
                self.terminal.info('💡 Type "exit" to leave the terminal')
                self.terminal.rule()
                self._start_input()
                return CONTINUE
            case Disconnected(reason=reason):
                self.terminal.error(f"Disconnected from the server: {reason}")
                if self.controller.status is ConnectionStatus.RECONNECTING:
                    self.terminal.warning("🔄 Reconnecting...")
                return CONTINUE
            case AuthenticationError(message=message):
                self.terminal.error(f"Connection error: {message}")
                self.terminal.error("🔒 Authentication failed. Check your token.")
                return Outcome.exit(1)
            case ConnectError(message=message):
                self.terminal.error(f"Connection error: {message}")
                return CONTINUE
            case SessionAssigned(session_id=session_id, display_name=display_name):
                self.terminal.console.print(f"[blue]📋 Session: {escape(str(display_name))} ({escape(str(session_id))})[/blue]")
                return CONTINUE
            case Output(data=data):
                return self.router.render_output(data)
            case Reconnected(attempts=attempts):
                self.terminal.success(f"Reconnected after {attempts} attempt(s)")
                self._start_input()
                return CONTINUE
            case ReconnectError(message=message):
                self.terminal.error(f"Reconnection error: {message}")
                return CONTINUE
            case ReconnectExhausted():
                self.terminal.error("Could not reconnect to the server")
                return Outcome.exit(1)
        raise TypeError(f"Unknown session event: {event!r}")

    # --- Internals ---

    def _on_event(self, event: SessionEvent) -> None:
        logger.debug("Event: %r", event)
        try:
            outcome = self.dispatch(event)
        except Exception as e:
            # Transport callbacks log and drop exceptions; make them fatal instead.
            asyncio.get_running_loop().call_exception_handler({
                "message": "Error while handling a session event",
                "exception": e,
            })
            return
        self._apply(outcome)

    def _on_sigint(self) -> None:
        self._apply(self.router.handle_interrupt())

    def _start_input(self) -> None:
        if self._input_task is None:
            self._input_task = asyncio.get_running_loop().create_task(self._input_loop())
            self._input_task.add_done_callback(self._on_input_done)
        self.terminal.show_prompt()

    async def _input_loop(self) -> None:
        while True:
            try:
                line = await self.terminal.read_line()
            except KeyboardInterrupt:
                outcome = self.router.handle_interrupt()
            except EOFError:
                logger.info("Input closed")
                outcome = Outcome.exit(0)
            else:
                outcome = await self.router.handle_line(line)
            if self._apply(outcome):
                return

    def _on_input_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        task.get_loop().call_exception_handler({
            "message": "Input loop failed",
            "exception": task.exception(),
            "task": task,
        })

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        message = str(exc) if exc is not None else context.get("message", "unknown error")
        logger.error("Unhandled error: %s", context.get("message"), exc_info=exc)
        self.terminal.error(f"Unhandled error: {message}")
        self._finish(1)

    def _apply(self, outcome: Outcome) -> bool:
        if outcome.terminate:
            self._finish(outcome.exit_code)
        return outcome.terminate

    def _finish(self, code: int) -> None:
        if self._exit is not None and not self._exit.done():
            logger.info("Exiting with code %d", code)
            self._exit.set_result(code)

    async def _shutdown(self) -> None:
        task = self._input_task
        self._input_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self.controller.disconnect()
        self.terminal.close()


async def run_client(config: AppConfig, url: str, token: str, terminal: Terminal | None = None) -> int:
    terminal = terminal or Terminal(prompt=config.terminal.prompt)
    return await TerminalApp(config, terminal).run(url, token)
