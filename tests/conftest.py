"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import io
from typing import Any, Callable

import pytest
from rich.console import Console
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from remote_terminal.config import AppConfig, LoggingConfig, ReconnectConfig, ServerConfig, TerminalConfig
from remote_terminal.terminal.console import Terminal


class FakeClient:
    """In-memory stand-in for socketio.AsyncClient.

    Each connect() consumes one scripted outcome: "ok", "auth", "hang", or
    any other string, which is raised as a connection error message.
    """

    def __init__(self, outcomes: list[str] | None = None, responder: Callable[[str], Any] | None = None) -> None:
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.outcomes = list(outcomes or [])
        self.responder = responder
        self.connected = False
        self.sid = "transport-1"
        self.connect_calls: list[tuple[str, Any]] = []
        self.emitted: list[tuple[str, Any]] = []
        self.disconnect_calls = 0

    def on(self, event, handler=None, namespace=None):
        self.handlers[event] = handler

    async def connect(self, url, auth=None, wait_timeout=None, **kwargs):
        self.connect_calls.append((url, auth))
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if outcome == "ok":
            self.connected = True
            await self.fire("connect")
            return
        if outcome == "auth":
            await self.fire("connect_error", {"message": "Authentication failed: invalid Token"})
            raise SocketIOConnectionError("One or more namespaces failed to connect")
        if outcome == "hang":
            await asyncio.Event().wait()
        raise SocketIOConnectionError(outcome)

    async def emit(self, event, data=None, namespace=None, callback=None):
        self.emitted.append((event, data))
        if self.responder is not None:
            reply = self.responder(data)
            asyncio.get_running_loop().create_task(self.fire("output", reply))

    async def disconnect(self):
        self.disconnect_calls += 1
        was_connected = self.connected
        self.connected = False
        if was_connected:
            await self.fire("disconnect", "client disconnect")

    async def drop(self, reason: str = "transport close") -> None:
        self.connected = False
        await self.fire("disconnect", reason)

    async def fire(self, event: str, *args: Any) -> None:
        await self.handlers[event](*args)


class FakePromptSession:
    """Scripted replacement for prompt_toolkit's PromptSession."""

    def __init__(self, lines: list[Any] | None = None) -> None:
        self.lines = list(lines or [])
        self.prompts = 0

    async def prompt_async(self, message=None, **kwargs):
        self.prompts += 1
        await asyncio.sleep(0)
        if not self.lines:
            await asyncio.Event().wait()
        item = self.lines.pop(0)
        if isinstance(item, BaseException) or (isinstance(item, type) and issubclass(item, BaseException)):
            raise item
        return item


def make_terminal(lines: list[Any] | None = None) -> Terminal:
    console = Console(file=io.StringIO(), width=120, color_system=None, highlight=False)
    return Terminal(console=console, session=FakePromptSession(lines), patch_output=False)


def printed(terminal: Terminal) -> str:
    return terminal.console.file.getvalue()  # type: ignore[attr-defined]


async def wait_idle(controller) -> None:
    """Wait for the controller's background connection work to finish."""
    while controller._task is not None and not controller._task.done():
        await controller._task


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "REMOTE_TERMINAL_URL",
        "REMOTE_TERMINAL_TOKEN",
        "REMOTE_TERMINAL_RECONNECT_ATTEMPTS",
        "REMOTE_TERMINAL_TIMEOUT_MS",
        "REMOTE_TERMINAL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app_config(tmp_path):
    """Create a test configuration."""
    return AppConfig(
        server=ServerConfig(url="http://localhost:3000", token="abc"),
        reconnect=ReconnectConfig(enabled=True, delay_ms=0, attempts=5, timeout_ms=1000),
        terminal=TerminalConfig(prompt="test ~$ ", banner=False, support_contact="support@example.com"),
        logging=LoggingConfig(level="DEBUG", file=str(tmp_path / "test.log")),
    )


@pytest.fixture
def terminal():
    return make_terminal()
