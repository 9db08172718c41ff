"""Tests for command history."""

from __future__ import annotations

import pytest

from conftest import FakeClient, make_terminal
from remote_terminal.config import ReconnectConfig
from remote_terminal.services.session import SessionController
from remote_terminal.terminal.history import CommandHistory, PromptHistory
from remote_terminal.terminal.router import CommandRouter


class TestCommandHistory:
    def test_records_in_order(self):
        history = CommandHistory()
        history.record("ls")
        history.record("pwd")
        assert history.entries == ["ls", "pwd"]
        assert len(history) == 2

    def test_skips_consecutive_duplicate(self):
        history = CommandHistory()
        assert history.record("ls") is True
        assert history.record("ls") is False
        assert history.entries == ["ls"]

    def test_keeps_non_consecutive_duplicate(self):
        history = CommandHistory()
        for command in ["ls", "pwd", "ls"]:
            history.record(command)
        assert history.entries == ["ls", "pwd", "ls"]

    def test_cursor_at_end_after_record(self):
        history = CommandHistory()
        history.record("ls")
        history.record("ls")
        assert history.cursor == 1

    def test_entries_is_a_copy(self):
        history = CommandHistory()
        history.record("a")
        history.entries.append("b")
        assert history.entries == ["a"]


class TestPromptHistory:
    @pytest.mark.asyncio
    async def test_recall_newest_first(self):
        commands = CommandHistory()
        recall = PromptHistory(commands)
        for command in ["ls", "pwd"]:
            commands.record(command)

        assert [entry async for entry in recall.load()] == ["pwd", "ls"]
        commands.record("uptime")
        assert [entry async for entry in recall.load()] == ["uptime", "pwd", "ls"]
        assert recall.get_strings() == ["ls", "pwd", "uptime"]

    def test_accepted_lines_not_stored_twice(self):
        commands = CommandHistory()
        recall = PromptHistory(commands)

        recall.append_string("  ls  ")

        assert commands.entries == []
        assert recall.get_strings() == []

    @pytest.mark.asyncio
    async def test_router_records_into_line_editor_history(self):
        client = FakeClient(["ok"])
        controller = SessionController(ReconnectConfig(delay_ms=0), client_factory=lambda: client)
        controller.configure("http://localhost:3000", "abc")
        await controller.connect()
        terminal = make_terminal()
        router = CommandRouter(controller, terminal)
        recall = PromptHistory(terminal.history)

        await router.handle_line("  uname -a ")
        await router.handle_line("status")

        assert router.history is terminal.history
        assert [entry async for entry in recall.load()] == ["status", "uname -a"]
