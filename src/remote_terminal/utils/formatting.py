"""Text helpers shared by the session controller and the terminal."""

from __future__ import annotations

from typing import Any

from remote_terminal.models import ConnectionStatus

STATUS_LABELS: dict[ConnectionStatus, tuple[str, str]] = {
    ConnectionStatus.DISCONNECTED: ("Disconnected", "red"),
    ConnectionStatus.CONNECTING: ("Connecting", "yellow"),
    ConnectionStatus.CONNECTED: ("Connected", "green"),
    ConnectionStatus.RECONNECTING: ("Reconnecting", "yellow"),
    ConnectionStatus.FAILED: ("Failed", "red"),
}


def error_message(data: Any) -> str:
    """Extract a human-readable message from a connect_error payload."""
    if data is None:
        return "unknown error"
    if isinstance(data, dict):
        message = data.get("message")
        if message:
            return str(message)
        return str(data)
    if isinstance(data, BaseException):
        return str(data) or type(data).__name__
    return str(data)


def mask_token(token: str) -> str:
    """Shorten a token for log lines."""
    if not token:
        return "(empty)"
    if len(token) <= 4:
        return "****"
    return token[:4] + "..."


def status_label(status: ConnectionStatus) -> str:
    """Rich markup for a connection status."""
    label, color = STATUS_LABELS[status]
    return f"[{color}]{label}[/{color}]"
