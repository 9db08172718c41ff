"""Data models for remote-terminal."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union


class ConnectionStatus(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


class FailureCause(enum.Enum):
    AUTHENTICATION = "authentication"
    RECONNECT_EXHAUSTED = "reconnect_exhausted"


class SubmitResult(enum.Enum):
    SENT = "sent"
    NOT_CONNECTED = "not_connected"


@dataclass
class Session:
    """Connection state for the single remote peer of this process.

    Fields are changed only through the methods below so the controller
    stays the one place that drives status transitions.
    """

    url: str = ""
    token: str = field(default="", repr=False)
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    session_id: str | None = None
    display_name: str | None = None
    transport_id: str | None = None
    failure: FailureCause | None = None

    def configure(self, url: str, token: str) -> None:
        self.url = url.strip()
        self.token = token.strip()

    def mark_connecting(self) -> None:
        self.status = ConnectionStatus.CONNECTING
        self.failure = None

    def mark_connected(self, transport_id: str | None = None) -> None:
        self.status = ConnectionStatus.CONNECTED
        self.transport_id = transport_id

    def mark_reconnecting(self) -> None:
        self.status = ConnectionStatus.RECONNECTING
        self.transport_id = None

    def mark_failed(self, cause: FailureCause) -> None:
        self.status = ConnectionStatus.FAILED
        self.failure = cause
        self.transport_id = None

    def mark_disconnected(self) -> None:
        self.status = ConnectionStatus.DISCONNECTED
        self.transport_id = None

    def assign(self, session_id: str | None, display_name: str | None) -> None:
        self.session_id = session_id
        self.display_name = display_name

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED


# --- Session events ---


@dataclass(frozen=True)
class Connected:
    pass


@dataclass(frozen=True)
class Disconnected:
    reason: str = ""


@dataclass(frozen=True)
class ConnectError:
    message: str = ""


@dataclass(frozen=True)
class AuthenticationError:
    message: str = ""


@dataclass(frozen=True)
class SessionAssigned:
    session_id: str | None = None
    display_name: str | None = None


@dataclass(frozen=True)
class Output:
    data: str = ""


@dataclass(frozen=True)
class Reconnected:
    attempts: int = 1


@dataclass(frozen=True)
class ReconnectError:
    message: str = ""


@dataclass(frozen=True)
class ReconnectExhausted:
    pass


SessionEvent = Union[
    Connected,
    Disconnected,
    ConnectError,
    AuthenticationError,
    SessionAssigned,
    Output,
    Reconnected,
    ReconnectError,
    ReconnectExhausted,
]


@dataclass(frozen=True)
class Outcome:
    """Result of handling one line, event or interrupt."""

    terminate: bool = False
    exit_code: int = 0

    @classmethod
    def exit(cls, code: int) -> Outcome:
        return cls(terminate=True, exit_code=code)


CONTINUE = Outcome()
