"""Session controller: connection lifecycle on top of a Socket.IO client."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from remote_terminal.config import ReconnectConfig
from remote_terminal.models import (
    AuthenticationError,
    ConnectError,
    Connected,
    ConnectionStatus,
    Disconnected,
    FailureCause,
    Output,
    ReconnectError,
    Reconnected,
    ReconnectExhausted,
    Session,
    SessionAssigned,
    SessionEvent,
    SubmitResult,
)
from remote_terminal.utils.formatting import error_message, mask_token

logger = logging.getLogger(__name__)

AUTH_KEYWORDS = ("authentication", "token")
AUTH_ERROR_CODES = {401, 403, "401", "403", "UNAUTHORIZED", "AUTH_FAILED"}

EventListener = Callable[[SessionEvent], None]


def is_auth_failure(data: Any) -> bool:
    """Decide whether a connect_error payload means the credentials were rejected."""
    if isinstance(data, dict) and "code" in data:
        code = data["code"]
        if isinstance(code, str):
            code = code.upper()
        if code in AUTH_ERROR_CODES:
            return True
    message = error_message(data).lower()
    return any(keyword in message for keyword in AUTH_KEYWORDS)


def default_client_factory() -> socketio.AsyncClient:
    # Reconnection is driven by SessionController so that every attempt
    # surfaces as an event.
    return socketio.AsyncClient(reconnection=False, logger=False, engineio_logger=False)


class SessionController:
    """Own the Socket.IO connection and translate transport callbacks into events."""

    def __init__(
        self,
        policy: ReconnectConfig | None = None,
        client_factory: Callable[[], Any] = default_client_factory,
    ) -> None:
        self.policy = policy or ReconnectConfig()
        self.session = Session()
        self._client = client_factory()
        self._listener: EventListener | None = None
        self._task: asyncio.Task[None] | None = None
        self._closing = False
        self._error_reported = False

        self._client.on("connect", self._on_connect)
        self._client.on("disconnect", self._on_disconnect)
        self._client.on("connect_error", self._on_connect_error)
        self._client.on("output", self._on_output)
        self._client.on("session", self._on_session)

    @property
    def status(self) -> ConnectionStatus:
        return self.session.status

    def set_listener(self, listener: EventListener) -> None:
        self._listener = listener

    def configure(self, url: str, token: str) -> None:
        self.session.configure(url, token)

    def connect(self) -> asyncio.Task[None]:
        """Start the handshake in the background; results arrive as events."""
        self._closing = False
        self.session.mark_connecting()
        logger.info("Connecting to %s (token %s)", self.session.url, mask_token(self.session.token))
        self._task = asyncio.get_running_loop().create_task(self._establish())
        self._task.add_done_callback(self._report_task_failure)
        return self._task

    async def submit(self, command: str) -> SubmitResult:
        """Forward a command to the peer if connected."""
        if not self.session.connected:
            logger.warning("Command not sent, status is %s", self.session.status.value)
            return SubmitResult.NOT_CONNECTED
        await self._client.emit("command", command)
        logger.debug("Command sent: %s", command)
        return SubmitResult.SENT

    async def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
        self._closing = True
        task = self._task
        self._task = None
        interrupted = False
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            interrupted = True
        # A cancelled handshake can leave the transport half open.
        if self._client.connected or interrupted:
            await self._client.disconnect()
        if self.session.status is not ConnectionStatus.DISCONNECTED:
            logger.info("Disconnected from %s", self.session.url)
        self.session.mark_disconnected()

    # --- Lifecycle ---

    async def _establish(self) -> None:
        if await self._attempt():
            return
        if self.session.failure is FailureCause.AUTHENTICATION or self._closing:
            return
        if not self.policy.enabled:
            self.session.mark_failed(FailureCause.RECONNECT_EXHAUSTED)
            self._publish(ReconnectExhausted())
            return
        self.session.mark_reconnecting()
        await self._reconnect()

    async def _attempt(self) -> bool:
        """Run one handshake. Failures are reported as events, never raised."""
        self._error_reported = False
        timeout = self.policy.timeout_ms / 1000
        try:
            await asyncio.wait_for(
                self._client.connect(
                    self.session.url,
                    auth={"token": self.session.token},
                    wait_timeout=timeout,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self._report_failure(f"connection timed out after {self.policy.timeout_ms}ms")
        except (SocketIOConnectionError, OSError) as e:
            self._report_failure(error_message(e))
        else:
            return True
        return False

    async def _reconnect(self) -> None:
        delay = self.policy.delay_ms / 1000
        for attempt in range(1, self.policy.attempts + 1):
            await asyncio.sleep(delay)
            if self._closing:
                return
            logger.info("Reconnection attempt %d/%d", attempt, self.policy.attempts)
            if await self._attempt():
                self._publish(Reconnected(attempt))
                return
            if self.session.failure is FailureCause.AUTHENTICATION or self._closing:
                return
        logger.error("Giving up after %d reconnection attempts", self.policy.attempts)
        self.session.mark_failed(FailureCause.RECONNECT_EXHAUSTED)
        self._publish(ReconnectExhausted())

    def _report_failure(self, data: Any) -> None:
        if self._error_reported:
            return
        self._error_reported = True
        message = error_message(data)
        if is_auth_failure(data):
            logger.error("Authentication rejected: %s", message)
            self.session.mark_failed(FailureCause.AUTHENTICATION)
            self._publish(AuthenticationError(message))
        elif self.session.status is ConnectionStatus.RECONNECTING:
            logger.warning("Reconnection error: %s", message)
            self._publish(ReconnectError(message))
        else:
            logger.warning("Connection error: %s", message)
            self._publish(ConnectError(message))

    def _report_task_failure(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        task.get_loop().call_exception_handler({
            "message": "Connection task failed",
            "exception": task.exception(),
            "task": task,
        })

    def _publish(self, event: SessionEvent) -> None:
        if self._listener is not None:
            self._listener(event)

    # --- Transport callbacks ---

    async def _on_connect(self) -> None:
        reconnecting = self.session.status is ConnectionStatus.RECONNECTING
        self.session.mark_connected(getattr(self._client, "sid", None))
        logger.info("Connected to %s", self.session.url)
        if not reconnecting:
            self._publish(Connected())

    async def _on_disconnect(self, reason: str | None = None) -> None:
        if self._closing:
            self.session.mark_disconnected()
            return
        if not self.session.connected:
            # A handshake that is being rejected; _attempt reports it.
            logger.debug("Ignoring disconnect while %s", self.session.status.value)
            return
        reason = str(reason) if reason else "transport closed"
        logger.warning("Connection lost: %s", reason)
        if self.policy.enabled:
            self.session.mark_reconnecting()
        else:
            self.session.mark_disconnected()
        self._publish(Disconnected(reason))
        if self.policy.enabled:
            self._task = asyncio.get_running_loop().create_task(self._reconnect())
            self._task.add_done_callback(self._report_task_failure)

    async def _on_connect_error(self, data: Any = None) -> None:
        self._report_failure(data)

    async def _on_output(self, data: Any = None) -> None:
        self._publish(Output("" if data is None else str(data)))

    async def _on_session(self, data: Any = None) -> None:
        data = data if isinstance(data, dict) else {}
        session_id = data.get("sessionId")
        username = data.get("username")
        self.session.assign(
            str(session_id) if session_id is not None else None,
            str(username) if username is not None else None,
        )
        logger.info("Session assigned: %s (%s)", username, session_id)
        self._publish(SessionAssigned(self.session.session_id, self.session.display_name))
