"""
Connection liveness: keepalive pings and the idle-expiry watchdog.

Two timers run per open connection:

- keepalive: every ``interval`` seconds send a ping carrying PING_PAYLOAD
- idle expiry: if no matching pong arrives within ``idle_timeout`` seconds,
  close the connection with 1001 (going away)

Every matching pong cancels the pending idle-expiry timer and arms a new one,
so at most one is ever outstanding.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Coroutine, Optional, Protocol

from aiohttp import WSCloseCode

logger = logging.getLogger(__name__)

PING_PAYLOAD = b"mattermost-client"
DEFAULT_KEEPALIVE_INTERVAL = 10.0
DEFAULT_IDLE_TIMEOUT = 60.0


class ControlTransport(Protocol):
    """The part of a WebSocket the supervisor needs. aiohttp's ClientWebSocketResponse fits."""

    async def ping(self, message: bytes = b"") -> None: ...

    async def close(self, *, code: int = WSCloseCode.OK, message: bytes = b"") -> bool: ...


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class KeepaliveSupervisor:
    def __init__(
        self,
        transport: ControlTransport,
        *,
        interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        payload: bytes = PING_PAYLOAD,
    ):
        self._transport = transport
        self._interval = interval
        self._idle_timeout = idle_timeout
        self._payload = payload
        self._keepalive_timer: Optional[asyncio.TimerHandle] = None
        self._idle_timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self.state = ConnectionState.CONNECTING
        self.close_code: Optional[int] = None

    @property
    def idle_timer(self) -> Optional[asyncio.TimerHandle]:
        return self._idle_timer

    def open(self) -> None:
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"Cannot open a connection that is {self.state.value}")
        self.state = ConnectionState.OPEN
        self._arm_keepalive()
        self._arm_idle()

    def pong_received(self, payload: bytes) -> bool:
        """Confirm liveness. Pongs that do not echo our payload are not ours and are ignored."""
        if self.state is not ConnectionState.OPEN or payload != self._payload:
            return False
        logger.debug("WS: Received pong")
        self._arm_idle()
        return True

    async def abort(self, code: int, reason: str = "") -> None:
        """Stop all timers and close the connection with the given code."""
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        self.state = ConnectionState.CLOSING
        self.close_code = code
        self._cancel_timers()
        await self._transport.close(code=code, message=reason.encode())

    def stop(self) -> None:
        """The connection is gone: cancel everything, nothing carries over."""
        self._cancel_timers()
        for task in list(self._tasks):
            task.cancel()
        self.state = ConnectionState.CLOSED

    def _arm_keepalive(self) -> None:
        loop = asyncio.get_running_loop()
        self._keepalive_timer = loop.call_later(self._interval, self._on_keepalive)

    def _arm_idle(self) -> None:
        if self._idle_timer is not None:
            logger.debug("WS: Cancel idle-expiry timer")
            self._idle_timer.cancel()
        loop = asyncio.get_running_loop()
        self._idle_timer = loop.call_later(self._idle_timeout, self._on_idle_expired)

    def _on_keepalive(self) -> None:
        self._keepalive_timer = None
        if self.state is not ConnectionState.OPEN:
            return
        logger.debug("WS: Perform ping")
        self._spawn(self._transport.ping(self._payload))
        self._arm_keepalive()

    def _on_idle_expired(self) -> None:
        self._idle_timer = None
        if self.state is not ConnectionState.OPEN:
            return
        logger.warning("WS: No pong for %.0fs, closing connection", self._idle_timeout)
        self._spawn(self.abort(WSCloseCode.GOING_AWAY, "idle timeout"))

    def _cancel_timers(self) -> None:
        for timer in (self._keepalive_timer, self._idle_timer):
            if timer is not None:
                timer.cancel()
        self._keepalive_timer = None
        self._idle_timer = None

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("WS: Control frame failed: %s", task.exception())
