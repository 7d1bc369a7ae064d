"""
Event session for one server: connect, authenticate, dispatch, restart.

The supervisor runs forever. Every connection starts from scratch (new
SessionState, new keepalive timers); whatever ends it, be it a clean close, a
network error, a protocol violation or a bug in the handling path, is logged
and followed by a fixed backoff before the next attempt.

Inbound messages are processed strictly in arrival order. Notifications are
delivered on their own tasks, so a slow or failing signal-cli never holds up
the receive loop.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import aiohttp
from aiohttp import WSCloseCode, WSMsgType

from mm_signal.dispatch import Dispatcher, NotificationRequest
from mm_signal.errors import BridgeError, ConnectionError, DecodeError, DeliveryError, ProtocolError
from mm_signal.keepalive import DEFAULT_IDLE_TIMEOUT, DEFAULT_KEEPALIVE_INTERVAL, KeepaliveSupervisor
from mm_signal.models.envelope import Reply
from mm_signal.models.fields import WireFormat
from mm_signal.notify import Notifier
from mm_signal.state import SessionState
from mm_signal.transport.codec import decode_frame
from mm_signal.transport.websocket import build_auth_challenge

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_BACKOFF = 5.0

CLOSE_TYPES = {WSMsgType.CLOSE, WSMsgType.CLOSING, WSMsgType.CLOSED}

# Returns an open WebSocket (aiohttp.ClientWebSocketResponse or anything shaped like it).
Connector = Callable[[], Awaitable[Any]]


class SessionSupervisor:
    def __init__(
        self,
        servername: str,
        connect: Connector,
        token: str,
        dispatcher: Dispatcher,
        notifier: Notifier,
        *,
        keepalive_interval: float = DEFAULT_KEEPALIVE_INTERVAL,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        backoff: float = DEFAULT_RECONNECT_BACKOFF,
        wire: WireFormat = WireFormat.CURRENT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._servername = servername
        self._connect = connect
        self._token = token
        self._dispatcher = dispatcher
        self._notifier = notifier
        self._keepalive_interval = keepalive_interval
        self._idle_timeout = idle_timeout
        self._backoff = backoff
        self._wire = wire
        self._sleep = sleep
        self._deliveries: set[asyncio.Task[None]] = set()
        self.connections = 0

    @property
    def servername(self) -> str:
        return self._servername

    async def run(self) -> None:
        """Keep a session alive until cancelled."""
        while True:
            self.connections += 1
            try:
                await self.run_once()
                logger.warning("[%s] Connection closed", self._servername)
            except (BridgeError, aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                logger.warning("[%s] Connection lost: %s", self._servername, e)
            except Exception:
                logger.exception("[%s] Session failed", self._servername)
            logger.info("[%s] Reconnecting in %.0fs", self._servername, self._backoff)
            await self._sleep(self._backoff)

    async def run_once(self) -> None:
        """One connection, from connect to close."""
        state = SessionState()
        ws = await self._connect()
        keepalive = KeepaliveSupervisor(ws, interval=self._keepalive_interval, idle_timeout=self._idle_timeout)
        try:
            await ws.send_str(build_auth_challenge(self._token))
            keepalive.open()
            logger.info("[%s] Connected", self._servername)
            await self._receive(ws, keepalive, state)
        finally:
            # stop() cancels an abort still waiting on receive(), so its close code is sent here.
            keepalive.stop()
            if not ws.closed:
                await ws.close(code=keepalive.close_code or WSCloseCode.OK)

    async def _receive(self, ws: Any, keepalive: KeepaliveSupervisor, state: SessionState) -> None:
        while True:
            msg = await ws.receive()
            if msg.type == WSMsgType.TEXT:
                self.handle_frame(msg.data, state)
            elif msg.type == WSMsgType.PONG:
                keepalive.pong_received(msg.data)
            elif msg.type == WSMsgType.PING:
                await ws.pong(msg.data)
            elif msg.type in CLOSE_TYPES:
                if keepalive.close_code is not None:
                    raise ConnectionError(f"Closed by us with code {keepalive.close_code}")
                logger.info("[%s] Server closed the connection (%s)", self._servername, msg.data)
                return
            elif msg.type == WSMsgType.ERROR:
                exc = msg.data
                if isinstance(exc, aiohttp.WebSocketError) and exc.code == WSCloseCode.PROTOCOL_ERROR:
                    await keepalive.abort(WSCloseCode.PROTOCOL_ERROR, "protocol error")
                    raise ProtocolError(str(exc))
                raise ConnectionError(f"WebSocket error: {exc}")
            else:
                logger.debug("[%s] Ignoring %s frame", self._servername, msg.type)

    def handle_frame(self, text: str, state: SessionState) -> Optional[NotificationRequest]:
        """Decode and dispatch one text frame; schedule delivery when it warrants a notification."""
        try:
            message = decode_frame(text, wire=self._wire)
        except DecodeError as e:
            logger.warning("[%s] Could not decode frame: %s", self._servername, e)
            logger.debug("[%s] Undecodable frame: %s", self._servername, text)
            return None

        if isinstance(message, Reply):
            if not message.ok:
                logger.warning("[%s] Server rejected command %d: %s", self._servername, message.seq_reply, message.error)
            return None

        request = self._dispatcher.handle(message, state)
        if request is not None:
            task = asyncio.get_running_loop().create_task(self._deliver(request))
            self._deliveries.add(task)
            task.add_done_callback(self._deliveries.discard)
        return request

    async def _deliver(self, request: NotificationRequest) -> None:
        try:
            await self._notifier.send(request.destination, request.text)
        except DeliveryError as e:
            logger.error("[%s] Notification not delivered: %s %s", self._servername, e, e.details or "")
        except Exception:
            logger.exception("[%s] Notification delivery failed", self._servername)
