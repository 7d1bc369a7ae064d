"""
WebSocket connection to a Mattermost server's event endpoint.

Connection: wss://{host}/api/v4/websocket, authenticated by an
``authentication_challenge`` command sent as the first frame.
"""

import json
from urllib.parse import urlsplit, urlunsplit

import aiohttp

from mm_signal.errors import ConfigError

WEBSOCKET_PATH = "/api/v4/websocket"
CONNECT_TIMEOUT_S = 15.0


def websocket_url(base_url: str) -> str:
    """Derive the event endpoint from a server's base URL (http -> ws, https -> wss)."""
    parts = urlsplit(base_url)
    if parts.scheme not in ("http", "https", "ws", "wss") or not parts.netloc:
        raise ConfigError(f"Not a usable server URL: {base_url!r}")
    scheme = "ws" if parts.scheme in ("http", "ws") else "wss"
    return urlunsplit((scheme, parts.netloc, WEBSOCKET_PATH, "", ""))


def build_auth_challenge(token: str, seq: int = 1) -> str:
    return json.dumps(
        {"seq": seq, "action": "authentication_challenge", "data": {"token": token}},
        separators=(",", ":"),
    )


def new_http_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(sock_connect=CONNECT_TIMEOUT_S))


async def open_websocket(session: aiohttp.ClientSession, url: str) -> aiohttp.ClientWebSocketResponse:
    """Open the event stream.

    Pings, pongs and close frames are handed to the caller instead of being
    answered by aiohttp, because liveness is tracked by KeepaliveSupervisor.
    """
    return await session.ws_connect(
        url,
        autoping=False,
        autoclose=False,
        heartbeat=None,
        compress=0,
    )
