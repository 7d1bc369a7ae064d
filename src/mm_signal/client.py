"""
Bridge: runs the event session and token watchdog of every configured server.
"""

import asyncio
import functools
import logging
from typing import Any, Optional

import aiohttp

from mm_signal.config import Config, ServerConfig
from mm_signal.dispatch import Dispatcher, NotificationPolicy
from mm_signal.errors import ConnectionError
from mm_signal.notify import Notifier, SignalCliNotifier
from mm_signal.session import SessionSupervisor
from mm_signal.transport.http import ApiClient, TokenStatus
from mm_signal.transport.websocket import new_http_session, open_websocket, websocket_url
from mm_signal.watchdog import TokenWatchdog

logger = logging.getLogger(__name__)


class Bridge:
    """Servers share nothing with each other; each gets its own API client, session and watchdog."""

    def __init__(self, config: Config, notifier: Optional[Notifier] = None):
        self._config = config
        self._notifier = notifier or SignalCliNotifier(config.signal_cli)

    @property
    def config(self) -> Config:
        return self._config

    def api_for(self, server: ServerConfig) -> ApiClient:
        return ApiClient(server.base_url, server.token)

    def session_for(self, server: ServerConfig, http: aiohttp.ClientSession) -> SessionSupervisor:
        cfg = self._config
        policy = NotificationPolicy(server.servername, cfg.signal_phone_number, cfg.timezone)
        return SessionSupervisor(
            server.servername,
            functools.partial(open_websocket, http, websocket_url(server.base_url)),
            server.token,
            Dispatcher(policy),
            self._notifier,
            keepalive_interval=cfg.keepalive_interval,
            idle_timeout=cfg.idle_timeout,
            backoff=cfg.reconnect_backoff,
        )

    def watchdog_for(self, server: ServerConfig, api: ApiClient) -> TokenWatchdog:
        return TokenWatchdog(
            server.servername,
            api,
            self._notifier,
            self._config.signal_phone_number,
            interval=self._config.token_check_interval,
        )

    async def check_servers(self) -> list[tuple[ServerConfig, TokenStatus]]:
        """Token status of every configured server."""
        results = []
        for server in self._config.servers:
            api = self.api_for(server)
            try:
                results.append((server, await api.check_token()))
            finally:
                await api.close()
        return results

    async def run(self) -> None:
        """Run until cancelled. Servers whose token is rejected at startup are skipped."""
        apis: list[ApiClient] = []
        tasks: list["asyncio.Task[Any]"] = []
        async with new_http_session() as http:
            try:
                for server in self._config.servers:
                    api = self.api_for(server)
                    apis.append(api)
                    status = await api.check_token()
                    if status is TokenStatus.INVALID:
                        logger.error("[%s] Token rejected, skipping server", server.servername)
                        continue
                    logger.info("[%s] Starting session for %s", server.servername, server.base_url)
                    tasks.append(asyncio.create_task(self.session_for(server, http).run(), name=f"session:{server.servername}"))
                    tasks.append(asyncio.create_task(self.watchdog_for(server, api).run(), name=f"watchdog:{server.servername}"))
                if not tasks:
                    raise ConnectionError("No server with a valid token")
                await asyncio.gather(*tasks)
            finally:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                for api in apis:
                    await api.close()
