"""
Periodic credential check, independent of the live event session.

A personal access token can expire while the WebSocket keeps reconnecting in
vain; the watchdog notices through the REST API and tells the operator.
Only an explicit rejection (401) raises an alert: network failures say
nothing about the token and are merely logged.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from mm_signal.errors import DeliveryError
from mm_signal.notify import Notifier
from mm_signal.transport.http import ApiClient, TokenStatus

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL = 6 * 60 * 60.0
ALERT_TEMPLATE = "Token for {server} expired!"


class TokenWatchdog:
    def __init__(
        self,
        servername: str,
        api: ApiClient,
        notifier: Notifier,
        destination: str,
        *,
        interval: float = DEFAULT_CHECK_INTERVAL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._servername = servername
        self._api = api
        self._notifier = notifier
        self._destination = destination
        self._interval = interval
        self._sleep = sleep

    async def check_once(self) -> TokenStatus:
        status = await self._api.check_token()
        if status is TokenStatus.INVALID:
            logger.error("[%s] Token expired", self._servername)
            try:
                await self._notifier.send(self._destination, ALERT_TEMPLATE.format(server=self._servername))
            except DeliveryError as e:
                logger.warning("[%s] Could not send token alert: %s", self._servername, e)
        elif status is TokenStatus.UNKNOWN:
            logger.warning("[%s] Could not verify token, next check in %.0fs", self._servername, self._interval)
        else:
            logger.debug("[%s] Token is valid", self._servername)
        return status

    async def run(self) -> None:
        while True:
            try:
                await self.check_once()
            except Exception:
                logger.exception("[%s] Token check failed", self._servername)
            await self._sleep(self._interval)
