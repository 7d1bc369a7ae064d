"""
Notification delivery through signal-cli.

The bridge sends Signal "note to self" messages: the configured number is both
the sending account and the recipient.
"""

import asyncio
import logging
from typing import Optional, Protocol

from mm_signal.errors import DeliveryError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "signal-cli"
DEFAULT_TIMEOUT_S = 60.0


class Notifier(Protocol):
    """Delivers a text to a destination. Raises DeliveryError on failure; must be safe to call concurrently."""

    async def send(self, destination: str, text: str) -> None: ...


class SignalCliNotifier:
    def __init__(
        self,
        executable: str = DEFAULT_EXECUTABLE,
        account: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
    ):
        self._executable = executable
        self._account = account
        self._timeout = timeout

    def command(self, destination: str, text: str) -> list[str]:
        account = self._account or destination
        return [self._executable, "-u", account, "send", "-m", text, destination]

    async def send(self, destination: str, text: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.command(destination, text),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise DeliveryError(f"Could not start {self._executable}: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise DeliveryError(f"{self._executable} did not finish within {self._timeout:.0f}s")

        if proc.returncode != 0:
            raise DeliveryError(
                f"{self._executable} exited with status {proc.returncode}",
                details={"stderr": stderr.decode(errors="replace").strip()},
            )
        logger.info("Delivered notification to %s", destination)
