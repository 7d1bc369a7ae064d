"""
Per-connection session state.

Only the receive loop of the owning connection reads or writes it; delivery
tasks get an immutable NotificationRequest instead.
"""

import logging
from typing import Optional

from mm_signal.models.entities import Status

logger = logging.getLogger(__name__)


class SessionState:
    __slots__ = ("_own_id", "status")

    def __init__(self) -> None:
        self._own_id: Optional[str] = None
        self.status = Status.ONLINE

    @property
    def own_id(self) -> Optional[str]:
        """Our own user id, learned from the server's hello event."""
        return self._own_id

    def set_own_id(self, user_id: str) -> None:
        # Once known, the id is never cleared for the lifetime of the connection.
        if not user_id:
            return
        if self._own_id is not None and self._own_id != user_id:
            logger.warning("Own user id changed from %s to %s", self._own_id, user_id)
        self._own_id = user_id

    def __repr__(self) -> str:
        return f"SessionState(own_id={self._own_id!r}, status={self.status.value!r})"
