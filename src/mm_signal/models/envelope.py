"""
Outer WebSocket message shapes: pushed event envelopes and command replies.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, SerializeAsAny

from mm_signal.models.events import Event


class Broadcast(BaseModel):
    omit_users: Optional[dict[str, bool]] = None  # recipient id -> "do not deliver to this user"
    user_id: str = ""
    channel_id: str = ""
    team_id: str = ""

    def omits(self, user_id: Optional[str]) -> bool:
        if not user_id or not self.omit_users:
            return False
        return bool(self.omit_users.get(user_id))


class Envelope(BaseModel):
    event: SerializeAsAny[Event]
    broadcast: Broadcast = Field(default_factory=Broadcast)
    seq: int = 0


class Reply(BaseModel):
    """Server acknowledgement of a command we sent (e.g. the authentication challenge)."""
    status: str
    seq_reply: int
    error: Optional[dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == "OK"
