"""
Notification decisions.

The dispatcher looks at one decoded envelope at a time, keeps the session's
identity and presence up to date, and decides whether the operator should get
a push notification for it. It performs no I/O: the caller delivers the
returned NotificationRequest.

Decision order:

1. hello          -> remember our own user id
2. status_change  -> remember our own presence
3. omit_users     -> the broadcast explicitly skips us
4. not posted     -> nothing to notify
5. no mention     -> nothing to notify
6. do-not-disturb -> muted, direct messages included
7. format by channel type (internal channels are never shown)
"""

import logging
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from mm_signal.models.entities import ChannelType, Status
from mm_signal.models.envelope import Envelope
from mm_signal.models.events import Hello, Posted, StatusChange
from mm_signal.state import SessionState

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Berlin"
TIME_FORMAT = "%H:%M:%S"

DIRECT_TEMPLATE = "{server} {sender}:\n{message}\n@{time}"
CHANNEL_TEMPLATE = "{server} {sender} in {channel}:\n{message}\n@{time}"

DIRECT_CHANNELS = {ChannelType.DIRECT, ChannelType.GROUP}
NAMED_CHANNELS = {ChannelType.OPEN, ChannelType.PRIVATE}


class NotificationRequest(BaseModel):
    destination: str
    text: str

    model_config = {"frozen": True}


class NotificationPolicy:
    """Static per-server settings that shape notifications."""

    def __init__(self, servername: str, destination: str, timezone: str = DEFAULT_TIMEZONE):
        self.servername = servername
        self.destination = destination
        self.tz = ZoneInfo(timezone)


class Dispatcher:
    def __init__(self, policy: NotificationPolicy):
        self._policy = policy

    @property
    def policy(self) -> NotificationPolicy:
        return self._policy

    def handle(self, envelope: Envelope, state: SessionState) -> Optional[NotificationRequest]:
        event = envelope.event

        if isinstance(event, Hello):
            state.set_own_id(envelope.broadcast.user_id)
            logger.info("[%s] Logged in as %s (server %s)", self._policy.servername, state.own_id, event.server_version)
            return None

        if isinstance(event, StatusChange):
            if state.own_id is not None and event.user_id == state.own_id:
                logger.debug("[%s] Own status is now %s", self._policy.servername, event.status.value)
                state.status = event.status
            return None

        if envelope.broadcast.omits(state.own_id):
            return None

        if not isinstance(event, Posted):
            return None

        if state.own_id is None or not event.mentions or state.own_id not in event.mentions:
            return None

        if state.status is Status.DND:
            logger.debug("[%s] Do not disturb, muting mention in %s", self._policy.servername, event.channel_name)
            return None

        text = self.format(event)
        if text is None:
            return None
        return NotificationRequest(destination=self._policy.destination, text=text)

    def format(self, event: Posted) -> Optional[str]:
        """Render the notification text for a posted event, or None if the channel kind is never shown."""
        if event.channel_type in DIRECT_CHANNELS:
            template = DIRECT_TEMPLATE
        elif event.channel_type in NAMED_CHANNELS:
            template = CHANNEL_TEMPLATE
        else:
            return None
        local_time = event.post.create_at.astimezone(self._policy.tz).strftime(TIME_FORMAT)
        return template.format(
            server=self._policy.servername,
            sender=event.sender_name,
            channel=event.channel_display_name,
            message=event.post.message,
            time=local_time,
        )
