"""
mm-signal: Mattermost to Signal notification bridge.

Watches the WebSocket event stream of one or more Mattermost servers and
forwards mentions to your phone through signal-cli.
"""

from mm_signal.client import Bridge
from mm_signal.config import Config, ServerConfig, load_config
from mm_signal.dispatch import Dispatcher, NotificationPolicy, NotificationRequest
from mm_signal.errors import (
    ApiError,
    BridgeError,
    ConfigError,
    ConnectionError,
    DecodeError,
    DeliveryError,
    ProtocolError,
)
from mm_signal.models.events import EventKind
from mm_signal.transport.codec import decode_frame, encode_envelope

__version__ = "0.1.0"
__all__ = [
    "Bridge",
    "Config",
    "ServerConfig",
    "load_config",
    "Dispatcher",
    "NotificationPolicy",
    "NotificationRequest",
    "BridgeError",
    "ApiError",
    "ConfigError",
    "ConnectionError",
    "DecodeError",
    "DeliveryError",
    "ProtocolError",
    "EventKind",
    "decode_frame",
    "encode_envelope",
]
