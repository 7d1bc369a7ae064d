"""
Bridge error types.

Every failure the bridge reports carries a short machine-readable code next to
its message, so callers can branch on ``err.code`` instead of parsing text.
"""

from typing import Any, Optional


class BridgeError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class DecodeError(BridgeError):
    """A frame that does not match any known envelope shape."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("decode_error", message, details)


class ProtocolError(BridgeError):
    """The server violated the WebSocket protocol; the connection is aborted."""

    def __init__(self, message: str):
        super().__init__("protocol_error", message)


class ConnectionError(BridgeError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class DeliveryError(BridgeError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("delivery_error", message, details)


class ApiError(BridgeError):
    def __init__(self, message: str, code: str = "http_error", status_code: Optional[int] = None):
        super().__init__(code, message, {"status_code": status_code} if status_code is not None else None)
        self.status_code = status_code


class ConfigError(BridgeError):
    def __init__(self, message: str):
        super().__init__("config_error", message)
