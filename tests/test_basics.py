"""Basic unit tests for the mm-signal package."""

from mm_signal import (
    ApiError,
    Bridge,
    BridgeError,
    ConfigError,
    ConnectionError,
    DecodeError,
    DeliveryError,
    EventKind,
    ProtocolError,
    __version__,
)
from mm_signal.models.events import EVENT_TYPES


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert Bridge is not None


def test_error_hierarchy():
    for cls in (ApiError, ConfigError, ConnectionError, DecodeError, DeliveryError, ProtocolError):
        assert issubclass(cls, BridgeError)


def test_error_attributes():
    err = BridgeError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    err_with_details = DeliveryError("signal-cli failed", details={"stderr": "boom"})
    assert err_with_details.code == "delivery_error"
    assert err_with_details.details == {"stderr": "boom"}


def test_api_error_status_code():
    err = ApiError("HTTP 401", code="missing_access_token", status_code=401)
    assert err.status_code == 401
    assert err.details == {"status_code": 401}
    assert ApiError("offline").details is None


def test_event_constants():
    assert EventKind.POSTED == "posted"
    assert EventKind.STATUS_CHANGE == "status_change"
    assert len(EVENT_TYPES) == 27
    assert all(tag == cls.kind for tag, cls in EVENT_TYPES.items())
