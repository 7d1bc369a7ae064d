"""Keepalive pings and idle expiry."""

import asyncio

import pytest
from aiohttp import WSCloseCode

from mm_signal.keepalive import PING_PAYLOAD, ConnectionState, KeepaliveSupervisor


class FakeTransport:
    def __init__(self):
        self.pings = []
        self.closed_with = []

    async def ping(self, message=b""):
        self.pings.append(message)

    async def close(self, *, code=WSCloseCode.OK, message=b""):
        self.closed_with.append((code, message))
        return True


def make_supervisor(interval=0.02, idle_timeout=0.1):
    transport = FakeTransport()
    return transport, KeepaliveSupervisor(transport, interval=interval, idle_timeout=idle_timeout)


class TestPings:
    @pytest.mark.asyncio
    async def test_pings_repeat_with_payload(self):
        transport, supervisor = make_supervisor(interval=0.01, idle_timeout=10)
        supervisor.open()
        await asyncio.sleep(0.055)
        supervisor.stop()
        assert len(transport.pings) >= 3
        assert set(transport.pings) == {PING_PAYLOAD}

    @pytest.mark.asyncio
    async def test_no_pings_after_stop(self):
        transport, supervisor = make_supervisor(interval=0.01, idle_timeout=10)
        supervisor.open()
        supervisor.stop()
        await asyncio.sleep(0.03)
        assert transport.pings == []
        assert supervisor.state is ConnectionState.CLOSED


class TestIdleExpiry:
    @pytest.mark.asyncio
    async def test_closes_going_away_without_pong(self):
        transport, supervisor = make_supervisor(interval=10, idle_timeout=0.02)
        supervisor.open()
        await asyncio.sleep(0.06)
        assert transport.closed_with == [(WSCloseCode.GOING_AWAY, b"idle timeout")]
        assert supervisor.state is ConnectionState.CLOSING
        assert supervisor.close_code == WSCloseCode.GOING_AWAY

    @pytest.mark.asyncio
    async def test_pong_replaces_timer(self):
        _, supervisor = make_supervisor(interval=10, idle_timeout=10)
        supervisor.open()
        first = supervisor.idle_timer
        assert supervisor.pong_received(PING_PAYLOAD)
        second = supervisor.idle_timer
        assert second is not first
        assert first.cancelled()
        assert not second.cancelled()
        supervisor.stop()
        assert second.cancelled()

    @pytest.mark.asyncio
    async def test_pongs_keep_connection_alive(self):
        transport, supervisor = make_supervisor(interval=10, idle_timeout=0.05)
        supervisor.open()
        for _ in range(5):
            await asyncio.sleep(0.02)
            supervisor.pong_received(PING_PAYLOAD)
        assert transport.closed_with == []
        assert supervisor.state is ConnectionState.OPEN
        supervisor.stop()

    @pytest.mark.asyncio
    async def test_foreign_pong_ignored(self):
        transport, supervisor = make_supervisor(interval=10, idle_timeout=0.03)
        supervisor.open()
        first = supervisor.idle_timer
        assert not supervisor.pong_received(b"someone-else")
        assert supervisor.idle_timer is first
        await asyncio.sleep(0.06)
        assert transport.closed_with[0][0] == WSCloseCode.GOING_AWAY


class TestAbort:
    @pytest.mark.asyncio
    async def test_protocol_error(self):
        transport, supervisor = make_supervisor(interval=10, idle_timeout=10)
        supervisor.open()
        timer = supervisor.idle_timer
        await supervisor.abort(WSCloseCode.PROTOCOL_ERROR, "protocol error")
        assert transport.closed_with == [(WSCloseCode.PROTOCOL_ERROR, b"protocol error")]
        assert supervisor.close_code == WSCloseCode.PROTOCOL_ERROR
        assert timer.cancelled()
        assert supervisor.idle_timer is None

    @pytest.mark.asyncio
    async def test_abort_once(self):
        transport, supervisor = make_supervisor(interval=10, idle_timeout=10)
        supervisor.open()
        await supervisor.abort(WSCloseCode.PROTOCOL_ERROR)
        await supervisor.abort(WSCloseCode.GOING_AWAY)
        assert len(transport.closed_with) == 1

    @pytest.mark.asyncio
    async def test_no_pong_handling_after_abort(self):
        _, supervisor = make_supervisor(interval=10, idle_timeout=10)
        supervisor.open()
        await supervisor.abort(WSCloseCode.GOING_AWAY)
        assert not supervisor.pong_received(PING_PAYLOAD)
        assert supervisor.idle_timer is None


@pytest.mark.asyncio
async def test_open_twice():
    _, supervisor = make_supervisor()
    supervisor.open()
    with pytest.raises(RuntimeError):
        supervisor.open()
    supervisor.stop()
