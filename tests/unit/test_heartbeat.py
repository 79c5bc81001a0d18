"""Unit tests for the heartbeat timer."""

import orjson

from realtime_ws_client.streaming.heartbeat import PING_FRAME, HeartbeatTimer
from realtime_ws_client.streaming.state import ChannelKind, ConnectionState
from realtime_ws_client.streaming.transport import ReadyState


def open_state(transport_factory):
    transport = transport_factory("ws://test/ws/broadcast")
    transport.ready_state = ReadyState.OPEN
    return ConnectionState(kind=ChannelKind.BROADCAST, transport=transport), transport


class TestHeartbeatTimer:
    """Test suite for heartbeat pings."""

    def test_ping_frame_shape(self):
        """Test the liveness frame is a ping message."""
        assert orjson.loads(PING_FRAME) == {"type": "ping"}

    def test_sends_one_ping_per_interval(self, scheduler, transport_factory):
        """Test three intervals produce three pings."""
        state, transport = open_state(transport_factory)
        heartbeat = HeartbeatTimer(scheduler, ping_interval_ms=30000)

        heartbeat.start(state)
        scheduler.advance(90)

        assert transport.sent == [PING_FRAME] * 3

    def test_skips_when_transport_not_open(self, scheduler, transport_factory):
        """Test a tick racing a close sends nothing."""
        state, transport = open_state(transport_factory)
        heartbeat = HeartbeatTimer(scheduler, ping_interval_ms=1000)
        heartbeat.start(state)

        transport.ready_state = ReadyState.CLOSED
        scheduler.advance(5)

        assert transport.sent == []

    def test_restart_replaces_previous_timer(self, scheduler, transport_factory):
        """Test starting twice leaves a single live heartbeat."""
        state, transport = open_state(transport_factory)
        heartbeat = HeartbeatTimer(scheduler, ping_interval_ms=1000)

        heartbeat.start(state)
        heartbeat.start(state)
        scheduler.advance(1)

        assert len(scheduler.pending(repeating=True)) == 1
        assert transport.sent == [PING_FRAME]

    def test_stop(self, scheduler, transport_factory):
        """Test stop cancels the periodic task."""
        state, transport = open_state(transport_factory)
        heartbeat = HeartbeatTimer(scheduler, ping_interval_ms=1000)
        heartbeat.start(state)

        heartbeat.stop(state)
        scheduler.advance(10)

        assert state.heartbeat_timer is None
        assert transport.sent == []
