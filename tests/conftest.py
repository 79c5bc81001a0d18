"""Pytest configuration and fixtures."""

from unittest.mock import AsyncMock

import pytest

from realtime_ws_client.client import RealtimeClient
from realtime_ws_client.constants import ABNORMAL_CLOSURE, NORMAL_CLOSURE
from realtime_ws_client.streaming.scheduler import Scheduler
from realtime_ws_client.streaming.transport import ReadyState, Transport
from realtime_ws_client.telemetry.metrics import ConnectionMetrics


class FakeTimer:
    """Timer driven by FakeScheduler.advance."""

    def __init__(self, due, callback, interval=None):
        self.due = due
        self.callback = callback
        self.interval = interval
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Deterministic scheduler with a manual clock (seconds)."""

    def __init__(self):
        self.now = 0.0
        self.timers = []
        self.once_delays = []

    def schedule_once(self, delay, callback):
        self.once_delays.append(delay)
        timer = FakeTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def schedule_repeating(self, interval, callback):
        timer = FakeTimer(self.now + interval, callback, interval)
        self.timers.append(timer)
        return timer

    def pending(self, repeating=False):
        return [t for t in self.timers if not t.cancelled and (t.interval is not None) == repeating]

    def advance(self, seconds):
        target = self.now + seconds
        while True:
            due = [t for t in self.timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.now = timer.due
            if timer.interval is None:
                self.timers.remove(timer)
            else:
                timer.due += timer.interval
            timer.callback()
        self.now = target


class FakeTransport(Transport):
    """In-memory transport; the ``server_*`` methods play the remote side."""

    def __init__(self, url):
        super().__init__(url)
        self.opened = False
        self.sent = []
        self.closed_with = None

    def open(self):
        self.opened = True

    def send(self, data):
        self.sent.append(data)

    def close(self, code=NORMAL_CLOSURE, reason=""):
        if self.ready_state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        self.closed_with = (code, reason)
        self.ready_state = ReadyState.CLOSING

    def server_open(self):
        self.ready_state = ReadyState.OPEN
        self.on_open()

    def server_message(self, data):
        self.on_message(data)

    def server_error(self, exc):
        self.on_error(exc)

    def server_close(self, code=ABNORMAL_CLOSURE, reason=""):
        self.ready_state = ReadyState.CLOSED
        self.on_close(code, reason)

    def finish_close(self):
        """Deliver the close event of a client-initiated close."""
        code, reason = self.closed_with
        self.server_close(code, reason)


class FakeTransportFactory:
    """Records every transport the client creates."""

    def __init__(self):
        self.transports = []
        self.fail_next = 0

    def __call__(self, url):
        if self.fail_next:
            self.fail_next -= 1
            raise OSError(f"cannot reach {url}")
        transport = FakeTransport(url)
        self.transports.append(transport)
        return transport

    def for_path(self, fragment):
        return [t for t in self.transports if fragment in t.url]

    @property
    def last(self):
        return self.transports[-1]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def transport_factory():
    return FakeTransportFactory()


@pytest.fixture
def refresh_func():
    return AsyncMock(return_value="T2")


@pytest.fixture
def make_client(scheduler, transport_factory):
    """Build a client wired to the fake scheduler and transports."""

    def factory(token="T1", refresh=None, **kwargs):
        kwargs.setdefault("ws_base_url", "ws://test/ws")
        kwargs.setdefault("metrics", ConnectionMetrics())
        return RealtimeClient(
            token,
            refresh,
            transport_factory=transport_factory,
            scheduler=scheduler,
            **kwargs,
        )

    return factory


@pytest.fixture
def messages():
    return []
