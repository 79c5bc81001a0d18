"""Message-oriented transport abstraction and its WebSocket implementation."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed

from realtime_ws_client.constants import ABNORMAL_CLOSURE, INTERNAL_ERROR, NORMAL_CLOSURE
from realtime_ws_client.telemetry.logger import CredentialRedactor, get_logger

logger = get_logger(__name__)

Data = Union[str, bytes]


class ReadyState(Enum):
    """Transport lifecycle states."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


def _noop(*args: Any) -> None:
    return None


class Transport(ABC):
    """A long-lived bidirectional message connection.

    The owner assigns the ``on_*`` callbacks before calling :meth:`open`.
    ``on_close`` fires exactly once per transport, also when opening fails.
    """

    def __init__(self, url: str):
        self.url = url
        self.ready_state = ReadyState.CONNECTING
        self.on_open: Callable[[], None] = _noop
        self.on_message: Callable[[Data], None] = _noop
        self.on_error: Callable[[BaseException], None] = _noop
        self.on_close: Callable[[int, str], None] = _noop

    @property
    def is_open(self) -> bool:
        return self.ready_state is ReadyState.OPEN

    @abstractmethod
    def open(self) -> None:
        """Start connecting; returns immediately."""

    @abstractmethod
    def send(self, data: Data) -> None:
        """Queue a frame for sending."""

    @abstractmethod
    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """Start the closing handshake."""


TransportFactory = Callable[[str], Transport]


class WebSocketTransport(Transport):
    """Transport over a ``websockets`` client connection."""

    def __init__(self, url: str, **connect_kwargs: Any):
        super().__init__(url)
        self._connect_kwargs = connect_kwargs
        self._ws = None
        self._task: Optional[asyncio.Task] = None
        self._pending_close: Optional[tuple[int, str]] = None
        self._send_tasks: set[asyncio.Task] = set()

    def open(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        try:
            self._ws = await websockets.connect(self.url, **self._connect_kwargs)
        except Exception as e:
            self.ready_state = ReadyState.CLOSED
            self.on_error(e)
            self.on_close(ABNORMAL_CLOSURE, str(e))
            return

        if self._pending_close is not None:
            self.ready_state = ReadyState.CLOSING
            await self._ws.close(*self._pending_close)
        else:
            self.ready_state = ReadyState.OPEN
            self.on_open()

        try:
            async for raw in self._ws:
                self.on_message(raw)
        except ConnectionClosed:
            pass
        except Exception as e:
            self.on_error(e)
            await self._ws.close(INTERNAL_ERROR, "Receive error")

        self.ready_state = ReadyState.CLOSED
        code = self._ws.close_code if self._ws.close_code is not None else ABNORMAL_CLOSURE
        self.on_close(code, self._ws.close_reason or "")

    def send(self, data: Data) -> None:
        if self._ws is None or not self.is_open:
            return
        task = asyncio.ensure_future(self._ws.send(data))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_done)

    def _send_done(self, task: asyncio.Task) -> None:
        self._send_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("transport_send_failed", url=CredentialRedactor.redact(self.url), error=str(task.exception()))

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        if self.ready_state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        if self._ws is None:
            # Still handshaking; closed as soon as the handshake completes
            self.ready_state = ReadyState.CLOSING
            self._pending_close = (code, reason)
            return
        self.ready_state = ReadyState.CLOSING
        asyncio.ensure_future(self._ws.close(code, reason))
