"""Client side of the JSON-lines game connection."""
from __future__ import annotations

import asyncio
import json
from typing import Callable, Optional

from settlers.engine.logger import ChannelLogger
from settlers.game.resources import ResourceCounts
from settlers.ui.resource_selection import SelectionMode

MESSAGE_TYPES = {
    SelectionMode.DISCARD: "discard",
    SelectionMode.GAIN: "pick_resources",
}


def selection_payload(mode: SelectionMode, counts: ResourceCounts) -> dict:
    """Wire message for a confirmed discard or resource pick."""

    return {"type": MESSAGE_TYPES[mode], "resources": counts.as_dict()}


class MessageSink:
    """Submission sink that turns a confirmed selection into a message."""

    def __init__(self, send: Callable[[dict], None], logger: Optional[ChannelLogger] = None) -> None:
        self._send = send
        self._logger = logger

    def __call__(self, mode: SelectionMode, counts: ResourceCounts) -> None:
        payload = selection_payload(mode, counts)
        if self._logger:
            self._logger.info("Submitting %s", payload["type"])
        self._send(payload)


class SessionClient:
    """Async connection to a ``GameServer``.

    ``submit`` may be called from synchronous code running on the event loop
    thread; queued payloads are written in order by a background task. A
    second task reads server messages into an inbox so a closed connection is
    noticed before the next submission.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0, logger: Optional[ChannelLogger] = None) -> None:
        self.host = host
        self.port = port
        self._logger = logger
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._outbox: asyncio.Queue[dict] | None = None
        self._inbox: asyncio.Queue[Optional[dict]] | None = None
        self._tasks: list[asyncio.Task] = []
        self._lost: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self._writer is not None and self._lost is None

    async def connect(self) -> None:
        if self._writer is not None:
            return
        self._reader, self._writer = await asyncio.open_connection(self.host, self.port)
        self._outbox = asyncio.Queue()
        self._inbox = asyncio.Queue()
        self._lost = None
        self._tasks = [
            asyncio.create_task(self._drain_outbox()),
            asyncio.create_task(self._read_server()),
        ]
        if self._logger:
            self._logger.info("Connected to %s:%d", self.host, self.port)

    def _check_open(self) -> None:
        if self._writer is None:
            raise ConnectionError("Client is not connected")
        if self._lost is not None:
            raise ConnectionError(f"Connection lost: {self._lost}")

    async def send(self, payload: dict) -> None:
        self._check_open()
        data = json.dumps(payload).encode("utf-8") + b"\n"
        self._writer.write(data)
        await self._writer.drain()

    def submit(self, payload: dict) -> None:
        """Queue ``payload`` for sending; raises if the server is gone."""

        self._check_open()
        self._outbox.put_nowait(payload)

    async def flush(self) -> None:
        if self._outbox is not None:
            await self._outbox.join()

    async def read(self, timeout: Optional[float] = None) -> dict:
        if self._inbox is None:
            raise ConnectionError("Client is not connected")
        message = await asyncio.wait_for(self._inbox.get(), timeout)
        if message is None:
            # Leave the marker for later readers.
            self._inbox.put_nowait(None)
            raise ConnectionError("Connection closed by server")
        return message

    async def close(self) -> None:
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        if self._writer is not None:
            try:
                self._writer.close()
                await self._writer.wait_closed()
            except ConnectionError:
                # Connection already closed by peer.
                pass
        self._reader = None
        self._writer = None
        self._outbox = None
        self._inbox = None

    def _mark_lost(self, reason: str) -> None:
        if self._lost is None:
            self._lost = reason
            if self._logger:
                self._logger.warning("Connection to %s:%d lost: %s", self.host, self.port, reason)
            if self._inbox is not None:
                self._inbox.put_nowait(None)

    async def _read_server(self) -> None:
        assert self._reader is not None and self._inbox is not None
        try:
            while True:
                raw = await self._reader.readline()
                if not raw:
                    self._mark_lost("closed by server")
                    return
                try:
                    message = json.loads(raw.decode("utf-8"))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    if self._logger:
                        self._logger.warning("Ignoring malformed server line")
                    continue
                self._inbox.put_nowait(message)
        except ConnectionError as exc:
            self._mark_lost(str(exc) or type(exc).__name__)

    async def _drain_outbox(self) -> None:
        assert self._outbox is not None
        while True:
            payload = await self._outbox.get()
            try:
                await self.send(payload)
            except ConnectionError as exc:
                self._mark_lost(str(exc) or type(exc).__name__)
                if self._logger:
                    self._logger.error("Dropped %s: %s", payload.get("type"), exc)
            finally:
                self._outbox.task_done()


__all__ = ["MessageSink", "SessionClient", "selection_payload", "MESSAGE_TYPES"]
