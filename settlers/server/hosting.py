"""Asyncio TCP server carrying JSON-lines game messages."""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

from settlers.engine.logger import ChannelLogger

MALFORMED_REPLY = {"type": "error", "message": "Malformed message"}


class SessionHandler(Protocol):
    async def handle_message(self, server: "GameServer", client_id: int, message: dict) -> None:
        ...

    async def handle_disconnect(self, server: "GameServer", client_id: int) -> None:
        ...


def encode_line(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8") + b"\n"


def decode_line(raw: bytes) -> Optional[dict]:
    """Parse one received line; ``None`` if it is not a JSON object."""

    try:
        message = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return message if isinstance(message, dict) else None


@dataclass
class ClientConnection:
    """Writer side and peer address of one seated player."""

    writer: asyncio.StreamWriter
    peer: Tuple[str, int]

    async def deliver(self, payload: dict) -> None:
        self.writer.write(encode_line(payload))
        await self.writer.drain()

    async def hang_up(self) -> None:
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except ConnectionError:
            # Peer already reset the socket.
            pass


class GameServer:
    """Accepts players and hands each decoded message to the game session.

    A player whose socket fails while being written to is dropped; the rest of
    the table still receives the message.
    """

    def __init__(
        self,
        session: SessionHandler,
        host: str = "127.0.0.1",
        port: int = 0,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.session = session
        self._logger = logger
        self._listener: asyncio.AbstractServer | None = None
        self._clients: Dict[int, ClientConnection] = {}
        self._ids = 0

    @property
    def clients(self) -> Dict[int, ClientConnection]:
        return self._clients

    @property
    def address(self) -> Tuple[str, int]:
        sockets = self._listener.sockets if self._listener else ()
        if not sockets:
            return self.host, self.port
        host, port = sockets[0].getsockname()[:2]
        return host, port

    async def start(self) -> None:
        if self._listener is None:
            self._listener = await asyncio.start_server(self._serve_player, self.host, self.port)
            if self._logger:
                self._logger.info("Resource server listening on %s:%d", *self.address)

    async def stop(self) -> None:
        for client_id in list(self._clients):
            await self.disconnect(client_id)
        if self._listener is not None:
            self._listener.close()
            await self._listener.wait_closed()
            self._listener = None

    async def broadcast(self, payload: dict) -> None:
        failed = await self._deliver_all(list(self._clients.items()), payload)
        for client_id in failed:
            await self.disconnect(client_id)

    async def send_to(self, client_id: int, payload: dict) -> None:
        client = self._clients.get(client_id)
        if client is None:
            return
        if await self._deliver_all([(client_id, client)], payload):
            await self.disconnect(client_id)

    async def disconnect(self, client_id: int) -> None:
        """Forget a player, close its socket and tell the session."""

        client = self._clients.pop(client_id, None)
        if client is None:
            return
        await client.hang_up()
        if self._logger:
            self._logger.debug("Player connection %d closed", client_id)
        await self.session.handle_disconnect(self, client_id)

    async def _deliver_all(self, targets: List[Tuple[int, ClientConnection]], payload: dict) -> List[int]:
        failed = []
        for client_id, client in targets:
            try:
                await client.deliver(payload)
            except ConnectionError as exc:
                if self._logger:
                    self._logger.warning("Could not reach player %d: %s", client_id, exc)
                failed.append(client_id)
        return failed

    async def _serve_player(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._ids += 1
        client_id = self._ids
        self._clients[client_id] = ClientConnection(writer, writer.get_extra_info("peername") or ("unknown", 0))
        if self._logger:
            self._logger.debug("Player connection %d opened", client_id)
        try:
            async for raw in reader:
                if client_id not in self._clients:
                    break
                message = decode_line(raw)
                if message is None:
                    await self.send_to(client_id, MALFORMED_REPLY)
                else:
                    await self.session.handle_message(self, client_id, message)
        except ConnectionError as exc:
            if self._logger:
                self._logger.debug("Player connection %d reset: %s", client_id, exc)
        finally:
            await self.disconnect(client_id)
