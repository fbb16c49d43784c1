"""Game session that applies confirmed discards and resource picks."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from settlers.engine.logger import ChannelLogger
from settlers.game.resources import RESOURCE_KINDS, ResourceCounts

from .hosting import GameServer


@dataclass
class PlayerState:
    """A seated player and the resources in their hand."""

    player_id: int
    name: str
    resources: ResourceCounts = field(default_factory=ResourceCounts.zero)

    def as_dict(self) -> dict:
        return {
            "id": self.player_id,
            "name": self.name,
            "resources": self.resources.as_dict(),
        }


class ResourceSession:
    """Tracks player hands and reacts to ``discard``/``pick_resources``."""

    def __init__(self, logger: Optional[ChannelLogger] = None) -> None:
        self.players: Dict[int, PlayerState] = {}
        self._lock = asyncio.Lock()
        self._logger = logger

    async def handle_message(self, server: GameServer, client_id: int, message: dict) -> None:
        message_type = message.get("type")
        if message_type == "join":
            await self._handle_join(server, client_id, message)
        elif message_type == "discard":
            await self._handle_resources(server, client_id, message, discard=True)
        elif message_type == "pick_resources":
            await self._handle_resources(server, client_id, message, discard=False)
        elif message_type == "state_request":
            await server.send_to(client_id, self._snapshot_payload())
        else:
            await server.send_to(client_id, {"type": "error", "message": "Unknown message type"})

    async def handle_disconnect(self, server: GameServer, client_id: int) -> None:
        async with self._lock:
            removed = self.players.pop(client_id, None)
        if removed:
            await server.broadcast({"type": "player_left", "id": removed.player_id})
            await server.broadcast(self._snapshot_payload())

    async def _handle_join(self, server: GameServer, client_id: int, message: dict) -> None:
        name = str(message.get("name") or f"Player {client_id}")
        try:
            hand = ResourceCounts.from_mapping(message.get("resources") or {})
        except (AttributeError, ValueError) as exc:
            await server.send_to(client_id, {"type": "error", "message": f"Invalid resources: {exc}"})
            return
        async with self._lock:
            state = self.players.get(client_id) or PlayerState(client_id, name)
            state.name = name
            state.resources = hand
            self.players[client_id] = state
        await server.send_to(client_id, {"type": "welcome", "id": client_id})
        await server.broadcast(self._snapshot_payload())

    async def _handle_resources(self, server: GameServer, client_id: int, message: dict, *, discard: bool) -> None:
        try:
            counts = ResourceCounts.from_mapping(message.get("resources") or {})
        except (AttributeError, ValueError) as exc:
            await server.send_to(client_id, {"type": "error", "message": f"Invalid resources: {exc}"})
            return
        async with self._lock:
            state = self.players.get(client_id)
            if state is None:
                error = "Join before sending resources"
            else:
                error = _apply(state.resources, counts, discard)
            updated = state.resources.as_dict() if state else None
        if error:
            if self._logger:
                self._logger.warning("Rejected %s from %d: %s", message.get("type"), client_id, error)
            await server.send_to(client_id, {"type": "error", "message": error})
            return
        if self._logger:
            self._logger.info(
                "Player %d %s %s",
                client_id,
                "discarded" if discard else "gained",
                counts.as_dict(),
            )
        await server.broadcast({"type": "resources", "id": client_id, "resources": updated})

    def _snapshot_payload(self) -> dict:
        return {"type": "players", "players": self._players_list()}

    def _players_list(self) -> List[dict]:
        return [player.as_dict() for player in self.players.values()]


def _apply(hand: ResourceCounts, counts: ResourceCounts, discard: bool) -> Optional[str]:
    if discard:
        for kind in RESOURCE_KINDS:
            if counts[kind] > hand[kind]:
                return f"Cannot discard {counts[kind]} {kind.value}; only {hand[kind]} held"
        for kind in RESOURCE_KINDS:
            hand.remove(kind, counts[kind])
    else:
        for kind in RESOURCE_KINDS:
            hand.add(kind, counts[kind])
    return None
