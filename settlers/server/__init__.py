"""Networking helpers for hosting a game session."""

from .hosting import ClientConnection, GameServer
from .session import PlayerState, ResourceSession

__all__ = [
    "GameServer",
    "ClientConnection",
    "ResourceSession",
    "PlayerState",
]
