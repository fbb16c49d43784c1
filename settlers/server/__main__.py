"""Run a standalone game session server: ``python -m settlers.server``."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

from settlers.engine.logger import init_logger

from .hosting import GameServer
from .session import ResourceSession

SETTINGS_PATH = Path("settings.json")


def _server_address() -> tuple[str, int]:
    host, port = "127.0.0.1", 8765
    if not SETTINGS_PATH.exists():
        return host, port
    try:
        data = json.loads(SETTINGS_PATH.read_text())
    except json.JSONDecodeError:
        return host, port
    server = data.get("server") if isinstance(data, dict) else None
    if isinstance(server, dict):
        host = str(server.get("host", host))
        port = int(server.get("port", port))
    return host, port


async def serve() -> None:
    logger = init_logger(SETTINGS_PATH)
    log = logger.channel("server")
    log.enabled = True
    host, port = _server_address()
    server = GameServer(ResourceSession(logger=log), host, port, logger=log)
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


if __name__ == "__main__":
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass
