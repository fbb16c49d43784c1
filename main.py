"""Entry point for the resource pick dialog demo."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, Optional

import pygame

from settlers.engine.logger import GameLogger, init_logger
from settlers.engine.scene import SceneManager
from settlers.game.resources import ResourceCounts
from settlers.i18n.strings import StringTable
from settlers.net.client import MessageSink, SessionClient
from settlers.ui.pick_dialog import ResourcePickScene
from settlers.ui.resource_selection import SelectionController, SelectionMode

SETTINGS_PATH = Path("settings.json")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "resolution": [960, 640],
    "maxFps": 60,
    "playerName": "Player",
    "demo": {
        "mode": "discard",
        "count": 4,
        "resources": {"clay": 2, "ore": 1, "sheep": 3, "wheat": 1, "wood": 2},
    },
}


def load_settings() -> Dict[str, Any]:
    if not SETTINGS_PATH.exists():
        return dict(DEFAULT_SETTINGS)
    try:
        data = json.loads(SETTINGS_PATH.read_text())
    except json.JSONDecodeError:
        return dict(DEFAULT_SETTINGS)
    if not isinstance(data, dict):
        return dict(DEFAULT_SETTINGS)
    return {**DEFAULT_SETTINGS, **data}


def build_selection(settings: Dict[str, Any], sink, strings: StringTable, logger: GameLogger) -> SelectionController:
    demo = settings.get("demo", DEFAULT_SETTINGS["demo"])
    mode = SelectionMode(str(demo.get("mode", "discard")).lower())
    hand = ResourceCounts.from_mapping(demo.get("resources", {}))
    return SelectionController(
        mode,
        int(demo.get("count", 0)),
        hand if mode is SelectionMode.DISCARD else None,
        sink=sink,
        strings=strings,
        logger=logger.channel("dialog"),
    )


async def run(settings: Dict[str, Any]) -> None:
    logger = init_logger(SETTINGS_PATH)
    strings = StringTable.load(SETTINGS_PATH)
    net_log = logger.channel("net")

    client: Optional[SessionClient] = None
    server_settings = settings.get("server")
    if isinstance(server_settings, dict):
        client = SessionClient(
            str(server_settings.get("host", "127.0.0.1")),
            int(server_settings.get("port", 0)),
            logger=net_log,
        )
        await client.connect()
        demo = settings.get("demo", DEFAULT_SETTINGS["demo"])
        await client.send(
            {
                "type": "join",
                "name": settings.get("playerName", "Player"),
                "resources": demo.get("resources", {}),
            }
        )
        sink = MessageSink(client.submit, logger=net_log)
    else:
        sink = MessageSink(lambda payload: net_log.info("Offline, not sent: %s", payload), logger=net_log)

    pygame.init()
    resolution = settings.get("resolution", DEFAULT_SETTINGS["resolution"])
    screen = pygame.display.set_mode(tuple(resolution))
    pygame.display.set_caption("Settlers")
    clock = pygame.time.Clock()

    manager = SceneManager()
    manager.register("resource_pick", ResourcePickScene)
    manager.set_context(logger=logger, player_name=settings.get("playerName", "Player"))
    manager.activate("resource_pick", selection=build_selection(settings, sink, strings, logger))

    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    break
                manager.handle_event(event)
            dt = clock.tick(settings.get("maxFps", 60)) / 1000.0
            manager.update(dt)
            screen.fill((10, 24, 40))
            manager.render(screen)
            pygame.display.flip()
            # Let the client's writer task run between frames.
            await asyncio.sleep(0)
    finally:
        if client is not None:
            await client.flush()
            await client.close()
        pygame.quit()


def main() -> None:
    asyncio.run(run(load_settings()))


if __name__ == "__main__":
    main()
