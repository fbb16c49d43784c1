"""Scene management utilities."""
from __future__ import annotations

from typing import Dict, Optional, Type

import pygame


class Scene:
    """Base scene interface."""

    def __init__(self, manager: "SceneManager") -> None:
        self.manager = manager

    def on_enter(self, **kwargs) -> None:  # pragma: no cover - hooks
        pass

    def on_exit(self) -> None:  # pragma: no cover - hooks
        pass

    def handle_event(self, event: pygame.event.Event) -> None:
        pass

    def update(self, dt: float) -> None:
        pass

    def render(self, surface: pygame.Surface) -> None:
        pass


class SceneManager:
    """Registers scenes and remembers which one a modal scene returns to."""

    def __init__(self) -> None:
        self._scenes: Dict[str, Type[Scene]] = {}
        self._active: Optional[Scene] = None
        self._active_name: Optional[str] = None
        self._previous_name: Optional[str] = None
        self.context: Dict[str, object] = {}

    def register(self, name: str, scene_cls: Type[Scene]) -> None:
        self._scenes[name] = scene_cls

    def activate(self, name: str, **kwargs) -> None:
        if name not in self._scenes:
            raise KeyError(f"Scene '{name}' is not registered")
        if self._active:
            self._active.on_exit()
        self._previous_name = self._active_name
        self._active = self._scenes[name](self)
        self._active_name = name
        context = {**self.context, **kwargs}
        self._active.on_enter(**context)

    def back(self) -> bool:
        """Return to the scene that was active before the current one."""

        previous = self._previous_name
        if not previous:
            return False
        self.activate(previous)
        # The scene we left is not a place to go back to.
        self._previous_name = None
        return True

    def set_context(self, **kwargs) -> None:
        self.context.update(kwargs)

    def active(self) -> Optional[Scene]:
        return self._active

    def handle_event(self, event: pygame.event.Event) -> None:
        if self._active:
            self._active.handle_event(event)

    def update(self, dt: float) -> None:
        if self._active:
            self._active.update(dt)

    def render(self, surface: pygame.Surface) -> None:
        if self._active:
            self._active.render(surface)


__all__ = ["Scene", "SceneManager"]
