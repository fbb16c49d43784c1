"""Modal pygame dialog for discarding or gaining resources."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pygame

from settlers.engine.logger import ChannelLogger, GameLogger
from settlers.engine.scene import Scene
from settlers.game.resources import RESOURCE_KINDS, ResourceKind
from settlers.ui.resource_selection import (
    Direction,
    SelectionController,
    SelectionError,
    SelectionMode,
    SelectionState,
)

KIND_COLORS: Dict[ResourceKind, Tuple[int, int, int]] = {
    ResourceKind.CLAY: (204, 102, 102),
    ResourceKind.ORE: (153, 153, 153),
    ResourceKind.SHEEP: (51, 204, 51),
    ResourceKind.WHEAT: (204, 204, 51),
    ResourceKind.WOOD: (204, 153, 102),
}

SQUARE_SIZE = 44
SQUARE_GAP = 14
BUTTON_SIZE = (112, 38)
PANEL_MIN_SIZE = (440, 360)


@dataclass
class _KindSquare:
    kind: ResourceKind
    direction: Direction
    rect: pygame.Rect


@dataclass
class _DialogLayout:
    rect: pygame.Rect = field(default_factory=lambda: pygame.Rect(0, 0, 0, 0))
    source_row: List[_KindSquare] = field(default_factory=list)
    picked_row: List[_KindSquare] = field(default_factory=list)
    clear_rect: pygame.Rect = field(default_factory=lambda: pygame.Rect(0, 0, 0, 0))
    confirm_rect: pygame.Rect = field(default_factory=lambda: pygame.Rect(0, 0, 0, 0))

    def squares(self) -> List[_KindSquare]:
        return self.source_row + self.picked_row


def dialog_layout(surface_size: Tuple[int, int]) -> _DialogLayout:
    """Place the panel, both square rows and the buttons for a surface size."""

    width, height = surface_size
    row_width = len(RESOURCE_KINDS) * SQUARE_SIZE + (len(RESOURCE_KINDS) - 1) * SQUARE_GAP
    box_width = max(PANEL_MIN_SIZE[0], row_width + 80, int(width * 0.3))
    box_height = max(PANEL_MIN_SIZE[1], int(height * 0.34))
    rect = pygame.Rect((width - box_width) // 2, (height - box_height) // 2, box_width, box_height)

    row_left = rect.centerx - row_width // 2
    source_y = rect.y + 108
    picked_y = source_y + SQUARE_SIZE + 48
    layout = _DialogLayout(rect=rect)
    for index, kind in enumerate(RESOURCE_KINDS):
        x = row_left + index * (SQUARE_SIZE + SQUARE_GAP)
        layout.source_row.append(
            _KindSquare(kind, Direction.PICK, pygame.Rect(x, source_y, SQUARE_SIZE, SQUARE_SIZE))
        )
        layout.picked_row.append(
            _KindSquare(kind, Direction.RETURN, pygame.Rect(x, picked_y, SQUARE_SIZE, SQUARE_SIZE))
        )

    button_y = rect.bottom - BUTTON_SIZE[1] - 20
    layout.clear_rect = pygame.Rect(rect.x + 32, button_y, *BUTTON_SIZE)
    layout.confirm_rect = pygame.Rect(rect.right - 32 - BUTTON_SIZE[0], button_y, *BUTTON_SIZE)
    return layout


class ResourcePickDialog:
    """Renders a ``SelectionController`` and forwards clicks to it."""

    def __init__(
        self,
        controller: SelectionController,
        player_name: str,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self.controller = controller
        self.player_name = player_name
        self.state: SelectionState = controller.state()
        self.message: Optional[str] = None
        self.layout = _DialogLayout()
        self._logger = logger
        self._fonts: Optional[Tuple[pygame.font.Font, pygame.font.Font, pygame.font.Font]] = None

    @property
    def closed(self) -> bool:
        return self.controller.finished

    def set_surface_size(self, surface_size: Tuple[int, int]) -> None:
        self.layout = dialog_layout(surface_size)

    def square_at(self, pos: Tuple[int, int]) -> Optional[_KindSquare]:
        for square in self.layout.squares():
            if square.rect.collidepoint(pos):
                return square
        return None

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------
    def handle_event(self, event: pygame.event.Event) -> bool:
        if self.closed:
            return self._dismiss_message(event)
        if event.type == pygame.KEYDOWN:
            if event.key == pygame.K_BACKSPACE:
                self._apply(self.controller.clear_all())
                return True
            if event.key in (pygame.K_RETURN, pygame.K_KP_ENTER):
                self.confirm()
                return True
            return False
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            pos = getattr(event, "pos", None)
            if not pos:
                return False
            square = self.square_at(pos)
            if square:
                self._apply(self.controller.apply_gesture(square.kind, square.direction))
                return True
            if self.layout.clear_rect.collidepoint(pos):
                if self.state.clear_enabled:
                    self._apply(self.controller.clear_all())
                return True
            if self.layout.confirm_rect.collidepoint(pos):
                self.confirm()
                return True
            # Modal: swallow clicks outside the panel too.
            return True
        return False

    def confirm(self) -> None:
        if not self.state.confirm_enabled:
            return
        try:
            self.controller.confirm()
        except SelectionError as exc:
            self.message = str(exc)
            if self._logger:
                self._logger.error("Selection confirm failed: %s", exc)
        except Exception as exc:
            # The session is finished even though the sink failed.
            self.message = f"Could not send selection: {exc}"
            if self._logger:
                self._logger.exception("Submitting selection failed")
        finally:
            self.state = self.controller.state()

    def _dismiss_message(self, event: pygame.event.Event) -> bool:
        if self.message and event.type in (pygame.KEYDOWN, pygame.MOUSEBUTTONDOWN):
            self.message = None
            return True
        return False

    def _apply(self, state: SelectionState) -> None:
        self.state = state
        self.message = None

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _ensure_fonts(self) -> Tuple[pygame.font.Font, pygame.font.Font, pygame.font.Font]:
        if self._fonts is None:
            self._fonts = (
                pygame.font.SysFont("consolas", 24),
                pygame.font.SysFont("consolas", 18),
                pygame.font.SysFont("consolas", 14),
            )
        return self._fonts

    def draw(self, surface: pygame.Surface) -> None:
        self.set_surface_size(surface.get_size())
        font, small_font, mini_font = self._ensure_fonts()
        layout = self.layout
        state = self.state
        discard = state.mode is SelectionMode.DISCARD

        overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        overlay.fill((6, 10, 16, 180))
        surface.blit(overlay, (0, 0))
        pygame.draw.rect(surface, (18, 30, 44), layout.rect)
        pygame.draw.rect(surface, (120, 200, 255), layout.rect, 2)

        title = font.render(self.controller.title(self.player_name), True, (220, 238, 255))
        surface.blit(title, (layout.rect.x + 24, layout.rect.y + 18))
        prompt = small_font.render(self.controller.prompt(), True, (190, 214, 232))
        surface.blit(prompt, (layout.rect.x + 24, layout.rect.y + 54))

        source_label = "dialog.discard.keep" if discard else "dialog.gain.available"
        picked_label = "dialog.discard.these" if discard else "dialog.gain.these"
        self._draw_row_label(surface, mini_font, self.controller.text(source_label), layout.source_row)
        self._draw_row_label(surface, mini_font, self.controller.text(picked_label), layout.picked_row)

        for square in layout.source_row:
            enabled = self.controller.can_increment(square.kind)
            text = str(state.kept[square.kind]) if discard else "+"
            self._draw_square(surface, small_font, square, text, enabled)
        for square in layout.picked_row:
            enabled = self.controller.can_decrement(square.kind)
            self._draw_square(surface, small_font, square, str(state.picked[square.kind]), enabled)
            name = mini_font.render(self.controller.kind_label(square.kind), True, (160, 184, 204))
            surface.blit(name, (square.rect.centerx - name.get_width() // 2, square.rect.bottom + 4))

        counter = mini_font.render(
            self.controller.text("dialog.selected.count", state.num_chosen, state.num_pick_needed),
            True,
            (230, 236, 210),
        )
        surface.blit(counter, (layout.rect.centerx - counter.get_width() // 2, layout.clear_rect.y + 10))

        confirm_key = "base.discard" if discard else "base.pick"
        self._draw_button(surface, small_font, layout.clear_rect, self.controller.text("base.clear"), state.clear_enabled)
        self._draw_button(
            surface,
            small_font,
            layout.confirm_rect,
            self.controller.text(confirm_key),
            state.confirm_enabled,
        )

        if self.message:
            text = mini_font.render(self.message, True, (255, 180, 140))
            surface.blit(text, (layout.rect.x + 24, layout.rect.bottom + 8))

    def _draw_row_label(
        self,
        surface: pygame.Surface,
        font: pygame.font.Font,
        label: str,
        row: List[_KindSquare],
    ) -> None:
        if not row:
            return
        text = font.render(label, True, (182, 208, 224))
        surface.blit(text, (row[0].rect.x, row[0].rect.y - text.get_height() - 6))

    def _draw_square(
        self,
        surface: pygame.Surface,
        font: pygame.font.Font,
        square: _KindSquare,
        text: str,
        enabled: bool,
    ) -> None:
        color = KIND_COLORS[square.kind]
        if not enabled:
            color = tuple(channel // 3 for channel in color)
        pygame.draw.rect(surface, color, square.rect)
        pygame.draw.rect(surface, (12, 16, 22), square.rect, 1)
        label = font.render(text, True, (12, 16, 22) if enabled else (120, 130, 140))
        surface.blit(
            label,
            (
                square.rect.centerx - label.get_width() // 2,
                square.rect.centery - label.get_height() // 2,
            ),
        )

    def _draw_button(
        self,
        surface: pygame.Surface,
        font: pygame.font.Font,
        rect: pygame.Rect,
        text: str,
        enabled: bool,
    ) -> None:
        fill = (46, 92, 132) if enabled else (24, 32, 44)
        border = (150, 220, 255) if enabled else (88, 120, 150)
        pygame.draw.rect(surface, fill, rect)
        pygame.draw.rect(surface, border, rect, 1)
        label = font.render(text, True, (214, 236, 255) if enabled else (144, 170, 188))
        surface.blit(
            label,
            (
                rect.centerx - label.get_width() // 2,
                rect.centery - label.get_height() // 2,
            ),
        )


class ResourcePickScene(Scene):
    """Hosts a ``ResourcePickDialog`` until the selection is confirmed."""

    def __init__(self, manager) -> None:
        super().__init__(manager)
        self.dialog: Optional[ResourcePickDialog] = None

    def on_enter(self, **kwargs) -> None:
        logger = kwargs.get("logger")
        channel = logger.channel("dialog") if isinstance(logger, GameLogger) else logger
        self.dialog = ResourcePickDialog(
            kwargs["selection"],
            str(kwargs.get("player_name", "")),
            logger=channel,
        )
        surface = pygame.display.get_surface()
        if surface:
            self.dialog.set_surface_size(surface.get_size())

    def handle_event(self, event: pygame.event.Event) -> None:
        if self.dialog:
            self.dialog.handle_event(event)

    def update(self, dt: float) -> None:
        # A failed submission stays on screen until the player dismisses it.
        if self.dialog and self.dialog.closed and not self.dialog.message:
            self.dialog = None
            if not self.manager.back():
                pygame.event.post(pygame.event.Event(pygame.QUIT))

    def render(self, surface: pygame.Surface) -> None:
        if self.dialog:
            self.dialog.draw(surface)


__all__ = ["ResourcePickDialog", "ResourcePickScene", "dialog_layout", "KIND_COLORS"]
