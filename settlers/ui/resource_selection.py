"""Selection model behind the discard and gain-resources dialogs.

The controller tracks two pools per resource kind: ``kept`` (what the player
holds on to) and ``picked`` (what is about to be discarded or gained). The
presentation layer forwards one gesture at a time and renders the
``SelectionState`` returned by each call.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional

from settlers.engine.logger import ChannelLogger
from settlers.game.resources import RESOURCE_KINDS, ResourceCounts, ResourceKind
from settlers.i18n.strings import StringResolver, StringTable


class SelectionMode(Enum):
    DISCARD = "discard"
    GAIN = "gain"


class Direction(Enum):
    """Which way a gesture moves one unit."""

    PICK = "pick"
    RETURN = "return"


SubmissionSink = Callable[[SelectionMode, ResourceCounts], None]


class SelectionError(RuntimeError):
    """Base class for selection contract violations."""


class InvalidConfiguration(SelectionError, ValueError):
    """Raised when a selection session cannot be started."""


class IncompleteSelection(SelectionError):
    """Raised when confirming before exactly the required count is picked."""

    def __init__(self, num_chosen: int, num_pick_needed: int) -> None:
        super().__init__(f"Picked {num_chosen} of {num_pick_needed} required resources")
        self.num_chosen = num_chosen
        self.num_pick_needed = num_pick_needed


@dataclass(frozen=True)
class SelectionState:
    """Snapshot of counts and control enablement after a gesture."""

    mode: SelectionMode
    kept: ResourceCounts
    picked: ResourceCounts
    num_chosen: int
    num_pick_needed: int
    confirm_enabled: bool
    clear_enabled: bool
    pick_enabled: Dict[ResourceKind, bool]
    finished: bool = False

    @property
    def remaining(self) -> int:
        return self.num_pick_needed - self.num_chosen


class SelectionController:
    """Move resource units between the kept and picked pools."""

    def __init__(
        self,
        mode: SelectionMode,
        num_pick_needed: int,
        initial_kept: Optional[Mapping[ResourceKind, int]] = None,
        *,
        sink: Optional[SubmissionSink] = None,
        strings: Optional[StringResolver] = None,
        logger: Optional[ChannelLogger] = None,
    ) -> None:
        self._logger = logger
        if isinstance(num_pick_needed, bool) or not isinstance(num_pick_needed, int):
            self._fail_config(f"num_pick_needed must be an integer, got {num_pick_needed!r}")
        if num_pick_needed < 0:
            self._fail_config(f"num_pick_needed must be non-negative, got {num_pick_needed}")
        if mode is SelectionMode.DISCARD:
            if initial_kept is None:
                self._fail_config("Discard mode requires the player's current resources")
            try:
                kept = ResourceCounts(initial_kept)
            except ValueError as exc:
                self._fail_config(f"Invalid resource snapshot: {exc}")
        else:
            kept = ResourceCounts.zero()
        self.mode = mode
        self.num_pick_needed = num_pick_needed
        self.kept = kept
        self.picked = ResourceCounts.zero()
        self.num_chosen = 0
        self.finished = False
        self._sink = sink
        self._strings: StringResolver = strings or StringTable()
        if self._logger:
            self._logger.debug(
                "Opened %s selection: need %d, kept %s",
                mode.value,
                num_pick_needed,
                self.kept.as_dict(),
            )

    @classmethod
    def for_discard(
        cls,
        hand: Mapping[ResourceKind, int],
        num_to_discard: int,
        **kwargs,
    ) -> "SelectionController":
        return cls(SelectionMode.DISCARD, num_to_discard, hand, **kwargs)

    @classmethod
    def for_gain(cls, num_to_pick: int, **kwargs) -> "SelectionController":
        return cls(SelectionMode.GAIN, num_to_pick, **kwargs)

    def _fail_config(self, message: str) -> None:
        if self._logger:
            self._logger.error("Cannot open resource selection: %s", message)
        raise InvalidConfiguration(message)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------
    def increment_pick(self, kind: ResourceKind) -> SelectionState:
        """Move one unit of ``kind`` into the picked pool.

        Unknown kinds, exhausted kinds and gestures after confirm are no-ops.
        """

        try:
            kind = ResourceKind.parse(kind)
        except ValueError:
            return self._stale("increment", kind)
        if self.finished:
            return self._stale("increment", kind)
        if self.mode is SelectionMode.DISCARD and self.kept[kind] == 0:
            return self._stale("increment", kind)
        if self.num_pick_needed == 1 and self.num_chosen == 1:
            if self.picked[kind] == 1:
                return self.state()
            self._return_all()
        self.picked.add(kind)
        if self.mode is SelectionMode.DISCARD:
            self.kept.remove(kind)
        self.num_chosen += 1
        return self.state()

    def decrement_pick(self, kind: ResourceKind) -> SelectionState:
        try:
            kind = ResourceKind.parse(kind)
        except ValueError:
            return self._stale("decrement", kind)
        if self.finished or self.picked[kind] == 0:
            return self._stale("decrement", kind)
        self.picked.remove(kind)
        if self.mode is SelectionMode.DISCARD:
            self.kept.add(kind)
        self.num_chosen -= 1
        return self.state()

    def apply_gesture(self, kind: ResourceKind, direction: Direction) -> SelectionState:
        if direction is Direction.PICK:
            return self.increment_pick(kind)
        return self.decrement_pick(kind)

    def clear_all(self) -> SelectionState:
        if self.finished:
            return self.state()
        self._return_all()
        return self.state()

    def confirm(self) -> Optional[ResourceCounts]:
        """Finish the session and hand the picked counts to the sink.

        Returns ``None`` if the session already finished.
        """

        if self.finished:
            if self._logger:
                self._logger.debug("Ignoring confirm on finished %s selection", self.mode.value)
            return None
        if self.num_chosen != self.num_pick_needed:
            if self._logger:
                self._logger.warning(
                    "Confirm rejected: picked %d of %d",
                    self.num_chosen,
                    self.num_pick_needed,
                )
            raise IncompleteSelection(self.num_chosen, self.num_pick_needed)
        self.finished = True
        result = self.picked.copy()
        if self._logger:
            self._logger.info("Confirmed %s of %s", self.mode.value, result.as_dict())
        if self._sink is not None:
            self._sink(self.mode, result.copy())
        return result

    def _return_all(self) -> None:
        for kind in RESOURCE_KINDS:
            count = self.picked[kind]
            if not count:
                continue
            if self.mode is SelectionMode.DISCARD:
                self.kept.add(kind, count)
            self.picked.set(kind, 0)
        self.num_chosen = 0

    def _stale(self, gesture: str, kind: object) -> SelectionState:
        if self._logger:
            self._logger.debug("Ignored stale %s of %s", gesture, getattr(kind, "value", kind))
        return self.state()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def confirm_enabled(self) -> bool:
        return not self.finished and self.num_chosen == self.num_pick_needed

    @property
    def clear_enabled(self) -> bool:
        return not self.finished and self.num_chosen > 0

    def can_increment(self, kind: ResourceKind) -> bool:
        if self.finished:
            return False
        if self.mode is SelectionMode.GAIN:
            return True
        return self.kept[kind] > 0

    def can_decrement(self, kind: ResourceKind) -> bool:
        return not self.finished and self.picked[kind] > 0

    def pick_enabled(self, kind: ResourceKind) -> bool:
        return self.can_increment(kind) or self.can_decrement(kind)

    def state(self) -> SelectionState:
        return SelectionState(
            mode=self.mode,
            kept=self.kept.copy(),
            picked=self.picked.copy(),
            num_chosen=self.num_chosen,
            num_pick_needed=self.num_pick_needed,
            confirm_enabled=self.confirm_enabled,
            clear_enabled=self.clear_enabled,
            pick_enabled={kind: self.pick_enabled(kind) for kind in RESOURCE_KINDS},
            finished=self.finished,
        )

    # ------------------------------------------------------------------
    # Display text
    # ------------------------------------------------------------------
    def title(self, player_name: str) -> str:
        return self._strings.get(f"dialog.{self.mode.value}.title", player_name)

    def prompt(self) -> str:
        return self._strings.get(f"dialog.{self.mode.value}.prompt", self.num_pick_needed)

    def kind_label(self, kind: ResourceKind) -> str:
        return self._strings.get(f"resources.{ResourceKind.parse(kind).value}")

    def text(self, key: str, *params: object) -> str:
        return self._strings.get(key, *params)


__all__ = [
    "SelectionController",
    "SelectionState",
    "SelectionMode",
    "Direction",
    "SubmissionSink",
    "SelectionError",
    "InvalidConfiguration",
    "IncompleteSelection",
]
