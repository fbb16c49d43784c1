"""Display strings keyed by message id."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Protocol

DEFAULT_STRINGS = {
    "dialog.discard.title": "Discard [{0}]",
    "dialog.discard.prompt": "Please discard {0} resources.",
    "dialog.discard.keep": "Keep these",
    "dialog.discard.these": "Discard these",
    "dialog.gain.title": "Gain Resources [{0}]",
    "dialog.gain.prompt": "Please pick {0} resources.",
    "dialog.gain.available": "Click to pick",
    "dialog.gain.these": "Gain these",
    "dialog.selected.count": "Selected {0} of {1}",
    "base.discard": "Discard",
    "base.pick": "Pick",
    "base.clear": "Clear",
    "resources.clay": "Clay",
    "resources.ore": "Ore",
    "resources.sheep": "Sheep",
    "resources.wheat": "Wheat",
    "resources.wood": "Wood",
}


class StringResolver(Protocol):
    def get(self, key: str, *params: object) -> str:
        ...


@dataclass
class StringTable:
    """Template lookup with positional ``{0}`` parameters."""

    templates: Dict[str, str] = field(default_factory=lambda: DEFAULT_STRINGS.copy())

    @classmethod
    def load(cls, path: Path) -> "StringTable":
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError:
            return cls()
        if not isinstance(data, dict):
            return cls()
        templates = DEFAULT_STRINGS.copy()
        overrides = data.get("strings", {})
        if isinstance(overrides, dict):
            templates.update({str(k): str(v) for k, v in overrides.items()})
        return cls(templates=templates)

    def get(self, key: str, *params: object) -> str:
        template = self.templates.get(key)
        if template is None:
            return key
        if not params:
            return template
        try:
            return template.format(*params)
        except (IndexError, KeyError):
            # Translation declares more placeholders than were supplied.
            return template


__all__ = ["StringTable", "StringResolver", "DEFAULT_STRINGS"]
