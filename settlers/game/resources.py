"""Resource kinds and per-kind count containers."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional


class ResourceKind(Enum):
    """The five resource kinds, in display order."""

    CLAY = "clay"
    ORE = "ore"
    SHEEP = "sheep"
    WHEAT = "wheat"
    WOOD = "wood"

    @classmethod
    def parse(cls, value: Any) -> "ResourceKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown resource kind: {value!r}")


RESOURCE_KINDS: tuple[ResourceKind, ...] = tuple(ResourceKind)


class ResourceCounts(Mapping[ResourceKind, int]):
    """Non-negative count for every resource kind.

    All five kinds are always present; construction rejects missing or extra
    keys. Keys may be given as ``ResourceKind`` members or their names.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Optional[Mapping[Any, int]] = None) -> None:
        if counts is None:
            self._counts = {kind: 0 for kind in RESOURCE_KINDS}
            return
        parsed: Dict[ResourceKind, int] = {}
        for key, value in counts.items():
            kind = ResourceKind.parse(key)
            if kind in parsed:
                raise ValueError(f"Duplicate resource kind: {kind.value}")
            parsed[kind] = _coerce_count(kind, value)
        missing = [kind.value for kind in RESOURCE_KINDS if kind not in parsed]
        if missing:
            raise ValueError(f"Missing resource kinds: {', '.join(missing)}")
        self._counts = {kind: parsed[kind] for kind in RESOURCE_KINDS}

    @classmethod
    def zero(cls) -> "ResourceCounts":
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[Any, int]) -> "ResourceCounts":
        """Build counts from a partial mapping, filling absent kinds with zero."""

        filled: Dict[ResourceKind, int] = {kind: 0 for kind in RESOURCE_KINDS}
        for key, value in data.items():
            kind = ResourceKind.parse(key)
            filled[kind] = _coerce_count(kind, value)
        return cls(filled)

    def __getitem__(self, kind: ResourceKind) -> int:
        try:
            return self._counts[ResourceKind.parse(kind)]
        except ValueError:
            raise KeyError(kind) from None

    def __iter__(self) -> Iterator[ResourceKind]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResourceCounts):
            return self._counts == other._counts
        if isinstance(other, Mapping):
            try:
                return self == ResourceCounts.from_mapping(other)
            except ValueError:
                return False
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{kind.name}:{count}" for kind, count in self._counts.items())
        return f"ResourceCounts({{{body}}})"

    def add(self, kind: ResourceKind, amount: int = 1) -> None:
        kind = ResourceKind.parse(kind)
        value = self._counts[kind] + amount
        if value < 0:
            raise ValueError(f"{kind.value} count cannot drop below zero")
        self._counts[kind] = value

    def remove(self, kind: ResourceKind, amount: int = 1) -> None:
        self.add(kind, -amount)

    def set(self, kind: ResourceKind, amount: int) -> None:
        kind = ResourceKind.parse(kind)
        self._counts[kind] = _coerce_count(kind, amount)

    def total(self) -> int:
        return sum(self._counts.values())

    def copy(self) -> "ResourceCounts":
        return ResourceCounts(self._counts)

    def as_dict(self) -> Dict[str, int]:
        return {kind.value: count for kind, count in self._counts.items()}


def _coerce_count(kind: ResourceKind, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{kind.value} count must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{kind.value} count must be non-negative, got {value}")
    return value


__all__ = ["ResourceKind", "ResourceCounts", "RESOURCE_KINDS"]
