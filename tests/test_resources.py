import pytest

from settlers.game.resources import RESOURCE_KINDS, ResourceCounts, ResourceKind


def test_kinds_are_in_display_order() -> None:
    assert [kind.value for kind in RESOURCE_KINDS] == ["clay", "ore", "sheep", "wheat", "wood"]


@pytest.mark.parametrize("raw", ["clay", "CLAY", " Clay ", ResourceKind.CLAY])
def test_parse_accepts_names_and_members(raw) -> None:
    assert ResourceKind.parse(raw) is ResourceKind.CLAY


def test_parse_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        ResourceKind.parse("gold")


def test_counts_require_every_kind() -> None:
    with pytest.raises(ValueError, match="Missing resource kinds"):
        ResourceCounts({"clay": 1, "ore": 1})


@pytest.mark.parametrize("value", [-1, 1.5, "2", True])
def test_counts_reject_bad_values(value) -> None:
    data = {kind: 0 for kind in RESOURCE_KINDS}
    data[ResourceKind.ORE] = value
    with pytest.raises(ValueError):
        ResourceCounts(data)


def test_counts_reject_duplicate_keys() -> None:
    data = {kind: 0 for kind in RESOURCE_KINDS}
    data["CLAY"] = 1
    with pytest.raises(ValueError, match="Duplicate"):
        ResourceCounts(data)


def test_from_mapping_fills_missing_kinds() -> None:
    counts = ResourceCounts.from_mapping({"wood": 3, ResourceKind.SHEEP: 1})
    assert counts.as_dict() == {"clay": 0, "ore": 0, "sheep": 1, "wheat": 0, "wood": 3}
    assert counts.total() == 4
    assert len(counts) == 5


def test_add_and_remove_guard_against_negative() -> None:
    counts = ResourceCounts.zero()
    counts.add(ResourceKind.WHEAT, 2)
    counts.remove(ResourceKind.WHEAT)
    assert counts[ResourceKind.WHEAT] == 1
    with pytest.raises(ValueError):
        counts.remove(ResourceKind.WHEAT, 2)
    assert counts[ResourceKind.WHEAT] == 1


def test_copy_is_independent() -> None:
    counts = ResourceCounts.from_mapping({"ore": 2})
    clone = counts.copy()
    clone.add(ResourceKind.ORE)
    assert counts[ResourceKind.ORE] == 2
    assert clone[ResourceKind.ORE] == 3


def test_lookup_by_name_and_unknown_key() -> None:
    counts = ResourceCounts.from_mapping({"sheep": 4})
    assert counts["sheep"] == 4
    assert counts.get("gold") is None
    assert "gold" not in counts


def test_equality_with_partial_mapping() -> None:
    counts = ResourceCounts.from_mapping({"clay": 1})
    assert counts == {ResourceKind.CLAY: 1}
    assert counts != {ResourceKind.CLAY: 2}
    assert counts != {"gold": 1}
