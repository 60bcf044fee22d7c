from GuidedLabeling.models.Annotation import Category
from GuidedLabeling.models.CategoryRegistry import CategoryRegistry
from GuidedLabeling.models.Hotkeys import HotkeyMap, apply_group_hotkeys, groups_from_categories
from GuidedLabeling.unittests.builders import DEFAULT, STROMA, TUMOR


def _registry():
    registry = CategoryRegistry(DEFAULT)
    registry.register(TUMOR)
    registry.register(STROMA)
    return registry


def test_default_bindings():
    hotkeys = HotkeyMap()
    assert len(hotkeys) == 10
    assert hotkeys.index_for("1") == 0
    assert hotkeys.index_for("0") == 9
    assert hotkeys.key_for(2) == "3"
    assert hotkeys.key_for(42) is None


def test_assign_swaps_when_key_is_taken():
    hotkeys = HotkeyMap()
    hotkeys.assign("1", "2")
    assert hotkeys.index_for("2") == 0
    assert hotkeys.index_for("1") == 1


def test_assign_to_free_key():
    hotkeys = HotkeyMap()
    hotkeys.assign("3", "q")
    assert hotkeys.index_for("q") == 2
    assert hotkeys.index_for("3") is None
    assert len(hotkeys) == 10


def test_group_hotkeys_use_registry_indices():
    hotkeys = HotkeyMap()
    groups = [
        {"id": "stroma", "hotKey": "q"},
        {"id": "tumor", "hotKey": 5},
    ]
    apply_group_hotkeys(hotkeys, groups, _registry())
    assert hotkeys.index_for("q") == 2
    assert hotkeys.index_for("5") == 1


def test_first_group_wins_contested_key():
    hotkeys = HotkeyMap()
    groups = [
        {"id": "tumor", "hotKey": "x"},
        {"id": "stroma", "hotKey": "x"},
    ]
    apply_group_hotkeys(hotkeys, groups, _registry())
    assert hotkeys.index_for("x") == 1
    assert hotkeys.key_for(2) == "3"


def test_unknown_group_is_ignored():
    hotkeys = HotkeyMap()
    apply_group_hotkeys(hotkeys, [{"id": "bone", "hotKey": "b"}], _registry())
    assert hotkeys.index_for("b") is None


def test_groups_from_categories():
    hotkeys = HotkeyMap()
    groups = groups_from_categories(_registry().categories, hotkeys)
    assert [g["id"] for g in groups] == ["default", "tumor", "stroma"]
    assert [g["hotKey"] for g in groups] == ["1", "2", "3"]
    assert groups[1]["fillColor"] == TUMOR.fill_color
    assert groups[1]["lineColor"] == TUMOR.stroke_color


def test_unbindable_group_does_not_claim_its_key():
    registry = CategoryRegistry(DEFAULT)
    for n in range(11):
        registry.register(Category(f"class{n}"))
    hotkeys = HotkeyMap()
    groups = [
        {"id": "class10", "hotKey": "x"},  # index 11, beyond the ten keys
        {"id": "class0", "hotKey": "x"},
    ]
    apply_group_hotkeys(hotkeys, groups, registry)
    assert hotkeys.index_for("x") == 1
