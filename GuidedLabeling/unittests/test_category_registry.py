from itertools import permutations

from GuidedLabeling.models.Annotation import Category
from GuidedLabeling.models.CategoryRegistry import CategoryRegistry, build_registry
from GuidedLabeling.unittests.builders import DEFAULT, NECROSIS, STROMA, TUMOR, element


def test_default_category_is_index_zero():
    registry = CategoryRegistry(DEFAULT)
    registry.register(TUMOR)
    assert registry.index_of("default") == 0
    assert registry.index_of("tumor") == 1
    assert registry.default_category == DEFAULT


def test_register_is_first_seen_wins():
    registry = CategoryRegistry(DEFAULT)
    assert registry.register(TUMOR) == 1
    assert registry.register(Category("tumor", "blue", "blue")) == 1
    assert registry.get("tumor").fill_color == TUMOR.fill_color
    assert len(registry) == 2


def test_from_annotation_groups_inserts_default_first():
    groups = {
        "defaultGroup": "background",
        "groups": [
            {"id": "tumor", "fillColor": "red", "lineColor": "red"},
            {"id": "background", "fillColor": "clear", "lineColor": "black"},
        ],
    }
    registry = CategoryRegistry.from_annotation_groups(groups)
    assert registry.labels == ["background", "tumor"]
    assert registry.get("background").fill_color == "clear"


def test_from_annotation_groups_without_document_uses_defaults():
    registry = CategoryRegistry.from_annotation_groups(None)
    assert registry.labels == ["default"]


def test_union_of_labels_for_every_processing_order():
    sources = [
        element([0, 1], [DEFAULT, TUMOR]),
        element([0], [STROMA]),
        element([1, 0], [NECROSIS, TUMOR]),
    ]
    for order in permutations(sources):
        registry = build_registry(DEFAULT, order)
        assert set(registry.labels) == {"default", "tumor", "stroma", "necrosis"}
        assert registry.index_of("default") == 0
        assert len(registry) == 4


def test_copy_is_independent():
    registry = CategoryRegistry(DEFAULT)
    clone = registry.copy()
    clone.register(TUMOR)
    assert "tumor" not in registry
    assert clone.labels == ["default", "tumor"]
