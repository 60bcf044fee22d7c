import pytest

from GuidedLabeling.models.CertaintyRanker import (
    Agreement,
    agree_choice,
    average_certainty,
    rank_superpixels,
)
from GuidedLabeling.unittests.builders import DEFAULT, STROMA, TUMOR, element, image

CATEGORIES = [DEFAULT, TUMOR, STROMA]


@pytest.mark.parametrize(
    "predicted, selected, expected",
    [
        (1, 0, Agreement.UNSET),
        (1, 1, Agreement.YES),
        (1, 2, Agreement.NO),
    ],
)
def test_agree_choice(predicted, selected, expected):
    prediction = element([predicted], CATEGORIES, certainty=[0.5])
    labels = element([selected], CATEGORIES)
    assert agree_choice(0, prediction, labels, "default") is expected


def test_agree_choice_compares_labels_not_indices():
    prediction = element([0], [TUMOR], certainty=[0.5])
    labels = element([1], [DEFAULT, TUMOR])
    assert agree_choice(0, prediction, labels, "default") is Agreement.YES


def test_ranking_is_sorted_by_certainty_and_stable():
    annotations = {
        "a": image("a", labels=element([0, 1, 2], CATEGORIES),
                   predictions=element([1, 1, 1], CATEGORIES, certainty=[0.9, 0.1, 0.5])),
        "b": image("b", labels=element([0, 0], CATEGORIES),
                   predictions=element([2, 2], CATEGORIES, certainty=[0.5, 0.1])),
    }
    records = rank_superpixels(annotations, "default")
    assert [(r.image_id, r.index) for r in records] == [
        ("a", 1), ("b", 1), ("a", 2), ("b", 0), ("a", 0),
    ]
    certainties = [r.certainty for r in records]
    assert certainties == sorted(certainties)


def test_records_carry_agreement_and_geometry():
    annotations = {
        "a": image("a", labels=element([0, 1], CATEGORIES),
                   predictions=element([1, 2], CATEGORIES, certainty=[0.2, 0.3], scale=2.0)),
    }
    first, second = rank_superpixels(annotations, "default")
    assert first.agreement is Agreement.UNSET
    assert first.selected_category is None
    assert second.agreement is Agreement.NO
    assert second.selected_category == 1
    assert second.prediction == 2
    assert second.bbox == (1.0, 1.0, 2.0, 2.0)
    assert second.scale == 2.0
    assert second.confidence == pytest.approx(0.7)


def test_images_without_predictions_contribute_nothing():
    annotations = {
        "new": image("new", labels=element([0], CATEGORIES)),
        "old": image("old", predictions=element([1], CATEGORIES, certainty=[0.4])),
    }
    records = rank_superpixels(annotations, "default")
    assert len(records) == 1
    assert records[0].image_id == "old"
    assert records[0].agreement is Agreement.UNSET


def test_empty_ranking():
    assert rank_superpixels({}, "default") == []


def test_average_certainty_spans_every_image():
    annotations = {
        "a": image("a", predictions=element([0, 0], CATEGORIES, certainty=[0.2, 0.4])),
        "b": image("b", predictions=element([0], CATEGORIES, certainty=[0.9])),
        "new": image("new", labels=element([0], CATEGORIES)),
    }
    assert average_certainty(annotations) == pytest.approx(0.5)
    assert average_certainty({"new": annotations["new"]}) is None
    assert average_certainty({}) is None
