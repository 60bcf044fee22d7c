import pytest

from GuidedLabeling.models.WorkflowStep import (
    MAX_STAGE,
    WorkflowStage,
    epoch_from_names,
    resolve_stage,
    select_superpixel_annotations,
)
from GuidedLabeling.unittests.builders import DEFAULT, annotation, element


@pytest.mark.parametrize(
    "epoch, stage",
    [
        (-1, WorkflowStage.SUPERPIXEL_SEGMENTATION),
        (0, WorkflowStage.INITIAL_LABELING),
        (1, WorkflowStage.GUIDED_LABELING),
        (7, WorkflowStage.GUIDED_LABELING),
    ],
)
def test_resolve_stage(epoch, stage):
    assert resolve_stage(epoch) is stage


def test_stage_never_exceeds_max():
    for epoch in range(-1, 50):
        assert resolve_stage(epoch) <= MAX_STAGE
        assert resolve_stage(epoch) == min(epoch + 1, MAX_STAGE)


def test_epoch_from_names():
    names = ["Superpixel Epoch 0", "superpixel epoch 3 Predictions", "Nuclei", None]
    assert epoch_from_names(names) == 3
    assert epoch_from_names(["Nuclei"]) == -1
    assert epoch_from_names([]) == -1


def test_select_picks_newest_of_each_role():
    px = element([0], [DEFAULT])
    newest_labels = annotation("item", "Superpixel Epoch 2", px, ann_id="l2")
    newest_predictions = annotation("item", "Superpixel Epoch 2 Predictions", px, ann_id="p2")
    older_labels = annotation("item", "Superpixel Epoch 1", px, ann_id="l1")
    other = annotation("item", "Nuclei", px, ann_id="n")

    labels, predictions = select_superpixel_annotations(
        [other, newest_predictions, newest_labels, older_labels]
    )
    assert labels.id == "l2"
    assert predictions.id == "p2"


def test_select_without_superpixel_annotations():
    other = annotation("item", "Nuclei", element([0], [DEFAULT]))
    assert select_superpixel_annotations([other]) == (None, None)
    assert select_superpixel_annotations([]) == (None, None)
