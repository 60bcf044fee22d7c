import enum
import logging
from typing import Iterable, List, Optional, Tuple

from GuidedLabeling.configuration.configuration import EPOCH_REGEX, SUPERPIXEL_TAG
from GuidedLabeling.models.Annotation import SuperpixelAnnotation


class WorkflowStage(enum.IntEnum):
    SUPERPIXEL_SEGMENTATION = 0
    INITIAL_LABELING = 1
    GUIDED_LABELING = 2


MAX_STAGE = max(WorkflowStage)


def epoch_from_names(names: Iterable[str]) -> int:
    """Return the highest ``epoch N`` found in *names*, or -1 before the first run."""
    epoch = -1
    for name in names:
        match = EPOCH_REGEX.search(name or "")
        if match:
            epoch = max(epoch, int(match.group(1)))
    return epoch


def resolve_stage(epoch: int) -> WorkflowStage:
    return WorkflowStage(min(epoch + 1, int(MAX_STAGE)))


def is_superpixel_annotation(annotation: SuperpixelAnnotation) -> bool:
    return SUPERPIXEL_TAG in annotation.name


def select_superpixel_annotations(
        annotations: List[SuperpixelAnnotation],
) -> Tuple[Optional[SuperpixelAnnotation], Optional[SuperpixelAnnotation]]:
    """
    Pick the newest labels and predictions annotation of one image.

    :param annotations: Annotations of a single item, newest first.
    :return: ``(labels, predictions)``; either may be ``None``.
    """
    relevant = [a for a in annotations if is_superpixel_annotation(a)]
    predictions = next((a for a in relevant if a.is_predictions), None)
    labels = next((a for a in relevant if not a.is_predictions), None)
    if predictions is None and labels is None and annotations:
        logging.debug("Item %s has no superpixel annotations", annotations[0].item_id)
    return labels, predictions
