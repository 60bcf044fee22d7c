"""
CertaintyRanker.py
------------------
Stateless utilities that turn the predictions of every image into one list of
superpixel records ordered by model certainty, lowest first.  The least
certain superpixels are the most informative ones to show a reviewer next.

The whole list is rebuilt on every call; there is no incremental update.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from GuidedLabeling.models.Annotation import ImageAnnotations, PixelmapElement


class Agreement(str, enum.Enum):
    YES = "Yes"
    NO = "No"
    UNSET = "Unset"


@dataclass(frozen=True)
class SuperpixelRecord:
    image_id: str
    index: int
    certainty: float
    confidence: Optional[float]
    prediction: int
    selected_category: Optional[int]  # None until a reviewer picks a label
    agreement: Agreement
    bbox: Tuple[float, ...]
    scale: float
    superpixel_image_id: Optional[str] = None
    boundaries: bool = True


# ---------------------------------------------------------------------
#  Agreement
# ---------------------------------------------------------------------

def agree_choice(
        index: int,
        prediction: PixelmapElement,
        labels: PixelmapElement,
        default_label: str,
) -> Agreement:
    """
    Compare the predicted and the selected label of superpixel *index*.

    Returns ``UNSET`` when the selected label is the default category (no
    decision yet), ``YES`` when both labels match and ``NO`` otherwise.
    """
    selected = labels.category_at(index).label
    if selected == default_label:
        return Agreement.UNSET
    predicted = prediction.category_at(index).label
    return Agreement.YES if predicted == selected else Agreement.NO


# ---------------------------------------------------------------------
#  Ranking
# ---------------------------------------------------------------------

def _records_for_image(
        image_id: str,
        image_annotations: ImageAnnotations,
        default_label: str,
) -> List[SuperpixelRecord]:
    predictions = image_annotations.predictions.element
    labels = image_annotations.labels.element if image_annotations.labels else None
    confidence = predictions.confidence
    bbox = predictions.bbox
    scale = predictions.scale

    records = []
    for index, score in enumerate(predictions.certainty):
        if labels is not None:
            agreement = agree_choice(index, predictions, labels, default_label)
            selected = labels.values[index] if agreement is not Agreement.UNSET else None
        else:
            agreement, selected = Agreement.UNSET, None
        records.append(
            SuperpixelRecord(
                image_id=image_id,
                index=index,
                certainty=float(score),
                confidence=float(confidence[index]) if index < len(confidence) else None,
                prediction=int(predictions.values[index]),
                selected_category=selected,
                agreement=agreement,
                bbox=tuple(bbox[index * 4:index * 4 + 4]),
                scale=scale,
                superpixel_image_id=predictions.superpixel_image_id,
                boundaries=predictions.boundaries,
            )
        )
    return records


def rank_superpixels(
        annotations_by_image: Dict[str, ImageAnnotations],
        default_label: str,
) -> List[SuperpixelRecord]:
    """Return every predicted superpixel across images sorted by certainty.

    Images without a predictions source (e.g. newly added images) contribute
    nothing.  Ties keep enumeration order: images in mapping order, regions
    in index order.
    """
    records: List[SuperpixelRecord] = []
    for image_id, image_annotations in annotations_by_image.items():
        if image_annotations.predictions is None:
            continue
        records.extend(_records_for_image(image_id, image_annotations, default_label))

    if not records:
        return []
    certainty = np.fromiter((r.certainty for r in records), dtype=np.float64, count=len(records))
    order = np.argsort(certainty, kind="stable")
    return [records[i] for i in order]


def average_certainty(annotations_by_image: Dict[str, ImageAnnotations]) -> Optional[float]:
    """Mean certainty over the predictions of every image, ``None`` without any."""
    arrays = [
        np.asarray(image_annotations.predictions.element.certainty, dtype=np.float64)
        for image_annotations in annotations_by_image.values()
        if image_annotations.predictions is not None
    ]
    certainty = np.concatenate(arrays) if arrays else np.empty(0)
    if not certainty.size:
        return None
    return float(certainty.mean())
