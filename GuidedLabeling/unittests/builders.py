"""Small factories shared by the tests."""

from typing import List, Optional, Sequence

from PyQt5.QtCore import QRunnable

from GuidedLabeling.models.Annotation import (
    Category,
    ImageAnnotations,
    PixelmapElement,
    SuperpixelAnnotation,
)

DEFAULT = Category("default", "rgba(0, 0, 0, 0)", "rgba(0, 0, 0, 1)")
TUMOR = Category("tumor", "rgba(255, 0, 0, 0.5)", "rgba(255, 0, 0, 1)")
STROMA = Category("stroma", "rgba(0, 255, 0, 0.5)", "rgba(0, 255, 0, 1)")
NECROSIS = Category("necrosis", "rgba(0, 0, 255, 0.5)", "rgba(0, 0, 255, 1)")


def element(
        values: Sequence[int],
        categories: Sequence[Category],
        certainty: Optional[List[float]] = None,
        scale: float = 1.0,
) -> PixelmapElement:
    user = {}
    if certainty is not None:
        user = {
            "certainty": list(certainty),
            "confidence": [1.0 - c for c in certainty],
            "bbox": [float(v) for i in range(len(certainty)) for v in (i, i, i + 1, i + 1)],
        }
    return PixelmapElement(
        values=list(values),
        categories=list(categories),
        transform={"matrix": [[scale, 0.0], [0.0, scale]]},
        superpixel_image_id="sp-image",
        user=user,
    )


def annotation(item_id: str, name: str, pixelmap: PixelmapElement, *, ann_id: Optional[str] = None,
               created: str = "2024-01-01T00:00:00+00:00") -> SuperpixelAnnotation:
    return SuperpixelAnnotation(
        id=ann_id or f"{item_id}-{name}",
        item_id=item_id,
        name=name,
        element=pixelmap,
        created=created,
    )


def image(item_id: str, labels: Optional[PixelmapElement] = None,
          predictions: Optional[PixelmapElement] = None, epoch: int = 0) -> ImageAnnotations:
    return ImageAnnotations(
        labels=annotation(item_id, f"Superpixel Epoch {epoch}", labels) if labels else None,
        predictions=annotation(item_id, f"Superpixel Epoch {epoch} Predictions", predictions) if predictions else None,
    )


class DummyPool:
    """Collects runnables; tests decide when they run."""

    def __init__(self):
        self.runnables: List[QRunnable] = []

    def start(self, runnable: QRunnable):
        self.runnables.append(runnable)

    def run_next(self):
        self.runnables.pop(0).run()

    def run_all(self):
        while self.runnables:
            self.run_next()


class ImmediatePool:
    """Runs every runnable inside ``start``, on the calling thread."""

    def start(self, runnable: QRunnable):
        runnable.run()
