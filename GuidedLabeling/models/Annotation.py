from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional

from GuidedLabeling.configuration.configuration import PREDICTIONS_TAG
from GuidedLabeling.exceptions import MissingReferenceError


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Category:
    # label is the only identity; colours are display metadata
    label: str
    fill_color: str = "rgba(0, 0, 0, 0)"
    stroke_color: str = "rgba(0, 0, 0, 1)"

    def to_dict(self) -> dict:
        return {"label": self.label, "fillColor": self.fill_color, "strokeColor": self.stroke_color}

    @staticmethod
    def from_dict(data: dict) -> "Category":
        return Category(
            label=str(data["label"]),
            fill_color=data.get("fillColor") or "rgba(0, 0, 0, 0)",
            stroke_color=data.get("strokeColor") or "rgba(0, 0, 0, 1)",
        )


@dataclass
class PixelmapElement:
    # --- required ------------------------------------------------------------------
    values: List[int]
    categories: List[Category]
    boundaries: bool = True
    transform: Dict[str, list] = field(default_factory=lambda: {"matrix": [[1.0, 0.0], [0.0, 1.0]]})
    superpixel_image_id: Optional[str] = None
    user: Dict[str, list] = field(default_factory=dict)

    # ---------- derived ------------------------------------------------------------
    @property
    def scale(self) -> float:
        matrix = self.transform.get("matrix") if self.transform else None
        if not matrix:
            return 1.0
        return float(matrix[0][0])

    @property
    def certainty(self) -> List[float]:
        return list(self.user.get("certainty", []))

    @property
    def confidence(self) -> List[float]:
        return list(self.user.get("confidence", []))

    @property
    def bbox(self) -> List[float]:
        return list(self.user.get("bbox", []))

    def category_at(self, index: int) -> Category:
        """Return the local category referenced by region *index*."""
        value = self.values[index]
        if value < 0 or value >= len(self.categories):
            raise MissingReferenceError(value)
        return self.categories[value]

    # ---------- serialisation ------------------------------------------------------
    def to_dict(self) -> dict:
        return {
            "type": "pixelmap",
            "values": [int(v) for v in self.values],
            "categories": [c.to_dict() for c in self.categories],
            "boundaries": bool(self.boundaries),
            "transform": self.transform,
            "girderId": self.superpixel_image_id,
            "user": self.user,
        }

    @staticmethod
    def from_dict(data: dict) -> "PixelmapElement":
        return PixelmapElement(
            values=[int(v) for v in data.get("values", [])],
            categories=[Category.from_dict(c) for c in data.get("categories", [])],
            boundaries=bool(data.get("boundaries", True)),
            transform=data.get("transform") or {"matrix": [[1.0, 0.0], [0.0, 1.0]]},
            superpixel_image_id=data.get("girderId"),
            user=dict(data.get("user") or {}),
        )


@dataclass
class SuperpixelAnnotation:
    """One annotation record of the store; ``element`` is its pixelmap."""

    id: str
    item_id: str
    name: str
    element: PixelmapElement
    created: str = field(default_factory=_now)

    @property
    def is_predictions(self) -> bool:
        return PREDICTIONS_TAG in self.name

    def with_element(self, element: PixelmapElement) -> "SuperpixelAnnotation":
        return replace(self, element=element)

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "itemId": self.item_id,
            "created": self.created,
            "annotation": {"name": self.name, "elements": [self.element.to_dict()]},
        }

    @staticmethod
    def from_dict(data: dict) -> "SuperpixelAnnotation":
        body = data.get("annotation", {})
        elements = body.get("elements") or [{}]
        return SuperpixelAnnotation(
            id=str(data["_id"]),
            item_id=str(data.get("itemId", "")),
            name=str(body.get("name", "")),
            element=PixelmapElement.from_dict(elements[0]),
            created=str(data.get("created") or _now()),
        )


@dataclass
class ImageAnnotations:
    """The label and prediction sources of one image (either may be missing)."""

    labels: Optional[SuperpixelAnnotation] = None
    predictions: Optional[SuperpixelAnnotation] = None

    def is_empty(self) -> bool:
        return self.labels is None and self.predictions is None

    def sources(self):
        """Yield ``(role, annotation)`` for every source present."""
        if self.labels is not None:
            yield "labels", self.labels
        if self.predictions is not None:
            yield "predictions", self.predictions
