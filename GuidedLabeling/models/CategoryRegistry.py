"""
CategoryRegistry.py
-------------------
The canonical label → index mapping shared by every pixelmap of a labeling
session.

Indices are assigned in first-seen order and never change afterwards: a label
that received index *i* keeps it for the lifetime of the registry, even when
later sources no longer mention it.  The configured default category is
registered first and therefore always owns index 0.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional

from GuidedLabeling.configuration.configuration import DEFAULT_ANNOTATION_GROUPS
from GuidedLabeling.models.Annotation import Category, PixelmapElement

logger = logging.getLogger(__name__)


class CategoryRegistry:
    """Ordered map of categories (entries list + label lookup)."""

    def __init__(self, default_category: Category):
        self._entries: List[Category] = []
        self._index: Dict[str, int] = {}
        self.register(default_category)

    # ------------------------------------------------------------------
    @classmethod
    def from_annotation_groups(cls, annotation_groups: Optional[dict]) -> "CategoryRegistry":
        """Seed a registry from the ``annotationGroups`` document of a config file.

        The default group is inserted before any other group.  A document
        whose ``defaultGroup`` is not among its groups gets a transparent
        default category with that name.
        """
        groups_cfg = annotation_groups or DEFAULT_ANNOTATION_GROUPS
        default_id = groups_cfg.get("defaultGroup", DEFAULT_ANNOTATION_GROUPS["defaultGroup"])
        groups = groups_cfg.get("groups") or []

        default_group = next((g for g in groups if g.get("id") == default_id), {"id": default_id})
        registry = cls(_category_from_group(default_group))
        for group in groups:
            registry.register(_category_from_group(group))
        logger.debug("Seeded category registry with %d groups", len(registry))
        return registry

    # ------------------------------------------------------------------
    def register(self, category: Category) -> int:
        """Insert *category* if its label is unseen and return its index.

        Re-registering a known label keeps the existing colours.
        """
        index = self._index.get(category.label)
        if index is not None:
            return index
        index = len(self._entries)
        self._entries.append(category)
        self._index[category.label] = index
        return index

    def register_all(self, element: PixelmapElement) -> None:
        for category in element.categories:
            self.register(category)

    def index_of(self, label: str) -> int:
        return self._index[label]

    def get(self, label: str) -> Optional[Category]:
        index = self._index.get(label)
        return None if index is None else self._entries[index]

    # ------------------------------------------------------------------
    @property
    def default_category(self) -> Category:
        return self._entries[0]

    @property
    def categories(self) -> List[Category]:
        return list(self._entries)

    @property
    def labels(self) -> List[str]:
        return [c.label for c in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, label: object) -> bool:
        return label in self._index

    def __iter__(self) -> Iterator[Category]:
        return iter(list(self._entries))

    def copy(self) -> "CategoryRegistry":
        clone = CategoryRegistry(self.default_category)
        for category in self._entries[1:]:
            clone.register(category)
        return clone

    def __repr__(self) -> str:
        return f"CategoryRegistry({self.labels!r})"


def _category_from_group(group: dict) -> Category:
    return Category(
        label=str(group["id"]),
        fill_color=group.get("fillColor") or "rgba(0, 0, 0, 0)",
        stroke_color=group.get("lineColor") or "rgba(0, 0, 0, 1)",
    )


def build_registry(default_category: Category, elements: Iterable[PixelmapElement]) -> CategoryRegistry:
    """Return a registry holding the default category plus every label of *elements*."""
    registry = CategoryRegistry(default_category)
    for element in elements:
        registry.register_all(element)
    return registry
