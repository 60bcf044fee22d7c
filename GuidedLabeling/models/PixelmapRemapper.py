"""
PixelmapRemapper.py
-------------------
Rewrites source-local category indices of superpixel pixelmaps against the
canonical :class:`CategoryRegistry`.

Remapping is two-phase: every labels and predictions source of every image is
registered first, then every source is remapped.  Both phases run on a copy
of the registry and on new element objects, so a failure leaves the caller's
registry and annotations untouched.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from GuidedLabeling.exceptions import MissingReferenceError
from GuidedLabeling.models.Annotation import ImageAnnotations, PixelmapElement
from GuidedLabeling.models.CategoryRegistry import CategoryRegistry

logger = logging.getLogger(__name__)


def remap_element(
        element: PixelmapElement,
        registry: CategoryRegistry,
        *,
        image_id: Optional[str] = None,
) -> PixelmapElement:
    """
    Return a copy of *element* whose values index the canonical categories.

    :param element: Pixelmap with source-local ``values`` and ``categories``.
    :param registry: Registry already holding every label of ``element``.
    :param image_id: Only used to annotate errors.
    :return: New element; ``categories`` is the full canonical list.
    :raises MissingReferenceError: A value has no local category, or a local
        label was never registered.
    """
    lookup = np.empty(len(element.categories), dtype=np.int64)
    for local_index, category in enumerate(element.categories):
        if category.label not in registry:
            raise MissingReferenceError(local_index, image_id=image_id, label=category.label)
        lookup[local_index] = registry.index_of(category.label)

    values = np.asarray(element.values, dtype=np.int64)
    invalid = (values < 0) | (values >= lookup.size)
    if invalid.any():
        raise MissingReferenceError(int(values[invalid][0]), image_id=image_id)

    return PixelmapElement(
        values=lookup[values].tolist() if values.size else [],
        categories=registry.categories,
        boundaries=element.boundaries,
        transform=element.transform,
        superpixel_image_id=element.superpixel_image_id,
        user=element.user,
    )


def synchronize_categories(
        annotations_by_image: Dict[str, ImageAnnotations],
        registry: CategoryRegistry,
) -> Tuple[CategoryRegistry, Dict[str, ImageAnnotations]]:
    """Reconcile the categories of every source with the canonical registry.

    Returns the grown registry and a new ``image id → ImageAnnotations``
    mapping holding remapped sources.  When no image has any source the
    inputs are returned unchanged.
    """
    if all(a.is_empty() for a in annotations_by_image.values()):
        logger.debug("Nothing to synchronize.")
        return registry, annotations_by_image

    synced = registry.copy()

    # pass 1: every label must be known before the first remap
    for image_annotations in annotations_by_image.values():
        for _, annotation in image_annotations.sources():
            synced.register_all(annotation.element)

    # pass 2
    remapped: Dict[str, ImageAnnotations] = {}
    for image_id, image_annotations in annotations_by_image.items():
        result = ImageAnnotations()
        for role, annotation in image_annotations.sources():
            element = remap_element(annotation.element, synced, image_id=image_id)
            setattr(result, role, annotation.with_element(element))
        remapped[image_id] = result

    logger.info(
        "Synchronized %d images onto %d categories (%d new).",
        len(remapped), len(synced), len(synced) - len(registry),
    )
    return synced, remapped
