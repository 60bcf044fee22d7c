from __future__ import annotations

"""models.io.Repository
=======================

**Pure‑Python** annotation store for one labeling folder: a synchronous API
around :pyfunc:`GuidedLabeling.models.io.Persistence.save_annotations` /
``load_annotations``.

Layout
~~~~~~
``<folder>/``                      whole-slide images (the *items*)
``<folder>/Annotations/<item>.ann`` every annotation record of one item

Public interface
----------------
``list_items() -> dict``
    ``item id → file name`` of every large image in the folder.

``fetch(item_id) -> list[SuperpixelAnnotation]``
    Annotation records of one item, newest first.

``save(annotation)``
    Insert or replace one annotation record.

Every I/O failure is re-raised as :class:`TransientNetworkFailure` so callers
handle local and remote stores alike.
"""

import logging
import uuid
from pathlib import Path
from typing import Dict, List

from GuidedLabeling.configuration.configuration import (
    ANNOTATION_EXT,
    ANNOTATIONS_FOLDER,
    LARGE_IMAGE_SUFFIXES,
    LATEST_SCHEMA_VERSION,
)
from GuidedLabeling.exceptions import TransientNetworkFailure
from GuidedLabeling.models.Annotation import PixelmapElement, SuperpixelAnnotation
from GuidedLabeling.models.io.Persistence import AnnotationDocument, load_annotations, save_annotations

__all__ = ["AnnotationRepository"]


class AnnotationRepository:
    """Synchronous annotation store (no Qt, no threads)."""

    def __init__(self, folder: Path | str, *, level: int = 3):
        self.folder = Path(folder).expanduser()
        self.level = level

    @property
    def annotations_dir(self) -> Path:
        return self.folder / ANNOTATIONS_FOLDER

    def _path(self, item_id: str) -> Path:
        return self.annotations_dir / f"{item_id}{ANNOTATION_EXT}"

    # .................................................................
    #  Public API
    # .................................................................

    def list_items(self) -> Dict[str, str]:
        try:
            files = sorted(p for p in self.folder.iterdir() if p.is_file())
        except OSError as e:
            raise TransientNetworkFailure(f"listing items of {self.folder}", e) from e
        return {p.stem: p.name for p in files if p.suffix.lower() in LARGE_IMAGE_SUFFIXES}

    def fetch(self, item_id: str) -> List[SuperpixelAnnotation]:
        path = self._path(item_id)
        if not path.exists():
            return []
        try:
            document = load_annotations(path)
        except OSError as e:
            raise TransientNetworkFailure(f"fetching annotations of {item_id}", e) from e
        annotations = [SuperpixelAnnotation.from_dict(r) for r in document.records()]
        return sorted(annotations, key=lambda a: a.created, reverse=True)

    def save(self, annotation: SuperpixelAnnotation) -> None:
        records = [a.to_dict() for a in self.fetch(annotation.item_id) if a.id != annotation.id]
        records.append(annotation.to_dict())
        document = AnnotationDocument(
            schema_version=LATEST_SCHEMA_VERSION,
            item_id=annotation.item_id,
            annotations=records,
        )
        try:
            save_annotations(document, self._path(annotation.item_id), level=self.level)
        except OSError as e:
            raise TransientNetworkFailure(f"saving annotation {annotation.id}", e) from e
        logging.debug("Saved annotation %s (%s)", annotation.id, annotation.name)

    def add(self, item_id: str, name: str, element: PixelmapElement) -> SuperpixelAnnotation:
        """Create a new annotation record for *item_id* and store it."""
        annotation = SuperpixelAnnotation(id=uuid.uuid4().hex, item_id=item_id, name=name, element=element)
        self.save(annotation)
        return annotation
