# workers/AnnotationLoaderWorker.py

import logging
from typing import Dict, List

from PyQt5.QtCore import QRunnable, QObject, pyqtSignal

from GuidedLabeling.models.Annotation import ImageAnnotations
from GuidedLabeling.models.WorkflowStep import select_superpixel_annotations


class WorkerSignals(QObject):
    """
    Defines signals available from the running worker.
    """
    annotations_loaded = pyqtSignal(object, object, object)  # image names, annotations by image, annotation names
    load_failed = pyqtSignal(str)
    progress_updated = pyqtSignal(int)  # Progress as integer [0..100]


class AnnotationLoaderWorker(QRunnable):
    """
    Fetches the annotations of every image in a labeling folder.

    ``annotations_loaded`` is emitted once, after *all* items were fetched, so
    receivers can register categories from every image before remapping any.
    """

    def __init__(self, store):
        """
        :param store: Annotation store with ``list_items()`` and ``fetch(item_id)``.
        """
        super().__init__()
        self.signals = WorkerSignals()
        self.store = store

    def run(self) -> None:
        try:
            image_names = self.store.list_items()
            annotations_by_image: Dict[str, ImageAnnotations] = {}
            names: List[str] = []
            total = max(len(image_names), 1)

            for done, image_id in enumerate(image_names, start=1):
                annotations = self.store.fetch(image_id)
                names.extend(a.name for a in annotations)
                labels, predictions = select_superpixel_annotations(annotations)
                annotations_by_image[image_id] = ImageAnnotations(labels=labels, predictions=predictions)
                self.signals.progress_updated.emit(int(100 * done / total))
        except Exception as e:
            logging.error("Loading annotations failed: %s", e)
            self.signals.load_failed.emit(str(e))
            return

        logging.info("Loaded annotations for %d images", len(annotations_by_image))
        self.signals.annotations_loaded.emit(image_names, annotations_by_image, names)
