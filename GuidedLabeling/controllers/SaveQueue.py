from __future__ import annotations

"""Single-flight, coalescing save queue for label annotations."""

import enum
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set

from PyQt5.QtCore import QObject, QThreadPool, pyqtSignal, pyqtSlot

from GuidedLabeling.models.Annotation import SuperpixelAnnotation
from GuidedLabeling.workers.SaveWorker import SaveWorker


class SaveState(enum.Enum):
    IDLE = "idle"
    FLUSHING = "flushing"


class SaveCoalescingQueue(QObject):
    """Batch label saves so that at most one flush is in flight.

    ``enqueue`` only records image ids while a flush runs; when the flush
    completes, whatever accumulated is flushed next.  An id of the running
    flush that is enqueued again is saved once more by the next flush, with
    the annotation current at that time.  Images without a save-able label
    annotation are skipped.
    """

    flush_started = pyqtSignal(list)
    flush_finished = pyqtSignal(list)
    save_failed = pyqtSignal(str, str)

    def __init__(
            self,
            store,
            lookup: Callable[[str], Optional[SuperpixelAnnotation]],
            pool: Optional[QThreadPool] = None,
    ) -> None:
        super().__init__()
        self._store = store
        self._lookup = lookup
        self._pool = pool or QThreadPool.globalInstance()
        self._state = SaveState.IDLE
        self._pending: Dict[str, None] = {}  # insertion-ordered set
        self._in_flight: List[str] = []
        self._outstanding: Set[str] = set()

    # ------------------------------------------------------------------
    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    @property
    def in_flight(self) -> List[str]:
        return list(self._in_flight)

    # ------------------------------------------------------------------
    def enqueue(self, image_ids: Iterable[str]) -> None:
        """Request a save of *image_ids* and start a flush if idle."""
        for image_id in image_ids:
            self._pending[image_id] = None
        if self._state is SaveState.IDLE and self._pending:
            self._flush()

    def _flush(self) -> None:
        batch = list(self._pending)
        self._pending = {}
        self._state = SaveState.FLUSHING
        self._in_flight = batch
        self.flush_started.emit(batch)

        workers = []
        for image_id in batch:
            annotation = self._lookup(image_id)
            if annotation is None:
                # images added without a training run have no labels yet
                logging.debug("Nothing to save for image %s", image_id)
                continue
            worker = SaveWorker(image_id, annotation, self._store)
            worker.signals.save_finished.connect(self._on_saved)
            workers.append(worker)

        logging.debug("Flushing %d of %d requested images", len(workers), len(batch))
        if not workers:
            self._finish_flush()
            return
        # register the whole batch before starting so synchronous pools cannot finish it early
        self._outstanding = {w.image_id for w in workers}
        for worker in workers:
            self._pool.start(worker)

    @pyqtSlot(str, bool, str)
    def _on_saved(self, image_id: str, ok: bool, error: str) -> None:
        if not ok:
            self.save_failed.emit(image_id, error)
        self._outstanding.discard(image_id)
        if not self._outstanding and self._state is SaveState.FLUSHING:
            self._finish_flush()

    def _finish_flush(self) -> None:
        batch, self._in_flight = self._in_flight, []
        self._state = SaveState.IDLE
        self.flush_finished.emit(batch)
        if self._pending:
            self._flush()
