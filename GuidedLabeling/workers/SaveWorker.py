import logging

from PyQt5.QtCore import QRunnable, QObject, pyqtSignal

from GuidedLabeling.models.Annotation import SuperpixelAnnotation


class SaveWorkerSignals(QObject):
    """
    Defines the signals available from the save worker.
    Because QRunnable is not a QObject, we store signals in a separate object.
    """
    save_finished = pyqtSignal(str, bool, str)  # image id, ok, error message


class SaveWorker(QRunnable):
    """
    A QRunnable-based worker that persists one label annotation through the
    annotation store.  Designed to be used with QThreadPool.
    """

    def __init__(self, image_id: str, annotation: SuperpixelAnnotation, store):
        super().__init__()
        self.signals = SaveWorkerSignals()
        self.image_id = image_id
        self.annotation = annotation
        self.store = store

    def run(self):
        """
        Saves the annotation in a background thread (managed by QThreadPool).
        Emits save_finished exactly once, whatever happens.
        """
        try:
            self.store.save(self.annotation)
        except Exception as e:
            logging.error("Saving labels of image %s failed: %s", self.image_id, e)
            self.signals.save_finished.emit(self.image_id, False, str(e))
            return
        logging.debug("Saved labels of image %s", self.image_id)
        self.signals.save_finished.emit(self.image_id, True, "")
