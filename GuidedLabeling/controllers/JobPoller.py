from __future__ import annotations

"""Timer-driven polling of an externally executed job."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from GuidedLabeling.configuration.configuration import JOB_POLL_INTERVAL_MS
from GuidedLabeling.exceptions import JobNotFoundError
from GuidedLabeling.models.JobDB import JobStatus, JobStore


class CancellationToken:
    """Owned by whoever consumes the poller; ``cancel()`` stops polling on the next tick."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class JobHandle:
    job_id: int
    status: JobStatus
    poll_handle: Optional[QTimer] = None

    @property
    def polling(self) -> bool:
        return self.poll_handle is not None


class JobPoller(QObject):
    """Poll one job at a fixed interval until it succeeds or is cancelled.

    A job observed as failed stays watched: failures are reported through
    ``status_changed`` but are not handled differently from a running job.
    """

    job_succeeded = pyqtSignal(int)
    status_changed = pyqtSignal(int, str)
    poll_failed = pyqtSignal(int, str)
    busy_changed = pyqtSignal(bool)

    def __init__(self, store=None, interval_ms: int = JOB_POLL_INTERVAL_MS) -> None:
        super().__init__()
        self._store = store or JobStore()
        self._interval_ms = interval_ms
        self._handle: Optional[JobHandle] = None
        self._token: Optional[CancellationToken] = None
        self._on_success: Optional[Callable[[int], None]] = None

    # ------------------------------------------------------------------
    @property
    def handle(self) -> Optional[JobHandle]:
        return self._handle

    def watch(
            self,
            job_id: int,
            *,
            status: JobStatus | str = JobStatus.RUNNING,
            on_success: Optional[Callable[[int], None]] = None,
            token: Optional[CancellationToken] = None,
    ) -> JobHandle:
        """Start polling *job_id*; any previously watched job stops being polled.

        A job already terminal at discovery is not polled and ``on_success``
        is not called; the caller proceeds directly.
        """
        self.stop()
        status = JobStatus(status)
        if status.is_terminal:
            logging.info("Job %s already %s; not polling", job_id, status.value)
            self._handle = JobHandle(job_id, status)
            return self._handle

        timer = QTimer(self)
        timer.setInterval(self._interval_ms)
        timer.timeout.connect(self._poll)
        self._handle = JobHandle(job_id, JobStatus.RUNNING, timer)
        self._token = token or CancellationToken()
        self._on_success = on_success
        timer.start()
        self.busy_changed.emit(True)
        logging.info("Waiting for job %s (every %d ms)", job_id, self._interval_ms)
        return self._handle

    def stop(self) -> None:
        """Cancel polling of the current job, without any callback."""
        if self._handle is not None and self._handle.polling:
            logging.debug("Stopped polling job %s", self._handle.job_id)
            self._clear()

    # ------------------------------------------------------------------
    @pyqtSlot()
    def _poll(self) -> None:
        handle = self._handle
        if handle is None or not handle.polling:
            return
        if self._token is not None and self._token.cancelled:
            logging.info("Polling of job %s cancelled", handle.job_id)
            self._clear()
            return

        try:
            job = self._store.get_job(handle.job_id)
            if job is None:
                raise JobNotFoundError(f"job {handle.job_id}")
        except Exception as exc:
            logging.error("Could not poll job %s: %s", handle.job_id, exc)
            self._clear()
            self.poll_failed.emit(handle.job_id, str(exc))
            return

        status = JobStatus(job["status"])
        if status is not handle.status:
            handle.status = status
            self.status_changed.emit(handle.job_id, status.value)
            if status is JobStatus.FAILED:
                logging.warning("Job %s reported failure; still waiting", handle.job_id)

        if status is JobStatus.SUCCEEDED:
            callback = self._on_success
            self._clear()
            logging.info("Job %s succeeded", handle.job_id)
            self.job_succeeded.emit(handle.job_id)
            if callback is not None:
                callback(handle.job_id)

    def _clear(self) -> None:
        handle = self._handle
        if handle.poll_handle is not None:
            handle.poll_handle.stop()
            handle.poll_handle.deleteLater()
            handle.poll_handle = None
        self._token = None
        self._on_success = None
        self.busy_changed.emit(False)
