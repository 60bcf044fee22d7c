#!/usr/bin/env python3
from __future__ import annotations

import logging
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from PyQt5.QtCore import QObject, QThreadPool, pyqtSignal, pyqtSlot

from GuidedLabeling.configuration.configuration import (
    ACTIVE_LEARNING_JOB_TYPE,
    ACTIVE_LEARNING_JOB_URL,
    ANNOTATIONS_FOLDER,
    FEATURES_FOLDER,
    MODELS_FOLDER,
)
from GuidedLabeling.controllers.JobPoller import CancellationToken, JobPoller
from GuidedLabeling.controllers.SaveQueue import SaveCoalescingQueue
from GuidedLabeling.exceptions import GuidedLabelingError, JobNotFoundError, MissingFolderError
from GuidedLabeling.models.Annotation import ImageAnnotations, SuperpixelAnnotation
from GuidedLabeling.models.CategoryRegistry import CategoryRegistry
from GuidedLabeling.models.CertaintyRanker import average_certainty, rank_superpixels
from GuidedLabeling.models.Hotkeys import HotkeyMap, apply_group_hotkeys, groups_from_categories
from GuidedLabeling.models.JobDB import JobStatus, JobStore, find_previous_jobs
from GuidedLabeling.models.JobSpec import certainty_metrics_from_xml, find_job_spec
from GuidedLabeling.models.LabelingSession import LabelingSession
from GuidedLabeling.models.PixelmapRemapper import synchronize_categories
from GuidedLabeling.models.WorkflowStep import WorkflowStage, epoch_from_names, resolve_stage
from GuidedLabeling.models.io.ConfigStore import ConfigStore
from GuidedLabeling.models.io.Repository import AnnotationRepository
from GuidedLabeling.models.io.Utils import folder_id
from GuidedLabeling.workers.AnnotationLoaderWorker import AnnotationLoaderWorker


class WorkflowController(QObject):
    """Top‑level coordinator of the guided labeling workflow for one folder.

    Drives the phases config → job check → annotation loading → category
    synchronisation → ranking, and exposes the job launching and label saving
    operations used by the labeling views.  All state lives in one
    :class:`LabelingSession` that is only replaced once a phase succeeded.
    """

    stage_ready = pyqtSignal(int)
    superpixels_ranked = pyqtSignal(list)
    busy_changed = pyqtSignal(bool)
    error = pyqtSignal(str)

    def __init__(
            self,
            folder: Path | str,
            *,
            store: Optional[AnnotationRepository] = None,
            config_store: Optional[ConfigStore] = None,
            job_store: Optional[JobStore] = None,
            pool: Optional[QThreadPool] = None,
            poll_interval_ms: Optional[int] = None,
            job_url: str = ACTIVE_LEARNING_JOB_URL,
            job_type: str = ACTIVE_LEARNING_JOB_TYPE,
    ):
        super().__init__()
        folder = Path(folder).expanduser()
        self.store = store or AnnotationRepository(folder)
        self.config_store = config_store or ConfigStore(folder)
        self.job_store = job_store or JobStore()
        self.job_url = job_url
        self.job_type = job_type
        self._pool = pool or QThreadPool.globalInstance()

        self.session = LabelingSession(
            folder=folder,
            folder_id=folder_id(folder),
            registry=CategoryRegistry.from_annotation_groups(None),
        )

        # ---------- cross-cutting services ------------------------------
        self.save_queue = SaveCoalescingQueue(self.store, self._labels_for, pool=self._pool)
        self.save_queue.save_failed.connect(self._on_save_failed)
        poller_kwargs = {} if poll_interval_ms is None else {"interval_ms": poll_interval_ms}
        self.poller = JobPoller(self.job_store, **poller_kwargs)
        self.poller.busy_changed.connect(self.busy_changed)
        self.poller.poll_failed.connect(self._on_poll_failed)
        self._token = CancellationToken()
        self._loader: Optional[AnnotationLoaderWorker] = None

        logging.info("WorkflowController initialised for %s.", folder)

    # ==================================================================
    #  Setup phases
    # ==================================================================
    def start(self) -> None:
        """Read the folder config, then check for previous jobs."""
        try:
            self.load_config()
            self.check_jobs()
        except GuidedLabelingError as e:
            logging.error("Could not start labeling workflow: %s", e)
            self.error.emit(str(e))

    def load_config(self) -> None:
        """Seed the category registry and hotkeys from the config document."""
        config = self.config_store.read()
        groups_cfg = config["annotationGroups"]
        registry = CategoryRegistry.from_annotation_groups(groups_cfg)
        hotkeys = HotkeyMap()
        apply_group_hotkeys(hotkeys, groups_cfg.get("groups") or [], registry)
        self.session = replace(self.session, config=config, registry=registry, hotkeys=hotkeys)

    def update_config(self) -> None:
        """Write the current categories and hotkeys back to the config document."""
        config = dict(self.session.config)
        groups_cfg = dict(config.get("annotationGroups") or {})
        groups_cfg["groups"] = groups_from_categories(self.session.registry.categories, self.session.hotkeys)
        groups_cfg.setdefault("defaultGroup", self.session.default_category.label)
        config["annotationGroups"] = groups_cfg
        self.config_store.write(config)
        self.session = replace(self.session, config=config)

    def check_jobs(self) -> None:
        """Wait for a still running job of this folder, otherwise load annotations."""
        jobs = self.job_store.list_jobs(self.job_type)
        previous = find_previous_jobs(jobs, self.session.folder_id)
        if previous:
            self.session = replace(self.session, last_run_job_id=previous[0]["id"])

        if not previous or previous[0]["status"] != JobStatus.RUNNING:
            self.load_annotations()
        else:
            self.wait_for_job(previous[0]["id"])

    def load_annotations(self) -> None:
        """Fetch every image's annotations in the background."""
        worker = AnnotationLoaderWorker(self.store)
        worker.signals.annotations_loaded.connect(self._on_annotations_loaded)
        worker.signals.load_failed.connect(self.error)
        self._loader = worker
        self._pool.start(worker)

    @pyqtSlot(object, object, object)
    def _on_annotations_loaded(
            self,
            image_names: Dict[str, str],
            annotations_by_image: Dict[str, ImageAnnotations],
            annotation_names: List[str],
    ) -> None:
        self._loader = None
        epoch = epoch_from_names(annotation_names)
        stage = resolve_stage(epoch)
        try:
            registry, synced = synchronize_categories(annotations_by_image, self.session.registry)
        except GuidedLabelingError as e:
            logging.error("Category synchronisation failed: %s", e)
            self.error.emit(str(e))
            return

        self.session = replace(
            self.session,
            registry=registry,
            image_names=dict(image_names),
            annotations_by_image=synced,
            epoch=epoch,
            stage=stage,
            average_certainty=average_certainty(synced),
            sorted_superpixels=[],
        )
        logging.info("Epoch %d → stage %s", epoch, stage.name)

        if synced is not annotations_by_image:
            self.save_labels(synced.keys())
        if stage is WorkflowStage.GUIDED_LABELING:
            self.rank_superpixels()
        self.start_active_learning()

    def start_active_learning(self) -> None:
        """Announce the stage; the first stage also needs the job's certainty metrics."""
        if self.session.stage is WorkflowStage.SUPERPIXEL_SEGMENTATION:
            try:
                metrics = self.fetch_certainty_metrics()
            except GuidedLabelingError as e:
                logging.error("Cannot prepare superpixel segmentation: %s", e)
                self.error.emit(str(e))
                return
            self.session = replace(self.session, certainty_metrics=metrics)
        self.stage_ready.emit(int(self.session.stage))

    def fetch_certainty_metrics(self) -> Optional[List[str]]:
        """Return the certainty metrics of the job, ``None`` if it defines none.

        :raises JobNotFoundError: the job definition is not registered.
        """
        job_info = find_job_spec(self.job_store.list_images(), self.job_type)
        return certainty_metrics_from_xml(job_info["xmlspec"])

    # ==================================================================
    #  Ranking and labels
    # ==================================================================
    def rank_superpixels(self) -> list:
        records = rank_superpixels(self.session.annotations_by_image, self.session.default_category.label)
        self.session = replace(self.session, sorted_superpixels=records)
        self.superpixels_ranked.emit(records)
        return records

    def _labels_for(self, image_id: str) -> Optional[SuperpixelAnnotation]:
        image_annotations = self.session.annotations_by_image.get(image_id)
        return image_annotations.labels if image_annotations else None

    def save_labels(self, image_ids: Iterable[str]) -> None:
        self.save_queue.enqueue(list(image_ids))

    def label_superpixel(self, image_id: str, index: int, category_index: int) -> None:
        """Record a reviewer decision and queue the image for saving."""
        image_annotations = self.session.annotations_by_image[image_id]
        labels = image_annotations.labels
        if labels is None:
            raise KeyError(f"Image {image_id} has no label annotation")
        if not 0 <= category_index < len(labels.element.categories):
            raise IndexError(f"No category {category_index}")
        values = list(labels.element.values)
        values[index] = category_index
        element = replace(labels.element, values=values)
        annotations = dict(self.session.annotations_by_image)
        annotations[image_id] = replace(image_annotations, labels=labels.with_element(element))
        self.session = replace(self.session, annotations_by_image=annotations)
        self.save_labels([image_id])

    # ==================================================================
    #  Jobs
    # ==================================================================
    def retrain(self, go_to_next_step: bool = False) -> int:
        """Run the last job of this folder again.

        :raises JobNotFoundError: no job was ever run on this folder.
        """
        if self.session.last_run_job_id is None:
            raise JobNotFoundError(f"previous job for folder {self.session.folder}")
        job_id = self.job_store.rerun_job(self.job_url, self.session.last_run_job_id)
        self.wait_for_job(job_id, go_to_next_step)
        return job_id

    def trigger_job(self, params: Dict[str, Any], go_to_next_step: bool = False) -> int:
        job_id = self.job_store.run_job(self.job_url, params)
        self.wait_for_job(job_id, go_to_next_step)
        return job_id

    def generate_initial_superpixels(self, radius: int, magnification: float, certainty_metric: Optional[str]) -> int:
        """Launch the first run of the job: superpixels, features and an initial model."""
        folder = self.session.folder
        child_folders = {}
        for name in (ANNOTATIONS_FOLDER, FEATURES_FOLDER, MODELS_FOLDER):
            if not (folder / name).is_dir():
                raise MissingFolderError(name)
            child_folders[name] = str(folder / name)

        params = {
            "images": self.session.folder_id,
            "annotationDir": child_folders[ANNOTATIONS_FOLDER],
            "features": child_folders[FEATURES_FOLDER],
            "modeldir": child_folders[MODELS_FOLDER],
            "magnification": magnification,
            "radius": radius,
            "labels": "[]",
            "certainty": certainty_metric,
        }
        return self.trigger_job(params, go_to_next_step=True)

    def wait_for_job(self, job_id: int, go_to_next_step: bool = False) -> None:
        self.poller.watch(
            job_id,
            on_success=partial(self._on_job_succeeded, go_to_next_step),
            token=self._token,
        )

    def _on_job_succeeded(self, go_to_next_step: bool, job_id: int) -> None:
        self.session = replace(self.session, last_run_job_id=job_id)
        try:
            if go_to_next_step:
                # a newer job may have been started meanwhile
                self.check_jobs()
            else:
                self.load_annotations()
        except GuidedLabelingError as e:
            self.error.emit(str(e))

    # ==================================================================
    #  Callbacks & teardown
    # ==================================================================
    @pyqtSlot(str, str)
    def _on_save_failed(self, image_id: str, message: str) -> None:
        self.error.emit(f"Saving labels of {self.session.image_names.get(image_id, image_id)} failed: {message}")

    @pyqtSlot(int, str)
    def _on_poll_failed(self, job_id: int, message: str) -> None:
        self.error.emit(f"Lost track of job {job_id}: {message}")

    def teardown(self) -> None:
        """The consuming view is gone; the poller stops on its next tick."""
        self._token.cancel()
        logging.info("WorkflowController torn down.")
