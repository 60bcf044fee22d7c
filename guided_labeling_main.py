#!/usr/bin/env python3
"""
Application entry‑point (headless).

    guided_labeling_main.py status FOLDER [--top N]
    guided_labeling_main.py register-cli IMAGE VERSION CLI XMLSPEC
    guided_labeling_main.py job-status JOB_ID STATUS
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from PyQt5.QtCore import QCoreApplication, QThreadPool, QTimer

from GuidedLabeling.controllers.WorkflowController import WorkflowController
from GuidedLabeling.models import JobDB
from GuidedLabeling.models.WorkflowStep import WorkflowStage


# -------------------------------------------------------------------- logging

def setup_logging(level: int = logging.INFO) -> None:  # noqa: D401 – imperative style
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )


# -------------------------------------------------------------------- commands

def run_status(folder: Path, top: int) -> int:
    app = QCoreApplication(sys.argv)
    controller = WorkflowController(folder)
    exit_code = {"value": 0}

    def _on_stage(stage: int):
        session = controller.session
        print(f"epoch: {session.epoch}")
        print(f"stage: {WorkflowStage(stage).name}")
        print(f"categories: {', '.join(session.registry.labels)}")
        if session.average_certainty is not None:
            print(f"average certainty: {session.average_certainty:.4f}")
        if session.certainty_metrics:
            print(f"certainty metrics: {', '.join(session.certainty_metrics)}")
        for record in session.sorted_superpixels[:top]:
            name = session.image_names.get(record.image_id, record.image_id)
            print(f"{record.certainty:.4f}  {name}  #{record.index}  {record.agreement.value}")
        app.quit()

    def _on_error(message: str):
        logging.error(message)
        exit_code["value"] = 1
        app.quit()

    controller.stage_ready.connect(_on_stage)
    controller.error.connect(_on_error)
    QTimer.singleShot(0, controller.start)
    app.exec_()
    controller.teardown()
    QThreadPool.globalInstance().waitForDone()
    return exit_code["value"]


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Superpixel guided labeling workflow")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    status = sub.add_parser("status", help="resolve the workflow stage of a labeling folder")
    status.add_argument("folder", type=Path)
    status.add_argument("--top", type=int, default=10, help="least certain superpixels to list")

    register = sub.add_parser("register-cli", help="register a job definition")
    register.add_argument("image")
    register.add_argument("version")
    register.add_argument("cli")
    register.add_argument("xmlspec", type=Path)

    job_status = sub.add_parser("job-status", help="report the status of a job")
    job_status.add_argument("job_id", type=int)
    job_status.add_argument("status", choices=[s.value for s in JobDB.JobStatus])

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "status":
        return run_status(args.folder, args.top)
    if args.command == "register-cli":
        url = JobDB.register_cli(args.image, args.version, args.cli, args.xmlspec.read_text())
        print(url)
        return 0
    JobDB.update_status(args.job_id, args.status)
    return 0


if __name__ == "__main__":
    sys.exit(main())
