import os
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtCore import QCoreApplication

from GuidedLabeling.models import JobDB


@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def job_db(tmp_path, monkeypatch):
    monkeypatch.setattr(JobDB, "_DB_PATH", tmp_path / "jobs.db")
    return JobDB
