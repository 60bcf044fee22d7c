import sqlite3

import pytest

from GuidedLabeling.exceptions import JobNotFoundError, TransientNetworkFailure
from GuidedLabeling.models import JobDB
from GuidedLabeling.models.JobDB import JobStatus, JobStore

XMLSPEC = "<executable><title>Superpixel Classification</title></executable>"


def test_add_and_list_jobs(job_db):
    jid1 = job_db.add_job("job1", {"a": 1})
    jid2 = job_db.add_job("job2", {"b": 2})

    jobs = job_db.list_jobs(limit=2)
    assert jobs[0]["id"] == jid2
    assert jobs[1]["id"] == jid1
    assert jobs[0]["status"] is JobStatus.PENDING

    job_db.update_status(jid1, "running")
    job_db.update_status(jid1, JobStatus.SUCCEEDED)
    j1 = job_db.get_job(jid1)
    assert j1["status"] is JobStatus.SUCCEEDED
    assert j1["started_at"] is not None
    assert j1["finished_at"] is not None
    assert j1["kwargs"] == {"a": 1}

    assert job_db.get_job(9999) is None


def test_list_jobs_filters_by_type(job_db):
    job_db.add_job("a")
    jid = job_db.add_job("b")
    assert [j["id"] for j in job_db.list_jobs("b")] == [jid]


def test_register_cli_and_list_images(job_db):
    url = job_db.register_cli("dsarchive/superpixel", "latest", "SuperpixelClassification", XMLSPEC)
    assert url == "dsarchive_superpixel_latest/SuperpixelClassification"
    images = job_db.list_images()
    entry = images["dsarchive/superpixel"]["latest"]["SuperpixelClassification"]
    assert entry == {"xmlspec": XMLSPEC, "url": url}


def test_run_and_rerun_job(job_db):
    url = job_db.register_cli("dsarchive/superpixel", "latest", "SuperpixelClassification", XMLSPEC)
    jid = job_db.run_job(url, {"images": "abc123", "radius": 100})
    job = job_db.get_job(jid)
    assert job["type"] == "dsarchive/superpixel:latest#SuperpixelClassification"
    assert job["kwargs"]["container_args"] == ["--images", "abc123", "--radius", "100"]

    again = job_db.rerun_job(url, jid)
    assert again != jid
    assert job_db.get_job(again)["kwargs"] == job["kwargs"]


def test_run_unknown_job_url(job_db):
    with pytest.raises(JobNotFoundError):
        job_db.run_job("nope/Cli", {})


def test_rerun_missing_job(job_db):
    url = job_db.register_cli("img", "1", "Cli", XMLSPEC)
    with pytest.raises(JobNotFoundError):
        job_db.rerun_job(url, 42)


def test_find_previous_jobs(job_db):
    url = job_db.register_cli("img", "1", "Cli", XMLSPEC)
    failed = job_db.run_job(url, {"images": "folder-a"})
    running = job_db.run_job(url, {"images": "folder-a"})
    other = job_db.run_job(url, {"images": "folder-b"})
    job_db.update_status(failed, JobStatus.FAILED)
    job_db.update_status(running, JobStatus.RUNNING)
    job_db.update_status(other, JobStatus.SUCCEEDED)

    previous = job_db.find_previous_jobs(job_db.list_jobs(), "folder-a")
    assert [j["id"] for j in previous] == [running]


def test_job_store_wraps_sqlite_errors(monkeypatch):
    def boom(*_args):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(JobDB, "list_jobs", boom)
    with pytest.raises(TransientNetworkFailure) as info:
        JobStore().list_jobs()
    assert isinstance(info.value.cause, sqlite3.OperationalError)
