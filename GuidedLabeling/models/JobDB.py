from __future__ import annotations

"""SQLite-backed job registry for the superpixel classification workflow.

Holds the registered job definitions (image, version, CLI and XML spec) and
every launched job with its status.  Whatever actually executes a job reports
progress through :func:`update_status`.
"""

import enum
import json
import sqlite3
from typing import Any, Dict, List, Optional

from GuidedLabeling.configuration.configuration import STATE_DIR
from GuidedLabeling.exceptions import JobNotFoundError, TransientNetworkFailure

_DB_PATH = STATE_DIR / "jobs.db"


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


def cli_url(image: str, version: str, cli: str) -> str:
    """``("dsarchive/superpixel", "latest", "Cli")`` → ``"dsarchive_superpixel_latest/Cli"``."""
    return f"{image.replace('/', '_').replace(':', '_')}_{version}/{cli}"


def _ensure_db() -> None:
    """Create the tables if needed."""
    _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                type TEXT,
                kwargs TEXT,
                status TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                started_at TIMESTAMP,
                finished_at TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS clis (
                url TEXT PRIMARY KEY,
                image TEXT,
                version TEXT,
                cli TEXT,
                xmlspec TEXT
            )
            """
        )
        conn.commit()


def _row_to_job(row) -> Dict[str, Any]:
    return {
        "id": row[0],
        "type": row[1],
        "kwargs": json.loads(row[2]) if row[2] else {},
        "status": JobStatus(row[3]),
        "created_at": row[4],
        "started_at": row[5],
        "finished_at": row[6],
        "updated_at": row[7],
    }


_JOB_COLUMNS = "id, type, kwargs, status, created_at, started_at, finished_at, updated_at"


# ---------------------------------------------------------------------
#  Job definitions
# ---------------------------------------------------------------------

def register_cli(image: str, version: str, cli: str, xmlspec: str) -> str:
    """Register (or replace) a job definition and return its run URL."""
    _ensure_db()
    url = cli_url(image, version, cli)
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            "INSERT OR REPLACE INTO clis (url, image, version, cli, xmlspec) VALUES (?, ?, ?, ?, ?)",
            (url, image, version, cli, xmlspec),
        )
        conn.commit()
    return url


def list_images() -> Dict[str, Dict[str, Dict[str, Any]]]:
    """Return ``image → version → cli → {"xmlspec", "url"}``."""
    _ensure_db()
    images: Dict[str, Dict[str, Dict[str, Any]]] = {}
    with sqlite3.connect(_DB_PATH) as conn:
        for url, image, version, cli, xmlspec in conn.execute(
                "SELECT url, image, version, cli, xmlspec FROM clis"
        ):
            images.setdefault(image, {}).setdefault(version, {})[cli] = {"xmlspec": xmlspec, "url": url}
    return images


def _job_type_for_url(conn: sqlite3.Connection, job_url: str) -> str:
    row = conn.execute("SELECT image, version, cli FROM clis WHERE url = ?", (job_url,)).fetchone()
    if row is None:
        raise JobNotFoundError(f"job definition at {job_url}")
    image, version, cli = row
    return f"{image}:{version}#{cli}"


# ---------------------------------------------------------------------
#  Jobs
# ---------------------------------------------------------------------

def add_job(job_type: str, kwargs: Optional[Dict[str, Any]] = None) -> int:
    """Insert a new pending job and return its ID."""
    _ensure_db()
    with sqlite3.connect(_DB_PATH) as conn:
        cur = conn.execute(
            "INSERT INTO jobs (type, kwargs, status) VALUES (?, ?, ?)",
            (job_type, json.dumps(kwargs or {}), JobStatus.PENDING.value),
        )
        conn.commit()
        return cur.lastrowid


def run_job(job_url: str, params: Dict[str, Any]) -> int:
    """Queue a run of the CLI registered at *job_url* with *params*."""
    _ensure_db()
    with sqlite3.connect(_DB_PATH) as conn:
        job_type = _job_type_for_url(conn, job_url)
    container_args: List[str] = []
    for key, value in params.items():
        container_args += [f"--{key}", str(value)]
    return add_job(job_type, {"params": params, "container_args": container_args})


def rerun_job(job_url: str, job_id: int) -> int:
    """Queue a new job with the same parameters as *job_id*."""
    previous = get_job(job_id)
    if previous is None:
        raise JobNotFoundError(f"job {job_id}")
    _ensure_db()
    with sqlite3.connect(_DB_PATH) as conn:
        job_type = _job_type_for_url(conn, job_url)
    return add_job(job_type, previous["kwargs"])


def update_status(job_id: int, status: JobStatus | str) -> None:
    """Update the status for *job_id* and timestamps."""
    status = JobStatus(status)
    _ensure_db()
    with sqlite3.connect(_DB_PATH) as conn:
        if status is JobStatus.RUNNING:
            conn.execute(
                "UPDATE jobs SET status = ?, started_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (status.value, job_id),
            )
        elif status.is_terminal:
            conn.execute(
                "UPDATE jobs SET status = ?, finished_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (status.value, job_id),
            )
        else:
            conn.execute(
                "UPDATE jobs SET status = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (status.value, job_id),
            )
        conn.commit()


def list_jobs(job_type: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
    """Return jobs, most recently updated first."""
    _ensure_db()
    query = f"SELECT {_JOB_COLUMNS} FROM jobs"
    args: tuple = ()
    if job_type is not None:
        query += " WHERE type = ?"
        args = (job_type,)
    query += " ORDER BY updated_at DESC, id DESC LIMIT ?"
    with sqlite3.connect(_DB_PATH) as conn:
        return [_row_to_job(row) for row in conn.execute(query, args + (limit,)).fetchall()]


def get_job(job_id: int) -> Optional[Dict[str, Any]]:
    """Return a single job record or ``None``."""
    _ensure_db()
    with sqlite3.connect(_DB_PATH) as conn:
        row = conn.execute(f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return _row_to_job(row) if row else None


def find_previous_jobs(jobs: List[Dict[str, Any]], folder_id: str) -> List[Dict[str, Any]]:
    """Keep running or succeeded jobs launched on *folder_id*, newest first.

    *jobs* is expected in the order returned by :func:`list_jobs`.
    """
    return [
        job for job in jobs
        if job["status"] in (JobStatus.RUNNING, JobStatus.SUCCEEDED)
        and folder_id in (job.get("kwargs") or {}).get("container_args", [])
    ]


class JobStore:
    """Object façade over this module for the workflow controller.

    SQLite errors are re-raised as :class:`TransientNetworkFailure`.
    """

    @staticmethod
    def _call(operation: str, fn, *args):
        try:
            return fn(*args)
        except sqlite3.Error as e:
            raise TransientNetworkFailure(operation, e) from e

    def list_jobs(self, job_type: Optional[str] = None, limit: int = 50) -> List[Dict[str, Any]]:
        return self._call("listing jobs", list_jobs, job_type, limit)

    def get_job(self, job_id: int) -> Optional[Dict[str, Any]]:
        return self._call(f"fetching job {job_id}", get_job, job_id)

    def run_job(self, job_url: str, params: Dict[str, Any]) -> int:
        return self._call(f"running {job_url}", run_job, job_url, params)

    def rerun_job(self, job_url: str, job_id: int) -> int:
        return self._call(f"re-running job {job_id}", rerun_job, job_url, job_id)

    def list_images(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        return self._call("listing job images", list_images)
