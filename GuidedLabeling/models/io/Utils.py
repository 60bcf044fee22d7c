from __future__ import annotations

import os
from hashlib import blake2b
from pathlib import Path

__all__ = [
    "hash_path",
    "folder_id",
]


def hash_path(path: str, *, length: int = 8) -> str:  # noqa: D401 – imperative mood
    """Return a *case‑sensitive* Blake‑2 hash of *path*."""
    return blake2b(path.encode("utf8"), digest_size=length).hexdigest()


def folder_id(folder: Path | str) -> str:
    """Return a 16‑char id unique to a labeling folder.

    Jobs launched on the folder carry this id in their container arguments,
    which is how previous runs are found again.
    """
    norm = os.path.normcase(str(Path(folder).expanduser().resolve()))
    return hash_path(norm, length=8)
