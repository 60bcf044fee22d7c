"""
Annotation files of a labeling folder: one file per image item holding every
annotation record of that item.

File format
-----------
* zstandard-compressed JSON (plain JSON is accepted on read)
* validated against the pydantic models below
* written to a temporary file, then renamed over the target
* older layouts are upgraded through ``MIGRATIONS``, one version step at a time

Public API
~~~~~~~~~~
    save_annotations(document: AnnotationDocument, path: Path, *, level: int = 3) -> None
    load_annotations(path: Path) -> AnnotationDocument
"""

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Callable, Dict, List, Optional

import zstandard as zstd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from GuidedLabeling.configuration.configuration import LATEST_SCHEMA_VERSION

# ---------------------------------------------------------------------------
#  pydantic schema -----------------------------------------------------------
# ---------------------------------------------------------------------------

_ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"


class CategoryJSON(BaseModel):
    label: str
    fillColor: Optional[str] = None
    strokeColor: Optional[str] = None


class PixelmapJSON(BaseModel):
    type: str = "pixelmap"
    values: List[int]
    categories: List[CategoryJSON]
    boundaries: bool = True
    transform: Dict[str, List[List[float]]] = Field(
        default_factory=lambda: {"matrix": [[1.0, 0.0], [0.0, 1.0]]}
    )
    girderId: Optional[str] = None
    user: Dict[str, List[float]] = Field(default_factory=dict)

    @field_validator("user")
    @classmethod
    def check_bbox(cls, v):
        if len(v.get("bbox", [])) % 4:
            raise ValueError("user.bbox must hold four numbers per superpixel")
        return v


class AnnotationBodyJSON(BaseModel):
    name: str
    elements: List[PixelmapJSON]


class AnnotationRecordJSON(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    itemId: str
    created: str
    annotation: AnnotationBodyJSON


class AnnotationDocument(BaseModel):
    schema_version: int = Field(ge=2)
    item_id: str
    annotations: List[AnnotationRecordJSON]

    def to_json(self, *, indent: Optional[int] = None) -> str:
        return self.model_dump_json(indent=indent, by_alias=True)

    def records(self) -> List[dict]:
        """Annotation records as plain dicts (``_id`` keys)."""
        return [a.model_dump(by_alias=True) for a in self.annotations]


# ---------------------------------------------------------------------------
#  Codec helpers -------------------------------------------------------------
# ---------------------------------------------------------------------------

def _encode(data: str, level: int) -> bytes:
    cctx = zstd.ZstdCompressor(level=max(1, min(level, 22)))
    return cctx.compress(data.encode())


def _decode(buffer: bytes) -> str:
    if buffer[:4] == _ZSTD_MAGIC:
        return zstd.ZstdDecompressor().decompress(buffer).decode()
    # uncompressed JSON written by hand or by external tools
    return buffer.decode()


# ---------------------------------------------------------------------------
#  Migration framework -------------------------------------------------------
# ---------------------------------------------------------------------------

MigrationFn = Callable[[dict], dict]


def _v1_to_v2(raw: dict) -> dict:
    """Upgrade schema v1 → v2.

    Changes:
    * v1 files were a bare list of annotation records; wrap them and take the
      item id from the first record.
    """
    records = raw.get("annotations", [])
    raw["item_id"] = raw.get("item_id") or (records[0].get("itemId", "") if records else "")
    raw["annotations"] = records
    raw["schema_version"] = 2
    return raw


MIGRATIONS: Dict[int, MigrationFn] = {
    1: _v1_to_v2,
}


def migrate(raw) -> dict:  # noqa: D401
    """Upgrade *raw* in‑place to LATEST_SCHEMA_VERSION."""
    if isinstance(raw, list):
        raw = {"schema_version": 1, "annotations": raw}
    version = raw.get("schema_version", 1)
    while version < LATEST_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:  # pragma: no cover
            raise RuntimeError(f"Annotation file schema v{version} cannot be upgraded")
        raw = step(raw)
        version = raw["schema_version"]
    return raw


# ---------------------------------------------------------------------------
#  Public I/O ----------------------------------------------------------------
# ---------------------------------------------------------------------------

def save_annotations(document: AnnotationDocument, path: Path, *, level: int = 3) -> None:
    """Serialize *document* to *path* atomically."""
    logging.debug("Saving annotations of item %s to %s (level=%d)", document.item_id, path, level)

    data_bytes = _encode(document.to_json(), level)

    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    with NamedTemporaryFile(dir=path.parent, delete=False) as tmp:
        tmp.write(data_bytes)
        tmp.flush()
        os.fsync(tmp.fileno())
    os.replace(tmp.name, path)  # atomic rename


def load_annotations(path: Path) -> AnnotationDocument:
    """Load *path*, migrate if needed, and return validated instance."""
    buffer = Path(path).read_bytes()
    raw = migrate(json.loads(_decode(buffer)))
    return AnnotationDocument.model_validate(raw)
