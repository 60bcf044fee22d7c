"""
Global constants that must be imported by *multiple* sub‑modules.

Keeping them here prevents circular‑import chains like
WorkflowController ↔ JobPoller.
"""

import re
from pathlib import Path

# ------------------------------------------------------------------ job
ACTIVE_LEARNING_JOB_URL = "dsarchive_superpixel_latest/SuperpixelClassification"
ACTIVE_LEARNING_JOB_TYPE = "dsarchive/superpixel:latest#SuperpixelClassification"
JOB_POLL_INTERVAL_MS = 2_000

# ------------------------------------------------------------------ annotations
EPOCH_REGEX = re.compile(r"epoch (\d+)", re.IGNORECASE)
SUPERPIXEL_TAG = "Superpixel"
PREDICTIONS_TAG = "Predictions"

LATEST_SCHEMA_VERSION = 2
ANNOTATION_EXT = ".ann"

# whole-slide formats treated as large images inside a labeling folder
LARGE_IMAGE_SUFFIXES = {".svs", ".tif", ".tiff", ".ndpi", ".mrxs", ".scn", ".vsi", ".png", ".jpg"}

# child folders created for every labeling folder
ANNOTATIONS_FOLDER = "Annotations"
FEATURES_FOLDER = "Features"
MODELS_FOLDER = "Models"

# ------------------------------------------------------------------ config file
CONFIG_FILENAME = ".histomicsui_config.yaml"
DEFAULT_LINE_COLOR = "rgba(0,0,0,1)"

DEFAULT_ANNOTATION_GROUPS = {
    "replaceGroups": True,
    "defaultGroup": "default",
    "groups": [
        {
            "id": "default",
            "fillColor": "rgba(0, 0, 0, 0)",
            "lineColor": "rgba(0, 0, 0, 1)",
            "lineWidth": 2,
        }
    ],
}

# keys bound to the first ten categories, in category order
HOTKEY_ORDER = ["1", "2", "3", "4", "5", "6", "7", "8", "9", "0"]

# ------------------------------------------------------------------ local stores
STATE_DIR = Path.home() / ".guidedlabeling"
