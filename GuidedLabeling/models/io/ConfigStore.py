"""Read and write the ``.histomicsui_config.yaml`` document of a labeling folder."""

import copy
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Dict

import yaml

from GuidedLabeling.configuration.configuration import CONFIG_FILENAME, DEFAULT_ANNOTATION_GROUPS
from GuidedLabeling.exceptions import TransientNetworkFailure


class ConfigStore:

    def __init__(self, folder):
        self.path = Path(folder).expanduser() / CONFIG_FILENAME

    def read(self) -> Dict[str, Any]:
        """Return the config document, with default annotation groups when it has none.

        :raises TransientNetworkFailure: the file cannot be read or is not valid YAML.
        """
        config: Dict[str, Any] = {}
        try:
            with self.path.open() as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logging.info("No %s in %s, using default annotation groups", CONFIG_FILENAME, self.path.parent)
        except yaml.YAMLError as exc:
            logging.error("Could not parse %s: %s", self.path, exc)
            raise TransientNetworkFailure(f"parsing {self.path}", exc) from exc
        except OSError as e:
            raise TransientNetworkFailure(f"reading {self.path}", e) from e

        if not config.get("annotationGroups"):
            config["annotationGroups"] = copy.deepcopy(DEFAULT_ANNOTATION_GROUPS)
        return config

    def write(self, config: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with NamedTemporaryFile("w", dir=self.path.parent, delete=False) as tmp:
                yaml.safe_dump(config, tmp, sort_keys=False)
            os.replace(tmp.name, self.path)
        except OSError as e:
            raise TransientNetworkFailure(f"writing {self.path}", e) from e
        logging.debug("Wrote %s", self.path)
