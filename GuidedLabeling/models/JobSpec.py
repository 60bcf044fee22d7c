"""
Helpers around the job definition (a Slicer CLI XML spec) of the superpixel
classification job.

* ``find_job_spec``    locate the CLI of a job type among registered images
* ``parse_slicer_xml`` turn the XML spec into a panels/groups/parameters dict
* ``flatten_parse``    flatten that dict to ``{"parameters": {id: param}}``
* ``certainty_choices`` read the certainty metrics offered by the job
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional, Tuple

from GuidedLabeling.exceptions import IncompleteConfigurationError, JobNotFoundError

logger = logging.getLogger(__name__)

_PARAMETER_META = {"label", "description"}


def split_job_type(job_type: str) -> Tuple[str, str, str]:
    """``"repo/image:version#Cli"`` → ``("repo/image", "version", "Cli")``."""
    image_and_version, _, cli = job_type.partition("#")
    image, _, version = image_and_version.partition(":")
    return image, version or "latest", cli


def find_job_spec(images: Dict[str, Dict[str, Dict[str, Any]]], job_type: str) -> Dict[str, Any]:
    """
    Return the registry entry of *job_type*.

    :param images: ``image → version → cli → {"xmlspec": ...}`` as listed by the job store.
    :raises JobNotFoundError: image, version or CLI is not registered.
    """
    image, version, cli = split_job_type(job_type)
    job_info = ((images.get(image) or {}).get(version) or {}).get(cli)
    if not job_info:
        raise JobNotFoundError(f"job definition {image}:{version}#{cli}")
    return job_info


def _parameter_from_xml(node: ET.Element) -> Dict[str, Any]:
    param: Dict[str, Any] = {"type": node.tag, "slicerType": node.tag}
    for child in node:
        text = (child.text or "").strip()
        if child.tag == "name":
            param["id"] = text
        elif child.tag == "label":
            param["title"] = text
        elif child.tag == "default":
            param["value"] = text
        elif child.tag == "element":
            param.setdefault("values", []).append(text)
        else:
            param[child.tag] = text
    return param


def parse_slicer_xml(xml_text: str) -> Dict[str, Any]:
    """Parse a Slicer CLI XML spec into ``{title, description, panels}``."""
    root = ET.fromstring(xml_text)
    gui: Dict[str, Any] = {"panels": []}
    for child in root:
        if child.tag != "parameters":
            gui[child.tag] = (child.text or "").strip()
            continue
        group: Dict[str, Any] = {"parameters": []}
        for node in child:
            if node.tag in _PARAMETER_META:
                group[node.tag] = (node.text or "").strip()
            else:
                group["parameters"].append(_parameter_from_xml(node))
        gui["panels"].append({"advanced": child.get("advanced") == "true", "groups": [group]})
    return gui


def flatten_parse(gui: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten panels and groups so parameters can be looked up by id."""
    result: Dict[str, Any] = {key: value for key, value in gui.items() if key != "panels"}
    result["parameters"] = {}
    for panel_index, panel in enumerate(gui.get("panels", [])):
        for group_index, group in enumerate(panel.get("groups", [])):
            for parameter in group.get("parameters", []):
                param = dict(parameter)
                param["group"] = {"panelIndex": panel_index, "groupIndex": group_index}
                result["parameters"][param["id"]] = param
    return result


def certainty_choices(flattened: Dict[str, Any]) -> List[str]:
    """Return the certainty metrics of a flattened spec.

    :raises IncompleteConfigurationError: The spec defines no certainty values.
    """
    certainty = flattened.get("parameters", {}).get("certainty") or {}
    values = certainty.get("values") or []
    if not values:
        raise IncompleteConfigurationError("certainty")
    return list(values)


def certainty_metrics_from_xml(xml_text: str) -> Optional[List[str]]:
    """Certainty metrics offered by a job, or ``None`` if it offers none."""
    try:
        return certainty_choices(flatten_parse(parse_slicer_xml(xml_text)))
    except IncompleteConfigurationError as e:
        logger.info("%s; no certainty metric available", e)
        return None
