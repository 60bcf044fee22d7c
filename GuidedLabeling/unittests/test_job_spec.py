import pytest

from GuidedLabeling.exceptions import IncompleteConfigurationError, JobNotFoundError
from GuidedLabeling.models.JobSpec import (
    certainty_choices,
    certainty_metrics_from_xml,
    find_job_spec,
    flatten_parse,
    parse_slicer_xml,
    split_job_type,
)

XML = """<?xml version="1.0" encoding="UTF-8"?>
<executable>
  <title>SuperpixelClassification</title>
  <description>Train and predict superpixels</description>
  <parameters>
    <label>IO</label>
    <description>Input and output</description>
    <directory>
      <name>images</name>
      <label>Image Directory</label>
    </directory>
  </parameters>
  <parameters advanced="true">
    <label>Active learning</label>
    <string-enumeration>
      <name>certainty</name>
      <label>Certainty metric</label>
      <default>confidence</default>
      <element>confidence</element>
      <element>margin</element>
      <element>entropy</element>
    </string-enumeration>
  </parameters>
</executable>
"""

NO_CERTAINTY_XML = """<executable>
  <title>Other</title>
  <parameters><label>IO</label><integer><name>radius</name><default>100</default></integer></parameters>
</executable>
"""


def test_split_job_type():
    assert split_job_type("dsarchive/superpixel:latest#SuperpixelClassification") == (
        "dsarchive/superpixel", "latest", "SuperpixelClassification",
    )
    assert split_job_type("img#Cli") == ("img", "latest", "Cli")


def test_find_job_spec():
    images = {"dsarchive/superpixel": {"latest": {"SuperpixelClassification": {"xmlspec": XML}}}}
    spec = find_job_spec(images, "dsarchive/superpixel:latest#SuperpixelClassification")
    assert spec["xmlspec"] == XML
    with pytest.raises(JobNotFoundError):
        find_job_spec(images, "dsarchive/superpixel:v2#SuperpixelClassification")
    with pytest.raises(JobNotFoundError):
        find_job_spec({}, "dsarchive/superpixel:latest#SuperpixelClassification")


def test_parse_slicer_xml():
    gui = parse_slicer_xml(XML)
    assert gui["title"] == "SuperpixelClassification"
    assert len(gui["panels"]) == 2
    assert gui["panels"][1]["advanced"] is True
    group = gui["panels"][0]["groups"][0]
    assert group["label"] == "IO"
    assert group["parameters"][0]["id"] == "images"
    assert group["parameters"][0]["slicerType"] == "directory"


def test_flatten_parse():
    flat = flatten_parse(parse_slicer_xml(XML))
    certainty = flat["parameters"]["certainty"]
    assert certainty["value"] == "confidence"
    assert certainty["group"] == {"panelIndex": 1, "groupIndex": 0}
    assert "panels" not in flat
    assert flat["title"] == "SuperpixelClassification"


def test_certainty_choices():
    assert certainty_choices(flatten_parse(parse_slicer_xml(XML))) == ["confidence", "margin", "entropy"]
    with pytest.raises(IncompleteConfigurationError):
        certainty_choices(flatten_parse(parse_slicer_xml(NO_CERTAINTY_XML)))


def test_certainty_metrics_from_xml_tolerates_missing_metric():
    assert certainty_metrics_from_xml(XML) == ["confidence", "margin", "entropy"]
    assert certainty_metrics_from_xml(NO_CERTAINTY_XML) is None
