from pathlib import Path

import pytest
import yaml

from GuidedLabeling.configuration.configuration import CONFIG_FILENAME, DEFAULT_ANNOTATION_GROUPS
from GuidedLabeling.exceptions import TransientNetworkFailure
from GuidedLabeling.models.io.ConfigStore import ConfigStore
from GuidedLabeling.models.io.Utils import folder_id


def test_missing_config_gets_default_groups(tmp_path: Path):
    config = ConfigStore(tmp_path).read()
    assert config["annotationGroups"] == DEFAULT_ANNOTATION_GROUPS
    # defaults are copied, not shared
    config["annotationGroups"]["groups"].append({"id": "x"})
    assert len(DEFAULT_ANNOTATION_GROUPS["groups"]) == 1


def test_write_then_read(tmp_path: Path):
    store = ConfigStore(tmp_path)
    config = {
        "annotationGroups": {
            "defaultGroup": "default",
            "groups": [{"id": "default"}, {"id": "tumor", "fillColor": "red", "hotKey": "t"}],
        },
        "other": 1,
    }
    store.write(config)
    assert (tmp_path / CONFIG_FILENAME).exists()
    assert store.read() == config


def test_unparsable_config_is_an_error(tmp_path: Path):
    (tmp_path / CONFIG_FILENAME).write_text("annotationGroups: [unclosed")
    with pytest.raises(TransientNetworkFailure) as info:
        ConfigStore(tmp_path).read()
    assert isinstance(info.value.cause, yaml.YAMLError)
    # the file is left for the user to repair
    assert (tmp_path / CONFIG_FILENAME).read_text() == "annotationGroups: [unclosed"


def test_keys_are_written_in_insertion_order(tmp_path: Path):
    store = ConfigStore(tmp_path)
    store.write({"b": 1, "a": 2, "annotationGroups": {"groups": []}})
    text = (tmp_path / CONFIG_FILENAME).read_text()
    assert text.index("b:") < text.index("a:")
    assert yaml.safe_load(text)["b"] == 1


def test_folder_id_is_stable(tmp_path: Path):
    assert folder_id(tmp_path) == folder_id(str(tmp_path))
    assert len(folder_id(tmp_path)) == 16
    assert folder_id(tmp_path) != folder_id(tmp_path / "other")
