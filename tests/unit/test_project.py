"""Unit tests for project file loading."""
import json
import pytest
from tagexport.exceptions import InputReadError, ProjectError
from tagexport.models import EmbeddedInput
from tagexport.project import load_project, parse_project

PROJECT = {
    "schemaVersion": 1,
    "mainLabels": [
        {"id": "goal", "name": "Goal", "color": "#ff0000", "hotkey": "g",
         "preRollSec": 2, "postRollSec": 1},
        {"id": "save", "name": "Keeper save", "defaultName": "Save"},
    ],
    "secondaryLabels": [{"id": "left", "name": "Left wing", "hotkey": "l"}],
    "segments": [
        {"id": "s1", "startTimeSec": 12.5, "endTimeSec": 20, "mainLabelId": "goal",
         "secondaryLabelIds": ["left"]},
        {"id": "s2", "startTimeSec": 40, "endTimeSec": 44.25, "name": "Late save"},
    ],
    "settings": {"fps": 25},
}

def test_parse_project():
    """Test that labels, segments and settings are read."""
    project = parse_project(PROJECT)
    assert [label.id for label in project.labels] == ["goal", "save"]
    assert project.labels[0].pre_roll == 2.0
    assert project.labels[1].primary_caption == "Save"
    assert project.labels[1].secondary_caption == "Keeper save"
    assert project.secondary_labels[0].name == "Left wing"
    assert project.segments[0].label_id == "goal"
    assert project.segments[0].secondary_label_ids == ["left"]
    assert project.segments[1].label_id is None
    assert project.segments[1].duration == pytest.approx(4.25)
    assert project.fps == 25.0

def test_parse_project_defaults():
    """Test a project with only the schema version."""
    project = parse_project({"schemaVersion": 1})
    assert project.labels == []
    assert project.segments == []
    assert project.fps == 30.0

@pytest.mark.parametrize("raw", [
    [],
    {"schemaVersion": 2},
    {"schemaVersion": 1, "segments": [{"id": "s1", "startTimeSec": 1}]},
    {"schemaVersion": 1, "segments": [{"id": "s1", "startTimeSec": "soon", "endTimeSec": 2}]},
])
def test_parse_invalid_project(raw):
    """Test that malformed payloads raise ProjectError."""
    with pytest.raises(ProjectError):
        parse_project(raw)

def test_load_project(tmp_path):
    """Test loading a project from disk."""
    path = tmp_path / "match.json"
    path.write_text(json.dumps(PROJECT), encoding="utf-8")
    assert len(load_project(path).segments) == 2

def test_load_project_errors(tmp_path):
    """Test unreadable and invalid JSON files."""
    with pytest.raises(ProjectError, match="Could not read"):
        load_project(tmp_path / "missing.json")
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ProjectError, match="not valid JSON"):
        load_project(path)

def test_embedded_input_from_path(tmp_path):
    """Test reading a video into memory and the unreadable-file error."""
    video = tmp_path / "game.mov"
    video.write_bytes(b"video")
    source = EmbeddedInput.from_path(video)
    assert source.data == b"video"
    assert source.name == "game.mov"
    with pytest.raises(InputReadError, match="Could not read video file"):
        EmbeddedInput.from_path(tmp_path / "missing.mov")
