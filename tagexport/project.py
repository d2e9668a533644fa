"""Reads the segment and label tables from a saved tagging project

Only the parts the export needs are interpreted; everything else in the
project file is ignored.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import ProjectError
from .models import MainLabel, Segment

logger = logging.getLogger(__name__)

PROJECT_SCHEMA_VERSION = 1


@dataclass
class SecondaryLabel:
    id: str
    name: str
    hotkey: str = ""


@dataclass
class Project:
    labels: List[MainLabel] = field(default_factory=list)
    secondary_labels: List[SecondaryLabel] = field(default_factory=list)
    segments: List[Segment] = field(default_factory=list)
    fps: float = 30.0


def _main_label(raw: Dict[str, Any]) -> MainLabel:
    return MainLabel(
        id=str(raw["id"]),
        name=str(raw.get("name", "")),
        color=str(raw.get("color", "#ffffff")),
        default_name=raw.get("defaultName") or None,
        pre_roll=float(raw.get("preRollSec", 0.0)),
        post_roll=float(raw.get("postRollSec", 0.0)),
        hotkey=str(raw.get("hotkey", "")),
    )


def _segment(raw: Dict[str, Any]) -> Segment:
    return Segment(
        id=str(raw["id"]),
        start=float(raw["startTimeSec"]),
        end=float(raw["endTimeSec"]),
        label_id=raw.get("mainLabelId"),
        secondary_label_ids=[str(i) for i in raw.get("secondaryLabelIds", [])],
        name=raw.get("name"),
    )


def parse_project(raw: Any) -> Project:
    """
    Build a Project from decoded project JSON.

    Raises:
        ProjectError: If the payload is not a supported project
    """
    if not isinstance(raw, dict):
        raise ProjectError("Invalid project file: expected an object", module="project")
    version = raw.get("schemaVersion")
    if version != PROJECT_SCHEMA_VERSION:
        raise ProjectError(f"Unsupported project schemaVersion: {version}", module="project")

    try:
        project = Project(
            labels=[_main_label(item) for item in raw.get("mainLabels", [])],
            secondary_labels=[
                SecondaryLabel(id=str(item["id"]), name=str(item.get("name", "")),
                               hotkey=str(item.get("hotkey", "")))
                for item in raw.get("secondaryLabels", [])
            ],
            segments=[_segment(item) for item in raw.get("segments", [])],
            fps=float((raw.get("settings") or {}).get("fps", 30.0)),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ProjectError(f"Invalid project file: {e}", module="project") from e

    logger.debug("Loaded project with %d labels and %d segments",
                 len(project.labels), len(project.segments))
    return project


def load_project(path: Union[str, Path]) -> Project:
    """Load and validate a project JSON file"""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ProjectError(f"Could not read project file {path}: {e}", module="project") from e
    except json.JSONDecodeError as e:
        raise ProjectError(f"Project file {path} is not valid JSON: {e}", module="project") from e
    return parse_project(raw)
