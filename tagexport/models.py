"""Data types shared across the export pipeline"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from .config import (
    DEFAULT_HEIGHT, DEFAULT_OUTPUT_NAME, DEFAULT_SAMPLE_RATE, DEFAULT_WIDTH,
    FALLBACK_CAPTION, OUTPUT_MEDIA_TYPE
)
from .exceptions import InputReadError


@dataclass
class Segment:
    """A labeled time range of the source video, in seconds."""

    id: str
    start: float
    end: float
    label_id: Optional[str] = None
    secondary_label_ids: List[str] = field(default_factory=list)
    name: Optional[str] = None

    @property
    def duration(self) -> float:
        return self.end - self.start

    def clamped(self) -> "Segment":
        """Copy with both times clamped to >= 0"""
        return dataclasses.replace(self, start=max(0.0, self.start), end=max(0.0, self.end))


@dataclass
class MainLabel:
    """A tag category; its names become the clip captions."""

    id: str
    name: str
    color: str = "#ffffff"
    default_name: Optional[str] = None
    pre_roll: float = 0.0
    post_roll: float = 0.0
    hotkey: str = ""

    @property
    def primary_caption(self) -> str:
        return self.default_name or self.name or FALLBACK_CAPTION

    @property
    def secondary_caption(self) -> Optional[str]:
        if self.default_name and self.name != self.default_name:
            return self.name
        return None


@dataclass
class VideoProbeResult:
    """Source properties the filters and gap clip must match."""

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    sample_rate: int = DEFAULT_SAMPLE_RATE
    has_overlay: bool = True
    fps: Optional[float] = None


@dataclass(frozen=True)
class NativeInput:
    """A video on the local filesystem, encoded by OS processes."""

    path: Path

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))


@dataclass(frozen=True)
class EmbeddedInput:
    """An in-memory video handed to the embedded runtime."""

    data: bytes
    name: str = "input.mp4"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "EmbeddedInput":
        """
        Read a local video into memory.

        Raises:
            InputReadError: If the file is missing or unreadable
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise InputReadError(f"Could not read video file {path}: {e}", module="models") from e
        return cls(data=data, name=path.name)


InputReference = Union[NativeInput, EmbeddedInput]


@dataclass
class ExportRequest:
    """Everything one export invocation needs."""

    input: InputReference
    segments: Sequence[Segment]
    labels: Sequence[MainLabel] = ()
    output_name: str = DEFAULT_OUTPUT_NAME
    add_gap: bool = False

    def __post_init__(self):
        self._labels_by_id: Dict[str, MainLabel] = {label.id: label for label in self.labels}

    def label_for(self, segment: Segment) -> Optional[MainLabel]:
        return self._labels_by_id.get(segment.label_id)


@dataclass
class ClipDescriptor:
    """One segment's cut: source window, filter and temp file name."""

    index: int
    start: float
    duration: float
    filter_expr: str
    name: str


@dataclass
class ExportResult:
    data: bytes
    name: str
    media_type: str = OUTPUT_MEDIA_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class CommandResult:
    """Outcome of one encoder/prober invocation."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class StrategyOutcome:
    """Which strategy of a primary/fallback list succeeded."""

    name: str
    index: int
    result: CommandResult

    @property
    def used_fallback(self) -> bool:
        return self.index > 0
