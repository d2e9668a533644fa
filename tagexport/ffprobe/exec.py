"""Low-level metadata query execution and parsing

Responsibilities:
- Run a single metadata query through an execution backend
- Parse prober and encoder output into typed values
- Raise MetadataError for anything missing or malformed
"""

import json
import logging
import re
from typing import Optional, Sequence, Tuple

from ..backends.base import ExecutionBackend
from ..config import FPS_MAX, FPS_MIN
from ..exceptions import BackendError, DependencyError, MetadataError

logger = logging.getLogger(__name__)

_VIDEO_STREAM_RE = re.compile(r"Stream #\d+:\d+.*?: Video: .*?\b(\d{2,5})x(\d{2,5})\b")
_AUDIO_STREAM_RE = re.compile(r"Stream #\d+:\d+.*?: Audio: .*?(\d+) Hz")
_FPS_RE = re.compile(r"Stream #\d+:\d+.*?: Video: .*?(\d+(?:\.\d+)?) fps")


async def run_query(backend: ExecutionBackend, args: Sequence[str], tool: str,
                    allow_failure: bool = False) -> str:
    """
    Run one metadata query and return its text output.

    ``allow_failure`` keeps the output of commands that always exit
    non-zero, such as an encoder run without an output file.

    Raises:
        MetadataError: If the query cannot run or exits non-zero
    """
    try:
        result = await backend.run(args, tool=tool)
    except (BackendError, DependencyError) as e:
        raise MetadataError(f"Failed to run {tool}: {e.message}") from e
    if not result.ok and not allow_failure:
        raise MetadataError(f"{tool} exited with status {result.returncode}: {result.stderr.strip()}")
    return result.stdout if result.stdout.strip() else result.stderr


def parse_geometry(output: str) -> Tuple[int, int]:
    """Parse prober ``WxH`` output"""
    value = output.strip().splitlines()[0].strip() if output.strip() else ""
    match = re.fullmatch(r"(\d+)x(\d+)x?", value)
    if not match:
        raise MetadataError(f"Unexpected geometry output: {value!r}", "width,height")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise MetadataError(f"Invalid geometry {width}x{height}", "width,height")
    return width, height


def parse_sample_rate(output: str) -> int:
    """Parse a bare integer sample rate"""
    value = output.strip().splitlines()[0].strip() if output.strip() else ""
    if not value or value.lower() in ["n/a", "nan"]:
        raise MetadataError("No valid value found for sample_rate", "sample_rate")
    try:
        rate = int(value)
    except ValueError as e:
        raise MetadataError(f"Could not convert {value} to a sample rate", "sample_rate") from e
    if rate <= 0:
        raise MetadataError(f"Invalid sample rate {rate}", "sample_rate")
    return rate


def parse_stream_geometry(log: str) -> Tuple[int, int]:
    """Parse ``WxH`` from the first video stream of an encoder input summary"""
    match = _VIDEO_STREAM_RE.search(log)
    if not match:
        raise MetadataError("No video stream found in encoder output", "width,height")
    return int(match.group(1)), int(match.group(2))


def parse_stream_sample_rate(log: str) -> int:
    """Parse ``N Hz`` from the first audio stream of an encoder input summary"""
    match = _AUDIO_STREAM_RE.search(log)
    if not match:
        raise MetadataError("No audio stream found in encoder output", "sample_rate")
    return int(match.group(1))


def parse_rational(value: Optional[str]) -> Optional[float]:
    """Parse ``num/den`` into a positive float, or None"""
    if not value:
        return None
    parts = value.split("/")
    if len(parts) != 2:
        return None
    try:
        num, den = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if den == 0:
        return None
    result = num / den
    if result != result or result <= 0 or result == float("inf"):
        return None
    return result


def round_fps(value: float) -> float:
    # keep 3 decimals so 30000/1001 stays 29.97
    return round(value * 1000) / 1000


def parse_fps(value: Optional[str]) -> Optional[float]:
    """Rational frame rate rounded to 3 decimals; None outside [FPS_MIN, FPS_MAX]"""
    fps = parse_rational(value)
    return _checked_fps(fps)


def _checked_fps(fps: Optional[float]) -> Optional[float]:
    if fps is None or fps < FPS_MIN or fps > FPS_MAX:
        return None
    return round_fps(fps)


def parse_frame_rate(output: str) -> Optional[float]:
    """
    Pick a frame rate from prober JSON with avg_frame_rate/r_frame_rate.

    avg_frame_rate is preferred when it is a positive rational.
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Failed to parse frame rate output: {e}", "avg_frame_rate") from e
    stream = (data.get("streams") or [{}])[0]
    fps = parse_rational(stream.get("avg_frame_rate")) or parse_rational(stream.get("r_frame_rate"))
    return _checked_fps(fps)


def parse_stream_fps(log: str) -> Optional[float]:
    """Frame rate from the ``N fps`` field of an encoder input summary"""
    match = _FPS_RE.search(log)
    if not match:
        return None
    return _checked_fps(float(match.group(1)))
