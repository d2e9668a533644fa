"""Encoder filter expressions for clips, captions and gap fillers"""

from dataclasses import dataclass
from typing import List, Optional

from .config import (
    CAPTION_STYLE, DEFAULT_FPS, FALLBACK_CAPTION, GAP_AUDIO_LAYOUT, GAP_DURATION,
    PIX_FMT, PRIMARY_CAPTION, SECONDARY_CAPTION
)
from .models import MainLabel, Segment


@dataclass
class GapSource:
    """Synthetic black/silent inputs for a gap clip."""

    video: str
    audio: str
    duration: float


def escape_drawtext(text: str) -> str:
    """
    Escape text for a single-quoted drawtext ``text`` option.

    Backslashes are doubled first, then colons escaped, then each single
    quote closes the quoted string, emits an escaped quote and reopens it.
    The order matters: later rules must not re-escape earlier output.
    """
    return text.replace("\\", "\\\\").replace(":", "\\:").replace("'", "'\\\\''")


def _drawtext(text: str, layout: dict, font_name: Optional[str]) -> str:
    parts = []
    if font_name:
        parts.append(f"fontfile={font_name}")
    parts.append(f"text='{escape_drawtext(text)}'")
    parts.append(f"x={layout['x']}:y={layout['y']}:fontsize={layout['fontsize']}")
    parts.append(CAPTION_STYLE)
    return "drawtext=" + ":".join(parts)


def caption_texts(label: Optional[MainLabel]) -> List[str]:
    """Primary caption, plus the secondary one when it differs"""
    if label is None:
        return [FALLBACK_CAPTION]
    texts = [label.primary_caption]
    secondary = label.secondary_caption
    if secondary and secondary != texts[0]:
        texts.append(secondary)
    return texts


def build_clip_filter(segment: Segment, label: Optional[MainLabel], has_overlay: bool,
                      font_name: Optional[str] = None) -> str:
    """Video filter for one clip: pixel format normalization plus captions"""
    filters = [f"format={PIX_FMT}"]
    if has_overlay:
        for text, layout in zip(caption_texts(label), (PRIMARY_CAPTION, SECONDARY_CAPTION)):
            filters.append(_drawtext(text, layout, font_name))
    return ",".join(filters)


def build_gap_filter(width: int, height: int, sample_rate: int,
                     duration: float = GAP_DURATION, fps: Optional[float] = None) -> GapSource:
    """Black video and silent audio sources matching the probed source"""
    rate = fps or DEFAULT_FPS
    return GapSource(
        video=f"color=c=black:s={width}x{height}:r={rate:g}:d={duration:g}",
        audio=f"anullsrc=r={sample_rate}:cl={GAP_AUDIO_LAYOUT}",
        duration=duration,
    )
