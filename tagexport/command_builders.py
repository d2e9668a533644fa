"""Helper functions for building encoder and prober arguments

Arguments are returned without the program name; the execution backend
decides which binary runs them.
"""

from typing import List

from .config import AUDIO_BITRATE, AUDIO_CODEC, CRF, PIX_FMT, PRESET, VIDEO_CODEC
from .filters import GapSource
from .utils import format_seconds

BASE_ARGS = ["-hide_banner", "-y"]

def _encode_args() -> List[str]:
    return [
        "-c:v", VIDEO_CODEC,
        "-preset", PRESET,
        "-crf", str(CRF),
        "-c:a", AUDIO_CODEC,
        "-b:a", AUDIO_BITRATE,
    ]

def build_cut_command(input_name: str, start: float, duration: float,
                      filter_expr: str, output_name: str) -> List[str]:
    """Re-encode one segment with its filter expression"""
    return BASE_ARGS + [
        "-ss", format_seconds(start),
        "-t", format_seconds(duration),
        "-i", input_name,
        "-vf", filter_expr,
    ] + _encode_args() + [output_name]

def build_copy_cut_command(input_name: str, start: float, duration: float,
                           output_name: str) -> List[str]:
    """Stream-copy cut without filters, the fallback when re-encoding fails"""
    return BASE_ARGS + [
        "-ss", format_seconds(start),
        "-t", format_seconds(duration),
        "-i", input_name,
        "-c", "copy",
        output_name,
    ]

def build_gap_command(source: GapSource, output_name: str) -> List[str]:
    """Encode a black/silent filler clip with the clip settings"""
    return BASE_ARGS + [
        "-f", "lavfi", "-i", source.video,
        "-f", "lavfi", "-i", source.audio,
        "-t", f"{source.duration:g}",
        "-vf", f"format={PIX_FMT}",
    ] + _encode_args() + ["-shortest", output_name]

def build_concat_command(manifest_name: str, output_name: str) -> List[str]:
    """Concatenate the manifest entries by stream copy"""
    return BASE_ARGS + [
        "-f", "concat",
        "-safe", "0",
        "-i", manifest_name,
        "-c", "copy",
        output_name,
    ]

def build_concat_reencode_command(manifest_name: str, output_name: str) -> List[str]:
    """Concatenate the manifest entries, re-encoding like individual clips"""
    return BASE_ARGS + [
        "-f", "concat",
        "-safe", "0",
        "-i", manifest_name,
        "-vf", f"format={PIX_FMT}",
    ] + _encode_args() + [output_name]

def build_geometry_probe_command(input_name: str) -> List[str]:
    """Prober query printing ``WxH`` for video stream 0"""
    return [
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=width,height",
        "-of", "csv=s=x:p=0",
        input_name,
    ]

def build_sample_rate_probe_command(input_name: str) -> List[str]:
    """Prober query printing the sample rate of audio stream 0"""
    return [
        "-v", "error",
        "-select_streams", "a:0",
        "-show_entries", "stream=sample_rate",
        "-of", "default=noprint_wrappers=1:nokey=1",
        input_name,
    ]

def build_frame_rate_probe_command(input_name: str) -> List[str]:
    """Prober query printing avg_frame_rate and r_frame_rate as JSON"""
    return [
        "-v", "error",
        "-select_streams", "v:0",
        "-show_entries", "stream=avg_frame_rate,r_frame_rate",
        "-of", "json",
        input_name,
    ]

def build_filters_list_command() -> List[str]:
    """Encoder query listing every available filter"""
    return ["-hide_banner", "-filters"]

def build_stream_info_command(input_name: str) -> List[str]:
    """Encoder invocation that only prints the input's stream summary"""
    return ["-hide_banner", "-i", input_name]
