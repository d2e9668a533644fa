"""Source video metadata utilities

This package provides utilities for:
- Running metadata queries through either execution backend
- Parsing prober and encoder output
- Probing a source with per-query fallbacks to defaults
"""

from .exec import (
    MetadataError, parse_fps, parse_frame_rate, parse_geometry, parse_rational,
    parse_sample_rate, parse_stream_geometry, parse_stream_sample_rate, round_fps, run_query
)
from .media import get_frame_rate, get_geometry, get_sample_rate, has_filter, probe_video

__all__ = [
    'MetadataError',
    'run_query',
    'parse_fps',
    'parse_frame_rate',
    'parse_geometry',
    'parse_rational',
    'parse_sample_rate',
    'parse_stream_geometry',
    'parse_stream_sample_rate',
    'round_fps',
    'get_frame_rate',
    'get_geometry',
    'get_sample_rate',
    'has_filter',
    'probe_video',
]
