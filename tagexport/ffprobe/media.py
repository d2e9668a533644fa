"""High-level source video probing

Responsibilities:
- Query geometry, audio sample rate, frame rate and overlay support
- Keep every query independent so one failure cannot abort another
- Degrade each failed query to its documented default with a warning
"""

import logging
from typing import Optional, Tuple

from ..backends.base import FFMPEG, FFPROBE, ExecutionBackend
from ..command_builders import (
    build_filters_list_command, build_frame_rate_probe_command, build_geometry_probe_command,
    build_sample_rate_probe_command, build_stream_info_command
)
from ..config import DEFAULT_HEIGHT, DEFAULT_SAMPLE_RATE, DEFAULT_WIDTH, OVERLAY_FILTER
from ..exceptions import MetadataError
from ..models import VideoProbeResult
from .exec import (
    parse_frame_rate, parse_geometry, parse_sample_rate, parse_stream_fps,
    parse_stream_geometry, parse_stream_sample_rate, run_query
)

logger = logging.getLogger(__name__)

async def get_geometry(backend: ExecutionBackend, input_name: str) -> Tuple[int, int]:
    """Width and height of video stream 0"""
    if backend.supports_prober:
        output = await run_query(backend, build_geometry_probe_command(input_name), FFPROBE)
        return parse_geometry(output)
    log = await run_query(backend, build_stream_info_command(input_name), FFMPEG, allow_failure=True)
    return parse_stream_geometry(log)

async def get_sample_rate(backend: ExecutionBackend, input_name: str) -> int:
    """Sample rate of audio stream 0"""
    if backend.supports_prober:
        output = await run_query(backend, build_sample_rate_probe_command(input_name), FFPROBE)
        return parse_sample_rate(output)
    log = await run_query(backend, build_stream_info_command(input_name), FFMPEG, allow_failure=True)
    return parse_stream_sample_rate(log)

async def get_frame_rate(backend: ExecutionBackend, input_name: str) -> Optional[float]:
    """Frame rate of video stream 0, or None when unknown or implausible"""
    if backend.supports_prober:
        output = await run_query(backend, build_frame_rate_probe_command(input_name), FFPROBE)
        return parse_frame_rate(output)
    log = await run_query(backend, build_stream_info_command(input_name), FFMPEG, allow_failure=True)
    return parse_stream_fps(log)

async def has_filter(backend: ExecutionBackend, filter_name: str = OVERLAY_FILTER) -> bool:
    """Whether the encoder lists ``filter_name`` among its filters"""
    output = await run_query(backend, build_filters_list_command(), FFMPEG)
    return any(
        len(parts) > 1 and parts[1] == filter_name
        for parts in (line.split() for line in output.splitlines())
    )

async def probe_video(backend: ExecutionBackend, input_name: str) -> VideoProbeResult:
    """
    Probe the source for the properties clips and gaps must match.

    Never raises for probe failures: each failed query is logged as a
    warning and its default is used instead.
    """
    result = VideoProbeResult()

    try:
        result.width, result.height = await get_geometry(backend, input_name)
    except MetadataError as e:
        logger.warning("Geometry probe failed, using %dx%d: %s", DEFAULT_WIDTH, DEFAULT_HEIGHT, e)

    try:
        result.sample_rate = await get_sample_rate(backend, input_name)
    except MetadataError as e:
        logger.warning("Audio probe failed, using %d Hz: %s", DEFAULT_SAMPLE_RATE, e)

    try:
        result.fps = await get_frame_rate(backend, input_name)
    except MetadataError as e:
        logger.warning("Frame rate probe failed: %s", e)

    if backend.checks_filters:
        try:
            result.has_overlay = await has_filter(backend, OVERLAY_FILTER)
        except MetadataError as e:
            logger.warning("Filter list query failed, skipping caption overlays: %s", e)
            result.has_overlay = False
        if not result.has_overlay:
            logger.warning("Encoder has no %s filter; clips will be exported without captions",
                           OVERLAY_FILTER)

    logger.info("Probed source: %dx%d, %d Hz, fps=%s, overlay=%s",
                result.width, result.height, result.sample_rate, result.fps, result.has_overlay)
    return result
