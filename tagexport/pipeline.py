"""Segment export orchestration

Responsibilities:
  - Validate and order the requested segments before touching any backend.
  - Pick the execution backend from the input reference.
  - Sequence input loading, probing, gap creation, per-segment cuts,
    concatenation and output retrieval, reporting (phase, ratio) progress.
  - Delete every temp file the export created, on success and on failure.

Each backend call is awaited before the next one starts, so clip N+1 is
never cut before clip N is finished and the concat order always equals the
sorted segment order.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Sequence

from .backends import FFMPEG, EmbeddedBackend, ExecutionBackend, NativeBackend, RuntimeProvider, default_provider
from .backends.base import check_name
from .command_builders import build_copy_cut_command, build_cut_command, build_gap_command
from .command_jobs import CutJob, GapJob, Strategy
from .concatenation import concat
from .config import DEFAULT_OUTPUT_NAME, FONT_NAME, FONT_PATH, MIN_SEGMENT_DURATION
from .exceptions import ExportError, NoSegmentsError, TagExportError
from .ffprobe import probe_video
from .filters import build_clip_filter, build_gap_filter
from .models import (
    ClipDescriptor, EmbeddedInput, ExportRequest, ExportResult, NativeInput, Segment, VideoProbeResult
)
from .utils import unique_suffix

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]


class ExportState(str, Enum):
    """Export phases, in the order they are reported.

    The backend is acquired (``load``) and the input written
    (``write-input``) before ``probe``: the embedded runtime can only probe
    files inside its own sandbox, so probing cannot come first. Segment
    validation happens in ``init`` before any of these.
    """

    INIT = "init"
    LOAD = "load"
    WRITE_INPUT = "write-input"
    PROBE = "probe"
    CREATE_GAP = "create-gap"
    CUT = "cut"
    CONCAT = "concat"
    READ_OUTPUT = "read-output"
    CLEANUP = "cleanup"
    DONE = "done"
    ERROR = "error"


def valid_segments(segments: Sequence[Segment],
                   min_duration: float = MIN_SEGMENT_DURATION) -> List[Segment]:
    """Clamp times to >= 0, drop segments of min_duration or less, sort by start"""
    clamped = [segment.clamped() for segment in segments]
    kept = [s for s in clamped if s.end - s.start > min_duration]
    return sorted(kept, key=lambda s: s.start)


def normalize_output_name(name: str) -> str:
    name = Path(name or DEFAULT_OUTPUT_NAME).name
    if not name.endswith(".mp4"):
        name = f"{name}.mp4"
    return check_name(name)


def clip_name(index: int) -> str:
    return f"clip_{index}.mp4"


def gap_name(index: int) -> str:
    return f"gap_{index}.mp4"


class SegmentExporter:
    """Runs one export request end to end.

    ``state`` follows the export through :class:`ExportState`; ``created``
    lists the temp files made so far, which cleanup deletes.
    """

    def __init__(self, request: ExportRequest, on_progress: Optional[ProgressCallback] = None,
                 runtime_provider: Optional[RuntimeProvider] = None,
                 native_factory: Callable[[], ExecutionBackend] = NativeBackend):
        self.request = request
        self.on_progress = on_progress
        self.runtime_provider = runtime_provider or default_provider
        self.native_factory = native_factory
        self.state = ExportState.INIT
        self.created: List[str] = []
        self.clips: List[ClipDescriptor] = []
        self.gaps: List[str] = []
        self.probe: Optional[VideoProbeResult] = None
        self._progress_enabled = True

    def _progress(self, phase: ExportState, ratio: float) -> None:
        if self.on_progress is None or not self._progress_enabled:
            return
        try:
            self.on_progress(phase.value, min(1.0, max(0.0, ratio)))
        except Exception as e:
            logger.warning("Progress callback failed, disabling progress reports: %s", e)
            self._progress_enabled = False

    def _enter(self, state: ExportState) -> None:
        self.state = state
        logger.debug("Export state: %s", state.value)
        self._progress(state, 0.0)

    def _track(self, name: str) -> str:
        if name not in self.created:
            self.created.append(name)
        return name

    async def run(self) -> ExportResult:
        """
        Export the request's segments into one MP4.

        Raises:
            NoSegmentsError: If no segment survives validation
            TagExportError: For any fatal failure, after best-effort cleanup
        """
        self.state = ExportState.INIT
        segments = valid_segments(self.request.segments)
        if not segments:
            self.state = ExportState.ERROR
            logger.error("No valid segments after filtering (%d requested)", len(self.request.segments))
            raise NoSegmentsError()
        logger.info("Exporting %d of %d segments", len(segments), len(self.request.segments))

        try:
            async with self._acquire_backend() as backend:
                result = await self._export(backend, segments)
        except TagExportError as e:
            self.state = ExportState.ERROR
            logger.error("Export failed: %s", e)
            raise
        except Exception as e:
            self.state = ExportState.ERROR
            logger.exception("Export failed: %s", e)
            raise ExportError(f"Export failed: {e}", module="pipeline") from e

        self._enter(ExportState.DONE)
        self._progress(ExportState.DONE, 1.0)
        logger.info("Export done: %s (%d bytes)", result.name, result.size)
        return result

    @asynccontextmanager
    async def _acquire_backend(self) -> AsyncIterator[ExecutionBackend]:
        source = self.request.input
        self._enter(ExportState.LOAD)
        if isinstance(source, NativeInput):
            backend = self.native_factory()
            try:
                if isinstance(backend, NativeBackend):
                    backend.binary(FFMPEG)
                self._progress(ExportState.LOAD, 1.0)
                yield backend
            finally:
                await backend.close()
        elif isinstance(source, EmbeddedInput):
            async with self.runtime_provider.acquire() as runtime:
                self._progress(ExportState.LOAD, 1.0)
                yield EmbeddedBackend(runtime)
        else:
            raise TypeError(f"Unsupported input reference: {type(source).__name__}")

    async def _export(self, backend: ExecutionBackend, segments: List[Segment]) -> ExportResult:
        request = self.request
        output_name = normalize_output_name(request.output_name)
        succeeded = False
        try:
            self._enter(ExportState.WRITE_INPUT)
            input_name = await backend.prepare_input(request.input)
            if backend.owns_input:
                self._track(input_name)
            font_name = await self._write_font(backend)
            self._progress(ExportState.WRITE_INPUT, 1.0)

            self._enter(ExportState.PROBE)
            self.probe = await probe_video(backend, input_name)
            self._progress(ExportState.PROBE, 1.0)

            if request.add_gap and len(segments) > 1:
                self._enter(ExportState.CREATE_GAP)
                self.gaps = await self._create_gaps(backend, len(segments) - 1)
                self._progress(ExportState.CREATE_GAP, 1.0)

            self._enter(ExportState.CUT)
            for i, segment in enumerate(segments):
                await self._cut(backend, input_name, i, segment, font_name, len(segments))
                self._progress(ExportState.CUT, (i + 1) / len(segments))

            self._enter(ExportState.CONCAT)
            manifest_name = self._track(f"concat_{unique_suffix()}.txt")
            self._track(output_name)
            await concat(backend, [c.name for c in self.clips], self.gaps,
                         request.add_gap, output_name, manifest_name=manifest_name)
            self._progress(ExportState.CONCAT, 1.0)

            self._enter(ExportState.READ_OUTPUT)
            data = await backend.read_file(output_name)
            self._progress(ExportState.READ_OUTPUT, 1.0)
            succeeded = True
            return ExportResult(data=data, name=output_name)
        finally:
            if succeeded:
                self._enter(ExportState.CLEANUP)
            await backend.safe_delete_all(self.created)
            if succeeded:
                self._progress(ExportState.CLEANUP, 1.0)

    async def _write_font(self, backend: ExecutionBackend) -> Optional[str]:
        if not FONT_PATH:
            return None
        try:
            data = await asyncio.to_thread(Path(FONT_PATH).read_bytes)
            await backend.write_file(FONT_NAME, data)
        except OSError as e:
            logger.warning("Failed to load caption font %s, using the encoder default: %s", FONT_PATH, e)
            return None
        return self._track(FONT_NAME)

    async def _create_gaps(self, backend: ExecutionBackend, count: int) -> List[str]:
        probe = self.probe
        source = build_gap_filter(probe.width, probe.height, probe.sample_rate, fps=probe.fps)
        first = self._track(gap_name(0))
        await backend.safe_delete(first)
        logger.info("Creating %.1fs gap clip at %dx%d, %d Hz",
                    source.duration, probe.width, probe.height, probe.sample_rate)
        await GapJob([Strategy("lavfi", build_gap_command(source, first))],
                     description="Gap clip").execute(backend)

        names = [first]
        if count > 1:
            data = await backend.read_file(first)
            for i in range(1, count):
                name = self._track(gap_name(i))
                await backend.write_file(name, data)
                names.append(name)
        return names

    async def _cut(self, backend: ExecutionBackend, input_name: str, index: int,
                   segment: Segment, font_name: Optional[str], total: int) -> ClipDescriptor:
        label = self.request.label_for(segment)
        clip = ClipDescriptor(
            index=index,
            start=segment.start,
            duration=segment.end - segment.start,
            filter_expr=build_clip_filter(segment, label, self.probe.has_overlay, font_name),
            name=self._track(clip_name(index)),
        )
        await backend.safe_delete(clip.name)
        logger.info("Cutting clip %d/%d %s: start=%.3f dur=%.3f",
                    index + 1, total, clip.name, clip.start, clip.duration)
        logger.debug("Clip filter: %s", clip.filter_expr)

        # Re-encode for captions and reliability; stream copy if that fails
        job = CutJob([
            Strategy("reencode", build_cut_command(input_name, clip.start, clip.duration,
                                                   clip.filter_expr, clip.name)),
            Strategy("copy", build_copy_cut_command(input_name, clip.start, clip.duration, clip.name)),
        ], description=f"Cut of segment {segment.id}")
        outcome = await job.execute(backend)
        if outcome.used_fallback:
            logger.warning("Clip %s was stream-copied without captions", clip.name)
        self.clips.append(clip)
        return clip


async def export_segments(request: ExportRequest, on_progress: Optional[ProgressCallback] = None,
                          runtime_provider: Optional[RuntimeProvider] = None) -> ExportResult:
    """Export ``request`` and return the output bytes"""
    exporter = SegmentExporter(request, on_progress=on_progress, runtime_provider=runtime_provider)
    return await exporter.run()


def export_segments_sync(request: ExportRequest,
                         on_progress: Optional[ProgressCallback] = None) -> ExportResult:
    """Blocking wrapper around :func:`export_segments`"""
    return asyncio.run(export_segments(request, on_progress=on_progress))
