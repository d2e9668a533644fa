"""Assembles per-segment clips into the final output."""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .backends.base import ExecutionBackend
from .command_builders import build_concat_command, build_concat_reencode_command
from .command_jobs import ConcatJob, Strategy
from .utils import unique_suffix

logger = logging.getLogger(__name__)

@dataclass
class ConcatOutcome:
    output_name: str
    manifest_name: str
    entries: List[str]
    strategy: str

    @property
    def used_fallback(self) -> bool:
        return self.strategy != "copy"

def plan_playlist(clips: Sequence[str], gaps: Sequence[str], add_gap: bool) -> List[str]:
    """
    Final playback order: clips, with gaps[i] between clip i and clip i+1.

    Raises:
        ValueError: If gaps are enabled and fewer than len(clips) - 1 are given
    """
    clips = list(clips)
    if not add_gap:
        return clips
    needed = max(0, len(clips) - 1)
    if len(gaps) < needed:
        raise ValueError(f"Need {needed} gap clips for {len(clips)} clips, got {len(gaps)}")
    entries: List[str] = []
    for i, clip in enumerate(clips):
        entries.append(clip)
        if i < needed:
            entries.append(gaps[i])
    return entries

def build_manifest(entries: Sequence[str]) -> str:
    """Concat demuxer list, one ``file '<name>'`` line per entry"""
    lines = []
    for name in entries:
        quoted = name.replace("'", "'\\''")
        lines.append(f"file '{quoted}'")
    return "\n".join(lines)

async def concat(backend: ExecutionBackend, clips: Sequence[str], gaps: Sequence[str],
                 add_gap: bool, output_name: str, manifest_name: str = None) -> ConcatOutcome:
    """
    Concatenate clips (and gaps) into ``output_name``.

    Stream copy is tried first; if it fails the same manifest is
    re-encoded with the clip settings. Each strategy runs once.

    Raises:
        ConcatenationError: If both strategies fail
    """
    entries = plan_playlist(clips, gaps, add_gap)
    if not entries:
        raise ValueError("concat called with no clips")

    manifest_name = manifest_name or f"concat_{unique_suffix()}.txt"
    await backend.safe_delete(manifest_name)
    await backend.safe_delete(output_name)
    logger.info("Writing concat list %s (%d entries)", manifest_name, len(entries))
    await backend.write_file(manifest_name, build_manifest(entries).encode("utf-8"))

    job = ConcatJob([
        Strategy("copy", build_concat_command(manifest_name, output_name)),
        Strategy("reencode", build_concat_reencode_command(manifest_name, output_name)),
    ], description="Concatenation")
    outcome = await job.execute(backend)

    logger.info("Concatenated %d entries into %s (%s)", len(entries), output_name, outcome.name)
    return ConcatOutcome(
        output_name=output_name,
        manifest_name=manifest_name,
        entries=entries,
        strategy=outcome.name,
    )
