"""Native backend: every command is a fresh encoder/prober OS process

Responsibilities:
- Resolve the ffmpeg/ffprobe binaries from configuration or PATH
- Spawn each command with an augmented PATH in a private working directory
- Stream encoder stderr to the debug log, keeping a tail for errors
"""

import asyncio
import logging
import tempfile
from collections import deque
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..config import (
    EXTRA_SEARCH_PATHS, FFMPEG_BINARY, FFPROBE_BINARY, STDERR_TAIL_LINES, WORKING_ROOT
)
from ..exceptions import BackendError, InputReadError
from ..models import CommandResult, InputReference, NativeInput
from ..utils import augmented_env, remove_tree, resolve_binary
from .base import FFMPEG, FFPROBE, ExecutionBackend, check_name

logger = logging.getLogger(__name__)


class NativeBackend(ExecutionBackend):
    """Encoder invoked as a subprocess; no state is shared between runs."""

    name = "native"
    supports_prober = True
    checks_filters = True

    def __init__(self, work_dir: Optional[Path] = None, ffmpeg: str = FFMPEG_BINARY,
                 ffprobe: str = FFPROBE_BINARY, extra_paths: Sequence[str] = None):
        self.extra_paths = list(EXTRA_SEARCH_PATHS if extra_paths is None else extra_paths)
        self._configured = {FFMPEG: ffmpeg, FFPROBE: ffprobe}
        self._resolved: Dict[str, str] = {}
        self._work_dir = work_dir
        self._owns_work_dir = work_dir is None
        self.env = augmented_env(self.extra_paths)

    @property
    def work_dir(self) -> Path:
        if self._work_dir is None:
            WORKING_ROOT.mkdir(parents=True, exist_ok=True)
            self._work_dir = Path(tempfile.mkdtemp(prefix="export_", dir=WORKING_ROOT))
            logger.debug("Native working directory: %s", self._work_dir)
        return self._work_dir

    @property
    def owns_input(self) -> bool:
        return False

    def binary(self, tool: str) -> str:
        """Resolved path of ``tool``; raises DependencyError if missing"""
        if tool not in self._resolved:
            self._resolved[tool] = resolve_binary(
                tool, self._configured.get(tool, ""), self.extra_paths,
                env_var=f"TAGEXPORT_{tool.upper()}"
            )
        return self._resolved[tool]

    def _path(self, name: str) -> Path:
        return self.work_dir / check_name(name)

    async def write_file(self, name: str, data: bytes) -> None:
        await asyncio.to_thread(self._path(name).write_bytes, data)

    async def read_file(self, name: str) -> bytes:
        return await asyncio.to_thread(self._path(name).read_bytes)

    async def delete_file(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    async def prepare_input(self, source: InputReference) -> str:
        if not isinstance(source, NativeInput):
            raise BackendError("Native backend requires a file path input", module="native")
        path = source.path.expanduser().resolve()
        if not path.is_file():
            raise InputReadError(
                f"Could not load video file for export: {path} does not exist or is not a file",
                module="native"
            )
        try:
            with path.open("rb"):
                pass
        except OSError as e:
            raise InputReadError(f"Could not read video file {path}: {e}", module="native") from e
        return str(path)

    async def run(self, args: Sequence[str], tool: str = FFMPEG) -> CommandResult:
        cmd = [self.binary(tool)] + list(args)
        logger.info("Running command: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.work_dir),
                env=self.env,
            )
        except OSError as e:
            raise BackendError(f"Failed to start {tool}: {e}", module="native") from e

        stderr_tail = deque(maxlen=STDERR_TAIL_LINES)

        async def pump_stderr() -> None:
            while True:
                line = await process.stderr.readline()
                if not line:
                    break
                text = line.decode("utf-8", errors="replace").rstrip()
                stderr_tail.append(text)
                logger.debug("[%s] %s", tool, text)

        stdout, _ = await asyncio.gather(process.stdout.read(), pump_stderr())
        returncode = await process.wait()
        if returncode != 0:
            logger.debug("%s exited with status %d", tool, returncode)
        return CommandResult(
            args=cmd,
            returncode=returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr="\n".join(stderr_tail),
        )

    async def close(self) -> None:
        if self._owns_work_dir and self._work_dir is not None:
            remove_tree(self._work_dir)
            self._work_dir = None
