"""Embedded backend: one sandboxed encoder runtime shared by the process

The runtime is the encoder bundled with ``imageio-ffmpeg``, loaded into a
private sandbox directory that serves as its virtual filesystem. Every
command runs on the runtime's single execution thread, so only one command
is ever in flight.

The runtime is created lazily, once per process, by :class:`RuntimeProvider`.
Loading is memoized as a single future: callers arriving while a load is in
progress wait on the same future instead of starting a second load.

Only one export may use the runtime at a time. Derived names such as
``clip_0.mp4`` are shared by every export, so :meth:`RuntimeProvider.acquire`
hands the runtime to one holder at a time and queues the rest.
"""

import asyncio
import logging
import shutil
import subprocess
import tempfile
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, List, Optional, Sequence

import imageio_ffmpeg
import psutil

from ..config import EMBEDDED_MEMORY_RESERVE, WORKING_ROOT
from ..exceptions import BackendError, BackendLoadError, InputReadError
from ..models import CommandResult, EmbeddedInput, InputReference
from ..utils import format_size, unique_suffix
from .base import FFMPEG, ExecutionBackend, check_name

logger = logging.getLogger(__name__)

LoadProgress = Callable[[float], None]

ACQUIRE_POLL_INTERVAL = 0.05


class EmbeddedRuntime:
    """A loaded encoder plus its sandbox filesystem and execution thread."""

    def __init__(self, ffmpeg_exe: str, root: Path, version: str = ""):
        self.ffmpeg_exe = ffmpeg_exe
        self.root = root
        self.version = version
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tagexport-runtime")

    def path(self, name: str) -> Path:
        return self.root / check_name(name)

    def submit(self, fn, *args) -> "asyncio.Future":
        """Schedule ``fn`` on the runtime thread and return an awaitable"""
        return asyncio.wrap_future(self._executor.submit(fn, *args))

    def execute(self, args: Sequence[str]) -> CommandResult:
        cmd = [self.ffmpeg_exe, "-nostdin"] + list(args)
        logger.info("Running embedded command: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, cwd=str(self.root), capture_output=True, text=True,
                                    errors="replace")
        except OSError as e:
            raise BackendError(f"Embedded encoder failed to start: {e}", module="embedded") from e
        if result.stderr:
            logger.debug("[embedded] %s", result.stderr.strip())
        return CommandResult(args=cmd, returncode=result.returncode,
                             stdout=result.stdout, stderr=result.stderr)

    def list_files(self) -> List[str]:
        return sorted(p.name for p in self.root.iterdir())

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
        shutil.rmtree(self.root, ignore_errors=True)


def load_runtime(on_progress: Optional[LoadProgress] = None) -> EmbeddedRuntime:
    """
    Locate the bundled encoder, verify it starts and create the sandbox.

    Raises:
        BackendLoadError: If the encoder cannot be found or does not run
    """
    t0 = time.monotonic()
    if on_progress:
        on_progress(0.0)
    try:
        ffmpeg_exe = imageio_ffmpeg.get_ffmpeg_exe()
        version = imageio_ffmpeg.get_ffmpeg_version()
    except (RuntimeError, OSError) as e:
        raise BackendLoadError(f"Bundled encoder unavailable: {e}", module="embedded") from e

    WORKING_ROOT.mkdir(parents=True, exist_ok=True)
    root = Path(tempfile.mkdtemp(prefix="runtime_", dir=WORKING_ROOT))
    logger.info("Embedded runtime loaded: ffmpeg %s (%s) in %.2fs",
                version, ffmpeg_exe, time.monotonic() - t0)
    logger.debug("Embedded sandbox: %s", root)
    if on_progress:
        on_progress(1.0)
    return EmbeddedRuntime(ffmpeg_exe, root, version)


class RuntimeProvider:
    """Load-once handle to the process-wide embedded runtime."""

    def __init__(self, loader: Callable[[Optional[LoadProgress]], EmbeddedRuntime] = load_runtime):
        self._loader = loader
        self._state_lock = threading.Lock()
        self._use_lock = threading.Lock()
        self._future: Optional[Future] = None

    @property
    def loaded(self) -> bool:
        future = self._future
        return future is not None and future.done() and future.exception() is None

    async def load(self, on_progress: Optional[LoadProgress] = None) -> EmbeddedRuntime:
        """Return the runtime, loading it on first use"""
        with self._state_lock:
            future = self._future
            if future is None:
                future = Future()
                self._future = future
                starter = True
            else:
                starter = False

        if starter:
            threading.Thread(target=self._load_into, args=(future, on_progress),
                             name="tagexport-runtime-load", daemon=True).start()
        else:
            logger.debug("Embedded runtime load already started; waiting on it")
        return await asyncio.wrap_future(future)

    def _load_into(self, future: Future, on_progress: Optional[LoadProgress]) -> None:
        try:
            runtime = self._loader(on_progress)
        except Exception as e:
            logger.error("Embedded runtime failed to load: %s", e)
            with self._state_lock:
                # Forget the failed load so a later export can retry
                if self._future is future:
                    self._future = None
            if not isinstance(e, BackendLoadError):
                e = BackendLoadError(f"Embedded runtime failed to load: {e}", module="embedded")
            future.set_exception(e)
        else:
            future.set_result(runtime)

    @asynccontextmanager
    async def acquire(self, on_progress: Optional[LoadProgress] = None) -> AsyncIterator[EmbeddedRuntime]:
        """Exclusive use of the runtime for the duration of one export"""
        runtime = await self.load(on_progress)
        # Poll from the event loop: a cancelled waiter must never end up
        # owning the lock.
        if not self._use_lock.acquire(blocking=False):
            logger.info("Embedded runtime busy; waiting for the current export to finish")
            while not self._use_lock.acquire(blocking=False):
                await asyncio.sleep(ACQUIRE_POLL_INTERVAL)
        try:
            yield runtime
        finally:
            self._use_lock.release()

    def reset(self) -> None:
        """Drop the loaded runtime and its sandbox"""
        with self._state_lock:
            future, self._future = self._future, None
        if future is not None and future.done() and future.exception() is None:
            future.result().shutdown()


default_provider = RuntimeProvider()


class EmbeddedBackend(ExecutionBackend):
    """Backend view of an acquired :class:`EmbeddedRuntime`."""

    name = "embedded"

    def __init__(self, runtime: EmbeddedRuntime):
        self.runtime = runtime

    async def write_file(self, name: str, data: bytes) -> None:
        await self.runtime.submit(self.runtime.path(name).write_bytes, data)

    async def read_file(self, name: str) -> bytes:
        return await self.runtime.submit(self.runtime.path(name).read_bytes)

    async def delete_file(self, name: str) -> None:
        await self.runtime.submit(self.runtime.path(name).unlink, True)

    async def prepare_input(self, source: InputReference) -> str:
        if not isinstance(source, EmbeddedInput):
            raise BackendError("Embedded backend requires an in-memory input", module="embedded")
        check_memory_headroom(len(source.data))
        suffix = Path(source.name).suffix or ".mp4"
        name = f"input_{unique_suffix()}{suffix}"
        await self.safe_delete(name)
        try:
            await self.write_file(name, source.data)
        except OSError as e:
            raise InputReadError(f"Could not load video into the embedded runtime: {e}",
                                 module="embedded") from e
        return name

    async def run(self, args: Sequence[str], tool: str = FFMPEG) -> CommandResult:
        if tool != FFMPEG:
            raise BackendError(f"Embedded runtime has no {tool}", module="embedded")
        return await self.runtime.submit(self.runtime.execute, list(args))


def check_memory_headroom(size: int) -> None:
    """
    Refuse inputs that would eat into the reserved share of system memory.

    Raises:
        InputReadError: If loading ``size`` bytes would leave too little free
    """
    mem = psutil.virtual_memory()
    target_available = mem.total * EMBEDDED_MEMORY_RESERVE
    if mem.available - size < target_available:
        raise InputReadError(
            f"Not enough memory to load a {format_size(size)} input into the embedded runtime "
            f"({format_size(mem.available)} available)",
            module="embedded"
        )
