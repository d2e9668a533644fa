"""Execution backends for encoder and prober commands

This package provides:
- The shared backend contract (file I/O plus command execution)
- The native backend, spawning ffmpeg/ffprobe processes
- The embedded backend, driving the process-wide sandboxed runtime
"""

from .base import FFMPEG, FFPROBE, ExecutionBackend, check_name
from .native import NativeBackend
from .embedded import (
    EmbeddedBackend, EmbeddedRuntime, RuntimeProvider, default_provider, load_runtime
)

__all__ = [
    'FFMPEG',
    'FFPROBE',
    'ExecutionBackend',
    'check_name',
    'NativeBackend',
    'EmbeddedBackend',
    'EmbeddedRuntime',
    'RuntimeProvider',
    'default_provider',
    'load_runtime',
]
