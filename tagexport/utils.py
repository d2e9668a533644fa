"""Utility functions for the tagexport pipeline"""

import logging
import os
import shutil
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Sequence

from .exceptions import DependencyError

logger = logging.getLogger(__name__)

def get_timestamp() -> str:
    """Get current timestamp in YYYYMMDD_HHMMSS format"""
    return datetime.now().strftime("%Y%m%d_%H%M%S")

def unique_suffix() -> str:
    """Millisecond timestamp used to unique temp file names"""
    return str(int(time.time() * 1000))

def format_seconds(value: float) -> str:
    """Clamp to >= 0 and format with millisecond precision for -ss/-t"""
    return f"{max(0.0, value or 0.0):.3f}"

def format_size(size: int) -> str:
    """Format file size for display"""
    for unit in ['B', 'KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}TiB"

def augmented_path(extra_dirs: Sequence[str], base: Optional[str] = None) -> str:
    """Append extra search directories to a PATH string, skipping duplicates"""
    base = os.environ.get("PATH", "") if base is None else base
    parts = [p for p in base.split(os.pathsep) if p]
    for extra in extra_dirs:
        if extra not in parts:
            parts.append(extra)
    return os.pathsep.join(parts)

def augmented_env(extra_dirs: Sequence[str]) -> Dict[str, str]:
    """Copy of the current environment with PATH augmented"""
    env = os.environ.copy()
    env["PATH"] = augmented_path(extra_dirs, env.get("PATH", ""))
    return env

def resolve_binary(name: str, explicit: str = "", extra_dirs: Sequence[str] = (),
                   env_var: Optional[str] = None) -> str:
    """
    Resolve an encoder/prober binary.

    An explicit setting wins and must exist; otherwise PATH (plus the extra
    directories) is searched.

    Raises:
        DependencyError: If the binary cannot be found
    """
    hint = f"; set {env_var} to its location" if env_var else ""
    if explicit:
        candidate = shutil.which(explicit)
        if candidate is None:
            raise DependencyError(f"Configured {name} not found or not executable: {explicit}", module="utils")
        return candidate

    found = shutil.which(name, path=augmented_path(extra_dirs))
    if found is None:
        raise DependencyError(f"{name} not found on PATH{hint}", module="utils")
    logger.debug("Resolved %s to %s", name, found)
    return found

def remove_tree(path: Path) -> None:
    """Best-effort recursive delete; failures are logged"""
    try:
        if path.exists():
            shutil.rmtree(path)
            logger.debug("Removed working directory %s", path)
    except OSError as e:
        logger.warning("Failed to remove working directory %s: %s", path, e)

def check_dependencies(required: Sequence[str] = ("ffmpeg",),
                       optional: Sequence[str] = ("ffprobe",)) -> bool:
    """Check that the native encoder can be resolved.

    A missing optional tool (the prober) is only a warning: probing then
    falls back to default geometry and audio settings.
    """
    from .config import EXTRA_SEARCH_PATHS, FFMPEG_BINARY, FFPROBE_BINARY

    configured = {"ffmpeg": FFMPEG_BINARY, "ffprobe": FFPROBE_BINARY}
    for name in list(required) + list(optional):
        try:
            resolve_binary(name, configured.get(name, ""), EXTRA_SEARCH_PATHS,
                           env_var=f"TAGEXPORT_{name.upper()}")
        except DependencyError as e:
            if name in optional:
                logger.warning("Optional dependency not found, using probe defaults: %s", e.message)
                continue
            logger.error("Required dependency not found: %s", e.message)
            return False
    return True
