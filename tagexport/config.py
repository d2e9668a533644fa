"""Configuration settings for the tagexport segment-export pipeline

This module centralizes all configuration settings including:
- Working directory and log locations
- Encoder binary resolution and PATH augmentation
- Clip, gap and concat encode parameters
- Segment validation thresholds and probe defaults

User-configurable settings come from environment variables; the rest are
internal constants shared by the command builders and the orchestrator.
"""

import os
import sys
from pathlib import Path

# Working root for native exports and the embedded runtime sandbox
WORKING_ROOT = Path(os.environ.get("TAGEXPORT_WORKDIR", str(Path(os.environ.get("TMPDIR", "/tmp")) / "tagexport")))

# LOG_DIR: user definable with default of "$HOME/tagexport_logs"
LOG_DIR = Path(os.environ.get("TAGEXPORT_LOG_DIR", str(Path.home() / "tagexport_logs")))

# Explicit encoder/prober binaries; empty means search PATH
FFMPEG_BINARY = os.environ.get("TAGEXPORT_FFMPEG", "")
FFPROBE_BINARY = os.environ.get("TAGEXPORT_FFPROBE", "")

# Extra directories appended to PATH for native runs. Homebrew installs
# land outside the default GUI PATH on macOS.
if "TAGEXPORT_EXTRA_PATH" in os.environ:
    EXTRA_SEARCH_PATHS = [p for p in os.environ["TAGEXPORT_EXTRA_PATH"].split(os.pathsep) if p]
elif sys.platform == "darwin":
    EXTRA_SEARCH_PATHS = ["/opt/homebrew/bin", "/usr/local/bin"]
else:
    EXTRA_SEARCH_PATHS = []

# Caption font copied next to the clips as FONT_NAME; empty disables it
FONT_PATH = os.environ.get("TAGEXPORT_FONT", "")
FONT_NAME = "font.ttf"

# Encoding settings shared by clips, gaps and the concat fallback
VIDEO_CODEC = "libx264"
PRESET = "veryfast"
CRF = 23
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "128k"
PIX_FMT = "yuv420p"

# Segment validation
MIN_SEGMENT_DURATION = 0.02  # Segments this short or shorter are dropped

# Gap clip settings
GAP_DURATION = 0.5
GAP_AUDIO_LAYOUT = "stereo"

# Probe defaults used when a query fails
DEFAULT_WIDTH = 1280
DEFAULT_HEIGHT = 720
DEFAULT_SAMPLE_RATE = 48000
DEFAULT_FPS = 30
FPS_MIN = 1
FPS_MAX = 240
OVERLAY_FILTER = "drawtext"

# Caption overlay layout
PRIMARY_CAPTION = {"x": 30, "y": 30, "fontsize": 44}
SECONDARY_CAPTION = {"x": 30, "y": 85, "fontsize": 22}
CAPTION_STYLE = "fontcolor=white:shadowcolor=black@0.6:shadowx=2:shadowy=2"
FALLBACK_CAPTION = "Tag"

# Output
OUTPUT_MEDIA_TYPE = "video/mp4"
DEFAULT_OUTPUT_NAME = "export.mp4"

# Headroom required before loading an input into the embedded runtime
EMBEDDED_MEMORY_RESERVE = 0.2  # Keep 20% of system memory free

# Number of encoder stderr lines kept for error messages
STDERR_TAIL_LINES = 20

# Logging configuration
LOG_LEVEL = os.environ.get("TAGEXPORT_LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
