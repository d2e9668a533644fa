"""
tagexport - export tagged video segments as one captioned MP4

This package provides the export pipeline of the tagging tool:
- Validates and orders the user's segments
- Probes the source for geometry, audio rate and overlay support
- Cuts each segment with its label caption burned in
- Optionally separates clips with short black gaps
- Concatenates the clips, re-encoding when stream copy fails

Commands run either as native ffmpeg processes or inside the bundled,
process-wide embedded runtime.
"""

__version__ = "0.1.0"
