"""
Command-line interface for the tagexport segment exporter
"""
import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import DEFAULT_OUTPUT_NAME, LOG_LEVEL
from .exceptions import TagExportError
from .formatting import print_error, print_header, print_info, print_progress, print_success
from .logging import configure_logging
from .models import EmbeddedInput, ExportRequest, NativeInput
from .pipeline import export_segments_sync
from .project import load_project
from .utils import check_dependencies, format_size

def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        prog="tagexport",
        description="Export tagged segments of a video as one captioned MP4"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set logging level (default from config)"
    )
    parser.add_argument(
        "--no-log-file",
        dest="file_logging",
        action="store_false",
        help="Only log to the console"
    )
    parser.add_argument(
        "--backend",
        choices=["native", "embedded"],
        default="native",
        help="native spawns the system ffmpeg; embedded uses the bundled runtime (default: %(default)s)"
    )
    parser.add_argument(
        "--gap",
        dest="add_gap",
        action="store_true",
        help="Insert a short black gap between clips"
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help=f"Output file (default: {DEFAULT_OUTPUT_NAME} next to the input)"
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Source video file"
    )
    parser.add_argument(
        "project",
        type=Path,
        help="Project JSON with mainLabels and segments"
    )
    return parser.parse_args(argv)

def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    configure_logging(args.log_level or LOG_LEVEL, file_logging=args.file_logging)

    log = logging.getLogger("tagexport")
    print_header(f"tagexport v{__version__}")

    output = args.output or args.input.with_name(DEFAULT_OUTPUT_NAME)
    try:
        project = load_project(args.project)
        if args.backend == "native":
            if not check_dependencies():
                log.error("ffmpeg is required for native exports")
                return 1
            source = NativeInput(args.input)
        else:
            source = EmbeddedInput.from_path(args.input)

        request = ExportRequest(
            input=source,
            segments=project.segments,
            labels=project.labels,
            output_name=output.name,
            add_gap=args.add_gap,
        )
        print_info(f"Exporting {len(project.segments)} segments from {args.input.name}")
        result = export_segments_sync(request, on_progress=print_progress)

        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(result.data)
    except KeyboardInterrupt:
        log.warning("Export interrupted by user")
        return 130
    except TagExportError as e:
        print_error(e.message)
        return 1
    except OSError as e:
        log.exception("Export failed: %s", e)
        print_error(str(e))
        return 1

    print_success(f"Wrote {output} ({format_size(result.size)})")
    return 0

if __name__ == "__main__":
    sys.exit(main())
