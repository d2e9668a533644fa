"""Unit tests for the command-line entry point."""
import json
from tagexport.__main__ import main, parse_args
from tagexport.exceptions import SegmentEncodingError
from tagexport.models import EmbeddedInput, ExportResult, NativeInput

PROJECT = {
    "schemaVersion": 1,
    "mainLabels": [{"id": "goal", "name": "Goal"}],
    "segments": [{"id": "s1", "startTimeSec": 0, "endTimeSec": 2, "mainLabelId": "goal"}],
}

def write_inputs(tmp_path):
    video = tmp_path / "game.mp4"
    video.write_bytes(b"video")
    project = tmp_path / "game.json"
    project.write_text(json.dumps(PROJECT), encoding="utf-8")
    return video, project

def test_parse_args_defaults(tmp_path):
    """Test default argument values."""
    args = parse_args(["game.mp4", "game.json"])
    assert args.backend == "native"
    assert args.add_gap is False
    assert args.output is None
    assert args.file_logging is True

def test_embedded_export(tmp_path, mocker):
    """Test an embedded export writes the returned bytes."""
    video, project = write_inputs(tmp_path)
    output = tmp_path / "out" / "highlights.mp4"
    export = mocker.patch("tagexport.__main__.export_segments_sync",
                          return_value=ExportResult(data=b"mp4", name="highlights.mp4"))

    code = main(["--no-log-file", "--backend", "embedded", "--gap",
                 "-o", str(output), str(video), str(project)])

    assert code == 0
    assert output.read_bytes() == b"mp4"
    request = export.call_args.args[0]
    assert isinstance(request.input, EmbeddedInput)
    assert request.input.data == b"video"
    assert request.add_gap is True
    assert request.output_name == "highlights.mp4"
    assert [s.id for s in request.segments] == ["s1"]

def test_native_export(tmp_path, mocker):
    """Test a native export defaults to export.mp4 next to the input."""
    video, project = write_inputs(tmp_path)
    mocker.patch("tagexport.__main__.check_dependencies", return_value=True)
    export = mocker.patch("tagexport.__main__.export_segments_sync",
                          return_value=ExportResult(data=b"mp4", name="export.mp4"))

    assert main(["--no-log-file", str(video), str(project)]) == 0
    assert isinstance(export.call_args.args[0].input, NativeInput)
    assert (tmp_path / "export.mp4").read_bytes() == b"mp4"

def test_missing_dependencies(tmp_path, mocker):
    """Test the native backend refuses to start without ffmpeg."""
    video, project = write_inputs(tmp_path)
    mocker.patch("tagexport.__main__.check_dependencies", return_value=False)
    export = mocker.patch("tagexport.__main__.export_segments_sync")
    assert main(["--no-log-file", str(video), str(project)]) == 1
    export.assert_not_called()

def test_export_failure(tmp_path, mocker):
    """Test export errors become exit status 1."""
    video, project = write_inputs(tmp_path)
    mocker.patch("tagexport.__main__.export_segments_sync",
                 side_effect=SegmentEncodingError("Cut of segment s1 failed", module="cut"))
    assert main(["--no-log-file", "--backend", "embedded", str(video), str(project)]) == 1
    assert not (tmp_path / "export.mp4").exists()

def test_invalid_project(tmp_path):
    """Test an unreadable project file."""
    video, _ = write_inputs(tmp_path)
    assert main(["--no-log-file", str(video), str(tmp_path / "missing.json")]) == 1

def test_native_export_without_prober(tmp_path, mocker):
    """Test a missing ffprobe only degrades probing and does not block the export."""
    video, project = write_inputs(tmp_path)
    mocker.patch("tagexport.utils.shutil.which",
                 side_effect=lambda name, path=None: None if "ffprobe" in name else "/usr/bin/ffmpeg")
    export = mocker.patch("tagexport.__main__.export_segments_sync",
                          return_value=ExportResult(data=b"mp4", name="export.mp4"))

    assert main(["--no-log-file", str(video), str(project)]) == 0
    export.assert_called_once()

def test_native_export_without_encoder(tmp_path, mocker):
    """Test a missing ffmpeg stops a native export before it starts."""
    video, project = write_inputs(tmp_path)
    mocker.patch("tagexport.utils.shutil.which", return_value=None)
    export = mocker.patch("tagexport.__main__.export_segments_sync")

    assert main(["--no-log-file", str(video), str(project)]) == 1
    export.assert_not_called()

def test_unreadable_embedded_input(tmp_path, mocker):
    """Test a missing input file for the embedded backend is a clean failure."""
    _, project = write_inputs(tmp_path)
    export = mocker.patch("tagexport.__main__.export_segments_sync")

    assert main(["--no-log-file", "--backend", "embedded",
                 str(tmp_path / "missing.mp4"), str(project)]) == 1
    export.assert_not_called()
