import json
from pathlib import Path

from bugbot.orchestration.artifact_manager import ArtifactManager, network_entries_to_har
from tests.fixtures.models.schema_factories import NetworkEntryFactory, RunReportFactory


class TestNetworkEntriesToHar:
    """Test suite for the HAR export."""

    # ? VALID CASE
    def test_har_structure(self) -> None:
        """Test the HAR 1.2 layout of a completed request."""
        har = network_entries_to_har([NetworkEntryFactory.custom_build()])
        entry = har["log"]["entries"][0]

        assert har["log"]["version"] == "1.2"
        assert har["log"]["creator"]["name"] == "BugBot"
        assert entry["startedDateTime"] == "2023-11-14T22:13:20.000+00:00"
        assert entry["request"]["method"] == "POST"
        assert entry["request"]["headers"] == [{"name": "content-type", "value": "application/json"}]
        assert entry["response"]["status"] == 200
        assert entry["response"]["statusText"] == "OK"

    # ? VALID CASE
    def test_pending_and_failed_requests(self) -> None:
        """Test status 0 for unanswered requests and error status text."""
        har = network_entries_to_har(
            [
                NetworkEntryFactory.custom_build(status=None, response_headers=None),
                NetworkEntryFactory.custom_build(status=500),
            ]
        )
        pending, failed = har["log"]["entries"]

        assert pending["response"]["status"] == 0
        assert pending["response"]["statusText"] == "Pending"
        assert pending["response"]["headers"] == []
        assert failed["response"]["statusText"] == "Error"


class TestArtifactManager:
    """Test suite for `ArtifactManager`."""

    # ? VALID CASE
    def test_initialize_creates_run_directory(self, tmp_path: Path) -> None:
        """Test the run directory layout."""
        manager = ArtifactManager("run-1", tmp_path)
        paths = manager.initialize()

        assert (tmp_path / "run-1" / "videos").is_dir()
        assert paths.tracing_path == str(tmp_path / "run-1" / "trace.zip")
        assert paths.video_path is None

    # ? VALID CASE
    def test_writes_artifacts(self, tmp_path: Path) -> None:
        """Test HAR, console log and report files."""
        manager = ArtifactManager("run-1", tmp_path)
        manager.initialize()

        har_path = manager.save_network_har([NetworkEntryFactory.custom_build()])
        logs_path = manager.save_console_logs(["first error", "second error"])
        report_path = manager.save_report(RunReportFactory.custom_build())

        assert len(json.loads(har_path.read_text())["log"]["entries"]) == 1
        assert logs_path.read_text() == "first error\nsecond error"
        assert json.loads(report_path.read_text())["runId"] == "run-test-1"

    # ? VALID CASE
    def test_copy_video(self, tmp_path: Path) -> None:
        """Test that the recording is copied into the run directory."""
        source = tmp_path / "recording.webm"
        source.write_bytes(b"webm")
        manager = ArtifactManager("run-1", tmp_path / "runs")

        copied = manager.copy_video(str(source))

        assert copied == str(tmp_path / "runs" / "run-1" / "videos" / "recording.webm")
        assert Path(copied).read_bytes() == b"webm"

    # ! INVALID CASE
    def test_copy_missing_video(self, tmp_path: Path) -> None:
        """Test that a missing recording is not an error."""
        manager = ArtifactManager("run-1", tmp_path)

        assert manager.copy_video(None) is None
        assert manager.copy_video(str(tmp_path / "missing.webm")) is None
