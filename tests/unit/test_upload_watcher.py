import pytest

pytest.importorskip("watchdog", reason="watchdog dependency is required for handler tests")

from watchdog.events import DirCreatedEvent, FileCreatedEvent, FileMovedEvent

from conftest import ImmediateExecutor, paper_descriptor, write_upload
from librarian.ingest.watchers.filesystem import UploadEventHandler


class RecordingPipeline:
    def __init__(self):
        self.ingested = []

    def ingest(self, path):
        self.ingested.append(path)
        return path


@pytest.fixture
def handler(settings):
    settings.input_dir.mkdir(parents=True, exist_ok=True)
    return UploadEventHandler(RecordingPipeline(), settings, ImmediateExecutor())


def test_descriptor_dispatches_ingestion(handler, settings):
    path = write_upload(settings.input_dir / "paper-50", paper_descriptor())

    handler.dispatch(FileCreatedEvent(str(path)))

    assert handler.pipeline.ingested == [path]


def test_descriptor_renamed_into_place_dispatches(handler, settings):
    path = write_upload(settings.input_dir / "paper-50", paper_descriptor())

    handler.dispatch(FileMovedEvent(str(path.with_name("metadata.json.part")), str(path)))

    assert handler.pipeline.ingested == [path]


def test_artifact_is_only_logged(handler, settings, caplog):
    jar = settings.input_dir / "paper-50.jar"
    jar.write_bytes(b"jar")

    handler.dispatch(FileCreatedEvent(str(jar)))

    assert handler.pipeline.ingested == []
    assert "paper-50.jar created" in caplog.text


@pytest.mark.parametrize("relative", [".hidden/metadata.json", "repo/metadata.json", "upload/.metadata.json"])
def test_excluded_paths_are_ignored(handler, settings, relative):
    path = settings.input_dir / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("{}")

    handler.dispatch(FileCreatedEvent(str(path)))

    assert handler.pipeline.ingested == []


def test_directories_are_skipped(handler, settings):
    directory = settings.input_dir / "metadata.json"
    directory.mkdir()

    handler.dispatch(DirCreatedEvent(str(directory)))
    handler.dispatch(FileCreatedEvent(str(directory)))

    assert handler.pipeline.ingested == []


def test_other_files_are_ignored(handler, settings):
    path = settings.input_dir / "notes.txt"
    path.write_text("hello")

    handler.dispatch(FileCreatedEvent(str(path)))

    assert handler.pipeline.ingested == []


def test_raw_events_traced_outside_production(handler, settings, caplog):
    path = settings.input_dir / "notes.txt"
    path.write_text("hello")

    handler.dispatch(FileCreatedEvent(str(path)))

    assert "Raw event info: created" in caplog.text
