#!/usr/bin/env python3
"""
Upload directory watcher.

Monitors the upload root for completed uploads and dispatches descriptor
files to the ingestion pipeline.
Uses watchdog library for cross-platform file system event monitoring.
"""

import signal
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from librarian.ingest.pipeline import IngestPipeline
from librarian.utils.config import Settings, get_settings
from librarian.utils.helpers import normalise_path, should_exclude_path
from librarian.utils.neo4j_client import Neo4jClient


def _log_unexpected_failure(future: Future):
    error = future.exception()
    if error is not None:
        logger.opt(exception=error).error(f"Unexpected ingestion failure: {error}")


class UploadEventHandler(FileSystemEventHandler):
    """Routes newly added upload files to the ingestion pipeline."""

    def __init__(self, pipeline: IngestPipeline, settings: Settings, executor: Executor):
        """
        Initialize event handler.

        Args:
            pipeline: Pipeline run for each descriptor file
            settings: Application settings
            executor: Executor the ingestions are submitted to
        """
        super().__init__()
        self.pipeline = pipeline
        self.settings = settings
        self.executor = executor
        self.root = normalise_path(settings.input_dir)
        self.reserved_dirs = settings.get_reserved_dirs()
        self.artifact_extensions = settings.get_artifact_extensions()
        self.in_flight: set[Path] = set()
        self.lock = threading.Lock()

    def should_process(self, path: str) -> bool:
        """Check if path is a candidate upload file."""
        return not should_exclude_path(Path(path), self.root, self.reserved_dirs)

    def handle_added(self, raw_path: str) -> Optional[Future]:
        """
        Classify a newly added file.

        Returns:
            The scheduled ingestion for descriptor files, None otherwise
        """
        path = Path(raw_path)
        if not self.should_process(raw_path):
            return None

        # A directory can still slip through as a file event on some platforms
        if path.is_dir():
            return None

        if path.name == self.settings.descriptor_filename:
            return self._schedule(path)

        if path.suffix.lower() in self.artifact_extensions:
            logger.info(f"{path.name} created")

        return None

    def _schedule(self, path: Path) -> Optional[Future]:
        # The startup scan and a live event can both report the same upload
        with self.lock:
            if path in self.in_flight:
                return None
            self.in_flight.add(path)

        def _finished(future: Future):
            with self.lock:
                self.in_flight.discard(path)
            _log_unexpected_failure(future)

        future = self.executor.submit(self.pipeline.ingest, path)
        future.add_done_callback(_finished)
        return future

    def on_any_event(self, event: FileSystemEvent):
        """Trace raw events outside production."""
        if not self.settings.is_production:
            logger.debug(f"Raw event info: {event.event_type} {event.src_path}")

    def on_created(self, event: FileSystemEvent):
        """Handle file creation."""
        if event.is_directory:
            return
        self.handle_added(event.src_path)

    def on_moved(self, event: FileSystemEvent):
        """Handle files renamed into place by the uploader."""
        if event.is_directory:
            return
        self.handle_added(event.dest_path)


class UploadWatcher:
    """Upload directory monitoring orchestrator."""

    def __init__(self, settings: Settings = None, client: Neo4jClient = None):
        """Initialize upload watcher."""
        self.settings = settings or get_settings()
        self.client = client or Neo4jClient()
        self.root = normalise_path(self.settings.input_dir)

        self.pipeline = IngestPipeline(self.settings, self.client)
        self.executor = ThreadPoolExecutor(
            max_workers=self.settings.ingest_workers,
            thread_name_prefix="ingest",
        )
        self.event_handler = UploadEventHandler(self.pipeline, self.settings, self.executor)
        self.observer = Observer()
        self.stop_event = threading.Event()

        logger.info("Upload watcher initialized")

    def start_watching(self) -> List[Future]:
        """
        Start watching the upload root.

        Returns:
            Ingestions scheduled for uploads already waiting in the root
        """
        self.root.mkdir(parents=True, exist_ok=True)
        self.observer.schedule(self.event_handler, str(self.root), recursive=True)
        self.observer.start()
        logger.success(f"Watching for file changes on {self.root}")
        return self.scan_existing()

    def scan_existing(self) -> List[Future]:
        """Dispatch descriptors left in the upload root while not watching."""
        scheduled = []
        for path in sorted(self.root.rglob(self.settings.descriptor_filename)):
            future = self.event_handler.handle_added(str(path))
            if future is not None:
                scheduled.append(future)

        if scheduled:
            logger.info(f"Found {len(scheduled)} upload(s) waiting in {self.root}")
        return scheduled

    def stop_watching(self):
        """Stop watching and wait for running ingestions to finish or give up."""
        self.observer.stop()
        self.observer.join()
        self.pipeline.stopping.set()
        self.executor.shutdown(wait=True)
        logger.info("Upload observer stopped")

    def stop(self):
        self.stop_event.set()

    def run(self, poll: float = 1.0):
        """Run upload watcher until stopped or signalled."""
        logger.info("Starting upload watcher...")

        def _signal_handler(signum, frame):  # noqa: D401
            logger.info(f"Received signal {signum}, shutting down.")
            self.stop()

        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)

        self.start_watching()
        try:
            while not self.stop_event.is_set():
                if not self.observer.is_alive():
                    raise RuntimeError("File system observer died")
                self.stop_event.wait(poll)
        finally:
            self.stop_watching()
