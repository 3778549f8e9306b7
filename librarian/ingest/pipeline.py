"""
Ingestion pipeline.

Runs the named stages Read -> Resolve -> Relocate -> Record -> Clean for one
descriptor file. Each stage returns a typed result consumed by the next; any
stage failure aborts that ingestion without touching later stages.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger
from neo4j.exceptions import DriverError, Neo4jError

from librarian.ingest.cleaner import clean_staging
from librarian.ingest.errors import IngestCancelledError, IngestError
from librarian.ingest.reader import read_descriptor
from librarian.ingest.recorder import record_build
from librarian.ingest.relocator import Relocation, relocate_artifacts
from librarian.ingest.resolver import Hierarchy, Store, resolve_hierarchy
from librarian.models.schemas import BuildNode, Descriptor
from librarian.utils.config import Settings
from librarian.utils.neo4j_client import Neo4jClient


@dataclass(slots=True)
class ReadResult:
    """A parsed descriptor and the staging directory it was uploaded to."""

    descriptor: Descriptor
    staging_dir: Path


@dataclass(slots=True)
class IngestResult:
    """Outcome of a completed ingestion."""

    descriptor: Descriptor
    hierarchy: Hierarchy
    relocation: Relocation
    build: BuildNode


def log_descriptor(descriptor: Descriptor) -> None:
    logger.info(f"Project: {descriptor.repo} ({descriptor.project})")
    logger.info(f"Version: {descriptor.version}")
    logger.info(f"Build: {descriptor.number}")
    downloads = {key: download.model_dump() for key, download in descriptor.downloads.items()}
    changes = [change.model_dump() for change in descriptor.changes]
    logger.info(f"Downloads: {downloads}")
    logger.info(f"Changes: {changes}")
    logger.info(f"Supported Java Versions: {', '.join(descriptor.supported_java_versions)}")
    logger.info(f"Supported Bedrock Versions: {', '.join(descriptor.supported_bedrock_versions)}")


class IngestPipeline:
    """Ingests one uploaded build per descriptor file."""

    def __init__(self, settings: Settings, client: Neo4jClient):
        """
        Initialize pipeline.

        Args:
            settings: Application settings (paths, channel, reader timing)
            client: Store client; a fresh store session is taken per ingestion
        """
        self.settings = settings
        self.client = client
        self.stopping = threading.Event()

    def _sleep(self, seconds: float) -> None:
        if self.stopping.wait(seconds):
            raise IngestCancelledError("Shutting down before the metadata file settled")

    # Stages ----------------------------------------------------------------------

    def read(self, descriptor_path: Path) -> ReadResult:
        descriptor_path = Path(descriptor_path)
        descriptor = read_descriptor(
            descriptor_path,
            interval=self.settings.read_interval,
            timeout=self.settings.read_timeout,
            sleep=self._sleep,
        )
        return ReadResult(descriptor=descriptor, staging_dir=descriptor_path.parent)

    def resolve(self, store: Store, read: ReadResult) -> Hierarchy:
        return resolve_hierarchy(store, read.descriptor)

    def relocate(self, read: ReadResult) -> Relocation:
        return relocate_artifacts(read.descriptor, read.staging_dir, self.settings.storage_dir)

    def record(self, store: Store, read: ReadResult, hierarchy: Hierarchy) -> BuildNode:
        return record_build(store, hierarchy, read.descriptor, self.settings.build_channel)

    def clean(self, read: ReadResult) -> None:
        logger.info(f"Cleaning up {read.staging_dir}")
        clean_staging(read.staging_dir, self.settings.input_dir)

    # Orchestration ---------------------------------------------------------------

    def run(self, descriptor_path: Path) -> IngestResult:
        """Run every stage in order, raising on the first failure."""
        read = self.read(descriptor_path)
        log_descriptor(read.descriptor)

        with self.client.store() as store:
            hierarchy = self.resolve(store, read)
            relocation = self.relocate(read)
            build = self.record(store, read, hierarchy)

        self.clean(read)
        return IngestResult(
            descriptor=read.descriptor,
            hierarchy=hierarchy,
            relocation=relocation,
            build=build,
        )

    def ingest(self, descriptor_path: Path) -> Optional[IngestResult]:
        """
        Ingest the upload described by ``descriptor_path``.

        Failures are logged and swallowed so the watcher keeps running; the
        staging directory is left intact for inspection.

        Returns:
            The IngestResult, or None if the ingestion was abandoned
        """
        logger.info(f"Metadata file uploaded, processing {descriptor_path}...")
        try:
            return self.run(descriptor_path)
        except IngestError as e:
            logger.error(f"Ingestion of {descriptor_path} failed: {e}")
        except (Neo4jError, DriverError) as e:
            logger.error(f"Ingestion of {descriptor_path} failed, store unavailable: {e}")
        return None
