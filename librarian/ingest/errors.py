"""Exception hierarchy for build ingestion.

Every stage raises a subclass of ``IngestError``; the pipeline catches it,
logs it and abandons that single ingestion while the watcher keeps running.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class IngestError(Exception):
    """Base exception for a failed ingestion."""

    pass


class DescriptorError(IngestError):
    """The descriptor file could not be turned into a Descriptor."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{message}: {path}")


class EmptyDescriptorError(DescriptorError):
    def __init__(self, path: Path):
        super().__init__(path, "Metadata file is empty")


class DescriptorParseError(DescriptorError):
    def __init__(self, path: Path, reason: str):
        self.reason = reason
        super().__init__(path, f"Metadata file is malformed ({reason})")


class DescriptorReadError(DescriptorError):
    def __init__(self, path: Path, reason: str):
        self.reason = reason
        super().__init__(path, f"Error while reading metadata file ({reason})")


class DescriptorTimeoutError(DescriptorError):
    """Gave up waiting for the descriptor to finish being written."""

    def __init__(self, path: Path, waited: float):
        self.waited = waited
        super().__init__(path, f"Gave up waiting for metadata file after {waited:.1f}s")


class HierarchyResolutionError(IngestError):
    """A find-or-create step for a hierarchy node returned nothing."""

    def __init__(self, collection: str, key: dict, cause: Optional[Exception] = None):
        self.collection = collection
        self.key = key
        detail = f": {cause}" if cause else ""
        super().__init__(f"Could not resolve {collection} {key}{detail}")


class RelocationError(IngestError):
    """Copying an artifact into permanent storage failed."""

    def __init__(self, source: Path, destination: Path, cause: Exception):
        self.source = source
        self.destination = destination
        super().__init__(f"Failed to copy {source} to {destination}: {cause}")


class BuildRecordError(IngestError):
    """The build node could not be inserted."""

    pass


class CleanupError(IngestError):
    """The staging directory could not be removed."""

    pass


class IngestCancelledError(IngestError):
    """The watcher shut down while the ingestion was still waiting."""

    pass
