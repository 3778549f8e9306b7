"""Artifact relocator: staging directory -> permanent storage."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from loguru import logger

from librarian.ingest.errors import RelocationError
from librarian.models.schemas import Descriptor
from librarian.utils.helpers import format_bytes


@dataclass(slots=True)
class Relocation:
    """Where a build's artifacts ended up."""

    destination: Path
    files: List[Path] = field(default_factory=list)


def build_storage_path(storage_root: Path, project: str, version: str, number: int) -> Path:
    """Return ``<storage_root>/<project>/<version>/<number>``."""
    return Path(storage_root) / project / version / str(number)


def relocate_artifacts(descriptor: Descriptor, staging_dir: Path, storage_root: Path) -> Relocation:
    """
    Copy every declared download from ``staging_dir`` into permanent storage.

    Copies run in declaration order and stop at the first failure; files
    already copied are left in place. Checksums are not verified.

    Raises:
        RelocationError: a source file is missing or could not be copied
    """
    destination = build_storage_path(storage_root, descriptor.project, descriptor.version, descriptor.number)
    try:
        destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RelocationError(Path(staging_dir), destination, e) from e

    relocation = Relocation(destination=destination)
    for key, download in descriptor.downloads.items():
        source = Path(staging_dir) / download.name
        target = destination / download.name
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise RelocationError(source, target, e) from e

        relocation.files.append(target)
        logger.debug(f"Copied {key} download {download.name} ({format_bytes(target.stat().st_size)}) to {destination}")

    logger.info(f"Stored {len(relocation.files)} download(s) in {destination}")
    return relocation
