"""Staging cleaner."""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from librarian.ingest.errors import CleanupError
from librarian.utils.helpers import normalise_path


def clean_staging(staging_dir: Path, upload_root: Path) -> None:
    """
    Remove an ingested upload.

    A descriptor dropped directly into the watch root only removes the files
    beside it, so the root itself keeps being watched. Any other staging
    directory is removed recursively.
    """
    staging_dir = normalise_path(Path(staging_dir))

    try:
        if staging_dir == normalise_path(Path(upload_root)):
            removed = 0
            for entry in staging_dir.iterdir():
                if entry.is_file():
                    entry.unlink()
                    removed += 1
            logger.info(f"Removed {removed} uploaded file(s) from {staging_dir}")
        else:
            shutil.rmtree(staging_dir)
            logger.info(f"Removed staging directory {staging_dir}")
    except OSError as e:
        raise CleanupError(f"Failed to clean up {staging_dir}: {e}") from e
