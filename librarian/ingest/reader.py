"""Descriptor reader.

The creation event for ``metadata.json`` can fire while the uploader is still
writing it, so the reader polls until the file size stops changing before
parsing it. A missing or growing file is waited on; an empty or malformed file
is a definitive failure.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional

from loguru import logger
from pydantic import ValidationError

from librarian.ingest.errors import (
    DescriptorParseError,
    DescriptorReadError,
    DescriptorTimeoutError,
    EmptyDescriptorError,
)
from librarian.models.schemas import Descriptor


def _current_size(path: Path) -> Optional[int]:
    try:
        return path.stat().st_size
    except FileNotFoundError:
        return None
    except OSError as e:
        raise DescriptorReadError(path, str(e)) from e


def parse_descriptor(path: Path) -> Descriptor:
    """Read and validate a descriptor file that is believed to be complete."""

    try:
        contents = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise DescriptorParseError(path, str(e)) from e
    except OSError as e:
        raise DescriptorReadError(path, str(e)) from e

    if not contents.strip():
        raise EmptyDescriptorError(path)

    try:
        return Descriptor.model_validate_json(contents)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "document"
        raise DescriptorParseError(path, f"{location}: {first['msg']}") from e


def read_descriptor(
    path: Path,
    interval: float = 1.0,
    timeout: float = 300.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Descriptor:
    """
    Wait for ``path`` to be fully written, then parse it.

    Args:
        path: Descriptor file location
        interval: Seconds between polls
        timeout: Maximum seconds to wait for the file to settle
        sleep: Sleep function, replaceable in tests
        clock: Monotonic clock, replaceable in tests

    Returns:
        The parsed Descriptor

    Raises:
        EmptyDescriptorError: file settled with no content
        DescriptorParseError: file is not a valid descriptor
        DescriptorReadError: file could not be read
        DescriptorTimeoutError: file never settled within ``timeout``
    """
    path = Path(path)
    started = clock()
    last_size = _current_size(path)
    attempts = 0

    while True:
        sleep(interval)
        attempts += 1
        size = _current_size(path)

        if size is not None and size == last_size:
            logger.debug(f"Metadata file settled at {size} bytes after {attempts} poll(s): {path}")
            return parse_descriptor(path)

        last_size = size
        waited = clock() - started
        if waited >= timeout:
            raise DescriptorTimeoutError(path, waited)

        if size is None:
            logger.debug(f"Waiting for metadata file to appear: {path}")
        else:
            logger.debug(f"Metadata file still being written ({size} bytes): {path}")
