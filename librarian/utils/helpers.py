"""
Helper utilities for the Build Librarian.

Common functions used across the ingestion stages.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional
from uuid import uuid4


def generate_uuid() -> str:
    """Generate a unique identifier."""
    return str(uuid4())


def now_utc() -> datetime:
    """Get current timestamp as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def to_json(value: Any) -> str:
    """Serialise a nested value for storage as a single node property."""
    return json.dumps(value, sort_keys=True)


def normalise_path(path: Path) -> Path:
    """Return a resolved version of ``path`` without forcing existence."""

    try:
        return path.expanduser().resolve()
    except FileNotFoundError:
        return path.expanduser().absolute()


def should_exclude_path(path: Path, root: Path, reserved_dirs: Iterable[str] = ()) -> bool:
    """
    Check if path should be excluded from the upload watch.

    A path is excluded when any component below ``root`` is hidden or is one
    of the reserved bookkeeping directories.

    Args:
        path: Path to check
        root: Watched upload root
        reserved_dirs: Directory names reserved for internal bookkeeping

    Returns:
        True if should exclude, False otherwise
    """
    relative = relative_to_root(path, root)
    if relative is None:
        return True

    reserved = set(reserved_dirs)
    for part in relative.parts:
        if part.startswith('.') or part in reserved:
            return True

    return False


def relative_to_root(path: Path, root: Path) -> Optional[Path]:
    """Return ``path`` relative to ``root`` when possible."""
    try:
        return normalise_path(path).relative_to(normalise_path(root))
    except ValueError:
        return None


def format_bytes(bytes_count: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.1f} PB"
