# skullking_scorer/paths.py
from __future__ import annotations

from pathlib import Path


def ensure_data_dir(data_dir: str | Path) -> Path:
    """Create the data directory if it does not exist and return it."""
    path = Path(data_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def resolve_data_path(path_like: str | Path, data_dir: str | Path) -> Path:
    """
    Resolve a user-specified path into the data directory.

    Absolute paths are returned unchanged. Relative paths are anchored inside
    `data_dir` so exports and charts land next to the score store.
    """
    path = Path(path_like)
    if path.is_absolute():
        return path
    return ensure_data_dir(data_dir) / path
