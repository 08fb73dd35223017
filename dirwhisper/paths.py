from __future__ import annotations

from pathlib import Path


def ensure_directories(*directories: Path) -> None:
    """Create each directory if it is missing."""
    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)


def require_accessible_path(path: Path, description: str) -> Path:
    """Return the canonical absolute form of an existing directory."""
    if not path.exists():
        raise FileNotFoundError(f"{description} not found at {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"{description} expected to be a directory at {path}")
    return path.resolve(strict=True)


def remove_file_if_exists(path: Path) -> bool:
    """Delete ``path``; return False when there was nothing to delete."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
